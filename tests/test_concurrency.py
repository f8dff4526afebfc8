"""
Concurrency tests for stock mutations.

Two sessions race on the same product through a shared SQLite file. The
version check plus a single retry must serialize them so no update is lost.
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from database import Base
from models.alert import LowStockAlert
from models.category import Category
from models.product import Product
from models.stock import StockMovement
from services import movements as ledger
from services.alerts import run_daily_reconciliation
from services.orders import complete_sales_order, create_sales_order


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _seed_product(factory, stock: int, minimum: int = 0) -> int:
    session = factory()
    try:
        category = Category(name="Race", description="")
        session.add(category)
        session.flush()
        product = Product(
            name="Contended", sku="RACE-001", description="", category_id=category.id,
            buying_price=1.0, selling_price=2.0, stock_quantity=stock,
            minimum_stock_level=minimum,
        )
        session.add(product)
        session.commit()
        return product.id
    finally:
        session.close()


def _run_parallel(factory, workers: int, task):
    barrier = Barrier(workers)

    def _worker(index):
        session = factory()
        try:
            barrier.wait()
            return task(session, index)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return [f.result() for f in [pool.submit(_worker, i) for i in range(workers)]]


class TestConcurrentMovements:

    def test_two_concurrent_outs_both_apply(self, file_session_factory):
        product_id = _seed_product(file_session_factory, stock=10)

        _run_parallel(
            file_session_factory, 2,
            lambda session, _: ledger.create_movement(session, product_id, "OUT", 5).id,
        )

        session = file_session_factory()
        try:
            assert session.query(Product).filter(Product.id == product_id).one().stock_quantity == 0
            assert session.query(StockMovement).count() == 2
        finally:
            session.close()

    def test_concurrent_completions_never_oversell(self, file_session_factory):
        product_id = _seed_product(file_session_factory, stock=10)
        setup = file_session_factory()
        try:
            order_ids = [
                create_sales_order(setup, product_id, quantity=6, unit_price=1.0, customer_name=f"C{i}").id
                for i in range(2)
            ]
        finally:
            setup.close()

        def _complete(session, index):
            try:
                complete_sales_order(session, order_ids[index])
                return "completed"
            except Exception as exc:
                return type(exc).__name__

        outcomes = _run_parallel(file_session_factory, 2, _complete)

        assert sorted(outcomes) == ["InsufficientStock", "completed"]
        session = file_session_factory()
        try:
            assert session.query(Product).filter(Product.id == product_id).one().stock_quantity == 4
        finally:
            session.close()


class TestSweepAgainstMovements:

    def test_movement_alert_during_sweep_is_not_duplicated(self, file_session_factory):
        product_id = _seed_product(file_session_factory, stock=5, minimum=10)
        sweep = file_session_factory()
        interleaved = []

        # The sweep has read the product; a movement lands before the sweep writes
        def _movement_first(session, flush_context, instances):
            if interleaved:
                return
            other = file_session_factory()
            try:
                interleaved.append(ledger.create_movement(other, product_id, "OUT", 1).id)
            finally:
                other.close()

        event.listen(sweep, "before_flush", _movement_first)
        try:
            report = run_daily_reconciliation(sweep)
        finally:
            sweep.close()

        assert interleaved
        assert report.low_stock_product_count == 1
        assert report.alerts_created == 0
        session = file_session_factory()
        try:
            open_alerts = session.query(LowStockAlert).filter(
                LowStockAlert.product_id == product_id, LowStockAlert.is_resolved.is_(False)
            ).all()
            assert len(open_alerts) == 1
            assert open_alerts[0].current_stock == 4
            assert session.query(Product).filter(Product.id == product_id).one().stock_quantity == 4
        finally:
            session.close()
