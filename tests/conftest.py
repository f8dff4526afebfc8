"""
Pytest fixtures for the stock ledger test suite.

Provides:
- A fresh in-memory SQLite database per test (StaticPool, shared across threads)
- Catalog factories for categories, suppliers and products
- A FastAPI TestClient bound to the test session

The app lifespan is not entered, so the background scheduler never starts.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
import models.category  # noqa: F401
import models.supplier  # noqa: F401
import models.customer  # noqa: F401
import models.product  # noqa: F401
import models.stock  # noqa: F401
import models.order  # noqa: F401
import models.alert  # noqa: F401
import models.log  # noqa: F401
from models.category import Category
from models.order import SalesOrder, SalesOrderStatus
from models.product import Product
from models.supplier import Supplier


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def category(db) -> Category:
    category = Category(name="Electronics", description="Electronic devices and components")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def supplier(db) -> Supplier:
    supplier = Supplier(name="Tech Supplies Inc.", company_name="Tech Supplies Inc.", contact_person="John Smith")
    db.add(supplier)
    db.commit()
    return supplier


@pytest.fixture
def make_product(db, category, supplier):
    """Factory: make_product(stock=10, minimum=0, sku=None) -> committed Product."""
    counter = {"n": 0}

    def _make(stock: int = 10, minimum: int = 0, sku: str = None, buying_price: float = 10.0,
              selling_price: float = 20.0) -> Product:
        counter["n"] += 1
        product = Product(
            name=f"Product {counter['n']}",
            sku=sku or f"SKU-{counter['n']:03d}",
            description="",
            category_id=category.id,
            supplier_id=supplier.id,
            buying_price=buying_price,
            selling_price=selling_price,
            stock_quantity=stock,
            minimum_stock_level=minimum,
            reorder_level=minimum,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def product(make_product) -> Product:
    return make_product(stock=10)


@pytest.fixture
def make_pending_sale(db):
    """Factory for a pending sales order inserted directly, bypassing the creation stock check."""

    def _make(product: Product, quantity: int, unit_price: float = 25.0) -> SalesOrder:
        order = SalesOrder(
            product_id=product.id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=round(quantity * unit_price, 2),
            customer_name="Walk-in",
            status=SalesOrderStatus.PENDING.value,
        )
        db.add(order)
        db.commit()
        return order

    return _make


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
