"""
Tests for low-stock alerts and the daily reconciliation sweep.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from exceptions import AlertNotFound
from models.alert import LowStockAlert
from services import movements as ledger
from services.alerts import active_alerts, all_alerts, resolve_low_stock_alert, run_daily_reconciliation


def _unresolved(db, product_id):
    return db.query(LowStockAlert).filter(
        LowStockAlert.product_id == product_id, LowStockAlert.is_resolved.is_(False)
    ).all()


class TestAlertRaising:

    def test_single_alert_while_low(self, db, make_product):
        product = make_product(stock=20, minimum=10)

        ledger.create_movement(db, product.id, "OUT", 12)
        alerts = _unresolved(db, product.id)
        assert len(alerts) == 1
        assert alerts[0].current_stock == 8

        ledger.create_movement(db, product.id, "OUT", 3)
        assert len(_unresolved(db, product.id)) == 1

    def test_recovery_does_not_auto_resolve(self, db, make_product):
        product = make_product(stock=20, minimum=10)
        ledger.create_movement(db, product.id, "OUT", 15)
        ledger.create_movement(db, product.id, "IN", 30)

        assert len(_unresolved(db, product.id)) == 1

    def test_new_alert_after_resolution(self, db, make_product):
        product = make_product(stock=20, minimum=10)
        ledger.create_movement(db, product.id, "OUT", 12)
        resolve_low_stock_alert(db, _unresolved(db, product.id)[0].id)

        ledger.create_movement(db, product.id, "OUT", 1)

        assert len(_unresolved(db, product.id)) == 1
        assert db.query(LowStockAlert).count() == 2

    def test_deleting_an_inbound_movement_can_raise_alert(self, db, make_product):
        product = make_product(stock=5, minimum=10)
        movement = ledger.create_movement(db, product.id, "IN", 20)

        ledger.delete_movement(db, movement.id)

        assert len(_unresolved(db, product.id)) == 1


class TestResolve:

    def test_resolve_sets_date_and_notes(self, db, make_product):
        product = make_product(stock=20, minimum=10)
        ledger.create_movement(db, product.id, "OUT", 15)
        alert_id = _unresolved(db, product.id)[0].id

        resolve_low_stock_alert(db, alert_id, notes="reordered")

        alert = db.query(LowStockAlert).filter(LowStockAlert.id == alert_id).one()
        assert alert.is_resolved is True
        assert alert.resolved_date is not None
        assert alert.notes == "reordered"
        assert active_alerts(db) == []
        assert len(all_alerts(db)) == 1

    def test_resolve_is_idempotent(self, db, make_product):
        product = make_product(stock=20, minimum=10)
        ledger.create_movement(db, product.id, "OUT", 15)
        alert_id = _unresolved(db, product.id)[0].id

        resolve_low_stock_alert(db, alert_id, notes="first")
        resolve_low_stock_alert(db, alert_id, notes="second")

        assert db.query(LowStockAlert).filter(LowStockAlert.id == alert_id).one().notes == "first"

    def test_unknown_alert(self, db):
        with pytest.raises(AlertNotFound):
            resolve_low_stock_alert(db, 777)


class TestDailyReconciliation:

    def test_reports_and_fills_missing_alerts(self, db, make_product):
        make_product(stock=3, minimum=5)
        make_product(stock=5, minimum=5)
        make_product(stock=50, minimum=5)
        make_product(stock=0, minimum=0)

        report = run_daily_reconciliation(db)

        assert report.products_checked == 4
        assert report.low_stock_product_count == 2
        assert report.alerts_created == 2
        assert len(active_alerts(db)) == 2

    def test_second_run_creates_nothing(self, db, make_product):
        make_product(stock=3, minimum=5)
        run_daily_reconciliation(db)

        report = run_daily_reconciliation(db)

        assert report.low_stock_product_count == 1
        assert report.alerts_created == 0
        assert db.query(LowStockAlert).count() == 1

    def test_does_not_touch_quantities(self, db, make_product):
        product = make_product(stock=3, minimum=5)
        run_daily_reconciliation(db)

        db.refresh(product)
        assert product.stock_quantity == 3


class TestOpenAlertIndex:

    def _alert(self, product, resolved=False):
        return LowStockAlert(
            product_id=product.id, product_name=product.name, current_stock=product.stock_quantity,
            minimum_stock_level=product.minimum_stock_level, is_resolved=resolved,
        )

    def test_second_open_alert_rejected_by_database(self, db, make_product):
        product = make_product(stock=1, minimum=5)
        db.add(self._alert(product))
        db.commit()

        db.add(self._alert(product))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

        assert len(_unresolved(db, product.id)) == 1

    def test_resolved_alerts_do_not_count(self, db, make_product):
        product = make_product(stock=1, minimum=5)
        db.add_all([self._alert(product, resolved=True), self._alert(product, resolved=True)])
        db.add(self._alert(product))
        db.commit()

        assert db.query(LowStockAlert).count() == 3
