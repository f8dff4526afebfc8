"""
Tests for the reconciliation engine.

Verifies:
- The movement type -> signed effect table
- TRANSFER direction rules
- Rejection of unknown types and negative stock
- Atomic rollback and the single optimistic-lock retry
"""

import pytest
from sqlalchemy.orm.exc import StaleDataError

from exceptions import ConcurrencyConflict, InsufficientStock, ProductNotFound, ValidationError
from models.alert import LowStockAlert
from models.stock import MovementType, StockMovement
from services.reconciliation import (
    apply_movement,
    evaluate_low_stock,
    movement_effect,
    parse_movement_type,
    reverse_movement,
    run_atomic,
)


class TestMovementEffect:
    """Sign table for every known movement type."""

    @pytest.mark.parametrize("movement_type", ["IN", "ADJUSTMENT", "Purchase", "Adjustment-In", "Return"])
    def test_inbound_types_add(self, movement_type):
        assert movement_effect(movement_type, 7) == 7

    @pytest.mark.parametrize("movement_type", ["OUT", "Sale", "Adjustment-Out", "Damaged", "Expired"])
    def test_outbound_types_subtract(self, movement_type):
        assert movement_effect(movement_type, 7) == -7

    def test_type_match_is_case_insensitive(self):
        assert movement_effect("purchase", 3) == 3
        assert movement_effect("adjustment-out", 3) == -3
        assert parse_movement_type(" in ") is MovementType.IN

    def test_transfer_to_destination_is_inbound(self):
        assert movement_effect("TRANSFER", 4, destination_location="Shelf B") == 4

    def test_transfer_from_source_is_outbound(self):
        assert movement_effect("TRANSFER", 4, source_location="Shelf A") == -4

    def test_transfer_with_both_locations_counts_as_inbound(self):
        assert movement_effect("TRANSFER", 4, source_location="A", destination_location="B") == 4

    def test_transfer_without_locations_is_rejected(self):
        with pytest.raises(ValidationError):
            movement_effect("TRANSFER", 4)

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            movement_effect("TELEPORT", 4)
        assert exc_info.value.code == "VALIDATION_ERROR"

    @pytest.mark.parametrize("quantity", [0, -5, None])
    def test_non_positive_quantity_is_rejected(self, quantity):
        with pytest.raises(ValidationError):
            movement_effect("IN", quantity)


class TestApplyAndReverse:
    """apply_movement / reverse_movement against a real session."""

    def test_apply_sets_effect_and_stock(self, db, product):
        movement = StockMovement(product_id=product.id, movement_type="in", quantity=5)
        apply_movement(db, movement)
        db.commit()

        assert movement.effect == 5
        assert movement.movement_type is MovementType.IN
        db.refresh(product)
        assert product.stock_quantity == 15

    def test_reverse_restores_stock(self, db, product):
        movement = apply_movement(db, StockMovement(product_id=product.id, movement_type="OUT", quantity=4))
        db.commit()
        reverse_movement(db, movement)
        db.commit()

        db.refresh(product)
        assert product.stock_quantity == 10

    def test_negative_stock_is_rejected(self, db, product):
        with pytest.raises(InsufficientStock) as exc_info:
            apply_movement(db, StockMovement(product_id=product.id, movement_type="OUT", quantity=11))
        assert exc_info.value.status_code == 409
        db.rollback()

        db.refresh(product)
        assert product.stock_quantity == 10

    def test_unknown_product(self, db):
        with pytest.raises(ProductNotFound):
            apply_movement(db, StockMovement(product_id=999, movement_type="IN", quantity=1))


class TestEvaluateLowStock:

    def test_no_alert_without_minimum(self, db, make_product):
        product = make_product(stock=0, minimum=0)
        assert evaluate_low_stock(db, product) is None

    def test_alert_at_minimum(self, db, make_product):
        product = make_product(stock=5, minimum=5)
        alert = evaluate_low_stock(db, product)
        db.commit()

        assert alert is not None
        assert alert.current_stock == 5
        assert alert.minimum_stock_level == 5
        assert alert.is_resolved is False

    def test_one_unresolved_alert_per_product(self, db, make_product):
        product = make_product(stock=2, minimum=5)
        evaluate_low_stock(db, product)
        assert evaluate_low_stock(db, product) is None
        db.commit()
        assert db.query(LowStockAlert).count() == 1


class TestRunAtomic:

    def test_commits_result(self, db, product):
        def _op(session):
            return apply_movement(session, StockMovement(product_id=product.id, movement_type="IN", quantity=1))

        run_atomic(db, _op)
        db.expire_all()
        assert db.query(StockMovement).count() == 1

    def test_rolls_back_on_error(self, db, product):
        def _op(session):
            apply_movement(session, StockMovement(product_id=product.id, movement_type="IN", quantity=3))
            raise ValidationError("boom")

        with pytest.raises(ValidationError):
            run_atomic(db, _op)

        db.refresh(product)
        assert product.stock_quantity == 10
        assert db.query(StockMovement).count() == 0

    def test_retries_stale_data_once(self, db):
        calls = []

        def _op(session):
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("lost race")
            return "ok"

        assert run_atomic(db, _op) == "ok"
        assert len(calls) == 2

    def test_second_stale_data_raises_conflict(self, db):
        def _op(session):
            raise StaleDataError("lost race")

        with pytest.raises(ConcurrencyConflict) as exc_info:
            run_atomic(db, _op)
        assert exc_info.value.status_code == 409
