"""
Reconciliation engine.

The only place that turns a movement into a signed stock delta and writes it
to a product. Movement CRUD and the order lifecycle both route through here,
so `products.stock_quantity` always equals the last explicit value plus the
sum of effects of the movements currently in the ledger.

All writes happen inside `run_atomic`, which commits once at the end, rolls
back on any error and retries a lost optimistic-lock race exactly once.
"""
import logging
from datetime import datetime
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from exceptions import ConcurrencyConflict, InsufficientStock, ProductNotFound, ValidationError
from models.alert import LowStockAlert
from models.product import Product
from models.stock import MovementType, StockMovement

logger = logging.getLogger(__name__)

T = TypeVar("T")

INBOUND_TYPES = frozenset({
    MovementType.IN,
    MovementType.ADJUSTMENT,
    MovementType.PURCHASE,
    MovementType.ADJUSTMENT_IN,
    MovementType.RETURN,
})
OUTBOUND_TYPES = frozenset({
    MovementType.OUT,
    MovementType.SALE,
    MovementType.ADJUSTMENT_OUT,
    MovementType.DAMAGED,
    MovementType.EXPIRED,
})


def parse_movement_type(value) -> MovementType:
    movement_type = MovementType.lookup(value)
    if movement_type is None:
        raise ValidationError(f"Unknown movement type: {value!r}", movement_type=str(value))
    return movement_type


def movement_effect(movement_type, quantity: int,
                    source_location: Optional[str] = None,
                    destination_location: Optional[str] = None) -> int:
    """Signed delta a movement applies to stock.

    TRANSFER checks the destination first, so a transfer naming both
    locations counts as inbound.
    """
    movement_type = parse_movement_type(movement_type)
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than zero", quantity=quantity)

    if movement_type in INBOUND_TYPES:
        return quantity
    if movement_type in OUTBOUND_TYPES:
        return -quantity
    if movement_type == MovementType.TRANSFER:
        if destination_location:
            return quantity
        if source_location:
            return -quantity
        raise ValidationError("TRANSFER requires a source or destination location")
    raise ValidationError(f"Movement type {movement_type.value} has no stock effect")


def lock_product(db: Session, product_id: int) -> Product:
    # Row lock where the backend supports it; the version column covers the rest
    product = (
        db.query(Product)
        .filter(Product.id == product_id)
        .with_for_update()
        .first()
    )
    if product is None:
        raise ProductNotFound(product_id)
    return product


def shift_stock(product: Product, delta: int) -> Product:
    new_quantity = product.stock_quantity + delta
    if new_quantity < 0:
        raise InsufficientStock(product.id, available=product.stock_quantity, requested=-delta)
    product.stock_quantity = new_quantity
    product.updated_at = datetime.now()
    return product


def apply_movement(db: Session, movement: StockMovement) -> StockMovement:
    """Apply a movement's effect to its product and stage the movement row."""
    movement.movement_type = parse_movement_type(movement.movement_type)
    effect = movement_effect(
        movement.movement_type, movement.quantity,
        movement.source_location, movement.destination_location,
    )
    product = lock_product(db, movement.product_id)
    shift_stock(product, effect)
    movement.effect = effect
    db.add(movement)
    db.flush()

    logger.info(
        "Stock %+d for product %s (%s) -> %s [movement %s, %s]",
        effect, product.id, product.sku, product.stock_quantity, movement.id, movement.movement_type.value,
    )
    evaluate_low_stock(db, product)
    return movement


def reverse_movement(db: Session, movement: StockMovement) -> Product:
    """Undo a movement's effect on its product; the row itself is left alone."""
    effect = movement_effect(
        movement.movement_type, movement.quantity,
        movement.source_location, movement.destination_location,
    )
    product = lock_product(db, movement.product_id)
    shift_stock(product, -effect)
    db.flush()

    logger.info(
        "Reversed %+d for product %s (%s) -> %s [movement %s]",
        effect, product.id, product.sku, product.stock_quantity, movement.id,
    )
    return product


def reapply_movement(db: Session, movement: StockMovement, previous_effect: int) -> StockMovement:
    """Re-apply an edited movement that stays on the same product.

    Only the difference between the new and the previous effect reaches the
    stock, so the non-negative check runs on the final quantity.
    """
    movement.movement_type = parse_movement_type(movement.movement_type)
    effect = movement_effect(
        movement.movement_type, movement.quantity,
        movement.source_location, movement.destination_location,
    )
    product = lock_product(db, movement.product_id)
    shift_stock(product, effect - previous_effect)
    movement.effect = effect
    db.flush()

    logger.info(
        "Restated movement %s for product %s (%s): %+d -> %+d, stock %s",
        movement.id, product.id, product.sku, previous_effect, effect, product.stock_quantity,
    )
    evaluate_low_stock(db, product)
    return movement


def evaluate_low_stock(db: Session, product: Product) -> Optional[LowStockAlert]:
    """Raise one unresolved alert per product while it sits at or below its minimum.

    Rising back above the minimum does not resolve anything; that is an
    explicit action.
    """
    if not product.is_low_stock:
        return None

    existing = (
        db.query(LowStockAlert.id)
        .filter(LowStockAlert.product_id == product.id, LowStockAlert.is_resolved.is_(False))
        .first()
    )
    if existing:
        return None

    alert = LowStockAlert(
        product_id=product.id,
        product_name=product.name,
        current_stock=product.stock_quantity,
        minimum_stock_level=product.minimum_stock_level,
        alert_date=datetime.now(),
        is_resolved=False,
    )
    db.add(alert)
    db.flush()
    logger.warning(
        "Low stock alert for product: %s (ID: %s) %s/%s",
        product.name, product.id, product.stock_quantity, product.minimum_stock_level,
    )
    return alert


def run_atomic(db: Session, operation: Callable[..., T], *args, **kwargs) -> T:
    """Run `operation(db, ...)` as one transaction.

    A StaleDataError means another request changed the same product or order
    between our read and our write; the whole operation is replayed once on
    fresh state before giving up with ConcurrencyConflict.
    """
    attempts = 2
    for attempt in range(1, attempts + 1):
        try:
            result = operation(db, *args, **kwargs)
            db.commit()
            return result
        except StaleDataError as exc:
            db.rollback()
            if attempt == attempts:
                logger.error("Concurrent update lost twice in %s", operation.__name__)
                raise ConcurrencyConflict(
                    "The record was modified by another request, please retry",
                    operation=operation.__name__,
                ) from exc
            logger.warning("Concurrent update detected in %s, retrying", operation.__name__)
        except Exception:
            db.rollback()
            raise
