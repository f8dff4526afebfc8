"""
Movement ledger: create/update/delete stock movements through the
reconciliation engine, plus the read-side queries and summaries.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session, joinedload

from exceptions import MovementNotFound, ProductNotFound, ValidationError
from models.product import Product
from models.stock import StockMovement
from services.reconciliation import (
    apply_movement, evaluate_low_stock, lock_product, movement_effect, parse_movement_type, reapply_movement,
    reverse_movement, run_atomic,
)

logger = logging.getLogger(__name__)

# Fields a caller may change on an existing movement
UPDATABLE_FIELDS = {
    "product_id", "movement_type", "quantity", "unit_price", "reference_number", "notes",
    "movement_date", "source_location", "destination_location",
}


@dataclass
class MovementSummary:
    total_movements: int = 0
    total_in_quantity: int = 0
    total_out_quantity: int = 0
    total_in_value: float = 0.0
    total_out_value: float = 0.0
    movements_by_type: Dict[str, int] = field(default_factory=dict)


@dataclass
class ProductMovementSummary:
    product_id: int
    product_name: str
    total_in: int
    total_out: int
    net_change: int
    total_value: float


def _check_values(quantity=None, unit_price=None):
    if quantity is not None and quantity <= 0:
        raise ValidationError("Quantity must be greater than zero", quantity=quantity)
    if unit_price is not None and unit_price < 0:
        raise ValidationError("Unit price cannot be negative", unit_price=unit_price)


# --- Commands ---

def create_movement(
    db: Session,
    product_id: int,
    movement_type,
    quantity: int,
    source_location: Optional[str] = None,
    destination_location: Optional[str] = None,
    unit_price: Optional[float] = None,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    actor: Optional[str] = None,
    movement_date: Optional[datetime] = None,
) -> StockMovement:
    """Record a movement and apply its effect in one transaction."""
    movement_type = parse_movement_type(movement_type)
    _check_values(quantity, unit_price)

    def _create(session: Session) -> StockMovement:
        movement = StockMovement(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            unit_price=unit_price,
            reference_number=reference,
            notes=notes,
            movement_date=movement_date or datetime.now(),
            created_by=actor,
            source_location=source_location,
            destination_location=destination_location,
        )
        return apply_movement(session, movement)

    movement = run_atomic(db, _create)
    db.refresh(movement)
    return movement


def update_movement(db: Session, movement_id: int, **new_fields) -> StockMovement:
    """Replace a movement's fields.

    On the same product only the change in effect is applied, so stock is
    checked once against the final quantity. Moving it to another product
    reverses it on the old one and applies it to the new one.
    """
    unknown = set(new_fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    if "movement_type" in new_fields:
        new_fields["movement_type"] = parse_movement_type(new_fields["movement_type"])
    _check_values(new_fields.get("quantity"), new_fields.get("unit_price"))
    for key in ("product_id", "quantity", "movement_date"):
        if key in new_fields and new_fields[key] is None:
            raise ValidationError(f"{key} cannot be null")

    def _update(session: Session) -> StockMovement:
        movement = session.query(StockMovement).filter(StockMovement.id == movement_id).first()
        if movement is None:
            raise MovementNotFound(movement_id)
        if movement.is_order_linked:
            raise ValidationError("Movements created by an order are managed through the order",
                                  movement_id=movement_id)

        old_product_id = movement.product_id
        new_product_id = new_fields.get("product_id", old_product_id)
        if new_product_id == old_product_id:
            previous_effect = movement_effect(
                movement.movement_type, movement.quantity,
                movement.source_location, movement.destination_location,
            )
            for key, value in new_fields.items():
                setattr(movement, key, value)
            return reapply_movement(session, movement, previous_effect)

        # Lock both products in id order so two edits cannot deadlock
        for pid in sorted({old_product_id, new_product_id}):
            lock_product(session, pid)

        old_product = reverse_movement(session, movement)
        for key, value in new_fields.items():
            setattr(movement, key, value)
        apply_movement(session, movement)
        evaluate_low_stock(session, old_product)
        return movement

    movement = run_atomic(db, _update)
    db.refresh(movement)
    return movement


def delete_movement(db: Session, movement_id: int) -> None:
    """Reverse a movement's effect and remove it from the ledger."""

    def _delete(session: Session) -> None:
        movement = session.query(StockMovement).filter(StockMovement.id == movement_id).first()
        if movement is None:
            raise MovementNotFound(movement_id)
        if movement.is_order_linked:
            raise ValidationError("Movements created by an order are managed through the order",
                                  movement_id=movement_id)
        product = reverse_movement(session, movement)
        session.delete(movement)
        session.flush()
        evaluate_low_stock(session, product)

    run_atomic(db, _delete)


# --- Queries ---

def get_movement(db: Session, movement_id: int) -> StockMovement:
    movement = (
        db.query(StockMovement)
        .options(joinedload(StockMovement.product))
        .filter(StockMovement.id == movement_id)
        .first()
    )
    if movement is None:
        raise MovementNotFound(movement_id)
    return movement


def _date_range(query, start: Optional[datetime], end: Optional[datetime]):
    if start:
        query = query.filter(StockMovement.movement_date >= start)
    if end:
        query = query.filter(StockMovement.movement_date <= end)
    return query


def search_movements(
    db: Session,
    q: Optional[str] = None,
    movement_type: Optional[str] = None,
    product_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[StockMovement], int]:
    """Newest-first page of movements plus the total match count."""
    query = db.query(StockMovement).join(Product).options(joinedload(StockMovement.product))

    # Free text over product name/SKU, reference, notes and movement type
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            StockMovement.reference_number.ilike(like),
            StockMovement.notes.ilike(like),
            cast(StockMovement.movement_type, String).ilike(like),
        ))
    if movement_type:
        query = query.filter(StockMovement.movement_type == parse_movement_type(movement_type))
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    query = _date_range(query, start, end)

    total = query.count()
    items = (
        query.order_by(StockMovement.movement_date.desc(), StockMovement.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return items, total


def movements_by_product(db: Session, product_id: int) -> List[StockMovement]:
    if db.query(Product.id).filter(Product.id == product_id).first() is None:
        raise ProductNotFound(product_id)
    return (
        db.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.movement_date.desc(), StockMovement.id.desc())
        .all()
    )


def movements_by_date_range(db: Session, start: datetime, end: datetime) -> List[StockMovement]:
    query = db.query(StockMovement).options(joinedload(StockMovement.product))
    return _date_range(query, start, end).order_by(StockMovement.movement_date.desc()).all()


def movement_summary(db: Session, start: Optional[datetime] = None,
                     end: Optional[datetime] = None) -> MovementSummary:
    """Totals over a date range; in/out is decided by the sign of the applied effect."""
    movements = _date_range(db.query(StockMovement), start, end).all()

    summary = MovementSummary(total_movements=len(movements))
    for m in movements:
        value = m.quantity * m.unit_price if m.unit_price is not None else 0.0
        if m.effect > 0:
            summary.total_in_quantity += m.quantity
            summary.total_in_value += value
        elif m.effect < 0:
            summary.total_out_quantity += m.quantity
            summary.total_out_value += value
        key = m.movement_type.value
        summary.movements_by_type[key] = summary.movements_by_type.get(key, 0) + m.quantity

    summary.total_in_value = round(summary.total_in_value, 2)
    summary.total_out_value = round(summary.total_out_value, 2)
    return summary


def product_movement_summary(db: Session, product_id: int) -> ProductMovementSummary:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise ProductNotFound(product_id)

    movements = db.query(StockMovement).filter(StockMovement.product_id == product_id).all()
    total_in = sum(m.quantity for m in movements if m.effect > 0)
    total_out = sum(m.quantity for m in movements if m.effect < 0)
    total_value = sum(m.quantity * m.unit_price for m in movements if m.unit_price is not None)

    return ProductMovementSummary(
        product_id=product.id,
        product_name=product.name,
        total_in=total_in,
        total_out=total_out,
        net_change=total_in - total_out,
        total_value=round(total_value, 2),
    )
