"""
Purchase and sales order lifecycle.

Receiving a purchase order and completing a sales order each emit exactly one
ledger row through the reconciliation engine, linked back to the order.
Deleting a terminal order removes that row the same way, so the stock it
moved is given back.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from exceptions import CatalogEntryNotFound, InsufficientStock, OrderNotFound, ProductNotFound, ValidationError
from models.customer import Customer
from models.order import PurchaseOrder, PurchaseOrderStatus, SalesOrder, SalesOrderStatus
from models.product import Product
from models.stock import MovementType, StockMovement
from models.supplier import Supplier
from services.reconciliation import apply_movement, evaluate_low_stock, lock_product, reverse_movement, run_atomic

logger = logging.getLogger(__name__)

MAX_ORDER_QUANTITY = 10000
MIN_UNIT_PRICE = 0.01
MAX_UNIT_PRICE = 1000000


def _check_line(quantity: int, unit_price: float) -> None:
    if quantity is None or not 1 <= quantity <= MAX_ORDER_QUANTITY:
        raise ValidationError(f"Quantity must be between 1 and {MAX_ORDER_QUANTITY}", quantity=quantity)
    if unit_price is None or not MIN_UNIT_PRICE <= unit_price <= MAX_UNIT_PRICE:
        raise ValidationError(f"Unit price must be between {MIN_UNIT_PRICE} and {MAX_UNIT_PRICE}",
                              unit_price=unit_price)


def _total(quantity: int, unit_price: float) -> float:
    return round(quantity * unit_price, 2)


def _reject_nulls(fields: dict, keys) -> None:
    for key in keys:
        if key in fields and fields[key] is None:
            raise ValidationError(f"{key} cannot be null")


def _require_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise ProductNotFound(product_id)
    return product


def _locked_purchase_order(db: Session, order_id: int) -> PurchaseOrder:
    order = db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).with_for_update().first()
    if order is None:
        raise OrderNotFound("Purchase order", order_id)
    return order


def _locked_sales_order(db: Session, order_id: int) -> SalesOrder:
    order = db.query(SalesOrder).filter(SalesOrder.id == order_id).with_for_update().first()
    if order is None:
        raise OrderNotFound("Sales order", order_id)
    return order


def _reverse_linked_movements(db: Session, movements) -> None:
    for movement in movements:
        product = reverse_movement(db, movement)
        db.delete(movement)
        db.flush()
        evaluate_low_stock(db, product)


# =========================
# PURCHASE ORDERS
# =========================

def get_purchase_order(db: Session, order_id: int) -> PurchaseOrder:
    order = db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).first()
    if order is None:
        raise OrderNotFound("Purchase order", order_id)
    return order


def create_purchase_order(
    db: Session,
    product_id: int,
    supplier_id: int,
    quantity: int,
    unit_price: float,
    order_date: Optional[datetime] = None,
    expected_delivery_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    actor: Optional[str] = None,
) -> PurchaseOrder:
    _check_line(quantity, unit_price)

    def _create(session: Session) -> PurchaseOrder:
        _require_product(session, product_id)
        if session.query(Supplier.id).filter(Supplier.id == supplier_id).first() is None:
            raise CatalogEntryNotFound("Supplier", supplier_id)

        order = PurchaseOrder(
            product_id=product_id,
            supplier_id=supplier_id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=_total(quantity, unit_price),
            order_date=order_date or datetime.now(),
            expected_delivery_date=expected_delivery_date,
            notes=notes,
            status=PurchaseOrderStatus.PENDING.value,
            created_by=actor or "System",
        )
        session.add(order)
        session.flush()
        order.order_number = f"PO-{order.id:06d}"
        return order

    order = run_atomic(db, _create)
    logger.info("Purchase order created: ID %s, Product: %s, Quantity: %s", order.id, product_id, quantity)
    return order


def update_purchase_order(db: Session, order_id: int, **fields) -> PurchaseOrder:
    allowed = {"product_id", "supplier_id", "quantity", "unit_price", "order_date",
               "expected_delivery_date", "notes"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    _reject_nulls(fields, ("product_id", "supplier_id", "order_date"))

    def _update(session: Session) -> PurchaseOrder:
        order = _locked_purchase_order(session, order_id)
        if order.status != PurchaseOrderStatus.PENDING:
            raise ValidationError(f"Purchase order is {order.status} and can no longer be edited",
                                  order_id=order_id)
        if "product_id" in fields:
            _require_product(session, fields["product_id"])
        if "supplier_id" in fields and session.query(Supplier.id).filter(
                Supplier.id == fields["supplier_id"]).first() is None:
            raise CatalogEntryNotFound("Supplier", fields["supplier_id"])

        for key, value in fields.items():
            setattr(order, key, value)
        _check_line(order.quantity, order.unit_price)
        order.total_amount = _total(order.quantity, order.unit_price)
        order.updated_at = datetime.now()
        return order

    return run_atomic(db, _update)


def receive_purchase_order(db: Session, order_id: int, actor: Optional[str] = None) -> PurchaseOrder:
    """Mark a pending purchase order received and book the goods in."""

    def _receive(session: Session) -> PurchaseOrder:
        order = _locked_purchase_order(session, order_id)
        if order.status != PurchaseOrderStatus.PENDING:
            raise ValidationError(f"Purchase order is already {order.status}", order_id=order_id)

        now = datetime.now()
        apply_movement(session, StockMovement(
            product_id=order.product_id,
            movement_type=MovementType.IN,
            quantity=order.quantity,
            unit_price=order.unit_price,
            reference_number=order.order_number,
            notes=f"Received purchase order {order.order_number}",
            movement_date=now,
            created_by=actor,
            purchase_order_id=order.id,
        ))

        order.status = PurchaseOrderStatus.RECEIVED.value
        order.actual_delivery_date = now
        order.updated_at = now
        return order

    order = run_atomic(db, _receive)
    logger.info("Stock updated via PO#%s: +%s units for product %s", order.id, order.quantity, order.product_id)
    return order


def delete_purchase_order(db: Session, order_id: int) -> None:
    """Delete an order; a received order first gives its stock back."""

    def _delete(session: Session) -> None:
        order = _locked_purchase_order(session, order_id)
        linked = session.query(StockMovement).filter(StockMovement.purchase_order_id == order.id).all()
        _reverse_linked_movements(session, linked)
        session.delete(order)

    run_atomic(db, _delete)
    logger.info("Purchase order deleted: ID %s", order_id)


# =========================
# SALES ORDERS
# =========================

def get_sales_order(db: Session, order_id: int) -> SalesOrder:
    order = db.query(SalesOrder).filter(SalesOrder.id == order_id).first()
    if order is None:
        raise OrderNotFound("Sales order", order_id)
    return order


def create_sales_order(
    db: Session,
    product_id: int,
    quantity: int,
    unit_price: float,
    customer_name: str,
    customer_id: Optional[int] = None,
    customer_phone: Optional[str] = None,
    customer_email: Optional[str] = None,
    order_date: Optional[datetime] = None,
    delivery_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    actor: Optional[str] = None,
) -> SalesOrder:
    """Open a pending sales order; stock is only checked here, not reserved."""
    _check_line(quantity, unit_price)
    if not (customer_name or "").strip():
        raise ValidationError("Customer name is required")

    def _create(session: Session) -> SalesOrder:
        product = _require_product(session, product_id)
        if customer_id is not None and session.query(Customer.id).filter(
                Customer.id == customer_id).first() is None:
            raise CatalogEntryNotFound("Customer", customer_id)
        if product.stock_quantity < quantity:
            raise InsufficientStock(product.id, available=product.stock_quantity, requested=quantity)

        order = SalesOrder(
            product_id=product_id,
            customer_id=customer_id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=_total(quantity, unit_price),
            customer_name=customer_name.strip(),
            customer_phone=customer_phone,
            customer_email=customer_email,
            order_date=order_date or datetime.now(),
            delivery_date=delivery_date,
            notes=notes,
            status=SalesOrderStatus.PENDING.value,
            created_by=actor or "System",
        )
        session.add(order)
        session.flush()
        return order

    order = run_atomic(db, _create)
    logger.info("Sales order created: ID %s, Product: %s, Quantity: %s", order.id, product_id, quantity)
    return order


def update_sales_order(db: Session, order_id: int, **fields) -> SalesOrder:
    allowed = {"product_id", "customer_id", "quantity", "unit_price", "customer_name", "customer_phone",
               "customer_email", "order_date", "delivery_date", "notes"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    _reject_nulls(fields, ("product_id", "order_date"))

    def _update(session: Session) -> SalesOrder:
        order = _locked_sales_order(session, order_id)
        if order.status != SalesOrderStatus.PENDING:
            raise ValidationError(f"Sales order is {order.status} and can no longer be edited",
                                  order_id=order_id)
        if "product_id" in fields:
            _require_product(session, fields["product_id"])
        if fields.get("customer_id") is not None and session.query(Customer.id).filter(
                Customer.id == fields["customer_id"]).first() is None:
            raise CatalogEntryNotFound("Customer", fields["customer_id"])

        for key, value in fields.items():
            setattr(order, key, value)
        _check_line(order.quantity, order.unit_price)
        if not (order.customer_name or "").strip():
            raise ValidationError("Customer name is required")
        order.total_amount = _total(order.quantity, order.unit_price)
        order.updated_at = datetime.now()
        return order

    return run_atomic(db, _update)


def complete_sales_order(db: Session, order_id: int, actor: Optional[str] = None) -> SalesOrder:
    """Ship a pending sales order: take its quantity out of stock or fail whole."""

    def _complete(session: Session) -> SalesOrder:
        order = _locked_sales_order(session, order_id)
        if order.status != SalesOrderStatus.PENDING:
            raise ValidationError(f"Sales order is already {order.status}", order_id=order_id)

        product = lock_product(session, order.product_id)
        if product.stock_quantity < order.quantity:
            raise InsufficientStock(product.id, available=product.stock_quantity, requested=order.quantity)

        now = datetime.now()
        apply_movement(session, StockMovement(
            product_id=order.product_id,
            movement_type=MovementType.OUT,
            quantity=order.quantity,
            unit_price=order.unit_price,
            reference_number=f"SO-{order.id:06d}",
            notes=f"Completed sales order SO-{order.id:06d}",
            movement_date=now,
            created_by=actor,
            sales_order_id=order.id,
        ))

        order.status = SalesOrderStatus.COMPLETED.value
        if order.delivery_date is None:
            order.delivery_date = now
        order.updated_at = now
        return order

    order = run_atomic(db, _complete)
    logger.info("Stock updated via SO#%s: -%s units for product %s", order.id, order.quantity, order.product_id)
    return order


def cancel_sales_order(db: Session, order_id: int) -> SalesOrder:
    def _cancel(session: Session) -> SalesOrder:
        order = _locked_sales_order(session, order_id)
        if order.status != SalesOrderStatus.PENDING:
            raise ValidationError(f"Sales order is already {order.status}", order_id=order_id)
        order.status = SalesOrderStatus.CANCELLED.value
        order.updated_at = datetime.now()
        return order

    return run_atomic(db, _cancel)


def delete_sales_order(db: Session, order_id: int) -> None:
    """Delete an order; a completed order first puts its stock back."""

    def _delete(session: Session) -> None:
        order = _locked_sales_order(session, order_id)
        linked = session.query(StockMovement).filter(StockMovement.sales_order_id == order.id).all()
        _reverse_linked_movements(session, linked)
        session.delete(order)

    run_atomic(db, _delete)
    logger.info("Sales order deleted: ID %s", order_id)


# =========================
# LISTINGS
# =========================

def _page(query, order_col, page: int, page_size: int):
    total = query.count()
    items = query.order_by(order_col.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return items, total


def list_purchase_orders(db: Session, status: Optional[str] = None, supplier_id: Optional[int] = None,
                         product_id: Optional[int] = None, page: int = 1, page_size: int = 20):
    query = db.query(PurchaseOrder).options(joinedload(PurchaseOrder.product), joinedload(PurchaseOrder.supplier))
    if status:
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id is not None:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    if product_id is not None:
        query = query.filter(PurchaseOrder.product_id == product_id)
    return _page(query, PurchaseOrder.order_date, page, page_size)


def list_sales_orders(db: Session, status: Optional[str] = None, q: Optional[str] = None,
                      product_id: Optional[int] = None, page: int = 1, page_size: int = 20):
    query = db.query(SalesOrder).options(joinedload(SalesOrder.product))
    if status:
        query = query.filter(SalesOrder.status == status)
    if q:
        query = query.filter(SalesOrder.customer_name.ilike(f"%{q}%"))
    if product_id is not None:
        query = query.filter(SalesOrder.product_id == product_id)
    return _page(query, SalesOrder.order_date, page, page_size)
