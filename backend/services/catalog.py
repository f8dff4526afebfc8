"""
Catalog maintenance: categories, suppliers, customers and products.

Only products carry stock. Setting `stock_quantity` on a product edit is an
explicit set that bypasses the ledger; it still goes through the product
lock and re-evaluates low stock like any movement.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from exceptions import CatalogEntryNotFound, ProductNotFound, ValidationError
from models.alert import LowStockAlert
from models.category import Category
from models.customer import Customer
from models.order import PurchaseOrder, SalesOrder
from models.product import Product
from models.stock import StockMovement
from models.supplier import Supplier
from services.reconciliation import evaluate_low_stock, lock_product, run_atomic

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = {
    "name", "sku", "description", "category_id", "supplier_id", "buying_price", "selling_price",
    "stock_quantity", "minimum_stock_level", "reorder_level", "is_active",
}


def _norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    if not s:
        raise ValidationError("SKU cannot be empty")
    return s


def _require(db: Session, model, kind: str, entry_id: int):
    entry = db.query(model).filter(model.id == entry_id).first()
    if entry is None:
        raise CatalogEntryNotFound(kind, entry_id)
    return entry


# =========================
# SIMPLE ENTRIES
# =========================

def list_entries(db: Session, model, q: Optional[str] = None) -> list:
    query = db.query(model)
    if q:
        query = query.filter(model.name.ilike(f"%{q}%"))
    return query.order_by(model.name.asc(), model.id.asc()).all()


def get_entry(db: Session, model, kind: str, entry_id: int):
    return _require(db, model, kind, entry_id)


def create_entry(db: Session, model, **fields):
    def _create(session: Session):
        entry = model(**fields)
        session.add(entry)
        session.flush()
        return entry

    entry = run_atomic(db, _create)
    logger.info("%s created: ID %s", model.__name__, entry.id)
    return entry


def update_entry(db: Session, model, kind: str, entry_id: int, **fields):
    for key, value in fields.items():
        if value is None and not model.__table__.columns[key].nullable:
            raise ValidationError(f"{key} cannot be null")

    def _update(session: Session):
        entry = _require(session, model, kind, entry_id)
        for key, value in fields.items():
            setattr(entry, key, value)
        return entry

    return run_atomic(db, _update)


# (model, foreign key column, label) pairs that keep an entry in use
_DEPENDENTS = {
    Category: [(Product, Product.category_id, "products")],
    Supplier: [(Product, Product.supplier_id, "products"),
               (PurchaseOrder, PurchaseOrder.supplier_id, "purchase orders")],
    Customer: [(SalesOrder, SalesOrder.customer_id, "sales orders")],
}


def delete_entry(db: Session, model, kind: str, entry_id: int) -> None:
    """Delete a category, supplier or customer that nothing references any more."""

    def _delete(session: Session) -> None:
        entry = _require(session, model, kind, entry_id)
        for dependent, column, label in _DEPENDENTS.get(model, []):
            count = session.query(dependent).filter(column == entry_id).count()
            if count:
                raise ValidationError(f"{kind} {entry_id} is still used by {count} {label}",
                                      entry_id=entry_id)
        session.delete(entry)

    run_atomic(db, _delete)
    logger.info("%s deleted: ID %s", kind, entry_id)


def category_product_counts(db: Session) -> dict:
    rows = db.query(Product.category_id, func.count(Product.id)).group_by(Product.category_id).all()
    return {category_id: count for category_id, count in rows}


# =========================
# PRODUCTS
# =========================

def get_product(db: Session, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.category), joinedload(Product.supplier))
        .filter(Product.id == product_id)
        .first()
    )
    if product is None:
        raise ProductNotFound(product_id)
    return product


def search_products(
    db: Session,
    q: Optional[str] = None,
    category_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
    low_stock: Optional[bool] = None,
    active: Optional[bool] = None,
    sort_by: str = "name",
    order: str = "asc",
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[Product], int]:
    query = db.query(Product)

    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like),
                                 Product.description.ilike(like)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)
    if active is not None:
        query = query.filter(Product.is_active.is_(active))
    if low_stock:
        query = query.filter(Product.minimum_stock_level > 0,
                             Product.stock_quantity <= Product.minimum_stock_level)

    allowed = {
        "id": Product.id, "name": Product.name, "sku": Product.sku,
        "stock_quantity": Product.stock_quantity, "selling_price": Product.selling_price,
        "created_at": Product.created_at,
    }
    col = allowed.get(sort_by, Product.name)
    query = query.order_by(col.desc() if order == "desc" else col.asc(), Product.id.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total


def _check_product_refs(session: Session, fields: dict) -> None:
    if fields.get("category_id") is not None:
        _require(session, Category, "Category", fields["category_id"])
    if fields.get("supplier_id") is not None:
        _require(session, Supplier, "Supplier", fields["supplier_id"])


def _check_sku_free(session: Session, sku: str, product_id: Optional[int] = None) -> None:
    query = session.query(Product.id).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first() is not None:
        raise ValidationError(f"A product with SKU {sku} already exists", sku=sku)


def create_product(db: Session, **fields) -> Product:
    unknown = set(fields) - PRODUCT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")
    if fields.get("category_id") is None:
        raise ValidationError("Category is required")
    fields["sku"] = _norm_sku(fields.get("sku"))
    if fields["sku"] is None:
        raise ValidationError("SKU is required")
    if (fields.get("stock_quantity") or 0) < 0:
        raise ValidationError("Stock quantity cannot be negative")

    def _create(session: Session) -> Product:
        _check_product_refs(session, fields)
        _check_sku_free(session, fields["sku"])
        product = Product(created_at=datetime.now(), **fields)
        session.add(product)
        session.flush()
        evaluate_low_stock(session, product)
        return product

    product = run_atomic(db, _create)
    logger.info("Product created: ID %s, SKU %s, stock %s", product.id, product.sku, product.stock_quantity)
    return product


def update_product(db: Session, product_id: int, **fields) -> Product:
    """Apply a partial edit; a given stock_quantity replaces the stored one."""
    unknown = set(fields) - PRODUCT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")
    if "sku" in fields:
        fields["sku"] = _norm_sku(fields["sku"])
    for key, value in fields.items():
        if value is None and not Product.__table__.columns[key].nullable:
            raise ValidationError(f"{key} cannot be null")
    if fields.get("stock_quantity") is not None and fields["stock_quantity"] < 0:
        raise ValidationError("Stock quantity cannot be negative")

    def _update(session: Session) -> Product:
        product = lock_product(session, product_id)
        _check_product_refs(session, fields)
        if "sku" in fields:
            _check_sku_free(session, fields["sku"], product_id)

        old_quantity = product.stock_quantity
        for key, value in fields.items():
            setattr(product, key, value)
        product.updated_at = datetime.now()
        session.flush()

        if product.stock_quantity != old_quantity:
            logger.info("Stock for product %s (%s) set explicitly %s -> %s",
                        product.id, product.sku, old_quantity, product.stock_quantity)
        evaluate_low_stock(session, product)
        return product

    return run_atomic(db, _update)


def delete_product(db: Session, product_id: int) -> None:
    """Delete a product with no ledger or order history."""

    def _delete(session: Session) -> None:
        product = lock_product(session, product_id)
        for model, label in ((StockMovement, "stock movements"), (PurchaseOrder, "purchase orders"),
                             (SalesOrder, "sales orders")):
            count = session.query(model).filter(model.product_id == product_id).count()
            if count:
                raise ValidationError(
                    f"Product {product_id} has {count} {label}; deactivate it instead",
                    product_id=product_id,
                )
        session.query(LowStockAlert).filter(LowStockAlert.product_id == product_id).delete(
            synchronize_session=False)
        session.delete(product)

    run_atomic(db, _delete)
    logger.info("Product deleted: ID %s", product_id)
