"""
Low-stock alerts: listing, explicit resolution and the daily sweep.

The sweep only reads quantities and raises missing alerts, so it is safe to
skip or interrupt at any point.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.attributes import flag_modified

from exceptions import AlertNotFound
from models.alert import LowStockAlert
from models.product import Product
from services.reconciliation import evaluate_low_stock, lock_product, run_atomic

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    low_stock_product_count: int
    products_checked: int
    alerts_created: int = 0


def active_alerts(db: Session) -> List[LowStockAlert]:
    return (
        db.query(LowStockAlert)
        .options(joinedload(LowStockAlert.product))
        .filter(LowStockAlert.is_resolved.is_(False))
        .order_by(LowStockAlert.alert_date.desc(), LowStockAlert.id.desc())
        .all()
    )


def all_alerts(db: Session) -> List[LowStockAlert]:
    return (
        db.query(LowStockAlert)
        .options(joinedload(LowStockAlert.product))
        .order_by(LowStockAlert.alert_date.desc(), LowStockAlert.id.desc())
        .all()
    )


def resolve_low_stock_alert(db: Session, alert_id: int, notes: Optional[str] = None) -> None:
    alert = db.query(LowStockAlert).filter(LowStockAlert.id == alert_id).first()
    if alert is None:
        raise AlertNotFound(alert_id)
    if alert.is_resolved:
        return

    alert.is_resolved = True
    alert.resolved_date = datetime.now()
    if notes:
        alert.notes = notes
    db.commit()
    logger.info("Low stock alert %s resolved for product %s", alert_id, alert.product_id)


def _raise_missing_alert(db: Session, product_id: int) -> Optional[LowStockAlert]:
    product = lock_product(db, product_id)
    if not product.is_low_stock or _has_open_alert(db, product_id):
        return None
    # Version bump first: a movement that raised its alert meanwhile makes this flush stale
    flag_modified(product, "stock_quantity")
    db.flush()
    return evaluate_low_stock(db, product)


def _has_open_alert(db: Session, product_id: int) -> bool:
    return (
        db.query(LowStockAlert.id)
        .filter(LowStockAlert.product_id == product_id, LowStockAlert.is_resolved.is_(False))
        .first()
        is not None
    )


def run_daily_reconciliation(db: Session) -> ReconciliationReport:
    """Scan active products and raise an alert for each low one that lacks it.

    Each product is handled in its own short transaction under the product
    lock, the same way movements raise their alerts.
    """
    logger.info("Starting daily stock reconciliation...")

    products = db.query(Product).filter(Product.is_active.is_(True)).all()
    low_stock_ids = []
    for product in products:
        if product.is_low_stock:
            logger.warning("Product %s is low on stock: %s/%s",
                           product.name, product.stock_quantity, product.minimum_stock_level)
            low_stock_ids.append(product.id)

    created = 0
    for product_id in low_stock_ids:
        if run_atomic(db, _raise_missing_alert, product_id) is not None:
            created += 1

    report = ReconciliationReport(
        low_stock_product_count=len(low_stock_ids),
        products_checked=len(products),
        alerts_created=created,
    )
    logger.info("Daily reconciliation completed. Found %s low stock items, %s new alerts.",
                report.low_stock_product_count, report.alerts_created)
    return report
