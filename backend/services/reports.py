"""
Read-only reports over orders and stock, and the dashboard aggregate.

Date ranges default to the last 30 days. Sales revenue counts completed
orders only; cost is taken at each product's current buying price.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import extract, func
from sqlalchemy.orm import Session, joinedload

from models.alert import LowStockAlert
from models.category import Category
from models.customer import Customer
from models.order import PurchaseOrder, SalesOrder, SalesOrderStatus
from models.product import Product
from models.supplier import Supplier
from services.alerts import active_alerts

DEFAULT_RANGE_DAYS = 30
TOP_PRODUCTS = 5
CHART_MONTHS = 6


def default_range(start: Optional[datetime], end: Optional[datetime],
                  now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    now = now or datetime.now()
    return start or now - timedelta(days=DEFAULT_RANGE_DAYS), end or now


def sales_report(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
    start, end = default_range(start, end)
    sales = (
        db.query(SalesOrder)
        .options(joinedload(SalesOrder.product))
        .filter(SalesOrder.order_date >= start, SalesOrder.order_date <= end)
        .order_by(SalesOrder.order_date.desc())
        .all()
    )
    return {
        "date_from": start,
        "date_to": end,
        "items": sales,
        "total_sales": round(sum(s.total_amount for s in sales), 2),
        "total_orders": len(sales),
    }


def inventory_report(db: Session) -> dict:
    products = (
        db.query(Product)
        .options(joinedload(Product.category), joinedload(Product.supplier))
        .order_by(Product.stock_quantity.asc(), Product.id.asc())
        .all()
    )
    items = [{
        "product_id": p.id,
        "name": p.name,
        "sku": p.sku,
        "category": p.category.name if p.category else None,
        "supplier": p.supplier.name if p.supplier else None,
        "stock_quantity": p.stock_quantity,
        "reorder_level": p.reorder_level,
        "buying_price": p.buying_price,
        "stock_value": round(p.stock_quantity * p.buying_price, 2),
    } for p in products]

    return {
        "items": items,
        "low_stock_count": sum(1 for p in products if p.stock_quantity <= p.reorder_level),
        "total_value": round(sum(i["stock_value"] for i in items), 2),
    }


def profit_loss_report(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
    start, end = default_range(start, end)
    sales = (
        db.query(SalesOrder)
        .options(joinedload(SalesOrder.product))
        .filter(SalesOrder.status == SalesOrderStatus.COMPLETED.value,
                SalesOrder.order_date >= start, SalesOrder.order_date <= end)
        .all()
    )
    purchases_total = (
        db.query(func.coalesce(func.sum(PurchaseOrder.total_amount), 0.0))
        .filter(PurchaseOrder.order_date >= start, PurchaseOrder.order_date <= end)
        .scalar()
    )

    revenue = sum(s.total_amount for s in sales)
    cost = sum(s.quantity * (s.product.buying_price if s.product else 0) for s in sales)
    profit_loss = revenue - cost
    return {
        "date_from": start,
        "date_to": end,
        "total_revenue": round(revenue, 2),
        "total_cost": round(cost, 2),
        "total_purchases": round(purchases_total or 0.0, 2),
        "profit_loss": round(profit_loss, 2),
        "profit_margin": round(profit_loss / revenue * 100, 2) if revenue > 0 else 0.0,
    }


# =========================
# DASHBOARD
# =========================

def monthly_sales(db: Session, month: int, year: int) -> float:
    total = (
        db.query(func.coalesce(func.sum(SalesOrder.total_amount), 0.0))
        .filter(
            extract("month", SalesOrder.order_date) == month,
            extract("year", SalesOrder.order_date) == year,
            SalesOrder.status == SalesOrderStatus.COMPLETED.value,
        )
        .scalar()
    )
    return round(total or 0.0, 2)


def top_selling_products(db: Session, limit: int = TOP_PRODUCTS) -> list:
    total_qty = func.sum(SalesOrder.quantity).label("total_quantity_sold")
    rows = (
        db.query(Product.id, Product.name, total_qty)
        .join(SalesOrder, SalesOrder.product_id == Product.id)
        .filter(SalesOrder.status == SalesOrderStatus.COMPLETED.value)
        .group_by(Product.id, Product.name)
        .order_by(total_qty.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {"product_id": pid, "product_name": name, "total_quantity_sold": int(qty or 0)}
        for pid, name, qty in rows
    ]


def _shift_month(year: int, month: int, back: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) - back
    return index // 12, index % 12 + 1


def monthly_sales_chart(db: Session, today: Optional[datetime] = None, months: int = CHART_MONTHS) -> list:
    today = today or datetime.now()
    chart = []
    for back in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, back)
        chart.append({
            "month": datetime(year, month, 1).strftime("%b %Y"),
            "total": monthly_sales(db, month, year),
        })
    return chart


def dashboard_summary(db: Session, today: Optional[datetime] = None) -> dict:
    today = today or datetime.now()
    return {
        "total_products": db.query(Product).count(),
        "total_categories": db.query(Category).count(),
        "total_suppliers": db.query(Supplier).count(),
        "total_customers": db.query(Customer).count(),
        "low_stock_items": db.query(LowStockAlert).filter(LowStockAlert.is_resolved.is_(False)).count(),
        "monthly_sales": monthly_sales(db, today.month, today.year),
        "top_selling_products": top_selling_products(db),
        "active_alerts": active_alerts(db),
        "monthly_sales_chart": monthly_sales_chart(db, today),
    }
