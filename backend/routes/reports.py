# backend/routes/reports.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from services import reports as report_service
from routes.sales_orders import _order_to_out
from schemas.reports import InventoryReport, ProfitLossReport, SalesReport

router = APIRouter(prefix="/reports", tags=["Reports"])


# Sales orders in a date range (last 30 days by default)
@router.get("/sales", response_model=SalesReport)
def sales_report(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    report = report_service.sales_report(db, date_from, date_to)
    report["items"] = [_order_to_out(o) for o in report["items"]]
    return report


# Every product ordered by stock, with value at buying price
@router.get("/inventory", response_model=InventoryReport)
def inventory_report(db: Session = Depends(get_db)):
    return report_service.inventory_report(db)


@router.get("/profit-loss", response_model=ProfitLossReport)
def profit_loss_report(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    return report_service.profit_loss_report(db, date_from, date_to)
