# backend/routes/alerts.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from services import alerts as alert_service
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
from schemas.alert import AlertResolveRequest, LowStockAlertOut, ReconciliationReportOut

router = APIRouter(prefix="/low-stock-alerts", tags=["Low stock alerts"])


# Unresolved alerts, newest first
@router.get("", response_model=List[LowStockAlertOut])
def list_active_alerts(db: Session = Depends(get_db)):
    return alert_service.active_alerts(db)


# Full history including resolved alerts
@router.get("/all", response_model=List[LowStockAlertOut])
def list_all_alerts(db: Session = Depends(get_db)):
    return alert_service.all_alerts(db)


# Run the low-stock sweep now instead of waiting for the nightly run
@router.post("/generate", response_model=ReconciliationReportOut)
def generate_alerts(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    report = alert_service.run_daily_reconciliation(db)
    write_log(db, actor=actor, action="LOW_STOCK_SWEEP", resource="low_stock_alerts", status="SUCCESS",
              ip=client_ip(request),
              meta={"low_stock": report.low_stock_product_count, "created": report.alerts_created})
    return report


@router.post("/{alert_id}/resolve", status_code=status.HTTP_204_NO_CONTENT)
def resolve_alert(
    alert_id: int,
    request: Request,
    payload: Optional[AlertResolveRequest] = None,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    alert_service.resolve_low_stock_alert(db, alert_id, notes=payload.notes if payload else None)
    write_log(db, actor=actor, action="LOW_STOCK_ALERT_RESOLVE", resource="low_stock_alerts", status="SUCCESS",
              ip=client_ip(request), meta={"id": alert_id})
