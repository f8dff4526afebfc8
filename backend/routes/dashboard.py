# backend/routes/dashboard.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from services.reports import dashboard_summary
from schemas.reports import DashboardSummary

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"]
)


# === Dashboard Summary ===

@router.get("", response_model=DashboardSummary)
def get_dashboard(db: Session = Depends(get_db)):
    return dashboard_summary(db)
