from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class LowStockAlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str
    current_stock: int
    minimum_stock_level: int
    alert_date: datetime
    is_resolved: bool
    resolved_date: Optional[datetime] = None
    notes: Optional[str] = None


class AlertResolveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class ReconciliationReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    low_stock_product_count: int
    products_checked: int
    alerts_created: int
