# backend/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Dict, List, Optional


# Base schema for stock movement data; movement_type is matched
# case-insensitively against the ledger's known types by the service
class StockMovementBase(BaseModel):
    product_id: int
    movement_type: str = Field(max_length=20)
    quantity: int = Field(gt=0)
    unit_price: Optional[float] = Field(None, ge=0)
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=200)
    movement_date: Optional[datetime] = None
    source_location: Optional[str] = Field(None, max_length=100)
    destination_location: Optional[str] = Field(None, max_length=100)


# Schema for recording a new movement
class StockMovementCreate(StockMovementBase):
    pass


# Schema for editing a movement; only the given fields change
class StockMovementUpdate(BaseModel):
    product_id: Optional[int] = None
    movement_type: Optional[str] = Field(None, max_length=20)
    quantity: Optional[int] = Field(None, gt=0)
    unit_price: Optional[float] = Field(None, ge=0)
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=200)
    movement_date: Optional[datetime] = None
    source_location: Optional[str] = Field(None, max_length=100)
    destination_location: Optional[str] = Field(None, max_length=100)


# Schema for returning stock movement details
class StockMovementResponse(StockMovementBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    effect: int
    movement_date: datetime
    created_by: Optional[str] = None
    product_name: str
    product_sku: str
    purchase_order_id: Optional[int] = None
    sales_order_id: Optional[int] = None


# Paginated response for stock movement history
class StockMovementPage(BaseModel):
    items: List[StockMovementResponse]
    total: int
    page: int
    page_size: int


class MovementSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_movements: int
    total_in_quantity: int
    total_out_quantity: int
    total_in_value: float
    total_out_value: float
    movements_by_type: Dict[str, int]


class ProductMovementSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    product_name: str
    total_in: int
    total_out: int
    net_change: int
    total_value: float


# Movements over a date range with their totals
class MovementReport(BaseModel):
    date_from: datetime
    date_to: datetime
    items: List[StockMovementResponse]
    summary: MovementSummaryOut
