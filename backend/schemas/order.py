from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


# --- Purchase orders ---

class PurchaseOrderCreate(BaseModel):
    product_id: int
    supplier_id: int
    quantity: int = Field(ge=1, le=10000)
    unit_price: float = Field(ge=0.01, le=1000000)
    order_date: Optional[datetime] = None
    expected_delivery_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)


class PurchaseOrderUpdate(BaseModel):
    product_id: Optional[int] = None
    supplier_id: Optional[int] = None
    quantity: Optional[int] = Field(None, ge=1, le=10000)
    unit_price: Optional[float] = Field(None, ge=0.01, le=1000000)
    order_date: Optional[datetime] = None
    expected_delivery_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)


class PurchaseOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: Optional[str] = None
    product_id: int
    product_name: Optional[str] = None
    supplier_id: int
    supplier_name: Optional[str] = None
    quantity: int
    unit_price: float
    total_amount: float
    order_date: datetime
    expected_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PurchaseOrdersPage(BaseModel):
    items: List[PurchaseOrderOut]
    total: int
    page: int
    page_size: int


# --- Sales orders ---

class SalesOrderCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1, le=10000)
    unit_price: float = Field(ge=0.01, le=1000000)
    customer_name: str = Field(min_length=1, max_length=100)
    customer_id: Optional[int] = None
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[str] = Field(None, max_length=100)
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)


class SalesOrderUpdate(BaseModel):
    product_id: Optional[int] = None
    quantity: Optional[int] = Field(None, ge=1, le=10000)
    unit_price: Optional[float] = Field(None, ge=0.01, le=1000000)
    customer_name: Optional[str] = Field(None, min_length=1, max_length=100)
    customer_id: Optional[int] = None
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[str] = Field(None, max_length=100)
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=500)


class SalesOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    quantity: int
    unit_price: float
    total_amount: float
    profit: float
    profit_percentage: float
    order_date: datetime
    delivery_date: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class SalesOrdersPage(BaseModel):
    items: List[SalesOrderOut]
    total: int
    page: int
    page_size: int
