# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(max_length=200)
    sku: str = Field(max_length=50)
    description: str = Field(default="", max_length=1000)
    category_id: int
    supplier_id: Optional[int] = None
    buying_price: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    minimum_stock_level: int = Field(default=0, ge=0)
    reorder_level: int = Field(default=0, ge=0)
    is_active: bool = True


# Schema for creating a new product with its opening stock
class ProductCreate(ProductBase):
    stock_quantity: int = Field(default=0, ge=0)


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PATCH requests - all fields optional.

    Setting stock_quantity here is an explicit set, not a stock movement.
    """
    name: Optional[str] = Field(None, max_length=200)
    sku: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    buying_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    minimum_stock_level: Optional[int] = Field(None, ge=0)
    reorder_level: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


# Full product representation including ID and stock data
class ProductOut(ProductBase):
    id: int
    stock_quantity: int
    is_low_stock: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
