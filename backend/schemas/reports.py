# schemas/reports.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from schemas.alert import LowStockAlertOut
from schemas.order import SalesOrderOut


# Sales performance over a date range
class SalesReport(BaseModel):
    date_from: datetime
    date_to: datetime
    items: List[SalesOrderOut]
    total_sales: float
    total_orders: int


# Stock levels and value at buying price
class InventoryItem(BaseModel):
    product_id: int
    name: str
    sku: str
    category: Optional[str] = None
    supplier: Optional[str] = None
    stock_quantity: int
    reorder_level: int
    buying_price: float
    stock_value: float


class InventoryReport(BaseModel):
    items: List[InventoryItem]
    low_stock_count: int
    total_value: float


class ProfitLossReport(BaseModel):
    date_from: datetime
    date_to: datetime
    total_revenue: float
    total_cost: float
    total_purchases: float
    profit_loss: float
    profit_margin: float


# Dashboard
class TopProduct(BaseModel):
    product_id: int
    product_name: str
    total_quantity_sold: int


class MonthlySales(BaseModel):
    month: str
    total: float


class DashboardSummary(BaseModel):
    total_products: int
    total_categories: int
    total_suppliers: int
    total_customers: int
    low_stock_items: int
    monthly_sales: float
    top_selling_products: List[TopProduct]
    active_alerts: List[LowStockAlertOut]
    monthly_sales_chart: List[MonthlySales]
