import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base


class PurchaseOrderStatus(str, enum.Enum):
    PENDING = "Pending"
    RECEIVED = "Received"


class SalesOrderStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# Stock ordered from a supplier; receiving it adds the quantity to stock
class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(30), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)

    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    unit_price = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)

    order_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    expected_delivery_date = Column(DateTime, nullable=True)
    actual_delivery_date = Column(DateTime, nullable=True)

    status = Column(String(20), nullable=False, default=PurchaseOrderStatus.PENDING.value, index=True)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True)
    created_by = Column(String(50), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    product = relationship("Product")
    supplier = relationship("Supplier", back_populates="purchase_orders")

    __mapper_args__ = {"version_id_col": version}


# Stock sold to a customer; completing it removes the quantity from stock
class SalesOrder(Base):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)

    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    unit_price = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)

    # Customer contact snapshot
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    customer_email = Column(String(100), nullable=True)

    order_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    delivery_date = Column(DateTime, nullable=True)

    status = Column(String(20), nullable=False, default=SalesOrderStatus.PENDING.value, index=True)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True)
    created_by = Column(String(50), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    product = relationship("Product")
    customer = relationship("Customer", back_populates="sales_orders")

    __mapper_args__ = {"version_id_col": version}

    # Margin per unit against the product's current buying price
    @property
    def profit(self) -> float:
        buying = self.product.buying_price if self.product else 0
        return round(self.unit_price - buying, 2)

    @property
    def profit_percentage(self) -> float:
        if not self.product or not self.product.buying_price:
            return 0.0
        return round((self.unit_price - self.product.buying_price) / self.product.buying_price * 100, 2)
