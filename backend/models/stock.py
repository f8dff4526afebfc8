# backend/models/stock.py
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base

# Every movement type accepted by the ledger. The first four are the
# canonical set; the rest are older names still sent by some callers.
class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"
    PURCHASE = "Purchase"
    SALE = "Sale"
    ADJUSTMENT_IN = "Adjustment-In"
    ADJUSTMENT_OUT = "Adjustment-Out"
    RETURN = "Return"
    DAMAGED = "Damaged"
    EXPIRED = "Expired"

    @classmethod
    def lookup(cls, value):
        """Case-insensitive match on the stored value; None when unknown."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().upper()
        for member in cls:
            if member.value.upper() == key:
                return member
        return None


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    movement_type = Column(
        Enum(MovementType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False, index=True,
    )
    # Always positive; the direction lives in `effect`
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    # Signed delta applied to products.stock_quantity
    effect = Column(Integer, nullable=False, default=0)

    unit_price = Column(Float, nullable=True)
    reference_number = Column(String(100), nullable=True)
    notes = Column(String(200), nullable=True)
    movement_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    created_by = Column(String(100), nullable=True)

    source_location = Column(String(100), nullable=True)
    destination_location = Column(String(100), nullable=True)

    # Set when the movement was emitted by an order transition
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=True, index=True)

    product = relationship("Product", back_populates="movements")

    @property
    def is_order_linked(self) -> bool:
        return self.purchase_order_id is not None or self.sales_order_id is not None
