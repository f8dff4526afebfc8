# backend/models/product.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base

# Product
# A single catalog item together with its current stock quantity.
# stock_quantity is only changed by the reconciliation engine (movements,
# order transitions) or by an explicit admin edit. The version column is the
# optimistic-lock counter: a stale read-modify-write fails on flush.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(String(1000), nullable=False, default="")
    sku = Column(String(50), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)

    # Prices are guarded by check constraints.
    buying_price = Column(Float, CheckConstraint("buying_price >= 0"), nullable=False)
    selling_price = Column(Float, CheckConstraint("selling_price >= 0"), nullable=False)

    # Stock data.
    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)
    minimum_stock_level = Column(Integer, CheckConstraint("minimum_stock_level >= 0"), nullable=False, default=0)
    reorder_level = Column(Integer, CheckConstraint("reorder_level >= 0"), nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    movements = relationship("StockMovement", back_populates="product")

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_low_stock(self) -> bool:
        return self.minimum_stock_level > 0 and self.stock_quantity <= self.minimum_stock_level
