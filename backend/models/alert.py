from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, false
from sqlalchemy.orm import relationship
from database import Base


# Raised when a product's stock is observed at or below its minimum level.
# product_name and minimum_stock_level are snapshots taken at alert time.
class LowStockAlert(Base):
    __tablename__ = "low_stock_alerts"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String(200), nullable=False, default="")
    current_stock = Column(Integer, nullable=False)
    minimum_stock_level = Column(Integer, nullable=False)
    alert_date = Column(DateTime, nullable=False, default=datetime.now, index=True)

    is_resolved = Column(Boolean, nullable=False, default=False, index=True)
    resolved_date = Column(DateTime, nullable=True)
    notes = Column(String(500), nullable=True)

    product = relationship("Product")

    # At most one unresolved alert per product
    __table_args__ = (
        Index(
            "uq_low_stock_alerts_open_product", "product_id", unique=True,
            sqlite_where=is_resolved == false(),
            postgresql_where=is_resolved == false(),
        ),
    )
