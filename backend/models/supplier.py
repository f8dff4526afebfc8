from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base


# Represents a vendor that products are bought from
class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    company_name = Column(String(100), nullable=False)
    contact_person = Column(String(100), nullable=False, default="")
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    address = Column(String(200), nullable=True)

    products = relationship("Product", back_populates="supplier")
    purchase_orders = relationship("PurchaseOrder", back_populates="supplier")
