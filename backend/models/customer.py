from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base


# Represents a buyer referenced by sales orders
class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    contact_person = Column(String(100), nullable=False, default="")
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    address = Column(String(200), nullable=True)

    sales_orders = relationship("SalesOrder", back_populates="customer")
