from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base


# Product grouping used by the catalog and reports
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=False, default="")

    products = relationship("Product", back_populates="category")
