from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# --- Categories ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class CategoryOut(CategoryCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_count: int = 0


# --- Suppliers ---

class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    company_name: str = Field(min_length=1, max_length=100)
    contact_person: str = Field(default="", max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    company_name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_person: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)


class SupplierOut(SupplierCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


# --- Customers ---

class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    contact_person: str = Field(default="", max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_person: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)


class CustomerOut(CustomerCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
