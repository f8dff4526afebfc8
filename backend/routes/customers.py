# backend/routes/customers.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.customer import Customer
from services import catalog
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
import schemas.catalog as catalog_schemas

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=List[catalog_schemas.CustomerOut])
def list_customers(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return catalog.list_entries(db, Customer, q)


@router.get("/{customer_id}", response_model=catalog_schemas.CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return catalog.get_entry(db, Customer, "Customer", customer_id)


@router.post("", response_model=catalog_schemas.CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: catalog_schemas.CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    customer = catalog.create_entry(db, Customer, **payload.model_dump())
    write_log(db, actor=actor, action="CUSTOMER_CREATE", resource="customers", status="SUCCESS",
              ip=client_ip(request), meta={"id": customer.id, "name": customer.name})
    return customer


@router.patch("/{customer_id}", response_model=catalog_schemas.CustomerOut)
def update_customer(
    customer_id: int,
    payload: catalog_schemas.CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    customer = catalog.update_entry(db, Customer, "Customer", customer_id, **data)
    write_log(db, actor=actor, action="CUSTOMER_UPDATE", resource="customers", status="SUCCESS",
              ip=client_ip(request), meta={"id": customer_id, "changed": sorted(data)})
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    catalog.delete_entry(db, Customer, "Customer", customer_id)
    write_log(db, actor=actor, action="CUSTOMER_DELETE", resource="customers", status="SUCCESS",
              ip=client_ip(request), meta={"id": customer_id})
