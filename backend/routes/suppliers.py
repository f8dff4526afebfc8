# backend/routes/suppliers.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.supplier import Supplier
from services import catalog
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
import schemas.catalog as catalog_schemas

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


@router.get("", response_model=List[catalog_schemas.SupplierOut])
def list_suppliers(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return catalog.list_entries(db, Supplier, q)


@router.get("/{supplier_id}", response_model=catalog_schemas.SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return catalog.get_entry(db, Supplier, "Supplier", supplier_id)


@router.post("", response_model=catalog_schemas.SupplierOut, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: catalog_schemas.SupplierCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    supplier = catalog.create_entry(db, Supplier, **payload.model_dump())
    write_log(db, actor=actor, action="SUPPLIER_CREATE", resource="suppliers", status="SUCCESS",
              ip=client_ip(request), meta={"id": supplier.id, "name": supplier.name})
    return supplier


@router.patch("/{supplier_id}", response_model=catalog_schemas.SupplierOut)
def update_supplier(
    supplier_id: int,
    payload: catalog_schemas.SupplierUpdate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    supplier = catalog.update_entry(db, Supplier, "Supplier", supplier_id, **data)
    write_log(db, actor=actor, action="SUPPLIER_UPDATE", resource="suppliers", status="SUCCESS",
              ip=client_ip(request), meta={"id": supplier_id, "changed": sorted(data)})
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(
    supplier_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    catalog.delete_entry(db, Supplier, "Supplier", supplier_id)
    write_log(db, actor=actor, action="SUPPLIER_DELETE", resource="suppliers", status="SUCCESS",
              ip=client_ip(request), meta={"id": supplier_id})
