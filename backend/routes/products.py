# backend/routes/products.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from services import catalog
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
import schemas.product as product_schemas

router = APIRouter(prefix="/products", tags=["Products"])


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Name, SKU or description"),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    low_stock: Optional[bool] = Query(None),
    active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    sort_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    items, total = catalog.search_products(
        db, q=q, category_id=category_id, supplier_id=supplier_id, low_stock=low_stock,
        active=active, sort_by=sort_by, order=order, page=page, page_size=page_size,
    )
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)


# =========================
# CREATE / EDIT / DELETE
# =========================
@router.post("", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    product = catalog.create_product(db, **payload.model_dump())
    write_log(db, actor=actor, action="PRODUCT_CREATE", resource="products", status="SUCCESS",
              ip=client_ip(request), meta={"id": product.id, "sku": product.sku})
    return product


# Partial edit; stock_quantity here is an explicit set, not a movement
@router.patch("/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    product = catalog.update_product(db, product_id, **data)
    write_log(db, actor=actor, action="PRODUCT_UPDATE", resource="products", status="SUCCESS",
              ip=client_ip(request), meta={"id": product.id, "changed": sorted(data)})
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    catalog.delete_product(db, product_id)
    write_log(db, actor=actor, action="PRODUCT_DELETE", resource="products", status="SUCCESS",
              ip=client_ip(request), meta={"id": product_id})
