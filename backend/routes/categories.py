# backend/routes/categories.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from services import catalog
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
import schemas.catalog as catalog_schemas

router = APIRouter(prefix="/categories", tags=["Categories"])


def _category_out(category: Category, counts: dict) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "product_count": counts.get(category.id, 0),
    }


@router.get("", response_model=List[catalog_schemas.CategoryOut])
def list_categories(q: Optional[str] = Query(None), db: Session = Depends(get_db)):
    counts = catalog.category_product_counts(db)
    return [_category_out(c, counts) for c in catalog.list_entries(db, Category, q)]


@router.get("/{category_id}", response_model=catalog_schemas.CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = catalog.get_entry(db, Category, "Category", category_id)
    return _category_out(category, catalog.category_product_counts(db))


@router.post("", response_model=catalog_schemas.CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: catalog_schemas.CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    category = catalog.create_entry(db, Category, **payload.model_dump())
    write_log(db, actor=actor, action="CATEGORY_CREATE", resource="categories", status="SUCCESS",
              ip=client_ip(request), meta={"id": category.id, "name": category.name})
    return _category_out(category, {})


@router.patch("/{category_id}", response_model=catalog_schemas.CategoryOut)
def update_category(
    category_id: int,
    payload: catalog_schemas.CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    category = catalog.update_entry(db, Category, "Category", category_id, **data)
    write_log(db, actor=actor, action="CATEGORY_UPDATE", resource="categories", status="SUCCESS",
              ip=client_ip(request), meta={"id": category_id, "changed": sorted(data)})
    return _category_out(category, catalog.category_product_counts(db))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    catalog.delete_entry(db, Category, "Category", category_id)
    write_log(db, actor=actor, action="CATEGORY_DELETE", resource="categories", status="SUCCESS",
              ip=client_ip(request), meta={"id": category_id})
