# backend/routes/stock.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.stock import StockMovement
from services import movements as movement_service
from services.reports import default_range
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock-movements", tags=["Stock"])


def _movement_out(m: StockMovement) -> dict:
    return {
        "id": m.id,
        "product_id": m.product_id,
        "product_name": m.product.name if m.product else "Unknown",
        "product_sku": m.product.sku if m.product else "-",
        "movement_type": m.movement_type.value,
        "quantity": m.quantity,
        "effect": m.effect,
        "unit_price": m.unit_price,
        "reference_number": m.reference_number,
        "notes": m.notes,
        "movement_date": m.movement_date,
        "created_by": m.created_by,
        "source_location": m.source_location,
        "destination_location": m.destination_location,
        "purchase_order_id": m.purchase_order_id,
        "sales_order_id": m.sales_order_id,
    }


# List / search movements, newest first
@router.get("", response_model=stock_schemas.StockMovementPage)
def list_movements(
    q: Optional[str] = Query(None, description="Product name/SKU, reference, notes or type"),
    type: Optional[str] = Query(None, description="Movement type"),
    product_id: Optional[int] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = movement_service.search_movements(
        db, q=q, movement_type=type, product_id=product_id,
        start=date_from, end=date_to, page=page, page_size=page_size,
    )
    return {"items": [_movement_out(m) for m in items], "total": total, "page": page, "page_size": page_size}


# Totals over an optional date range
@router.get("/summary", response_model=stock_schemas.MovementSummaryOut)
def movement_summary(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    return movement_service.movement_summary(db, date_from, date_to)


# Movements in a date range (last 30 days by default) with their summary
@router.get("/report", response_model=stock_schemas.MovementReport)
def movement_report(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    start, end = default_range(date_from, date_to)
    items = movement_service.movements_by_date_range(db, start, end)
    return {
        "date_from": start,
        "date_to": end,
        "items": [_movement_out(m) for m in items],
        "summary": movement_service.movement_summary(db, start, end),
    }


# Full history of one product
@router.get("/by-product/{product_id}", response_model=List[stock_schemas.StockMovementResponse])
def product_movements(product_id: int, db: Session = Depends(get_db)):
    return [_movement_out(m) for m in movement_service.movements_by_product(db, product_id)]


@router.get("/by-product/{product_id}/summary", response_model=stock_schemas.ProductMovementSummaryOut)
def product_movement_summary(product_id: int, db: Session = Depends(get_db)):
    return movement_service.product_movement_summary(db, product_id)


@router.get("/{movement_id}", response_model=stock_schemas.StockMovementResponse)
def get_movement(movement_id: int, db: Session = Depends(get_db)):
    return _movement_out(movement_service.get_movement(db, movement_id))


# Record a movement and apply it to stock
@router.post("", response_model=stock_schemas.StockMovementResponse, status_code=status.HTTP_201_CREATED)
def create_movement(
    payload: stock_schemas.StockMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    movement = movement_service.create_movement(
        db,
        product_id=payload.product_id,
        movement_type=payload.movement_type,
        quantity=payload.quantity,
        source_location=payload.source_location,
        destination_location=payload.destination_location,
        unit_price=payload.unit_price,
        reference=payload.reference_number,
        notes=payload.notes,
        actor=actor,
        movement_date=payload.movement_date,
    )
    write_log(db, actor=actor, action="STOCK_MOVEMENT_CREATE", resource="stock", status="SUCCESS",
              ip=client_ip(request),
              meta={"id": movement.id, "product_id": movement.product_id, "effect": movement.effect})
    return _movement_out(movement)


# Edit a movement: the old effect is reversed and the new one applied
@router.patch("/{movement_id}", response_model=stock_schemas.StockMovementResponse)
def update_movement(
    movement_id: int,
    payload: stock_schemas.StockMovementUpdate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    movement = movement_service.update_movement(db, movement_id, **data)
    write_log(db, actor=actor, action="STOCK_MOVEMENT_UPDATE", resource="stock", status="SUCCESS",
              ip=client_ip(request),
              meta={"id": movement.id, "changed": sorted(data), "effect": movement.effect})
    return _movement_out(movement)


@router.delete("/{movement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movement(
    movement_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    movement_service.delete_movement(db, movement_id)
    write_log(db, actor=actor, action="STOCK_MOVEMENT_DELETE", resource="stock", status="SUCCESS",
              ip=client_ip(request), meta={"id": movement_id})
