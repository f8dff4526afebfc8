# backend/routes/purchase_orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.order import PurchaseOrder
from services import orders as order_service
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
from schemas.order import PurchaseOrderCreate, PurchaseOrderOut, PurchaseOrdersPage, PurchaseOrderUpdate

router = APIRouter(prefix="/purchase-orders", tags=["Purchase orders"])


# Map PurchaseOrder model to PurchaseOrderOut schema
def _order_to_out(order: PurchaseOrder) -> PurchaseOrderOut:
    out = PurchaseOrderOut.model_validate(order)
    out.product_name = order.product.name if order.product else None
    out.supplier_name = order.supplier.name if order.supplier else None
    return out


@router.get("", response_model=PurchaseOrdersPage)
def list_purchase_orders(
    status: Optional[str] = Query(None, description="Pending / Received"),
    supplier_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = order_service.list_purchase_orders(
        db, status=status, supplier_id=supplier_id, product_id=product_id, page=page, page_size=page_size,
    )
    return {"items": [_order_to_out(o) for o in items], "total": total, "page": page, "page_size": page_size}


@router.get("/{order_id}", response_model=PurchaseOrderOut)
def get_purchase_order(order_id: int, db: Session = Depends(get_db)):
    return _order_to_out(order_service.get_purchase_order(db, order_id))


@router.post("", response_model=PurchaseOrderOut, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order = order_service.create_purchase_order(db, actor=actor, **payload.model_dump())
    write_log(db, actor=actor, action="PURCHASE_ORDER_CREATE", resource="purchase_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order.id, "total": order.total_amount})
    return _order_to_out(order)


@router.patch("/{order_id}", response_model=PurchaseOrderOut)
def update_purchase_order(
    order_id: int,
    payload: PurchaseOrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    order = order_service.update_purchase_order(db, order_id, **data)
    write_log(db, actor=actor, action="PURCHASE_ORDER_UPDATE", resource="purchase_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id, "changed": sorted(data)})
    return _order_to_out(order)


# Goods arrived: book them into stock
@router.post("/{order_id}/receive", response_model=PurchaseOrderOut)
def receive_purchase_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order = order_service.receive_purchase_order(db, order_id, actor=actor)
    write_log(db, actor=actor, action="PURCHASE_ORDER_RECEIVE", resource="purchase_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id, "product_id": order.product_id, "qty": order.quantity})
    return _order_to_out(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order_service.delete_purchase_order(db, order_id)
    write_log(db, actor=actor, action="PURCHASE_ORDER_DELETE", resource="purchase_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id})
