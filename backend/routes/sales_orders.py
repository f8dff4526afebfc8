# backend/routes/sales_orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.order import SalesOrder
from services import orders as order_service
from utils.audit import client_ip, write_log
from utils.request_context import get_actor
from schemas.order import SalesOrderCreate, SalesOrderOut, SalesOrdersPage, SalesOrderUpdate

router = APIRouter(prefix="/sales-orders", tags=["Sales orders"])


# Map SalesOrder model to SalesOrderOut schema
def _order_to_out(order: SalesOrder) -> SalesOrderOut:
    out = SalesOrderOut.model_validate(order)
    out.product_name = order.product.name if order.product else None
    return out


@router.get("", response_model=SalesOrdersPage)
def list_sales_orders(
    status: Optional[str] = Query(None, description="Pending / Completed / Cancelled"),
    q: Optional[str] = Query(None, description="Customer name"),
    product_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = order_service.list_sales_orders(
        db, status=status, q=q, product_id=product_id, page=page, page_size=page_size,
    )
    return {"items": [_order_to_out(o) for o in items], "total": total, "page": page, "page_size": page_size}


@router.get("/{order_id}", response_model=SalesOrderOut)
def get_sales_order(order_id: int, db: Session = Depends(get_db)):
    return _order_to_out(order_service.get_sales_order(db, order_id))


@router.post("", response_model=SalesOrderOut, status_code=status.HTTP_201_CREATED)
def create_sales_order(
    payload: SalesOrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order = order_service.create_sales_order(db, actor=actor, **payload.model_dump())
    write_log(db, actor=actor, action="SALES_ORDER_CREATE", resource="sales_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order.id, "total": order.total_amount})
    return _order_to_out(order)


@router.patch("/{order_id}", response_model=SalesOrderOut)
def update_sales_order(
    order_id: int,
    payload: SalesOrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    data = payload.model_dump(exclude_unset=True)
    order = order_service.update_sales_order(db, order_id, **data)
    write_log(db, actor=actor, action="SALES_ORDER_UPDATE", resource="sales_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id, "changed": sorted(data)})
    return _order_to_out(order)


# Ship the order: takes the quantity out of stock or fails with 409
@router.post("/{order_id}/complete", response_model=SalesOrderOut)
def complete_sales_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order = order_service.complete_sales_order(db, order_id, actor=actor)
    write_log(db, actor=actor, action="SALES_ORDER_COMPLETE", resource="sales_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id, "product_id": order.product_id, "qty": order.quantity})
    return _order_to_out(order)


@router.post("/{order_id}/cancel", response_model=SalesOrderOut)
def cancel_sales_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order = order_service.cancel_sales_order(db, order_id)
    write_log(db, actor=actor, action="SALES_ORDER_CANCEL", resource="sales_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id})
    return _order_to_out(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    order_service.delete_sales_order(db, order_id)
    write_log(db, actor=actor, action="SALES_ORDER_DELETE", resource="sales_orders", status="SUCCESS",
              ip=client_ip(request), meta={"id": order_id})
