from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.app.api.deps import Actor, get_actor, get_db, require_admin
from stockledger.app.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from stockledger.services import sales

router = APIRouter(prefix="/orders")


@router.get("", response_model=list[OrderRead])
def list_orders(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return sales.list_orders(db, actor.user_id, actor.is_admin)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return sales.get_order(db, order_id, actor.user_id, actor.is_admin)


@router.post("", response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return sales.create_order(db, payload.items, payload.shipping_address, actor.user_id)


@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return sales.update_order_status(db, order_id, payload.status)


@router.delete("/{order_id}")
def cancel_order(order_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    order = sales.cancel_order(db, order_id, actor.user_id, actor.is_admin)
    return {"message": "Order cancelled", "id": order.id, "status": order.status}
