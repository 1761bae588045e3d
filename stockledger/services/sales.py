"""
Sales order lifecycle.

Creating an order debits the ledger, cancelling it credits the ledger back.
Both happen in the same transaction as the order row they belong to, so the
ledger can never disagree with the persisted order.
"""

from __future__ import annotations

import logging
from typing import Iterable

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from stockledger.app.config import get_settings
from stockledger.app.db.models.core_types import OrderStatus
from stockledger.app.db.models.models_v1 import Order, OrderItem, Product
from stockledger.app.schemas.order import OrderItemCreate, ShippingAddress
from stockledger.services.errors import (
    EmptyOrder,
    Forbidden,
    InsufficientStock,
    InvalidState,
    NotFound,
    ProductNotFound,
)
from stockledger.services.inventory import apply_batch
from stockledger.services.lifecycle import CANCELLABLE_ORDER_STATUSES, ORDER_TRANSITIONS, ensure_transition
from stockledger.services.numbering import NumberGenerator, default_numbers
from stockledger.services.pricing import order_total
from stockledger.services.transaction import atomic

logger = logging.getLogger(__name__)


def _load_order(db: Session, order_id: int, *, lock: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    order = db.execute(stmt).scalar_one_or_none()
    if not order:
        raise NotFound("Order not found", details={"order_id": order_id})
    return order


def _ensure_owner_or_admin(order: Order, acting_user_id: int, is_admin: bool, action: str) -> None:
    if is_admin or order.user_id == acting_user_id:
        return
    raise Forbidden(f"Not authorized to {action} this order", details={"order_id": order.id})


def _resolve_products(db: Session, items: list[OrderItemCreate]) -> dict[int, Product]:
    products: dict[int, Product] = {}
    for item in items:
        if item.product_id in products:
            continue
        product = db.get(Product, item.product_id)
        if not product:
            raise ProductNotFound(item.product_id)
        products[item.product_id] = product
    return products


def _ensure_available(products: dict[int, Product], items: list[OrderItemCreate]) -> None:
    # Fail fast with a clear message before any debit. The conditional debit
    # stays the real guard (another order may take the stock in between).
    requested: dict[int, int] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.stock < quantity:
            raise InsufficientStock(product_id, product.name, available=product.stock, requested=quantity)


def _address_dict(shipping_address) -> dict | None:
    if shipping_address is None:
        return None
    if isinstance(shipping_address, BaseModel):
        return shipping_address.model_dump()
    return ShippingAddress.model_validate(shipping_address).model_dump()


def create_order(
    db: Session,
    items: Iterable[OrderItemCreate],
    shipping_address: ShippingAddress | dict | None,
    acting_user_id: int,
    *,
    numbers: NumberGenerator | None = None,
) -> Order:
    items = list(items)
    if not items:
        raise EmptyOrder("No order items")

    numbers = numbers or default_numbers
    settings = get_settings()

    with atomic(db):
        products = _resolve_products(db, items)
        _ensure_available(products, items)

        # Snapshots use the live catalog price, never a client price
        lines = [
            OrderItem(
                position=position,
                product_id=item.product_id,
                product_name=products[item.product_id].name,
                quantity=item.quantity,
                price=products[item.product_id].price,
            )
            for position, item in enumerate(items)
        ]
        total = order_total((line.quantity, line.price) for line in lines)

        apply_batch(db, [(item.product_id, -item.quantity) for item in items])

        order = Order(
            order_number=numbers.next_number(
                db,
                Order.order_number,
                settings.ORDER_NUMBER_PREFIX,
                attempts=settings.NUMBER_MAX_ATTEMPTS,
            ),
            user_id=acting_user_id,
            total_amount=total,
            status=OrderStatus.pending,
            shipping_address=_address_dict(shipping_address),
            items=lines,
        )
        db.add(order)

    db.refresh(order)
    logger.info(
        "order created id=%s number=%s user_id=%s lines=%d total=%s",
        order.id,
        order.order_number,
        acting_user_id,
        len(lines),
        order.total_amount,
    )
    return order


def _cancel(db: Session, order: Order) -> None:
    if order.status not in CANCELLABLE_ORDER_STATUSES:
        raise InvalidState(
            "Cannot cancel order in current status",
            details={"order_id": order.id, "status": order.status.value},
        )

    credits = [(item.product_id, item.quantity) for item in order.items]

    # Claim first: a concurrent cancel either waits on this row or loses the
    # guard, so the credit below runs once per order.
    claimed = db.execute(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.status.in_(CANCELLABLE_ORDER_STATUSES))
        .values(status=OrderStatus.cancelled)
        .returning(Order.id)
        .execution_options(synchronize_session="fetch")
    ).scalar_one_or_none()
    if claimed is None:
        raise InvalidState("Order status changed concurrently", details={"order_id": order.id})

    apply_batch(db, credits, skip_missing=True)


def cancel_order(db: Session, order_id: int, acting_user_id: int, is_admin: bool) -> Order:
    with atomic(db):
        order = _load_order(db, order_id, lock=True)
        _ensure_owner_or_admin(order, acting_user_id, is_admin, "cancel")
        _cancel(db, order)

    db.refresh(order)
    logger.info("order cancelled id=%s by user_id=%s", order.id, acting_user_id)
    return order


def update_order_status(db: Session, order_id: int, new_status: OrderStatus | str) -> Order:
    target = OrderStatus(new_status)

    with atomic(db):
        order = _load_order(db, order_id, lock=True)
        current = order.status
        ensure_transition("order", ORDER_TRANSITIONS, current, target)

        if target == current:
            pass
        elif target == OrderStatus.cancelled:
            # Same path as an explicit cancel: stock goes back
            _cancel(db, order)
        else:
            claimed = db.execute(
                update(Order)
                .where(Order.id == order.id)
                .where(Order.status == current)
                .values(status=target)
                .returning(Order.id)
                .execution_options(synchronize_session="fetch")
            ).scalar_one_or_none()
            if claimed is None:
                raise InvalidState("Order status changed concurrently", details={"order_id": order.id})

    db.refresh(order)
    logger.info("order status id=%s %s -> %s", order.id, current.value, order.status.value)
    return order


def get_order(db: Session, order_id: int, acting_user_id: int, is_admin: bool) -> Order:
    order = _load_order(db, order_id)
    _ensure_owner_or_admin(order, acting_user_id, is_admin, "view")
    return order


def list_orders(db: Session, acting_user_id: int, is_admin: bool) -> list[Order]:
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if not is_admin:
        stmt = stmt.where(Order.user_id == acting_user_id)
    return list(db.execute(stmt).scalars())
