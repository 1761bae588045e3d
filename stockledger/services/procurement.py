"""
Procurement service.

Ce module orchestre le cycle de vie des bons de commande fournisseur (PO).
Le seul effet stock est le crédit à la réception, appliqué une seule fois :
``received_date`` sert de jeton d'idempotence.

Toute l'écriture du stock passe par :
    stockledger.services.inventory
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from stockledger.app.config import get_settings
from stockledger.app.db.models.core_types import POStatus
from stockledger.app.db.models.models_v1 import Product, PurchaseOrder, PurchaseOrderItem
from stockledger.app.schemas.purchase_order import POItemCreate, POUpdate
from stockledger.services.errors import EmptyOrder, InvalidState, NotFound, ProductNotFound
from stockledger.services.inventory import apply_batch
from stockledger.services.lifecycle import PO_TRANSITIONS, ensure_transition
from stockledger.services.numbering import NumberGenerator, default_numbers
from stockledger.services.pricing import order_total
from stockledger.services.transaction import atomic
from stockledger.time_utils import utcnow

logger = logging.getLogger(__name__)

# Statuses a PO may be in when the receipt is claimed
RECEIVABLE_PO_STATUSES = {POStatus.pending, POStatus.approved, POStatus.received}


def _load_po(db: Session, po_id: int, *, lock: bool = False) -> PurchaseOrder:
    stmt = select(PurchaseOrder).where(PurchaseOrder.id == po_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    po = db.execute(stmt).scalar_one_or_none()
    if not po:
        raise NotFound("Purchase order not found", details={"po_id": po_id})
    return po


def _build_lines(db: Session, items: list[POItemCreate]) -> tuple[list[PurchaseOrderItem], Decimal]:
    if not items:
        raise EmptyOrder("No items in purchase order")

    products: dict[int, Product] = {}
    lines: list[PurchaseOrderItem] = []
    for position, item in enumerate(items):
        product = products.get(item.product_id) or db.get(Product, item.product_id)
        if not product:
            raise ProductNotFound(item.product_id)
        products[item.product_id] = product

        # Prix client si fourni (0 inclus), sinon prix catalogue
        unit_price = item.unit_price if item.unit_price is not None else product.price
        lines.append(
            PurchaseOrderItem(
                position=position,
                product_id=item.product_id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=unit_price,
            )
        )

    total = order_total((line.quantity, line.unit_price) for line in lines)
    return lines, total


def _ensure_not_received(po: PurchaseOrder, action: str) -> None:
    if po.status == POStatus.received:
        raise InvalidState(
            f"Cannot {action} received purchase order",
            details={"po_id": po.id, "status": po.status.value},
        )


def create_purchase_order(
    db: Session,
    supplier: str,
    items: Iterable[POItemCreate],
    expected_delivery_date: date | None,
    notes: str | None,
    acting_user_id: int,
    *,
    numbers: NumberGenerator | None = None,
) -> PurchaseOrder:
    items = list(items)
    numbers = numbers or default_numbers
    settings = get_settings()

    with atomic(db):
        lines, total = _build_lines(db, items)
        po = PurchaseOrder(
            po_number=numbers.next_number(
                db,
                PurchaseOrder.po_number,
                settings.PO_NUMBER_PREFIX,
                attempts=settings.NUMBER_MAX_ATTEMPTS,
            ),
            supplier=supplier,
            total_amount=total,
            status=POStatus.pending,
            created_by=acting_user_id,
            expected_delivery_date=expected_delivery_date,
            notes=notes or "",
            items=lines,
        )
        db.add(po)

    db.refresh(po)
    logger.info("purchase order created id=%s number=%s total=%s", po.id, po.po_number, po.total_amount)
    return po


def _receive(db: Session, po: PurchaseOrder, now: datetime) -> bool:
    """Claim the receipt and credit stock. Returns False when already received."""
    if po.received_date is not None:
        logger.info("purchase order id=%s already received, no stock credit", po.id)
        return False

    credits = [(item.product_id, item.quantity) for item in po.items]

    # Concurrence : deux réceptions simultanées, une seule gagne le UPDATE
    claimed = db.execute(
        update(PurchaseOrder)
        .where(PurchaseOrder.id == po.id)
        .where(PurchaseOrder.received_date.is_(None))
        .where(PurchaseOrder.status.in_(RECEIVABLE_PO_STATUSES))
        .values(status=POStatus.received, received_date=now)
        .returning(PurchaseOrder.id)
        .execution_options(synchronize_session="fetch")
    ).scalar_one_or_none()

    if claimed is None:
        db.refresh(po)
        if po.received_date is not None:
            logger.info("purchase order id=%s received concurrently, no stock credit", po.id)
            return False
        raise InvalidState("Purchase order status changed concurrently", details={"po_id": po.id})

    apply_batch(db, credits, skip_missing=True)
    return True


def update_purchase_order_status(
    db: Session,
    po_id: int,
    new_status: POStatus | str,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> PurchaseOrder:
    target = POStatus(new_status)

    with atomic(db):
        po = _load_po(db, po_id, lock=True)
        current = po.status
        ensure_transition("purchase order", PO_TRANSITIONS, current, target)

        credited = False
        if target == POStatus.received:
            credited = _receive(db, po, clock())
        elif target != current:
            claimed = db.execute(
                update(PurchaseOrder)
                .where(PurchaseOrder.id == po.id)
                .where(PurchaseOrder.status == current)
                .values(status=target)
                .returning(PurchaseOrder.id)
                .execution_options(synchronize_session="fetch")
            ).scalar_one_or_none()
            if claimed is None:
                raise InvalidState("Purchase order status changed concurrently", details={"po_id": po.id})

    db.refresh(po)
    logger.info(
        "purchase order status id=%s %s -> %s credited=%s",
        po.id,
        current.value,
        po.status.value,
        credited,
    )
    return po


def update_purchase_order(db: Session, po_id: int, payload: POUpdate) -> PurchaseOrder:
    fields = payload.model_fields_set

    with atomic(db):
        po = _load_po(db, po_id, lock=True)
        _ensure_not_received(po, "update")

        if "supplier" in fields and payload.supplier is not None:
            po.supplier = payload.supplier
        if "expected_delivery_date" in fields:
            po.expected_delivery_date = payload.expected_delivery_date
        if "notes" in fields:
            po.notes = payload.notes or ""
        if "items" in fields and payload.items is not None:
            lines, total = _build_lines(db, payload.items)
            po.items = lines
            po.total_amount = total

    db.refresh(po)
    return po


def delete_purchase_order(db: Session, po_id: int) -> None:
    with atomic(db):
        po = _load_po(db, po_id, lock=True)
        _ensure_not_received(po, "delete")
        db.delete(po)
    logger.info("purchase order deleted id=%s", po_id)


def get_purchase_order(db: Session, po_id: int) -> PurchaseOrder:
    return _load_po(db, po_id)


def list_purchase_orders(db: Session) -> list[PurchaseOrder]:
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
    return list(db.execute(stmt).scalars())
