from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from stockledger.app.db.models.models_v1 import Product
from stockledger.services.errors import InsufficientStock, ProductNotFound
from stockledger.services.transaction import atomic

logger = logging.getLogger(__name__)


def get_stock(db: Session, product_id: int) -> int:
    stock = db.execute(select(Product.stock).where(Product.id == product_id)).scalar_one_or_none()
    if stock is None:
        raise ProductNotFound(product_id)
    return int(stock)


def apply_adjustment(db: Session, product_id: int, delta: int) -> int:
    """
    Applique ``delta`` au stock d'un produit et retourne le nouveau stock.

    Règle métier :
        stock = stock + delta, seulement si stock + delta >= 0

    Propriétés :
    - contrôle + écriture = un seul UPDATE conditionnel (atomique)
    - aucun état intermédiaire visible
    - ne commit pas : la transaction appartient à l'appelant
    """
    delta = int(delta)
    if delta == 0:
        return get_stock(db, product_id)

    new_stock = db.execute(
        update(Product)
        .where(Product.id == product_id)
        .where(Product.stock + delta >= 0)
        .values(stock=Product.stock + delta)
        .returning(Product.stock)
        .execution_options(synchronize_session="fetch")
    ).scalar_one_or_none()

    if new_stock is not None:
        logger.debug("stock adjusted product_id=%s delta=%+d stock=%s", product_id, delta, new_stock)
        return int(new_stock)

    row = db.execute(select(Product.name, Product.stock).where(Product.id == product_id)).one_or_none()
    if row is None:
        raise ProductNotFound(product_id)

    logger.warning(
        "debit rejected product_id=%s delta=%+d available=%s",
        product_id,
        delta,
        row.stock,
    )
    raise InsufficientStock(product_id, row.name, available=int(row.stock), requested=-delta)


def _net_deltas(adjustments: Iterable[tuple[int, int]]) -> dict[int, int]:
    net: dict[int, int] = {}
    for product_id, delta in adjustments:
        pid = int(product_id)
        net[pid] = net.get(pid, 0) + int(delta)
    return net


def apply_batch(
    db: Session,
    adjustments: Iterable[tuple[int, int]],
    *,
    skip_missing: bool = False,
) -> dict[int, int]:
    """
    Apply several ``(product_id, delta)`` adjustments inside the caller's
    transaction and return ``{product_id: new_stock}``.

    Deltas for the same product are summed, and products are adjusted in
    ascending id order so concurrent batches take row locks in the same
    order. The first failure propagates; rolling back the already-applied
    adjustments is the caller's unit of work.

    ``skip_missing`` drops products that no longer exist (credits back to a
    deleted product have nowhere to go).
    """
    results: dict[int, int] = {}
    for product_id, delta in sorted(_net_deltas(adjustments).items()):
        try:
            results[product_id] = apply_adjustment(db, product_id, delta)
        except ProductNotFound:
            if not skip_missing:
                raise
            logger.warning("skipped adjustment for missing product_id=%s delta=%+d", product_id, delta)
    return results


def adjust_stock(db: Session, product_id: int, delta: int) -> int:
    """Standalone committed adjustment (manual correction)."""
    with atomic(db):
        new_stock = apply_adjustment(db, product_id, delta)
    logger.info("manual stock adjustment product_id=%s delta=%+d stock=%s", product_id, delta, new_stock)
    return new_stock
