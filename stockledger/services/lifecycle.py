"""
Status state machines for sales orders and purchase orders.

ORDERS:
    pending -> processing -> shipped -> delivered
    pending | processing -> cancelled

PURCHASE ORDERS:
    pending -> approved -> received
    pending -> received (approval is optional)
    pending | approved -> cancelled

delivered, received and cancelled are terminal. Re-submitting the current
status is accepted as a no-op; the callers decide what that means for stock
(nothing, in both cases).
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from stockledger.app.db.models.core_types import OrderStatus, POStatus
from stockledger.services.errors import InvalidTransition

ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.pending: frozenset({OrderStatus.processing, OrderStatus.cancelled}),
    OrderStatus.processing: frozenset({OrderStatus.shipped, OrderStatus.cancelled}),
    OrderStatus.shipped: frozenset({OrderStatus.delivered}),
    OrderStatus.delivered: frozenset(),
    OrderStatus.cancelled: frozenset(),
}

# Statuses from which a sales order can still be cancelled (and restocked)
CANCELLABLE_ORDER_STATUSES = frozenset({OrderStatus.pending, OrderStatus.processing})

PO_TRANSITIONS: Mapping[POStatus, frozenset[POStatus]] = {
    POStatus.pending: frozenset({POStatus.approved, POStatus.received, POStatus.cancelled}),
    POStatus.approved: frozenset({POStatus.received, POStatus.cancelled}),
    POStatus.received: frozenset(),
    POStatus.cancelled: frozenset(),
}


def can_transition(table: Mapping[Enum, frozenset], current: Enum, target: Enum) -> bool:
    if current == target:
        return True
    return target in table.get(current, frozenset())


def ensure_transition(entity: str, table: Mapping[Enum, frozenset], current: Enum, target: Enum) -> None:
    if not can_transition(table, current, target):
        allowed = ", ".join(sorted(s.value for s in table.get(current, frozenset()))) or "none"
        raise InvalidTransition(
            f"Cannot move {entity} from '{current.value}' to '{target.value}' (allowed: {allowed})",
            details={"from": current.value, "to": target.value},
        )
