"""
Domain errors raised by the service layer.

Every error carries a stable ``kind`` string so callers (the HTTP layer, CLI
scripts, tests) can branch on it without importing the concrete class.
"""

from __future__ import annotations


class LedgerError(Exception):
    kind = "LedgerError"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFound(LedgerError):
    kind = "NotFound"


class ProductNotFound(LedgerError):
    kind = "ProductNotFound"

    def __init__(self, product_id: int):
        super().__init__(f"Product not found: {product_id}", details={"product_id": product_id})
        self.product_id = product_id


class EmptyOrder(LedgerError):
    kind = "EmptyOrder"


class InsufficientStock(LedgerError):
    kind = "InsufficientStock"

    def __init__(self, product_id: int, product_name: str | None, available: int, requested: int):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}",
            details={
                "product_id": product_id,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class Forbidden(LedgerError):
    kind = "Forbidden"


class InvalidState(LedgerError):
    kind = "InvalidState"


class InvalidTransition(LedgerError):
    kind = "InvalidTransition"


class Conflict(LedgerError):
    kind = "Conflict"
