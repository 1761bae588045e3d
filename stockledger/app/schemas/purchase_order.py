from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from stockledger.app.db.models.core_types import POStatus


class POItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    # None -> catalog price; an explicit 0 is kept
    unit_price: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)


class POCreate(BaseModel):
    supplier: str = Field(min_length=1, max_length=255)
    items: list[POItemCreate] = Field(default_factory=list)
    expected_delivery_date: date | None = None
    notes: str = ""


class POUpdate(BaseModel):
    supplier: str | None = Field(default=None, min_length=1, max_length=255)
    items: list[POItemCreate] | None = None
    expected_delivery_date: date | None = None
    notes: str | None = None


class POStatusUpdate(BaseModel):
    status: POStatus


class POItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal


class PORead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    po_number: str
    supplier: str
    items: list[POItemRead]
    total_amount: Decimal
    status: POStatus
    created_by: int
    expected_delivery_date: date | None
    received_date: datetime | None
    notes: str
    created_at: datetime
    updated_at: datetime
