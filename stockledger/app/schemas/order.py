from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from stockledger.app.db.models.core_types import OrderStatus


class ShippingAddress(BaseModel):
    street: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=128)
    postal_code: str | None = Field(default=None, max_length=32)
    country: str | None = Field(default=None, max_length=64)


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    # Empty lists are rejected by the service (EmptyOrder), not here
    items: list[OrderItemCreate] = Field(default_factory=list)
    shipping_address: ShippingAddress | None = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    product_name: str
    quantity: int
    price: Decimal


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: int
    items: list[OrderItemRead]
    total_amount: Decimal
    status: OrderStatus
    shipping_address: ShippingAddress | None
    created_at: datetime
    updated_at: datetime
