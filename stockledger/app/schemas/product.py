from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    sku: str = Field(min_length=1, max_length=64)
    category: str | None = Field(default=None, max_length=128)
    price: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    supplier: str | None = Field(default=None, max_length=255)
    image: str | None = Field(default=None, max_length=512)


class ProductUpdate(BaseModel):
    """Catalog metadata only. Stock moves through the ledger."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    category: str | None = Field(default=None, max_length=128)
    price: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    supplier: str | None = Field(default=None, max_length=255)
    image: str | None = Field(default=None, max_length=512)


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    sku: str
    category: str | None
    price: Decimal
    stock: int
    low_stock_threshold: int
    supplier: str | None
    image: str | None
    created_at: datetime
    updated_at: datetime


class StockAdjustmentCreate(BaseModel):
    delta: int


class StockLevelRead(BaseModel):
    product_id: int
    stock: int
