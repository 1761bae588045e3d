from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockledger.app.db.base import Base, BigIntId
from stockledger.app.db.models.core_types import OrderStatus, POStatus
from stockledger.time_utils import utcnow


# ---------- CATALOG ----------
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(String(128))
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Only the ledger writes this column
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=10, nullable=False)

    supplier: Mapped[str | None] = mapped_column(String(255))
    image: Mapped[str | None] = mapped_column(String(512))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_nonneg"),
        CheckConstraint("price >= 0", name="ck_product_price_nonneg"),
        CheckConstraint("low_stock_threshold >= 0", name="ck_product_low_stock_threshold_nonneg"),
    )


# ---------- SALES ----------
class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(BigIntId, nullable=False, index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"),
        default=OrderStatus.pending,
        nullable=False,
    )
    shipping_address: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (CheckConstraint("total_amount >= 0", name="ck_order_total_nonneg"),)


class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Weak reference: no FK, the product may be deleted later
    product_id: Mapped[int] = mapped_column(BigIntId, nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_item_qty_pos"),
        CheckConstraint("price >= 0", name="ck_order_item_price_nonneg"),
        Index("ix_order_items_order_position", "order_id", "position"),
    )


# ---------- PROCUREMENT ----------
class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    po_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[POStatus] = mapped_column(Enum(POStatus, name="po_status"), default=POStatus.pending, nullable=False)
    created_by: Mapped[int] = mapped_column(BigIntId, nullable=False)

    expected_delivery_date: Mapped[date | None] = mapped_column(Date)
    # Set once, on the first transition to received; guards the stock credit
    received_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    items: Mapped[list["PurchaseOrderItem"]] = relationship(
        back_populates="po",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.position",
    )

    __table_args__ = (CheckConstraint("total_amount >= 0", name="ck_po_total_nonneg"),)


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    po_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    product_id: Mapped[int] = mapped_column(BigIntId, nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    po: Mapped[PurchaseOrder] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_po_item_qty_pos"),
        CheckConstraint("unit_price >= 0", name="ck_po_item_unit_price_nonneg"),
        Index("ix_purchase_order_items_po_position", "po_id", "position"),
    )
