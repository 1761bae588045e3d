"""create stock ledger tables

Revision ID: 3f6b2c9a1d07
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f6b2c9a1d07"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BIGINT_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

ORDER_STATUS = sa.Enum("pending", "processing", "shipped", "delivered", "cancelled", name="order_status")
PO_STATUS = sa.Enum("pending", "approved", "received", "cancelled", name="po_status")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", BIGINT_ID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("category", sa.String(128)),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("low_stock_threshold", sa.Integer(), nullable=False),
        sa.Column("supplier", sa.String(255)),
        sa.Column("image", sa.String(512)),
        *_timestamps(),
        sa.UniqueConstraint("sku", name="uq_products_sku"),
        sa.CheckConstraint("stock >= 0", name="ck_product_stock_nonneg"),
        sa.CheckConstraint("price >= 0", name="ck_product_price_nonneg"),
        sa.CheckConstraint("low_stock_threshold >= 0", name="ck_product_low_stock_threshold_nonneg"),
    )

    op.create_table(
        "orders",
        sa.Column("id", BIGINT_ID, primary_key=True),
        sa.Column("order_number", sa.String(64), nullable=False),
        sa.Column("user_id", BIGINT_ID, nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", ORDER_STATUS, nullable=False),
        sa.Column("shipping_address", sa.JSON()),
        *_timestamps(),
        sa.UniqueConstraint("order_number", name="uq_orders_order_number"),
        sa.CheckConstraint("total_amount >= 0", name="ck_order_total_nonneg"),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])

    op.create_table(
        "order_items",
        sa.Column("id", BIGINT_ID, primary_key=True),
        sa.Column("order_id", BIGINT_ID, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("product_id", BIGINT_ID, nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_order_item_qty_pos"),
        sa.CheckConstraint("price >= 0", name="ck_order_item_price_nonneg"),
    )
    op.create_index("ix_order_items_order_position", "order_items", ["order_id", "position"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])

    op.create_table(
        "purchase_orders",
        sa.Column("id", BIGINT_ID, primary_key=True),
        sa.Column("po_number", sa.String(64), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", PO_STATUS, nullable=False),
        sa.Column("created_by", BIGINT_ID, nullable=False),
        sa.Column("expected_delivery_date", sa.Date()),
        sa.Column("received_date", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("po_number", name="uq_purchase_orders_po_number"),
        sa.CheckConstraint("total_amount >= 0", name="ck_po_total_nonneg"),
    )

    op.create_table(
        "purchase_order_items",
        sa.Column("id", BIGINT_ID, primary_key=True),
        sa.Column("po_id", BIGINT_ID, sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("product_id", BIGINT_ID, nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_po_item_qty_pos"),
        sa.CheckConstraint("unit_price >= 0", name="ck_po_item_unit_price_nonneg"),
    )
    op.create_index("ix_purchase_order_items_po_position", "purchase_order_items", ["po_id", "position"])
    op.create_index("ix_purchase_order_items_product_id", "purchase_order_items", ["product_id"])


def downgrade() -> None:
    op.drop_table("purchase_order_items")
    op.drop_table("purchase_orders")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("products")

    # Postgres keeps the enum types around after drop_table
    bind = op.get_bind()
    PO_STATUS.drop(bind, checkfirst=True)
    ORDER_STATUS.drop(bind, checkfirst=True)
