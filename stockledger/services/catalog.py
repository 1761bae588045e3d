from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.app.config import get_settings
from stockledger.app.db.models.models_v1 import Product
from stockledger.app.schemas.product import ProductCreate, ProductUpdate
from stockledger.services.errors import Conflict, NotFound
from stockledger.services.transaction import atomic

logger = logging.getLogger(__name__)


def _sku_taken(db: Session, sku: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    return db.execute(stmt).first() is not None


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound(f"Product not found: {product_id}")
    return product


def list_products(db: Session) -> list[Product]:
    return list(db.execute(select(Product).order_by(Product.created_at.desc(), Product.id.desc())).scalars())


def list_low_stock(db: Session) -> list[Product]:
    """Products at or below their own low-stock threshold, lowest stock first."""
    stmt = (
        select(Product)
        .where(Product.stock <= Product.low_stock_threshold)
        .order_by(Product.stock.asc(), Product.id.asc())
    )
    return list(db.execute(stmt).scalars())


def create_product(db: Session, payload: ProductCreate) -> Product:
    with atomic(db):
        if _sku_taken(db, payload.sku):
            raise Conflict("Product with this SKU already exists", details={"sku": payload.sku})

        threshold = payload.low_stock_threshold
        if threshold is None:
            threshold = get_settings().DEFAULT_LOW_STOCK_THRESHOLD

        product = Product(
            name=payload.name,
            description=payload.description,
            sku=payload.sku,
            category=payload.category,
            price=payload.price,
            stock=payload.stock,
            low_stock_threshold=threshold,
            supplier=payload.supplier,
            image=payload.image,
        )
        db.add(product)

    db.refresh(product)
    logger.info("product created id=%s sku=%s stock=%s", product.id, product.sku, product.stock)
    return product


def update_product(db: Session, product_id: int, payload: ProductUpdate) -> Product:
    with atomic(db):
        product = get_product(db, product_id)
        changes = payload.model_dump(exclude_unset=True)

        sku = changes.get("sku")
        if sku is not None and sku != product.sku and _sku_taken(db, sku, exclude_id=product.id):
            raise Conflict("Product with this SKU already exists", details={"sku": sku})

        for name, value in changes.items():
            if value is None and name in ("name", "sku", "price", "low_stock_threshold"):
                # required columns: an explicit null means "leave as is"
                continue
            setattr(product, name, value)

    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> None:
    with atomic(db):
        product = get_product(db, product_id)
        db.delete(product)
    logger.info("product deleted id=%s", product_id)
