from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.app.api.deps import Actor, get_actor, get_db, require_admin
from stockledger.app.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    StockAdjustmentCreate,
    StockLevelRead,
)
from stockledger.services import catalog, inventory

router = APIRouter(prefix="/products")


@router.get("", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return catalog.list_products(db)


# Declared before /{product_id} so "low-stock" is not parsed as an id
@router.get("/low-stock", response_model=list[ProductRead])
def list_low_stock(db: Session = Depends(get_db), actor: Actor = Depends(require_admin)):
    return catalog.list_low_stock(db)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return catalog.get_product(db, product_id)


@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), actor: Actor = Depends(require_admin)):
    return catalog.create_product(db, payload)


@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return catalog.update_product(db, product_id, payload)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_admin)):
    catalog.delete_product(db, product_id)
    return {"message": "Product removed"}


@router.post("/{product_id}/stock-adjustments", response_model=StockLevelRead)
def adjust_stock(
    product_id: int,
    payload: StockAdjustmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    stock = inventory.adjust_stock(db, product_id, payload.delta)
    return {"product_id": product_id, "stock": stock}
