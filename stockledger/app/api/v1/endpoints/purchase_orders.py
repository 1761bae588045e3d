from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockledger.app.api.deps import Actor, get_db, require_admin
from stockledger.app.schemas.purchase_order import POCreate, PORead, POStatusUpdate, POUpdate
from stockledger.services import procurement

# Toutes les routes PO sont réservées aux admins
router = APIRouter(prefix="/purchase-orders", dependencies=[Depends(require_admin)])


@router.get("", response_model=list[PORead])
def list_pos(db: Session = Depends(get_db)):
    return procurement.list_purchase_orders(db)


@router.get("/{po_id}", response_model=PORead)
def get_po(po_id: int, db: Session = Depends(get_db)):
    return procurement.get_purchase_order(db, po_id)


@router.post("", response_model=PORead, status_code=201)
def create_po(payload: POCreate, db: Session = Depends(get_db), actor: Actor = Depends(require_admin)):
    return procurement.create_purchase_order(
        db,
        payload.supplier,
        payload.items,
        payload.expected_delivery_date,
        payload.notes,
        actor.user_id,
    )


@router.put("/{po_id}/status", response_model=PORead)
def update_po_status(po_id: int, payload: POStatusUpdate, db: Session = Depends(get_db)):
    return procurement.update_purchase_order_status(db, po_id, payload.status)


@router.put("/{po_id}", response_model=PORead)
def update_po(po_id: int, payload: POUpdate, db: Session = Depends(get_db)):
    return procurement.update_purchase_order(db, po_id, payload)


@router.delete("/{po_id}")
def delete_po(po_id: int, db: Session = Depends(get_db)):
    procurement.delete_purchase_order(db, po_id)
    return {"message": "Purchase order deleted"}
