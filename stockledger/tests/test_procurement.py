from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from stockledger.app.db.models.core_types import POStatus
from stockledger.app.schemas.purchase_order import POItemCreate, POUpdate
from stockledger.services.errors import (
    EmptyOrder,
    InvalidState,
    InvalidTransition,
    NotFound,
    ProductNotFound,
)
from stockledger.services.procurement import (
    create_purchase_order,
    delete_purchase_order,
    get_purchase_order,
    list_purchase_orders,
    update_purchase_order,
    update_purchase_order_status,
)

ADMIN = 1
RECEIVED_AT = datetime(2026, 10, 20, 14, 0, tzinfo=timezone.utc)


def _create(db_session, items, numbers=None, **kwargs):
    return create_purchase_order(
        db_session,
        kwargs.pop("supplier", "Pacific Supply"),
        items,
        kwargs.pop("expected_delivery_date", date(2026, 11, 1)),
        kwargs.pop("notes", None),
        ADMIN,
        numbers=numbers,
    )


def _approved(db_session, items):
    po = _create(db_session, items)
    return update_purchase_order_status(db_session, po.id, POStatus.approved)


def test_total_uses_client_unit_price(db_session, make_product, numbers):
    product = make_product(stock=0, price="9.99")

    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=3, unit_price=Decimal("7"))], numbers)

    assert po.total_amount == Decimal("21.00")
    assert po.status == POStatus.pending
    assert po.po_number.startswith("PO-")
    assert po.notes == ""
    assert po.received_date is None
    # creating a PO never touches stock
    assert product.stock == 0


def test_missing_unit_price_falls_back_to_catalog(db_session, make_product):
    product = make_product(price="4.25")

    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=2)])

    assert po.items[0].unit_price == Decimal("4.25")
    assert po.total_amount == Decimal("8.50")


def test_explicit_zero_price_is_kept(db_session, make_product):
    product = make_product(price="4.25")

    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=2, unit_price=Decimal("0"))])

    assert po.total_amount == Decimal("0.00")


def test_create_rejects_empty_and_unknown(db_session, make_product):
    with pytest.raises(EmptyOrder):
        _create(db_session, [])

    with pytest.raises(ProductNotFound):
        _create(db_session, [POItemCreate(product_id=5150, quantity=1)])

    assert list_purchase_orders(db_session) == []


def test_receive_credits_stock_exactly_once(db_session, make_product, stock_of):
    product = make_product(stock=4)
    po = _approved(db_session, [POItemCreate(product_id=product.id, quantity=3, unit_price=Decimal("7"))])

    po = update_purchase_order_status(db_session, po.id, "received", clock=lambda: RECEIVED_AT)
    first_received = po.received_date

    assert po.status == POStatus.received
    assert first_received is not None
    assert stock_of(product.id) == 7

    po = update_purchase_order_status(
        db_session,
        po.id,
        POStatus.received,
        clock=lambda: datetime(2027, 1, 1, tzinfo=timezone.utc),
    )

    assert stock_of(product.id) == 7
    assert po.received_date == first_received


def test_pending_po_can_be_received_directly(db_session, make_product, stock_of):
    product = make_product(stock=5)
    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=3, unit_price=Decimal("7"))])
    assert po.total_amount == Decimal("21.00")
    assert po.status == POStatus.pending

    po = update_purchase_order_status(db_session, po.id, POStatus.received)

    assert po.status == POStatus.received
    assert po.received_date is not None
    assert stock_of(product.id) == 8

    first_received = po.received_date
    po = update_purchase_order_status(db_session, po.id, POStatus.received)

    assert stock_of(product.id) == 8
    assert po.received_date == first_received


def test_receive_skips_deleted_products(db_session, make_product, stock_of):
    from stockledger.services import catalog

    kept = make_product(stock=0)
    dropped = make_product(stock=0)
    po = _approved(
        db_session,
        [POItemCreate(product_id=kept.id, quantity=2), POItemCreate(product_id=dropped.id, quantity=2)],
    )
    catalog.delete_product(db_session, dropped.id)

    update_purchase_order_status(db_session, po.id, POStatus.received)

    assert stock_of(kept.id) == 2


def test_cancelled_po_cannot_be_received(db_session, make_product, stock_of):
    product = make_product(stock=0)
    po = _approved(db_session, [POItemCreate(product_id=product.id, quantity=3)])
    update_purchase_order_status(db_session, po.id, POStatus.cancelled)

    with pytest.raises(InvalidTransition):
        update_purchase_order_status(db_session, po.id, POStatus.received)

    assert stock_of(product.id) == 0


def test_received_po_is_frozen(db_session, make_product):
    product = make_product(stock=0)
    po = _approved(db_session, [POItemCreate(product_id=product.id, quantity=3)])
    update_purchase_order_status(db_session, po.id, POStatus.received)

    with pytest.raises(InvalidState):
        update_purchase_order(db_session, po.id, POUpdate(notes="late edit"))

    with pytest.raises(InvalidState):
        delete_purchase_order(db_session, po.id)

    assert get_purchase_order(db_session, po.id).notes == ""


def test_update_replaces_items_and_recomputes_total(db_session, make_product):
    a = make_product(price="2.00")
    b = make_product(price="10.00")
    po = _create(db_session, [POItemCreate(product_id=a.id, quantity=1)])

    po = update_purchase_order(
        db_session,
        po.id,
        POUpdate(
            supplier="Other Supply",
            notes="split delivery",
            items=[POItemCreate(product_id=b.id, quantity=2), POItemCreate(product_id=a.id, quantity=5)],
        ),
    )

    assert po.supplier == "Other Supply"
    assert po.notes == "split delivery"
    assert [(i.product_id, i.quantity) for i in po.items] == [(b.id, 2), (a.id, 5)]
    assert po.total_amount == Decimal("30.00")
    assert po.status == POStatus.pending


def test_update_rejects_empty_item_list(db_session, make_product):
    product = make_product()
    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=2)])

    with pytest.raises(EmptyOrder):
        update_purchase_order(db_session, po.id, POUpdate(items=[]))

    assert len(get_purchase_order(db_session, po.id).items) == 1


def test_update_leaves_unset_fields_alone(db_session, make_product):
    product = make_product()
    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=1)], notes="keep me")

    po = update_purchase_order(db_session, po.id, POUpdate(expected_delivery_date=None))

    assert po.notes == "keep me"
    assert po.expected_delivery_date is None
    assert len(po.items) == 1


def test_delete_pending_po(db_session, make_product):
    product = make_product()
    po = _create(db_session, [POItemCreate(product_id=product.id, quantity=1)])

    delete_purchase_order(db_session, po.id)

    with pytest.raises(NotFound):
        get_purchase_order(db_session, po.id)
