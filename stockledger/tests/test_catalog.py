from decimal import Decimal

import pytest

from stockledger.app.schemas.product import ProductCreate, ProductUpdate
from stockledger.services import catalog
from stockledger.services.errors import Conflict, NotFound


def _payload(sku="SKU-1", **kwargs):
    data = {"name": "Lamp", "sku": sku, "price": Decimal("19.90"), "stock": 4}
    data.update(kwargs)
    return ProductCreate(**data)


def test_create_uses_default_threshold(db_session):
    product = catalog.create_product(db_session, _payload())

    assert product.id is not None
    assert product.stock == 4
    assert product.low_stock_threshold == 10


def test_duplicate_sku_is_a_conflict(db_session):
    catalog.create_product(db_session, _payload())

    with pytest.raises(Conflict):
        catalog.create_product(db_session, _payload(name="Other lamp"))

    assert len(catalog.list_products(db_session)) == 1


def test_update_cannot_touch_stock(db_session, make_product, stock_of):
    product = make_product(stock=6, price="1.00")

    updated = catalog.update_product(db_session, product.id, ProductUpdate(name="Renamed", price=Decimal("2.50")))

    assert updated.name == "Renamed"
    assert updated.price == Decimal("2.50")
    assert stock_of(product.id) == 6
    assert "stock" not in ProductUpdate.model_fields


def test_update_to_taken_sku_is_a_conflict(db_session, make_product):
    a = make_product()
    b = make_product()

    with pytest.raises(Conflict):
        catalog.update_product(db_session, b.id, ProductUpdate(sku=a.sku))

    # same SKU on itself is fine
    assert catalog.update_product(db_session, a.id, ProductUpdate(sku=a.sku)).sku == a.sku


def test_low_stock_uses_each_product_threshold(db_session, make_product):
    empty = make_product(stock=0, threshold=3)
    at_threshold = make_product(stock=3, threshold=3)
    make_product(stock=4, threshold=3)
    make_product(stock=20, threshold=25)

    low = catalog.list_low_stock(db_session)

    assert [p.id for p in low][:2] == [empty.id, at_threshold.id]
    assert len(low) == 3


def test_delete_then_get(db_session, make_product):
    product = make_product()

    catalog.delete_product(db_session, product.id)

    with pytest.raises(NotFound):
        catalog.get_product(db_session, product.id)
