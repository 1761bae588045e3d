import random
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stockledger.app.db.base import Base
from stockledger.app.db.models import models_v1  # noqa: F401  (registers tables)
from stockledger.app.db.models.models_v1 import Product
from stockledger.app.db.session import make_engine
from stockledger.services.numbering import NumberGenerator

FIXED_NOW = datetime(2026, 10, 16, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def engine():
    """
    Base SQLite en mémoire, un schéma neuf par test.

    StaticPool: toutes les sessions partagent la même connexion, sinon
    chaque connexion verrait sa propre base vide.
    """
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """Fichier SQLite : une connexion par thread, pour les tests de concurrence."""
    engine = make_engine(f"sqlite:///{tmp_path / 'ledger.db'}", connect_args={"timeout": 30})
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def numbers() -> NumberGenerator:
    return NumberGenerator(clock=lambda: FIXED_NOW, rng=random.Random(42))


@pytest.fixture
def make_product(db_session):
    counter = {"n": 0}

    def _make(stock: int = 10, price: str = "5.00", name: str | None = None, threshold: int = 3) -> Product:
        counter["n"] += 1
        n = counter["n"]
        product = Product(
            name=name or f"TEST-PROD-{n}",
            sku=f"TEST-SKU-{n}",
            price=Decimal(price),
            stock=stock,
            low_stock_threshold=threshold,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def stock_of(db_session):
    """Fresh stock value from the database, bypassing the identity map."""

    def _stock(product_id: int) -> int:
        return db_session.get(Product, product_id, populate_existing=True).stock

    return _stock
