from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from stockledger.app.config import get_settings


def _use_immediate_transactions(engine: Engine) -> None:
    """
    pysqlite opens transactions lazily and upgrades read locks to write locks,
    which fails immediately under concurrent writers. Take the write lock at
    BEGIN instead so writers queue on the busy timeout.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(url: str, *, echo: bool = False, **kwargs: Any) -> Engine:
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
        _use_immediate_transactions(engine)
        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True, **kwargs)


settings = get_settings()

engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
