from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from stockledger.services.errors import LedgerError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Unit of work for one mutating operation.

    Commits when the block exits cleanly. Any exception rolls back everything
    flushed inside the block (ledger adjustments included) and is re-raised.
    """
    try:
        yield db
        db.commit()
    except LedgerError as exc:
        db.rollback()
        logger.info("rolled back: %s: %s", exc.kind, exc.message)
        raise
    except Exception:
        db.rollback()
        logger.exception("rolled back on unexpected error")
        raise
