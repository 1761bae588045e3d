from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session

from stockledger.services.errors import Conflict
from stockledger.time_utils import epoch_millis, utcnow

logger = logging.getLogger(__name__)


@dataclass
class NumberGenerator:
    """
    External document numbers: ``<PREFIX>-<epoch ms>-<0..999>``.

    Clock and random source are injected so lifecycle tests can pin them.
    """

    clock: Callable[[], datetime] = utcnow
    rng: random.Random = field(default_factory=random.Random)

    def candidate(self, prefix: str) -> str:
        return f"{prefix}-{epoch_millis(self.clock())}-{self.rng.randint(0, 999)}"

    def next_number(
        self,
        db: Session,
        column: InstrumentedAttribute,
        prefix: str,
        *,
        attempts: int = 5,
    ) -> str:
        """
        Draw candidates until one is not already used in ``column``.

        The unique constraint on the column still guards against a concurrent
        insert of the same number between this check and the flush.
        """
        for attempt in range(1, attempts + 1):
            number = self.candidate(prefix)
            taken = db.execute(select(column).where(column == number)).first()
            if taken is None:
                return number
            logger.warning("number collision %s (attempt %d/%d)", number, attempt, attempts)

        raise Conflict(
            f"Could not allocate a unique {prefix} number after {attempts} attempts",
            details={"prefix": prefix, "attempts": attempts},
        )


default_numbers = NumberGenerator()
