import random
import re
from decimal import Decimal

import pytest

from stockledger.app.db.models.core_types import OrderStatus
from stockledger.app.db.models.models_v1 import Order
from stockledger.services.errors import Conflict
from stockledger.services.numbering import NumberGenerator

from conftest import FIXED_NOW


class ScriptedRandom(random.Random):
    """randint() returns the scripted values in order."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def randint(self, a, b):
        return self._values.pop(0)


def _order(number: str) -> Order:
    return Order(
        order_number=number,
        user_id=1,
        total_amount=Decimal("0"),
        status=OrderStatus.pending,
    )


def test_candidate_format(numbers):
    number = numbers.candidate("ORD")
    assert re.fullmatch(r"ORD-\d+-\d{1,3}", number)
    assert number.split("-")[1] == str(int(FIXED_NOW.timestamp() * 1000))


def test_same_clock_and_seed_gives_same_number():
    a = NumberGenerator(clock=lambda: FIXED_NOW, rng=random.Random(7))
    b = NumberGenerator(clock=lambda: FIXED_NOW, rng=random.Random(7))
    assert a.candidate("PO") == b.candidate("PO")


def test_collision_draws_a_new_number(db_session):
    numbers = NumberGenerator(clock=lambda: FIXED_NOW, rng=ScriptedRandom([5, 5, 6]))
    taken = numbers.candidate("ORD")
    db_session.add(_order(taken))
    db_session.commit()

    number = numbers.next_number(db_session, Order.order_number, "ORD", attempts=3)

    assert number != taken
    assert number.endswith("-6")


def test_gives_up_after_max_attempts(db_session):
    numbers = NumberGenerator(clock=lambda: FIXED_NOW, rng=ScriptedRandom([1, 1, 1, 1]))
    db_session.add(_order(numbers.candidate("ORD")))
    db_session.commit()

    with pytest.raises(Conflict):
        numbers.next_number(db_session, Order.order_number, "ORD", attempts=3)
