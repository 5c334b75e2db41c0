"""
Storefront Orders — Order Number Generator Tests
=================================================
"""

import random
import re

import pytest

from conftest import NOW
from core.errors import DuplicateOrderNumber, OrderNumberExhausted
from core.time.clock import FixedClock
from engines.orders.numbers import OrderNumberGenerator

NUMBER_RE = re.compile(r"^ORD-20260302-\d{4}$")


def _generator(**kwargs) -> OrderNumberGenerator:
    kwargs.setdefault("clock", FixedClock(NOW))
    kwargs.setdefault("rng", random.Random(3))
    return OrderNumberGenerator(**kwargs)


class TestCandidate:
    def test_format(self):
        assert NUMBER_RE.match(_generator().candidate())

    def test_suffix_within_range(self):
        generator = _generator()
        for _ in range(200):
            suffix = int(generator.candidate().rsplit("-", 1)[1])
            assert 1000 <= suffix <= 9999

    def test_custom_prefix(self):
        assert _generator(prefix="SHOP").candidate().startswith("SHOP-20260302-")

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            OrderNumberGenerator(max_attempts=0)


class TestIssue:
    def test_skips_numbers_already_taken(self):
        generator = _generator()
        taken = set()
        first = generator.candidate()
        taken.add(first)
        generator = _generator()
        persisted = []
        number = generator.issue(
            lambda n: persisted.append(n) or n, exists=lambda n: n in taken,
        )
        assert number != first
        assert persisted == [number]
        assert NUMBER_RE.match(number)

    def test_insert_collision_retries(self):
        calls = []

        def persist(number):
            calls.append(number)
            if len(calls) == 1:
                raise DuplicateOrderNumber(number)
            return number

        assert _generator().issue(persist) == calls[-1]
        assert len(calls) == 2

    def test_exists_check_skips_persist(self):
        persisted = []
        with pytest.raises(OrderNumberExhausted):
            _generator(max_attempts=2).issue(persisted.append, exists=lambda n: True)
        assert persisted == []

    def test_exhaustion_after_max_attempts(self, caplog):
        generator = _generator(max_attempts=3)
        checked = []

        def exists(number):
            checked.append(number)
            return True

        with caplog.at_level("ERROR", logger="storefront.orders"):
            with pytest.raises(OrderNumberExhausted) as exc:
                generator.issue(lambda number: number, exists=exists)
        assert len(checked) == 3
        assert exc.value.attempts == 3
        assert "exhausted after 3 attempts" in caplog.text
