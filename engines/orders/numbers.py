"""
Storefront Orders Engine — Order Number Generator
==================================================
Format: PREFIX-YYYYMMDD-NNNN (NNNN random in 1000..9999).

Collisions are handled by a bounded retry, not a lock. The number
space refreshes daily, so exhaustion means something is wrong and is
logged at ERROR for monitoring.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, TypeVar

from core.errors import DuplicateOrderNumber, OrderNumberExhausted
from core.time.clock import Clock, SystemClock

logger = logging.getLogger("storefront.orders")

T = TypeVar("T")

SUFFIX_MIN = 1000
SUFFIX_MAX = 9999


class OrderNumberGenerator:
    def __init__(
        self,
        *,
        prefix: str = "ORD",
        max_attempts: int = 5,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1.")
        self._prefix = prefix
        self._max_attempts = max_attempts
        self._clock = clock or SystemClock()
        self._rng = rng or random.SystemRandom()

    def candidate(self) -> str:
        day = self._clock.now_utc().strftime("%Y%m%d")
        suffix = self._rng.randint(SUFFIX_MIN, SUFFIX_MAX)
        return f"{self._prefix}-{day}-{suffix}"

    def issue(
        self,
        persist: Callable[[str], T],
        *,
        exists: Optional[Callable[[str], bool]] = None,
    ) -> T:
        """
        Call persist(number) with fresh candidates until one sticks.

        A candidate already known to exists(), or rejected by persist
        with DuplicateOrderNumber (insert-time race), costs one attempt.
        """
        for attempt in range(1, self._max_attempts + 1):
            number = self.candidate()
            if exists is not None and exists(number):
                logger.info("Order number %s taken (attempt %d)", number, attempt)
                continue
            try:
                return persist(number)
            except DuplicateOrderNumber:
                logger.warning(
                    "Order number %s collided on insert (attempt %d)", number, attempt,
                )
        logger.error(
            "Order number generation exhausted after %d attempts (prefix %s)",
            self._max_attempts, self._prefix,
        )
        raise OrderNumberExhausted(self._max_attempts)
