"""
Storefront Orders Engine — Order Repository
============================================
Every write after the initial insert is conditional on the version
the caller loaded. A stale write raises ConcurrentUpdate and changes
nothing; the caller reloads and decides again.
"""

from __future__ import annotations

import copy
import threading
from typing import Dict, Optional, Protocol

from core.errors import ConcurrentUpdate, DuplicateOrderNumber
from engines.orders.models import Order


class OrderRepository(Protocol):
    def add(self, order: Order) -> Order:
        """Insert a new order. Raises DuplicateOrderNumber."""
        ...

    def get(self, order_id: str) -> Optional[Order]:
        ...

    def get_by_number(self, order_number: str) -> Optional[Order]:
        ...

    def get_by_reference(self, reference: str) -> Optional[Order]:
        """Look up by payment reference."""
        ...

    def number_exists(self, order_number: str) -> bool:
        ...

    def update(self, order: Order, *, expected_version: int) -> Order:
        """Persist order if the stored version still equals expected_version."""
        ...


class InMemoryOrderRepository:
    """Thread-safe in-memory order store. Hands out copies only."""

    def __init__(self):
        self._lock = threading.Lock()
        self._orders: Dict[str, Order] = {}
        self._by_number: Dict[str, str] = {}

    def add(self, order: Order) -> Order:
        order.verify_totals()
        with self._lock:
            if order.order_number in self._by_number:
                raise DuplicateOrderNumber(order.order_number)
            stored = copy.deepcopy(order)
            stored.version = 1
            self._orders[stored.order_id] = stored
            self._by_number[stored.order_number] = stored.order_id
            return copy.deepcopy(stored)

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order is not None else None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        with self._lock:
            order_id = self._by_number.get(order_number)
            if order_id is None:
                return None
            return copy.deepcopy(self._orders[order_id])

    def get_by_reference(self, reference: str) -> Optional[Order]:
        with self._lock:
            for order in self._orders.values():
                if order.payment_info.reference == reference:
                    return copy.deepcopy(order)
            return None

    def number_exists(self, order_number: str) -> bool:
        with self._lock:
            return order_number in self._by_number

    def update(self, order: Order, *, expected_version: int) -> Order:
        order.verify_totals()
        with self._lock:
            current = self._orders.get(order.order_id)
            if current is None or current.version != expected_version:
                raise ConcurrentUpdate(order.order_id, expected_version)
            stored = copy.deepcopy(order)
            stored.version = expected_version + 1
            self._orders[stored.order_id] = stored
            return copy.deepcopy(stored)
