"""
Storefront Inventory Engine — Stock Store
==========================================
The storage primitive behind the ledger: one atomic conditional
delta per (product, variant), with its adjustment record written in
the same step.

    apply_delta(key, -2)   stock 5 → 3, one adjustment appended
    apply_delta(key, -9)   stock 3 → refused (None), nothing written

InMemoryInventoryStore serves tests and local wiring. The Django
store in adapters.django_store implements the same protocol with a
conditional UPDATE.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from core.errors import ProductNotFound
from engines.catalog.reader import ProductRecord


@dataclass(frozen=True)
class StockKey:
    product_id: str
    variant_id: Optional[str] = None


@dataclass(frozen=True)
class StockAdjustment:
    """Immutable audit record of one stock mutation."""
    adjustment_id: str
    product_id: str
    variant_id: Optional[str]
    delta: int
    reason: str
    previous_stock: int
    new_stock: int
    actor_id: str
    created_at: datetime
    reference: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "adjustment_id": self.adjustment_id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "delta": self.delta,
            "reason": self.reason,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "actor_id": self.actor_id,
            "reference": self.reference,
            "created_at": self.created_at.isoformat(),
        }


class StockStore(Protocol):
    def apply_delta(
        self,
        key: StockKey,
        delta: int,
        *,
        reason: str,
        actor_id: str,
        at: datetime,
        reference: Optional[str] = None,
        allow_negative: bool = False,
        sales_delta: int = 0,
    ) -> Optional[StockAdjustment]:
        """
        Atomically add delta to stock and record the adjustment.
        Returns None (and writes nothing) when the result would be
        negative and allow_negative is False.
        Raises ProductNotFound for unknown keys.
        """
        ...

    def current_stock(self, key: StockKey) -> int:
        ...

    def adjustments(
        self, product_id: str, variant_id: Optional[str] = None,
    ) -> List[StockAdjustment]:
        ...

    def sales_count(self, product_id: str) -> int:
        ...


# ══════════════════════════════════════════════════════════════
# IN-MEMORY STORE
# ══════════════════════════════════════════════════════════════

class InMemoryInventoryStore:
    """
    In-memory catalog + stock store.

    One lock guards stock, sales counts and the adjustment log, so a
    conditional decrement and its audit record are a single step.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._products: Dict[str, ProductRecord] = {}
        self._stock: Dict[StockKey, int] = {}
        self._sales: Dict[str, int] = {}
        self._adjustments: List[StockAdjustment] = []

    def register_product(self, product: ProductRecord) -> None:
        with self._lock:
            self._products[product.product_id] = product
            self._stock[StockKey(product.product_id)] = product.stock_quantity
            for variant in product.variants:
                key = StockKey(product.product_id, variant.variant_id)
                self._stock[key] = variant.stock_quantity
            self._sales.setdefault(product.product_id, 0)

    # ── CatalogStore ──────────────────────────────────────────

    def get_product(self, product_id: str) -> Optional[ProductRecord]:
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                return None
            variants = tuple(
                replace(
                    v,
                    stock_quantity=self._stock[StockKey(product_id, v.variant_id)],
                )
                for v in product.variants
            )
            return replace(
                product,
                stock_quantity=self._stock[StockKey(product_id)],
                variants=variants,
            )

    # ── StockStore ────────────────────────────────────────────

    def apply_delta(
        self,
        key: StockKey,
        delta: int,
        *,
        reason: str,
        actor_id: str,
        at: datetime,
        reference: Optional[str] = None,
        allow_negative: bool = False,
        sales_delta: int = 0,
    ) -> Optional[StockAdjustment]:
        with self._lock:
            if key not in self._stock:
                raise ProductNotFound(key.product_id, key.variant_id)
            previous = self._stock[key]
            new_stock = previous + delta
            if new_stock < 0 and not allow_negative:
                return None
            self._stock[key] = new_stock
            if sales_delta:
                sales = self._sales.get(key.product_id, 0) + sales_delta
                self._sales[key.product_id] = max(sales, 0)
            adjustment = StockAdjustment(
                adjustment_id=str(uuid.uuid4()),
                product_id=key.product_id,
                variant_id=key.variant_id,
                delta=delta,
                reason=reason,
                previous_stock=previous,
                new_stock=new_stock,
                actor_id=actor_id,
                created_at=at,
                reference=reference,
            )
            self._adjustments.append(adjustment)
            return adjustment

    def current_stock(self, key: StockKey) -> int:
        with self._lock:
            if key not in self._stock:
                raise ProductNotFound(key.product_id, key.variant_id)
            return self._stock[key]

    def adjustments(
        self, product_id: str, variant_id: Optional[str] = None,
    ) -> List[StockAdjustment]:
        with self._lock:
            return [
                a for a in self._adjustments
                if a.product_id == product_id
                and (variant_id is None or a.variant_id == variant_id)
            ]

    def sales_count(self, product_id: str) -> int:
        with self._lock:
            return self._sales.get(product_id, 0)
