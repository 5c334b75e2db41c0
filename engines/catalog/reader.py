"""
Storefront Catalog Engine — Snapshot Reader
============================================
Given (product_id, variant_id) pairs, returns a price/stock snapshot
for each, or fails the whole lookup. No partial results: a missing or
inactive product aborts the order build.

effective_price = base price + variant price adjustment
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence, Tuple

from core.errors import ProductNotFound, ProductUnavailable
from core.primitives.money import to_amount

ACTIVE_PRODUCT_STATUSES = frozenset({"active", "published"})


# ══════════════════════════════════════════════════════════════
# CATALOG RECORDS (what the catalog store hands back)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VariantRecord:
    variant_id: str
    sku: str
    price_adjustment: Decimal = Decimal("0.00")
    stock_quantity: int = 0
    size: str = ""


@dataclass(frozen=True)
class ProductRecord:
    product_id: str
    name: str
    sku: str
    price: Decimal
    status: str
    stock_quantity: int = 0
    variants: Tuple[VariantRecord, ...] = ()
    image_url: Optional[str] = None

    def variant(self, variant_id: str) -> Optional[VariantRecord]:
        for variant in self.variants:
            if variant.variant_id == variant_id:
                return variant
        return None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_PRODUCT_STATUSES


class CatalogStore(Protocol):
    def get_product(self, product_id: str) -> Optional[ProductRecord]:
        ...


# ══════════════════════════════════════════════════════════════
# SNAPSHOT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CatalogSnapshot:
    product_id: str
    variant_id: Optional[str]
    name: str
    sku: str
    price: Decimal
    effective_price: Decimal
    available_stock: int
    active: bool
    image_url: Optional[str] = None


class CatalogSnapshotReader:
    """Side-effect-free accessor over the catalog store."""

    def __init__(self, catalog_store: CatalogStore):
        self._catalog_store = catalog_store

    def snapshot_one(self, product_id: str, variant_id: Optional[str] = None) -> CatalogSnapshot:
        product = self._catalog_store.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if not product.is_active:
            raise ProductUnavailable(product_id, product.name)

        base_price = to_amount(product.price, field_name="price")
        if variant_id:
            variant = product.variant(variant_id)
            if variant is None:
                raise ProductNotFound(product_id, variant_id)
            return CatalogSnapshot(
                product_id=product_id,
                variant_id=variant_id,
                name=product.name,
                sku=variant.sku,
                price=base_price,
                effective_price=base_price + to_amount(variant.price_adjustment),
                available_stock=variant.stock_quantity,
                active=True,
                image_url=product.image_url,
            )

        return CatalogSnapshot(
            product_id=product_id,
            variant_id=None,
            name=product.name,
            sku=product.sku,
            price=base_price,
            effective_price=base_price,
            available_stock=product.stock_quantity,
            active=True,
            image_url=product.image_url,
        )

    def snapshot(
        self, refs: Iterable[Tuple[str, Optional[str]]],
    ) -> Sequence[CatalogSnapshot]:
        """Snapshot every (product_id, variant_id) pair, failing fast."""
        return [
            self.snapshot_one(product_id, variant_id)
            for product_id, variant_id in refs
        ]
