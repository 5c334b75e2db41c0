"""
Storefront Catalog Engine — Snapshot Reader
============================================
Read-only view of product/variant price, stock and status at
order-build time. The catalog itself (CRUD, categories, images)
belongs to an external collaborator reached through CatalogStore.
"""

from engines.catalog.reader import (
    ACTIVE_PRODUCT_STATUSES,
    CatalogSnapshot,
    CatalogSnapshotReader,
    CatalogStore,
    ProductRecord,
    VariantRecord,
)

__all__ = [
    "ACTIVE_PRODUCT_STATUSES",
    "CatalogSnapshot",
    "CatalogSnapshotReader",
    "CatalogStore",
    "ProductRecord",
    "VariantRecord",
]
