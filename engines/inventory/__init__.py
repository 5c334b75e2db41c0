"""
Storefront Inventory Engine
============================
Stock reservation, release and audit trail for products and variants.
"""

from engines.inventory.commands import (
    REASON_MANUAL_ADJUSTMENT,
    REASON_ORDER_CANCEL,
    REASON_ORDER_CREATE,
    REASON_ORDER_REFUND,
    AdjustStockRequest,
    StockLine,
)
from engines.inventory.services import InventoryLedger
from engines.inventory.store import (
    InMemoryInventoryStore,
    StockAdjustment,
    StockKey,
    StockStore,
)

__all__ = [
    "REASON_MANUAL_ADJUSTMENT",
    "REASON_ORDER_CANCEL",
    "REASON_ORDER_CREATE",
    "REASON_ORDER_REFUND",
    "AdjustStockRequest",
    "InMemoryInventoryStore",
    "InventoryLedger",
    "StockAdjustment",
    "StockKey",
    "StockLine",
    "StockStore",
]
