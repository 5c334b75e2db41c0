"""
Storefront Inventory Engine — Request Commands
===============================================
Typed stock requests validated before they reach the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.errors import ValidationError


# ══════════════════════════════════════════════════════════════
# ADJUSTMENT REASONS
# ══════════════════════════════════════════════════════════════

REASON_ORDER_CREATE = "order-create"
REASON_ORDER_CANCEL = "order-cancel"
REASON_ORDER_REFUND = "order-refund"
REASON_MANUAL_ADJUSTMENT = "manual-adjustment"

VALID_ADJUSTMENT_REASONS = frozenset({
    REASON_ORDER_CREATE,
    REASON_ORDER_CANCEL,
    REASON_ORDER_REFUND,
    REASON_MANUAL_ADJUSTMENT,
})


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockLine:
    """One (product, variant) quantity to reserve or release."""
    product_id: str
    quantity: int
    variant_id: Optional[str] = None
    name: str = ""

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")
        if (
            isinstance(self.quantity, bool)
            or not isinstance(self.quantity, int)
            or self.quantity <= 0
        ):
            raise ValidationError("quantity must be a positive integer.")


@dataclass(frozen=True)
class AdjustStockRequest:
    """Operator stock correction (positive or negative delta)."""
    product_id: str
    delta: int
    variant_id: Optional[str] = None
    reason: str = REASON_MANUAL_ADJUSTMENT
    note: str = ""
    allow_negative: bool = False

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")
        if isinstance(self.delta, bool) or not isinstance(self.delta, int):
            raise ValidationError("delta must be an integer.")
        if self.delta == 0:
            raise ValidationError("delta must be non-zero.")
        if self.reason not in VALID_ADJUSTMENT_REASONS:
            raise ValidationError(f"reason '{self.reason}' not valid.")
