"""
Storefront Inventory Engine — Policies
=======================================
Validation policies for operator stock corrections.
"""

from __future__ import annotations

from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason
from engines.inventory.commands import AdjustStockRequest


def negative_stock_policy(
    request: AdjustStockRequest,
    current_stock: int,
) -> Optional[RejectionReason]:
    """
    Reject a correction that would leave stock below zero.

    The allow_negative override exists for recording stock that has
    already left the shelf before the count caught up.
    """
    if request.allow_negative:
        return None
    if current_stock + request.delta >= 0:
        return None
    return RejectionReason(
        code=ReasonCode.INSUFFICIENT_STOCK,
        message=(
            f"Adjustment of {request.delta} would leave stock at "
            f"{current_stock + request.delta} for product {request.product_id}."
        ),
        policy_name="negative_stock_policy",
    )
