"""
Storefront Inventory Engine — Ledger Service
=============================================
The only component allowed to mutate stock.

reserve():  all-or-nothing. Each line is one conditional decrement
            in the stock store. When a line is refused or raises, the lines
            already decremented in this call are compensated (each
            compensation is itself an adjustment record) before the
            error propagates.
release():  unconditional inverse of reserve.
adjust():   operator correction, policy-checked.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from core.errors import InsufficientStock, raise_for_rejection
from core.primitives.actor import Actor
from core.time.clock import Clock, SystemClock
from engines.inventory.commands import (
    REASON_MANUAL_ADJUSTMENT,
    REASON_ORDER_CANCEL,
    REASON_ORDER_CREATE,
    AdjustStockRequest,
    StockLine,
)
from engines.inventory.policies import negative_stock_policy
from engines.inventory.store import StockAdjustment, StockKey, StockStore

logger = logging.getLogger("storefront.inventory")


class InventoryLedger:
    """
    Inventory Ledger.

    Holds no lock of its own: every serialization point lives in
    the stock store's apply_delta.
    """

    def __init__(
        self,
        *,
        stock_store: StockStore,
        clock: Optional[Clock] = None,
        low_stock_threshold: int = 5,
    ):
        self._store = stock_store
        self._clock = clock or SystemClock()
        self._low_stock_threshold = low_stock_threshold

    # ── reservation ───────────────────────────────────────────

    def reserve(
        self,
        lines: Sequence[StockLine],
        *,
        actor: Actor,
        reference: Optional[str] = None,
        reason: str = REASON_ORDER_CREATE,
    ) -> List[StockAdjustment]:
        applied: List[Tuple[StockLine, StockAdjustment]] = []
        try:
            for line in lines:
                key = StockKey(line.product_id, line.variant_id)
                adjustment = self._store.apply_delta(
                    key,
                    -line.quantity,
                    reason=reason,
                    actor_id=actor.actor_id,
                    at=self._clock.now_utc(),
                    reference=reference,
                    sales_delta=line.quantity,
                )
                if adjustment is None:
                    available = self._store.current_stock(key)
                    logger.info(
                        "Reservation refused for %s (variant %s): requested %d, available %d",
                        line.product_id, line.variant_id, line.quantity, available,
                    )
                    raise InsufficientStock(
                        line.product_id,
                        variant_id=line.variant_id,
                        requested=line.quantity,
                        available=available,
                        name=line.name,
                    )
                applied.append((line, adjustment))
                self._warn_if_low(adjustment)
        except Exception:
            # all-or-nothing: undo every line already taken
            self._compensate(applied, actor=actor, reference=reference, reason=reason)
            raise
        return [adjustment for _, adjustment in applied]

    def _compensate(
        self,
        applied: Sequence[Tuple[StockLine, StockAdjustment]],
        *,
        actor: Actor,
        reference: Optional[str],
        reason: str,
    ) -> None:
        for line, _ in reversed(applied):
            self._store.apply_delta(
                StockKey(line.product_id, line.variant_id),
                line.quantity,
                reason=reason,
                actor_id=actor.actor_id,
                at=self._clock.now_utc(),
                reference=reference,
                sales_delta=-line.quantity,
            )

    def release(
        self,
        lines: Sequence[StockLine],
        *,
        actor: Actor,
        reference: Optional[str] = None,
        reason: str = REASON_ORDER_CANCEL,
    ) -> List[StockAdjustment]:
        released = []
        for line in lines:
            released.append(
                self._store.apply_delta(
                    StockKey(line.product_id, line.variant_id),
                    line.quantity,
                    reason=reason,
                    actor_id=actor.actor_id,
                    at=self._clock.now_utc(),
                    reference=reference,
                    allow_negative=True,
                    sales_delta=-line.quantity,
                )
            )
        logger.info(
            "Released %d line(s) for %s (reason %s)", len(released), reference, reason,
        )
        return released

    # ── operator corrections ──────────────────────────────────

    def adjust(self, request: AdjustStockRequest, *, actor: Actor) -> StockAdjustment:
        key = StockKey(request.product_id, request.variant_id)
        raise_for_rejection(
            negative_stock_policy(request, self._store.current_stock(key))
        )
        adjustment = self._store.apply_delta(
            key,
            request.delta,
            reason=request.reason or REASON_MANUAL_ADJUSTMENT,
            actor_id=actor.actor_id,
            at=self._clock.now_utc(),
            reference=request.note or None,
            allow_negative=request.allow_negative,
        )
        if adjustment is None:
            # Stock moved between the policy check and the write.
            available = self._store.current_stock(key)
            raise InsufficientStock(
                request.product_id,
                variant_id=request.variant_id,
                requested=-request.delta,
                available=available,
            )
        logger.info(
            "Stock adjusted for %s (variant %s): %d → %d by %s",
            request.product_id, request.variant_id,
            adjustment.previous_stock, adjustment.new_stock, actor.actor_id,
        )
        self._warn_if_low(adjustment)
        return adjustment

    # ── queries ───────────────────────────────────────────────

    def stock_level(self, product_id: str, variant_id: Optional[str] = None) -> int:
        return self._store.current_stock(StockKey(product_id, variant_id))

    def history(
        self, product_id: str, variant_id: Optional[str] = None,
    ) -> List[StockAdjustment]:
        return self._store.adjustments(product_id, variant_id)

    def _warn_if_low(self, adjustment: StockAdjustment) -> None:
        if adjustment.delta < 0 and adjustment.new_stock <= self._low_stock_threshold:
            logger.warning(
                "Low stock for %s (variant %s): %d left",
                adjustment.product_id, adjustment.variant_id, adjustment.new_stock,
            )
