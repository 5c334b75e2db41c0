"""
Storefront Orders Engine — Status State Machine
================================================
The one place order.status changes.

    pending ──► processing ──► shipped ──► delivered
       │            │             │            │
       ▼            ▼             ▼            ▼
    cancelled    cancelled     refunded     refunded
                 refunded

cancelled and refunded are terminal. Self-transitions are refused.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from core.errors import IllegalStatusTransition
from core.primitives.actor import Actor
from core.primitives.workflow import WorkflowDefinition
from engines.orders.models import Order, OrderStatus, TimelineEntry

ORDER_WORKFLOW = WorkflowDefinition(
    name="Order",
    initial_state=OrderStatus.PENDING.value,
    terminal_states=frozenset({
        OrderStatus.CANCELLED.value,
        OrderStatus.REFUNDED.value,
    }),
    transitions={
        OrderStatus.PENDING.value: frozenset({
            OrderStatus.PROCESSING.value,
            OrderStatus.CANCELLED.value,
        }),
        OrderStatus.PROCESSING.value: frozenset({
            OrderStatus.SHIPPED.value,
            OrderStatus.CANCELLED.value,
            OrderStatus.REFUNDED.value,
        }),
        OrderStatus.SHIPPED.value: frozenset({
            OrderStatus.DELIVERED.value,
            OrderStatus.REFUNDED.value,
        }),
        OrderStatus.DELIVERED.value: frozenset({
            OrderStatus.REFUNDED.value,
        }),
        OrderStatus.CANCELLED.value: frozenset(),
        OrderStatus.REFUNDED.value: frozenset(),
    },
)

DEFAULT_TIMELINE_NOTES = {
    OrderStatus.PENDING: "Order placed",
    OrderStatus.PROCESSING: "Order is being processed",
    OrderStatus.SHIPPED: "Order has been shipped",
    OrderStatus.DELIVERED: "Order has been delivered",
    OrderStatus.CANCELLED: "Order has been cancelled",
    OrderStatus.REFUNDED: "Order has been refunded",
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return ORDER_WORKFLOW.is_valid_transition(current.value, target.value)


def transition(
    order: Order,
    target: OrderStatus,
    *,
    actor: Actor,
    at: datetime,
    note: Optional[str] = None,
) -> Order:
    """Move the order to target in place, recording a timeline entry."""
    rejection = ORDER_WORKFLOW.explain_rejection(order.status.value, target.value)
    if rejection is not None:
        raise IllegalStatusTransition(
            rejection,
            details={
                "order_number": order.order_number,
                "from": order.status.value,
                "to": target.value,
            },
        )

    order.status = target
    order.timeline.append(
        TimelineEntry(
            status=target,
            timestamp=at,
            note=note or DEFAULT_TIMELINE_NOTES[target],
            actor_id=actor.actor_id,
        )
    )
    if target == OrderStatus.SHIPPED and order.shipped_at is None:
        order.shipped_at = at
    if target == OrderStatus.DELIVERED and order.delivered_at is None:
        order.delivered_at = at
    order.updated_at = at
    return order
