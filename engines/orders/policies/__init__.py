"""
Storefront Orders Engine — Policies
====================================
Access and lifecycle policies for order operations.
Each returns None to allow, or a RejectionReason to refuse.
"""

from __future__ import annotations

from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import StoreConfiguration
from core.primitives.actor import Actor
from engines.orders.models import Order, OrderStatus

CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


def operator_required_policy(actor: Optional[Actor]) -> Optional[RejectionReason]:
    """Back-office operations: operators and system components only."""
    if actor is None:
        return RejectionReason(
            code=ReasonCode.AUTHENTICATION_REQUIRED,
            message="Not authorized to access this route",
            policy_name="operator_required_policy",
        )
    if not (actor.is_operator or actor.is_system):
        return RejectionReason(
            code=ReasonCode.PERMISSION_DENIED,
            message=f"User {actor.actor_id} is not authorized to manage orders",
            policy_name="operator_required_policy",
        )
    return None


def order_access_policy(order: Order, actor: Optional[Actor]) -> Optional[RejectionReason]:
    """The owning buyer or an operator may act on an order."""
    if actor is None:
        return RejectionReason(
            code=ReasonCode.AUTHENTICATION_REQUIRED,
            message="Not authorized to access this order",
            policy_name="order_access_policy",
        )
    if actor.is_operator or actor.is_system or order.is_owned_by(actor):
        return None
    return RejectionReason(
        code=ReasonCode.PERMISSION_DENIED,
        message="Not authorized to access this order",
        policy_name="order_access_policy",
    )


def cancellable_policy(order: Order) -> Optional[RejectionReason]:
    if order.status in CANCELLABLE_STATUSES:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_NOT_CANCELLABLE,
        message=(
            f"Order {order.order_number} is {order.status.value} and can no "
            f"longer be cancelled."
        ),
        policy_name="cancellable_policy",
    )


def payment_method_policy(
    payment_method: str, config: StoreConfiguration,
) -> Optional[RejectionReason]:
    method = config.payment_method(payment_method)
    if method is not None and method.active:
        return None
    return RejectionReason(
        code=ReasonCode.PAYMENT_METHOD_NOT_SUPPORTED,
        message=f"Payment method '{payment_method}' is not available",
        policy_name="payment_method_policy",
    )


def restock_policy(order: Order) -> Optional[RejectionReason]:
    """Only refunded orders are restocked by hand, and only once."""
    if order.stock_released_at is not None:
        return RejectionReason(
            code=ReasonCode.STOCK_ALREADY_RELEASED,
            message=f"Stock for order {order.order_number} was already returned.",
            policy_name="restock_policy",
        )
    if order.status != OrderStatus.REFUNDED:
        return RejectionReason(
            code=ReasonCode.ILLEGAL_STATUS_TRANSITION,
            message=(
                f"Order {order.order_number} is {order.status.value}; only "
                f"refunded orders can be restocked."
            ),
            policy_name="restock_policy",
        )
    return None
