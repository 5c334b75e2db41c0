"""
Storefront Payments Engine — Policies
======================================
Guards for payment initialization, offline confirmation and refunds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import GATEWAY_PAYMENT_METHODS
from engines.orders.models import Order, OrderStatus


def not_already_paid_policy(order: Order) -> Optional[RejectionReason]:
    if not order.payment_info.is_paid:
        return None
    return RejectionReason(
        code=ReasonCode.PAYMENT_ALREADY_COMPLETED,
        message="Order is already paid",
        policy_name="not_already_paid_policy",
    )


def awaiting_payment_policy(order: Order) -> Optional[RejectionReason]:
    if order.status == OrderStatus.PENDING:
        return None
    return RejectionReason(
        code=ReasonCode.ILLEGAL_STATUS_TRANSITION,
        message=(
            f"Order {order.order_number} is {order.status.value}; only "
            f"pending orders accept payment."
        ),
        policy_name="awaiting_payment_policy",
    )


def gateway_method_policy(order: Order, *, expect_gateway: bool) -> Optional[RejectionReason]:
    """
    Gateway orders are paid through the gateway; bank transfer and
    cash on delivery orders are confirmed by an operator.
    """
    uses_gateway = order.payment_info.method in GATEWAY_PAYMENT_METHODS
    if uses_gateway == expect_gateway:
        return None
    if expect_gateway:
        message = (
            f"Order {order.order_number} is paid by "
            f"{order.payment_info.method}, not through the payment gateway."
        )
    else:
        message = (
            f"Order {order.order_number} is paid through the payment gateway "
            f"and cannot be confirmed manually."
        )
    return RejectionReason(
        code=ReasonCode.PAYMENT_METHOD_NOT_SUPPORTED,
        message=message,
        policy_name="gateway_method_policy",
    )


def refund_policy(order: Order, amount: Decimal) -> Optional[RejectionReason]:
    if order.payment_info.refund_claim:
        return RejectionReason(
            code=ReasonCode.REFUND_IN_PROGRESS,
            message=f"A refund for order {order.order_number} is already in progress",
            policy_name="refund_policy",
        )
    if not order.payment_info.is_paid:
        return RejectionReason(
            code=ReasonCode.PAYMENT_NOT_PAID,
            message="Cannot refund an order that has not been paid",
            policy_name="refund_policy",
        )
    if amount <= 0 or amount > order.total_amount:
        return RejectionReason(
            code=ReasonCode.REFUND_AMOUNT_INVALID,
            message=(
                f"Invalid refund amount: {amount} must be greater than 0 and "
                f"at most the order total {order.total_amount}."
            ),
            policy_name="refund_policy",
        )
    return None
