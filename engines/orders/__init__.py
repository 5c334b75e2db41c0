"""
Storefront Orders Engine
=========================
Order aggregate, status state machine, numbering and lifecycle service.
"""

from engines.orders.models import (
    Order,
    OrderItem,
    OrderNote,
    OrderStatus,
    PaymentInfo,
    PaymentStatus,
    ShippingAddress,
    ShippingMethodSnapshot,
    TimelineEntry,
)
from engines.orders.numbers import OrderNumberGenerator
from engines.orders.repository import InMemoryOrderRepository, OrderRepository
from engines.orders.services import OrderService
from engines.orders.state_machine import ORDER_WORKFLOW, transition

__all__ = [
    "ORDER_WORKFLOW",
    "InMemoryOrderRepository",
    "Order",
    "OrderItem",
    "OrderNote",
    "OrderNumberGenerator",
    "OrderRepository",
    "OrderService",
    "OrderStatus",
    "PaymentInfo",
    "PaymentStatus",
    "ShippingAddress",
    "ShippingMethodSnapshot",
    "TimelineEntry",
    "transition",
]
