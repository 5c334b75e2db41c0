"""
Storefront HTTP API - Public API
================================
"""

from core.http_api.contracts import (
    HttpApiErrorBody,
    HttpApiResponse,
    HttpApiResult,
    parse_add_note,
    parse_adjust_stock,
    parse_create_order,
    parse_refund,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import (
    error_response,
    error_result,
    success_response,
)
from core.http_api.handlers import (
    get_admin_inventory_history,
    get_order,
    get_order_tracking,
    get_payment_methods,
    get_shipping_rates,
    get_verify_payment,
    post_admin_confirm_payment,
    post_admin_inventory_adjust,
    post_admin_order_email,
    post_admin_order_note,
    post_admin_order_refund,
    post_admin_order_restock,
    post_admin_order_status,
    post_cancel_order,
    post_create_order,
    post_initialize_payment,
    post_paystack_webhook,
)

__all__ = [
    "HttpApiErrorBody",
    "HttpApiResponse",
    "HttpApiResult",
    "HttpApiDependencies",
    "parse_create_order",
    "parse_add_note",
    "parse_refund",
    "parse_adjust_stock",
    "error_response",
    "error_result",
    "success_response",
    "post_create_order",
    "get_shipping_rates",
    "get_payment_methods",
    "get_order",
    "get_order_tracking",
    "post_cancel_order",
    "post_initialize_payment",
    "get_verify_payment",
    "post_paystack_webhook",
    "post_admin_order_status",
    "post_admin_order_note",
    "post_admin_order_refund",
    "post_admin_order_restock",
    "post_admin_confirm_payment",
    "post_admin_order_email",
    "post_admin_inventory_adjust",
    "get_admin_inventory_history",
]
