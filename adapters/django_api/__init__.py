"""
Storefront Django HTTP adapter.
Thin framework glue over core/http_api handlers.
"""

from adapters.django_api.wiring import (
    DEV_CUSTOMER_API_KEY,
    DEV_OPERATOR_API_KEY,
    build_dependencies,
    reset_dependencies,
    store_configuration,
)

__all__ = [
    "DEV_CUSTOMER_API_KEY",
    "DEV_OPERATOR_API_KEY",
    "build_dependencies",
    "reset_dependencies",
    "store_configuration",
]
