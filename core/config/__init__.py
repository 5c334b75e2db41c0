"""
Storefront Core Config — Public API
====================================
Immutable store configuration (shipping, tax, payment, policies).
"""

from core.config.rules import (
    DEFAULT_STORE_CONFIGURATION,
    GATEWAY_PAYMENT_METHODS,
    VALID_PAYMENT_METHODS,
    PaymentMethodConfig,
    ShippingRate,
    ShippingZone,
    StoreConfiguration,
    TaxSettings,
)

__all__ = [
    "DEFAULT_STORE_CONFIGURATION",
    "GATEWAY_PAYMENT_METHODS",
    "VALID_PAYMENT_METHODS",
    "PaymentMethodConfig",
    "ShippingRate",
    "ShippingZone",
    "StoreConfiguration",
    "TaxSettings",
]
