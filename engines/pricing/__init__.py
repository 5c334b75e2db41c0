"""
Storefront Pricing Engine — Rate & Tax Resolver
================================================
Pure functions over a StoreConfiguration snapshot.
"""

from engines.pricing.resolver import (
    ShippingQuote,
    TaxQuote,
    list_payment_methods,
    list_rates,
    resolve_shipping,
    resolve_tax,
)

__all__ = [
    "ShippingQuote",
    "TaxQuote",
    "list_payment_methods",
    "list_rates",
    "resolve_shipping",
    "resolve_tax",
]
