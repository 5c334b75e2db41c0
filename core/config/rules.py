"""
Storefront Core Config — Store Configuration Snapshot
======================================================
Shipping zones, tax settings, payment methods and engine policies
come from admin-managed configuration, not from source code.

The configuration is loaded once, explicitly, into an immutable
StoreConfiguration and passed to the services that need it. There
is no lazily-created global settings document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

from core.primitives.money import to_amount

VALID_PAYMENT_METHODS = frozenset({"paystack", "bank_transfer", "cash_on_delivery"})
GATEWAY_PAYMENT_METHODS = frozenset({"paystack"})


# ══════════════════════════════════════════════════════════════
# SHIPPING
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShippingRate:
    """A priced delivery option inside a zone."""

    rate_id: str
    name: str
    price: Decimal
    description: str = ""
    free_shipping_threshold: Optional[Decimal] = None
    active: bool = True

    def __post_init__(self) -> None:
        if not self.rate_id or not isinstance(self.rate_id, str):
            raise ValueError("rate_id must be a non-empty string.")
        if not self.name:
            raise ValueError("Shipping rate name must be non-empty.")
        if self.price < 0:
            raise ValueError("Shipping price cannot be negative.")
        if self.free_shipping_threshold is not None and self.free_shipping_threshold < 0:
            raise ValueError("free_shipping_threshold cannot be negative.")

    def qualifies_for_free_shipping(self, subtotal: Decimal) -> bool:
        if self.free_shipping_threshold is None:
            return False
        return subtotal >= self.free_shipping_threshold


@dataclass(frozen=True)
class ShippingZone:
    """A set of destination regions sharing the same rates."""

    name: str
    regions: Tuple[str, ...]
    rates: Tuple[ShippingRate, ...]
    active: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Shipping zone name must be non-empty.")
        if not self.regions:
            raise ValueError(f"Shipping zone '{self.name}' needs at least one region.")

    def serves(self, region: str) -> bool:
        wanted = region.strip().casefold()
        return any(r.strip().casefold() == wanted for r in self.regions)

    def active_rates(self) -> Tuple[ShippingRate, ...]:
        return tuple(rate for rate in self.rates if rate.active)


# ══════════════════════════════════════════════════════════════
# TAX / PAYMENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TaxSettings:
    enabled: bool = False
    rate: Decimal = Decimal("0")  # 7.5 means 7.5%

    def __post_init__(self) -> None:
        if not Decimal("0") <= self.rate <= Decimal("100"):
            raise ValueError(f"Tax rate must be between 0 and 100, got {self.rate}.")


@dataclass(frozen=True)
class PaymentMethodConfig:
    name: str
    display_name: str
    description: str = ""
    instructions: str = ""
    active: bool = True

    def __post_init__(self) -> None:
        if self.name not in VALID_PAYMENT_METHODS:
            raise ValueError(f"Unknown payment method '{self.name}'.")

    @property
    def uses_gateway(self) -> bool:
        return self.name in GATEWAY_PAYMENT_METHODS


# ══════════════════════════════════════════════════════════════
# STORE CONFIGURATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StoreConfiguration:
    """
    Immutable snapshot of everything the order engine reads from
    configuration.

    Policy fields:
        catch_all_region:          region name marking the fallback zone
        low_stock_threshold:       stock level that triggers a warning
        order_number_prefix:       PREFIX in PREFIX-YYYYMMDD-NNNN
        order_number_max_attempts: collision retries before failing
        restock_on_refund:         release stock automatically on refund
    """

    store_name: str = "Storefront"
    store_email: str = ""
    currency_code: str = "NGN"
    currency_symbol: str = "₦"
    tax: TaxSettings = field(default_factory=TaxSettings)
    shipping_zones: Tuple[ShippingZone, ...] = ()
    payment_methods: Tuple[PaymentMethodConfig, ...] = ()
    catch_all_region: str = "Others"
    low_stock_threshold: int = 5
    order_number_prefix: str = "ORD"
    order_number_max_attempts: int = 5
    restock_on_refund: bool = False
    payment_callback_url: str = ""

    def __post_init__(self) -> None:
        if self.low_stock_threshold < 0:
            raise ValueError("low_stock_threshold cannot be negative.")
        if self.order_number_max_attempts < 1:
            raise ValueError("order_number_max_attempts must be >= 1.")
        if not self.order_number_prefix or "-" in self.order_number_prefix:
            raise ValueError("order_number_prefix must be non-empty without '-'.")
        seen: set[str] = set()
        for zone in self.shipping_zones:
            for rate in zone.rates:
                if rate.rate_id in seen:
                    raise ValueError(f"Duplicate shipping rate id '{rate.rate_id}'.")
                seen.add(rate.rate_id)

    def payment_method(self, name: str) -> Optional[PaymentMethodConfig]:
        for method in self.payment_methods:
            if method.name == name:
                return method
        return None

    def active_payment_methods(self) -> Tuple[PaymentMethodConfig, ...]:
        return tuple(m for m in self.payment_methods if m.active)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StoreConfiguration:
        tax_data = data.get("tax") or {}
        return cls(
            store_name=str(data.get("store_name", "Storefront")),
            store_email=str(data.get("store_email", "")),
            currency_code=str(data.get("currency_code", "NGN")),
            currency_symbol=str(data.get("currency_symbol", "₦")),
            tax=TaxSettings(
                enabled=bool(tax_data.get("enabled", False)),
                rate=to_amount(tax_data.get("rate", 0), field_name="tax.rate"),
            ),
            shipping_zones=tuple(
                _zone_from_dict(zone) for zone in data.get("shipping_zones", ())
            ),
            payment_methods=tuple(
                PaymentMethodConfig(
                    name=method["name"],
                    display_name=method.get("display_name", method["name"]),
                    description=method.get("description", ""),
                    instructions=method.get("instructions", ""),
                    active=bool(method.get("active", True)),
                )
                for method in data.get("payment_methods", ())
            ),
            catch_all_region=str(data.get("catch_all_region", "Others")),
            low_stock_threshold=int(data.get("low_stock_threshold", 5)),
            order_number_prefix=str(data.get("order_number_prefix", "ORD")),
            order_number_max_attempts=int(data.get("order_number_max_attempts", 5)),
            restock_on_refund=bool(data.get("restock_on_refund", False)),
            payment_callback_url=str(data.get("payment_callback_url", "")),
        )


def _zone_from_dict(data: Mapping[str, Any]) -> ShippingZone:
    rates = []
    for rate in data.get("rates", ()):
        threshold = rate.get("free_shipping_threshold")
        rates.append(
            ShippingRate(
                rate_id=str(rate["rate_id"]),
                name=rate["name"],
                price=to_amount(rate["price"], field_name="rate.price"),
                description=rate.get("description", ""),
                free_shipping_threshold=(
                    None
                    if threshold is None
                    else to_amount(threshold, field_name="free_shipping_threshold")
                ),
                active=bool(rate.get("active", True)),
            )
        )
    return ShippingZone(
        name=data["name"],
        regions=tuple(data.get("regions", ())),
        rates=tuple(rates),
        active=bool(data.get("active", True)),
    )


# ══════════════════════════════════════════════════════════════
# DEFAULTS (seed configuration for a fresh store)
# ══════════════════════════════════════════════════════════════

DEFAULT_STORE_CONFIGURATION: dict[str, Any] = {
    "store_name": "Storefront",
    "currency_code": "NGN",
    "currency_symbol": "₦",
    "tax": {"enabled": False, "rate": 0},
    "shipping_zones": [
        {
            "name": "Lagos Local",
            "regions": ["Lagos"],
            "rates": [
                {
                    "rate_id": "lagos-standard",
                    "name": "Standard Delivery",
                    "price": 1500,
                    "description": "1-2 business days",
                    "free_shipping_threshold": 50000,
                },
            ],
        },
        {
            "name": "Nationwide",
            "regions": ["Abuja", "Rivers", "Ogun", "Oyo", "Others"],
            "rates": [
                {
                    "rate_id": "nationwide-standard",
                    "name": "Standard Delivery",
                    "price": 5000,
                    "description": "3-5 business days",
                    "free_shipping_threshold": 100000,
                },
            ],
        },
    ],
    "payment_methods": [
        {
            "name": "paystack",
            "display_name": "Pay with Card",
            "description": "Pay securely with your credit/debit card",
        },
        {
            "name": "bank_transfer",
            "display_name": "Bank Transfer",
            "description": "Make a direct bank transfer",
        },
        {
            "name": "cash_on_delivery",
            "display_name": "Cash on Delivery",
            "description": "Pay when you receive your order",
        },
    ],
    "catch_all_region": "Others",
    "low_stock_threshold": 5,
    "order_number_prefix": "ORD",
    "order_number_max_attempts": 5,
    "restock_on_refund": False,
}
