"""
Storefront Pricing Engine — Rate & Tax Resolver
================================================
Zone selection:
    1. the zone whose region list contains the destination region
    2. otherwise the catch-all zone (the one listing the configured
       catch-all region, "Others" by default)

A matched zone that is inactive is a failure, not a reason to fall
through to the catch-all. Free shipping zeroes the charged price but
keeps the rate name and description on the quote.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from core.config.rules import ShippingRate, ShippingZone, StoreConfiguration
from core.errors import NoShippingAvailable, ValidationError
from core.primitives.money import ZERO, percentage_of, to_amount


@dataclass(frozen=True)
class ShippingQuote:
    rate_id: str
    rate_name: str
    zone_name: str
    price: Decimal
    base_price: Decimal
    description: str = ""
    free_shipping: bool = False
    free_shipping_threshold: Optional[Decimal] = None

    def to_dict(self) -> dict:
        return {
            "rate_id": self.rate_id,
            "name": self.rate_name,
            "zone": self.zone_name,
            "price": self.price,
            "base_price": self.base_price,
            "description": self.description,
            "free_shipping": self.free_shipping,
            "free_shipping_threshold": self.free_shipping_threshold,
        }


@dataclass(frozen=True)
class TaxQuote:
    rate: Decimal
    amount: Decimal


def _normalize_region(region: str) -> str:
    if not isinstance(region, str) or not region.strip():
        raise ValidationError("Please provide a region")
    return region.strip()


def _zone_for_region(
    config: StoreConfiguration, region: str,
) -> Optional[ShippingZone]:
    for zone in config.shipping_zones:
        if zone.serves(region):
            return zone
    return None


def _catch_all_zone(config: StoreConfiguration) -> Optional[ShippingZone]:
    if not config.catch_all_region:
        return None
    return _zone_for_region(config, config.catch_all_region)


def _find_rate(
    config: StoreConfiguration, rate_id: str,
) -> Tuple[Optional[ShippingZone], Optional[ShippingRate]]:
    for zone in config.shipping_zones:
        for rate in zone.rates:
            if rate.rate_id == rate_id:
                return zone, rate
    return None, None


def _quote(zone: ShippingZone, rate: ShippingRate, subtotal: Decimal) -> ShippingQuote:
    free = rate.qualifies_for_free_shipping(subtotal)
    return ShippingQuote(
        rate_id=rate.rate_id,
        rate_name=rate.name,
        zone_name=zone.name,
        price=ZERO if free else to_amount(rate.price),
        base_price=to_amount(rate.price),
        description=rate.description,
        free_shipping=free,
        free_shipping_threshold=rate.free_shipping_threshold,
    )


def _serving_zone(config: StoreConfiguration, region: str) -> ShippingZone:
    zone = _zone_for_region(config, region)
    if zone is None:
        zone = _catch_all_zone(config)
    if zone is None:
        raise NoShippingAvailable(
            f"No shipping methods available for region: {region}",
            details={"region": region},
        )
    if not zone.active:
        raise NoShippingAvailable(
            f"Shipping zone {zone.name} is not currently active",
            details={"region": region, "zone": zone.name},
        )
    return zone


def resolve_shipping(
    config: StoreConfiguration,
    region: str,
    subtotal: Decimal,
    rate_id: Optional[str] = None,
) -> ShippingQuote:
    """
    Price shipping to a region.

    With rate_id, the chosen rate must belong to a zone serving the
    region or to the catch-all zone. Without it, the first active rate
    of the serving zone is used.
    """
    region = _normalize_region(region)
    subtotal = to_amount(subtotal, field_name="subtotal")

    if rate_id is None:
        zone = _serving_zone(config, region)
        rates = zone.active_rates()
        if not rates:
            raise NoShippingAvailable(
                f"No active shipping rates for region: {region}",
                details={"region": region, "zone": zone.name},
            )
        return _quote(zone, rates[0], subtotal)

    zone, rate = _find_rate(config, rate_id)
    if zone is None or rate is None:
        raise NoShippingAvailable(
            "Invalid shipping method",
            details={"rate_id": rate_id},
        )
    if not zone.active or not rate.active:
        raise NoShippingAvailable(
            f"Shipping method {rate.name} is not currently available",
            details={"rate_id": rate_id},
        )
    is_catch_all = bool(config.catch_all_region) and zone.serves(config.catch_all_region)
    if not zone.serves(region) and not is_catch_all:
        raise NoShippingAvailable(
            f"Shipping method {rate.name} does not deliver to {region}",
            details={"rate_id": rate_id, "region": region},
        )
    return _quote(zone, rate, subtotal)


def list_rates(config: StoreConfiguration, region: str) -> Tuple[ShippingQuote, ...]:
    """Active rates for a region, priced before any free-shipping override."""
    region = _normalize_region(region)
    zone = _serving_zone(config, region)
    return tuple(
        ShippingQuote(
            rate_id=rate.rate_id,
            rate_name=rate.name,
            zone_name=zone.name,
            price=to_amount(rate.price),
            base_price=to_amount(rate.price),
            description=rate.description,
            free_shipping_threshold=rate.free_shipping_threshold,
        )
        for rate in zone.active_rates()
    )


def resolve_tax(config: StoreConfiguration, subtotal: Decimal) -> TaxQuote:
    """Flat percentage of the subtotal; zero when tax is disabled."""
    subtotal = to_amount(subtotal, field_name="subtotal")
    if not config.tax.enabled or config.tax.rate == 0:
        return TaxQuote(rate=Decimal("0.00"), amount=ZERO)
    return TaxQuote(
        rate=config.tax.rate,
        amount=percentage_of(subtotal, config.tax.rate),
    )


def list_payment_methods(config: StoreConfiguration) -> Tuple[dict, ...]:
    return tuple(
        {
            "name": method.name,
            "display_name": method.display_name,
            "description": method.description,
            "instructions": method.instructions,
        }
        for method in config.active_payment_methods()
    )
