"""
Storefront Pricing — Shipping & Tax Resolution Tests
=====================================================
Zone matching, catch-all fallback, free-shipping thresholds and tax.
"""

import copy
from decimal import Decimal

import pytest

from core.config.rules import DEFAULT_STORE_CONFIGURATION, StoreConfiguration
from core.errors import NoShippingAvailable, ValidationError
from engines.pricing import (
    list_payment_methods,
    list_rates,
    resolve_shipping,
    resolve_tax,
)


def _config(**overrides) -> StoreConfiguration:
    data = copy.deepcopy(DEFAULT_STORE_CONFIGURATION)
    data.update(overrides)
    return StoreConfiguration.from_dict(data)


# ══════════════════════════════════════════════════════════════
# SHIPPING
# ══════════════════════════════════════════════════════════════

class TestResolveShipping:
    def test_region_served_by_its_own_zone(self):
        quote = resolve_shipping(_config(), "Lagos", Decimal("2000"), "lagos-standard")
        assert quote.zone_name == "Lagos Local"
        assert quote.price == Decimal("1500.00")
        assert quote.free_shipping is False

    def test_region_match_ignores_case_and_whitespace(self):
        quote = resolve_shipping(_config(), "  lagos ", Decimal("2000"), "lagos-standard")
        assert quote.rate_id == "lagos-standard"

    def test_unknown_region_falls_back_to_catch_all(self):
        quote = resolve_shipping(_config(), "Kano", Decimal("2000"))
        assert quote.zone_name == "Nationwide"
        assert quote.price == Decimal("5000.00")

    def test_catch_all_rate_accepted_for_any_region(self):
        quote = resolve_shipping(_config(), "Lagos", Decimal("2000"), "nationwide-standard")
        assert quote.zone_name == "Nationwide"

    def test_rate_outside_region_rejected(self):
        with pytest.raises(NoShippingAvailable, match="does not deliver to Kano"):
            resolve_shipping(_config(), "Kano", Decimal("2000"), "lagos-standard")

    def test_unknown_rate_rejected(self):
        with pytest.raises(NoShippingAvailable, match="Invalid shipping method"):
            resolve_shipping(_config(), "Lagos", Decimal("2000"), "teleport")

    def test_free_shipping_at_threshold(self):
        quote = resolve_shipping(_config(), "Lagos", Decimal("50000"), "lagos-standard")
        assert quote.free_shipping is True
        assert quote.price == Decimal("0.00")
        assert quote.base_price == Decimal("1500.00")

    def test_below_threshold_pays_full_price(self):
        quote = resolve_shipping(_config(), "Lagos", Decimal("49999.99"), "lagos-standard")
        assert quote.price == Decimal("1500.00")

    def test_inactive_zone_has_no_shipping(self):
        data = copy.deepcopy(DEFAULT_STORE_CONFIGURATION)
        data["shipping_zones"][0]["active"] = False
        config = StoreConfiguration.from_dict(data)
        with pytest.raises(NoShippingAvailable):
            resolve_shipping(config, "Lagos", Decimal("2000"), "lagos-standard")

    def test_no_catch_all_and_no_match(self):
        config = _config(catch_all_region="")
        with pytest.raises(NoShippingAvailable, match="Kano"):
            resolve_shipping(config, "Kano", Decimal("2000"))

    def test_empty_region_is_validation_error(self):
        with pytest.raises(ValidationError):
            resolve_shipping(_config(), "  ", Decimal("2000"))


class TestListRates:
    def test_lists_active_rates_for_region(self):
        quotes = list_rates(_config(), "Abuja")
        assert [q.rate_id for q in quotes] == ["nationwide-standard"]
        assert quotes[0].free_shipping_threshold == Decimal("100000.00")

    def test_payment_methods_listed_in_configured_order(self):
        names = [m["name"] for m in list_payment_methods(_config())]
        assert names == ["paystack", "bank_transfer", "cash_on_delivery"]


# ══════════════════════════════════════════════════════════════
# TAX
# ══════════════════════════════════════════════════════════════

class TestResolveTax:
    def test_disabled_tax_is_zero(self):
        tax = resolve_tax(_config(), Decimal("2000"))
        assert tax.amount == Decimal("0.00")

    def test_percentage_of_subtotal(self):
        tax = resolve_tax(_config(tax={"enabled": True, "rate": "7.5"}), Decimal("2000"))
        assert tax.rate == Decimal("7.50")
        assert tax.amount == Decimal("150.00")

    def test_rounds_half_up_to_two_places(self):
        tax = resolve_tax(_config(tax={"enabled": True, "rate": "7.5"}), Decimal("0.07"))
        assert tax.amount == Decimal("0.01")
