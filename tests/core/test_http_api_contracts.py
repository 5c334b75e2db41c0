from __future__ import annotations

from decimal import Decimal

import pytest

from core.errors import InsufficientStock, ValidationError
from core.http_api import (
    HttpApiResponse,
    error_result,
    parse_add_note,
    parse_adjust_stock,
    parse_create_order,
    parse_refund,
    success_response,
)


def _order_body(**overrides) -> dict:
    body = {
        "items": [{"product": "tee", "quantity": "2", "variant": "tee-m"}],
        "shipping_address": {
            "first_name": "Ada",
            "last_name": "Obi",
            "email": " buyer@example.com ",
            "phone": "08030000000",
            "street": "1 Marina",
            "city": "Lagos",
            "region": "Lagos",
        },
        "payment_method": "paystack",
        "shipping_method": "lagos-standard",
        "notes": "Leave at the gate",
    }
    body.update(overrides)
    return body


class TestEnvelope:
    def test_success_with_meta(self):
        assert success_response([1], meta={"count": 1}) == {
            "ok": True, "data": [1], "meta": {"count": 1},
        }

    def test_success_without_meta(self):
        assert success_response({"a": 1}) == {"ok": True, "data": {"a": 1}}

    def test_error_requires_body(self):
        with pytest.raises(ValueError, match="error must be set"):
            HttpApiResponse(ok=False).to_dict()

    def test_error_result_uses_exception_status(self):
        exc = InsufficientStock("tee", requested=3, available=1, name="Tee")
        result = error_result(exc)
        assert result.status_code == 400
        assert result.body["error"]["code"] == "INSUFFICIENT_STOCK"
        assert result.body["error"]["details"]["available"] == 1


class TestParseCreateOrder:
    def test_accepts_alias_keys(self):
        request = parse_create_order(_order_body())
        line = request.items[0]
        assert (line.product_id, line.quantity, line.variant_id) == ("tee", 2, "tee-m")
        assert request.shipping_address.state == "Lagos"
        assert request.shipping_address.email == "buyer@example.com"
        assert request.shipping_address.country == "Nigeria"
        assert request.shipping_rate_id == "lagos-standard"
        assert request.customer_note == "Leave at the gate"

    def test_items_must_be_list(self):
        with pytest.raises(ValidationError, match="items must be a list"):
            parse_create_order(_order_body(items={"product": "tee"}))

    @pytest.mark.parametrize("quantity", [0, -1, "two", True, 1.5])
    def test_bad_quantity(self, quantity):
        with pytest.raises(ValidationError):
            parse_create_order(_order_body(items=[{"product": "tee", "quantity": quantity}]))

    def test_missing_payment_method(self):
        with pytest.raises(ValidationError, match="payment method"):
            parse_create_order(_order_body(payment_method=""))

    def test_missing_address(self):
        with pytest.raises(ValidationError, match="shipping address"):
            parse_create_order(_order_body(shipping_address=None))


class TestParseOperatorBodies:
    def test_note_defaults_to_internal(self):
        request = parse_add_note({"content": "call buyer"})
        assert request.internal is True
        assert parse_add_note({"content": "hi", "is_internal": False}).internal is False

    def test_refund_amount_is_decimal(self):
        request = parse_refund({"amount": 1500.5, "reason": "damaged"})
        assert request.amount == Decimal("1500.50")

    def test_refund_needs_reason(self):
        with pytest.raises(ValidationError, match="refund amount and reason"):
            parse_refund({"amount": "10"})

    def test_adjust_stock(self):
        request = parse_adjust_stock("tee", {"delta": -2, "note": "damaged"})
        assert request.delta == -2
        assert request.variant_id is None
        assert request.allow_negative is False

    def test_adjust_stock_rejects_zero(self):
        with pytest.raises(ValidationError, match="non-zero"):
            parse_adjust_stock("tee", {"delta": 0})
