"""
Storefront HTTP API — Handler Tests
====================================
Framework-agnostic handlers over in-memory services: auth, body
parsing, envelope shape and error → status mapping.
"""

import json

import pytest

from conftest import build_world
from core.http_api import (
    HttpApiDependencies,
    get_admin_inventory_history,
    get_order,
    get_order_tracking,
    get_payment_methods,
    get_shipping_rates,
    get_verify_payment,
    post_admin_inventory_adjust,
    post_admin_order_note,
    post_admin_order_refund,
    post_admin_order_status,
    post_cancel_order,
    post_create_order,
    post_paystack_webhook,
)
from core.http_api.auth import AuthPrincipal, InMemoryAuthProvider

OPERATOR_HEADERS = {"X-API-Key": "op-key"}
BUYER_HEADERS = {"x-api-key": "buyer-key"}
OTHER_HEADERS = {"X-API-Key": "other-key"}


def _deps(world) -> HttpApiDependencies:
    return HttpApiDependencies(
        order_service=world.order_service,
        payment_service=world.payment_service,
        ledger=world.ledger,
        config_provider=world.config,
        auth_provider=InMemoryAuthProvider({
            "op-key": AuthPrincipal(actor_id="op-1", role="operator", display_name="Ada"),
            "buyer-key": AuthPrincipal(actor_id="user-1", role="customer"),
            "other-key": AuthPrincipal(actor_id="user-2", role="customer"),
        }),
    )


def _order_body(product_id: str = "tee", quantity: int = 2, **overrides) -> dict:
    body = {
        "items": [{"product_id": product_id, "quantity": quantity}],
        "shipping_address": {
            "first_name": "Ada",
            "last_name": "Obi",
            "email": "buyer@example.com",
            "phone": "08030000000",
            "street": "1 Marina",
            "city": "Lagos",
            "state": "Lagos",
        },
        "payment_method": "paystack",
        "shipping_method": "lagos-standard",
    }
    body.update(overrides)
    return body


@pytest.fixture
def api():
    world = build_world()
    world.add_product("tee", price="1000.00", stock=5)
    return world, _deps(world)


# ══════════════════════════════════════════════════════════════
# STOREFRONT
# ══════════════════════════════════════════════════════════════

class TestCreateOrderHandler:
    def test_created(self, api):
        world, deps = api
        result = post_create_order(_order_body(), deps, headers=BUYER_HEADERS)
        assert result.status_code == 201
        assert result.body["ok"] is True
        data = result.body["data"]
        assert data["total_amount"] == "3500.00"
        assert data["user_id"] == "user-1"

    def test_guest_checkout(self, api):
        _, deps = api
        result = post_create_order(_order_body(), deps)
        assert result.status_code == 201
        assert result.body["data"]["user_id"] is None

    def test_missing_items(self, api):
        _, deps = api
        result = post_create_order(_order_body(items=[]), deps)
        assert result.status_code == 400
        assert result.body["error"]["message"] == "Please provide order items"

    def test_insufficient_stock(self, api):
        _, deps = api
        result = post_create_order(_order_body(quantity=9), deps)
        assert result.status_code == 400
        assert result.body["error"]["code"] == "INSUFFICIENT_STOCK"
        assert result.body["error"]["details"]["available"] == 5

    def test_unknown_product(self, api):
        _, deps = api
        result = post_create_order(_order_body(product_id="ghost"), deps)
        assert result.status_code == 404
        assert result.body["error"]["code"] == "PRODUCT_NOT_FOUND"

    def test_unknown_api_key(self, api):
        _, deps = api
        result = post_create_order(_order_body(), deps, headers={"X-API-Key": "nope"})
        assert result.status_code == 401

    def test_non_object_body(self, api):
        _, deps = api
        result = post_create_order(["not", "an", "object"], deps)
        assert result.status_code == 400

    def test_unexpected_error_is_500(self, api, monkeypatch, caplog):
        world, deps = api

        def _boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(world.order_service, "create_order", _boom)
        with caplog.at_level("ERROR", logger="storefront.http"):
            result = post_create_order(_order_body(), deps)
        assert result.status_code == 500
        assert result.body["error"]["code"] == "INTERNAL_ERROR"
        assert "disk on fire" not in json.dumps(result.body)
        assert "Unhandled error in post_create_order" in caplog.text


class TestReadHandlers:
    def test_shipping_rates(self, api):
        _, deps = api
        result = get_shipping_rates("Lagos", deps)
        assert result.status_code == 200
        assert result.body["data"][0]["price"] == "1500.00"
        assert result.body["meta"]["count"] == 1

    def test_shipping_rates_need_region(self, api):
        _, deps = api
        assert get_shipping_rates(None, deps).status_code == 400

    def test_payment_methods(self, api):
        _, deps = api
        result = get_payment_methods(deps)
        assert [m["name"] for m in result.body["data"]] == [
            "paystack", "bank_transfer", "cash_on_delivery",
        ]

    def test_order_read_by_owner_hides_internal_notes(self, api):
        world, deps = api
        created = post_create_order(_order_body(), deps, headers=BUYER_HEADERS).body["data"]
        post_admin_order_note(
            created["order_id"], {"content": "vip"}, deps, headers=OPERATOR_HEADERS,
        )
        owner_view = get_order(created["order_id"], deps, headers=BUYER_HEADERS)
        assert owner_view.body["data"]["notes"] == []
        operator_view = get_order(created["order_id"], deps, headers=OPERATOR_HEADERS)
        assert operator_view.body["data"]["notes"][0]["content"] == "vip"

    def test_order_read_by_stranger(self, api):
        _, deps = api
        created = post_create_order(_order_body(), deps, headers=BUYER_HEADERS).body["data"]
        assert get_order(created["order_id"], deps, headers=OTHER_HEADERS).status_code == 403
        assert get_order(created["order_id"], deps).status_code == 401

    def test_tracking_is_public(self, api):
        _, deps = api
        created = post_create_order(_order_body(), deps).body["data"]
        result = get_order_tracking(created["order_number"], deps)
        assert result.body["data"]["status"] == "pending"
        assert "shipping_address" not in result.body["data"]

    def test_tracking_unknown_is_404(self, api):
        _, deps = api
        assert get_order_tracking("ORD-0", deps).status_code == 404


# ══════════════════════════════════════════════════════════════
# LIFECYCLE
# ══════════════════════════════════════════════════════════════

class TestLifecycleHandlers:
    def test_cancel_requires_auth(self, api):
        _, deps = api
        created = post_create_order(_order_body(), deps, headers=BUYER_HEADERS).body["data"]
        assert post_cancel_order(created["order_id"], {}, deps).status_code == 401
        assert post_cancel_order(
            created["order_id"], {}, deps, headers=OTHER_HEADERS,
        ).status_code == 403

    def test_cancel_then_cancel_again(self, api):
        world, deps = api
        created = post_create_order(_order_body(), deps, headers=BUYER_HEADERS).body["data"]
        first = post_cancel_order(created["order_id"], {"reason": "changed mind"}, deps, headers=BUYER_HEADERS)
        assert first.status_code == 200
        assert first.body["data"]["status"] == "cancelled"
        second = post_cancel_order(created["order_id"], {}, deps, headers=BUYER_HEADERS)
        assert second.status_code == 400
        assert second.body["error"]["code"] == "ORDER_NOT_CANCELLABLE"
        assert world.ledger.stock_level("tee") == 5

    def test_status_requires_operator(self, api):
        _, deps = api
        created = post_create_order(_order_body(), deps, headers=BUYER_HEADERS).body["data"]
        result = post_admin_order_status(
            created["order_id"], {"status": "processing"}, deps, headers=BUYER_HEADERS,
        )
        assert result.status_code == 403

    def test_illegal_status_is_400(self, api):
        _, deps = api
        created = post_create_order(_order_body(), deps).body["data"]
        result = post_admin_order_status(
            created["order_id"], {"status": "delivered"}, deps, headers=OPERATOR_HEADERS,
        )
        assert result.status_code == 400
        assert result.body["error"]["code"] == "ILLEGAL_STATUS_TRANSITION"

    def test_refund_amount_validation(self, api):
        world, deps = api
        created = post_create_order(_order_body(), deps).body["data"]
        result = post_admin_order_refund(
            created["order_id"], {"amount": "abc", "reason": "x"}, deps, headers=OPERATOR_HEADERS,
        )
        assert result.status_code == 400


# ══════════════════════════════════════════════════════════════
# PAYMENTS
# ══════════════════════════════════════════════════════════════

class TestPaymentHandlers:
    def test_verify_then_verify_again(self, api):
        world, deps = api
        created = post_create_order(_order_body(), deps, headers=BUYER_HEADERS).body["data"]
        world.gateway.amount_minor = 350000
        first = get_verify_payment(created["order_number"], deps)
        second = get_verify_payment(created["order_number"], deps)
        assert first.status_code == second.status_code == 200
        assert second.body["data"]["status"] == "processing"
        assert len(second.body["data"]["timeline"]) == 2

    def test_amount_mismatch_is_400(self, api):
        world, deps = api
        created = post_create_order(_order_body(), deps).body["data"]
        world.gateway.amount_minor = 5
        result = get_verify_payment(created["order_number"], deps)
        assert result.status_code == 400
        assert result.body["error"]["code"] == "PAYMENT_AMOUNT_MISMATCH"

    def test_webhook_signature_header(self, api):
        _, deps = api
        body = json.dumps({"event": "subscription.create", "data": {}}).encode()
        rejected = post_paystack_webhook(body, deps, headers={"X-Paystack-Signature": "bad"})
        assert rejected.status_code == 401
        accepted = post_paystack_webhook(
            body, deps, headers={"X-Paystack-Signature": "good-signature"},
        )
        assert accepted.status_code == 200
        assert accepted.body["data"]["handled"] is False


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class TestInventoryHandlers:
    def test_adjust_and_history(self, api):
        _, deps = api
        result = post_admin_inventory_adjust(
            "tee", {"delta": 3, "note": "delivery"}, deps, headers=OPERATOR_HEADERS,
        )
        assert result.status_code == 200
        assert result.body["data"]["new_stock"] == 8
        history = get_admin_inventory_history("tee", None, deps, headers=OPERATOR_HEADERS)
        assert history.body["meta"] == {"count": 1, "stock_quantity": 8}

    def test_adjust_requires_integer_delta(self, api):
        _, deps = api
        result = post_admin_inventory_adjust(
            "tee", {"delta": "3"}, deps, headers=OPERATOR_HEADERS,
        )
        assert result.status_code == 400

    def test_history_requires_operator(self, api):
        _, deps = api
        assert get_admin_inventory_history("tee", None, deps).status_code == 401
