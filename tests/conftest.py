"""
Shared storefront fixtures: an in-memory world wired the way the
Django adapter wires the real one, with a fixed clock, a seeded
order-number RNG and a scriptable payment gateway.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from core.config.rules import DEFAULT_STORE_CONFIGURATION, StoreConfiguration
from core.primitives.actor import Actor
from core.time.clock import FixedClock
from engines.catalog import CatalogSnapshotReader, ProductRecord, VariantRecord
from engines.inventory import InMemoryInventoryStore, InventoryLedger
from engines.orders import InMemoryOrderRepository, OrderService
from engines.orders.commands import CartLine, CreateOrderRequest, ShippingAddressInput
from engines.payments import PaymentReconciliationService
from engines.payments.gateway import InitializeResult, RefundResult, VerificationResult

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

OPERATOR = Actor.operator("op-1", display_name="Ada Operator")
BUYER = Actor.customer("user-1", email="buyer@example.com")
OTHER_BUYER = Actor.customer("user-2", email="other@example.com")


def make_product(
    product_id: str,
    *,
    price: str = "1000.00",
    stock: int = 10,
    status: str = "active",
    variants: tuple = (),
    name: Optional[str] = None,
) -> ProductRecord:
    return ProductRecord(
        product_id=product_id,
        name=name or product_id.replace("-", " ").title(),
        sku=f"SKU-{product_id.upper()}",
        price=Decimal(price),
        status=status,
        stock_quantity=stock,
        variants=variants,
    )


def make_variant(variant_id: str, *, stock: int = 5, adjustment: str = "0.00") -> VariantRecord:
    return VariantRecord(
        variant_id=variant_id,
        sku=f"SKU-{variant_id.upper()}",
        price_adjustment=Decimal(adjustment),
        stock_quantity=stock,
    )


def checkout(
    *lines,
    state: str = "Lagos",
    rate_id: str = "lagos-standard",
    payment_method: str = "paystack",
    note: str = "",
) -> CreateOrderRequest:
    """lines are (product_id, quantity) or (product_id, quantity, variant_id)."""
    return CreateOrderRequest(
        items=tuple(CartLine(*line) for line in lines),
        shipping_address=ShippingAddressInput(
            first_name="Ada",
            last_name="Obi",
            email="buyer@example.com",
            phone="08030000000",
            street="1 Marina",
            city="Lagos",
            state=state,
        ),
        payment_method=payment_method,
        shipping_rate_id=rate_id,
        customer_note=note,
    )


class FakeGateway:
    """Scriptable PaymentGateway that records every call."""

    def __init__(self):
        self.initialized: list[dict] = []
        self.verified: list[str] = []
        self.refunds: list[dict] = []
        self.amount_minor: Optional[int] = None
        self.status = "success"
        self.refund_ok = True
        self.valid_signature = "good-signature"

    def initialize_transaction(self, *, amount_minor, email, reference, callback_url, metadata=None):
        self.initialized.append({
            "amount_minor": amount_minor,
            "email": email,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata,
        })
        return InitializeResult(
            authorization_url=f"https://checkout.example/{reference}",
            access_code="access-123",
            reference=reference,
        )

    def verify_transaction(self, reference):
        self.verified.append(reference)
        return VerificationResult(
            confirmed=self.status == "success",
            reference=reference,
            amount_minor=self.amount_minor or 0,
            transaction_id="txn-42",
            paid_at=NOW,
            channel="card",
            card_detail={"last4": "4081"},
            gateway_status=self.status,
            message="Approved",
        )

    def process_refund(self, *, transaction_id, amount_minor, reason):
        self.refunds.append({
            "transaction_id": transaction_id,
            "amount_minor": amount_minor,
            "reason": reason,
        })
        return RefundResult(
            confirmed=self.refund_ok,
            reference="rfnd-7" if self.refund_ok else "",
            message="processed" if self.refund_ok else "declined",
        )

    def verify_signature(self, raw_body, signature):
        return signature == self.valid_signature


class RecordingNotifier:
    def __init__(self):
        self.confirmations: list[str] = []
        self.refunds: list[tuple] = []
        self.fail = False

    def send_order_confirmation(self, order, *, store):
        if self.fail:
            raise RuntimeError("smtp down")
        self.confirmations.append(order.order_number)

    def send_refund_confirmation(self, order, *, amount, reason, reference, store):
        if self.fail:
            raise RuntimeError("smtp down")
        self.refunds.append((order.order_number, amount, reason, reference))


@dataclass
class StorefrontWorld:
    clock: FixedClock
    store: InMemoryInventoryStore
    orders: InMemoryOrderRepository
    ledger: InventoryLedger
    order_service: OrderService
    payment_service: PaymentReconciliationService
    gateway: FakeGateway
    notifier: RecordingNotifier
    config_data: dict = field(default_factory=dict)

    def config(self) -> StoreConfiguration:
        return StoreConfiguration.from_dict(self.config_data)

    def add_product(self, product_id: str, **kwargs) -> ProductRecord:
        product = make_product(product_id, **kwargs)
        self.store.register_product(product)
        return product


def build_world(config_data: Optional[dict] = None, *, seed: int = 7) -> StorefrontWorld:
    clock = FixedClock(NOW)
    store = InMemoryInventoryStore()
    orders = InMemoryOrderRepository()
    ledger = InventoryLedger(stock_store=store, clock=clock)
    data = dict(config_data or DEFAULT_STORE_CONFIGURATION)
    gateway = FakeGateway()
    notifier = RecordingNotifier()
    world = StorefrontWorld(
        clock=clock,
        store=store,
        orders=orders,
        ledger=ledger,
        order_service=None,
        payment_service=None,
        gateway=gateway,
        notifier=notifier,
        config_data=data,
    )
    world.order_service = OrderService(
        orders=orders,
        catalog=CatalogSnapshotReader(store),
        ledger=ledger,
        config_provider=world.config,
        clock=clock,
        rng=random.Random(seed),
    )
    world.payment_service = PaymentReconciliationService(
        orders=orders,
        order_service=world.order_service,
        config_provider=world.config,
        gateway=gateway,
        notifier=notifier,
        clock=clock,
    )
    return world


@pytest.fixture
def world() -> StorefrontWorld:
    return build_world()
