"""
Storefront Django Store — ORM Repository Tests
===============================================
Conditional stock updates, the adjustment table, versioned order
writes and the order service running end-to-end on the database.
"""

from __future__ import annotations

import random
import uuid
from decimal import Decimal

import pytest

from adapters.django_store import models as db
from adapters.django_store.repositories import (
    DjangoCatalogStore,
    DjangoOrderRepository,
    DjangoStockStore,
)
from conftest import BUYER, NOW, OPERATOR, checkout
from core.config.rules import DEFAULT_STORE_CONFIGURATION, StoreConfiguration
from core.errors import ConcurrentUpdate, DuplicateOrderNumber, InsufficientStock, ProductNotFound
from core.time.clock import FixedClock
from engines.catalog import CatalogSnapshotReader
from engines.inventory import REASON_ORDER_CANCEL, InventoryLedger, StockKey, StockLine
from engines.orders import OrderService
from engines.orders.models import OrderStatus

pytestmark = pytest.mark.django_db(transaction=True)


def _product(*, stock: int = 5, price: str = "1000.00", status: str = "active") -> db.Product:
    return db.Product.objects.create(
        name="Classic Tee",
        sku=f"TEE-{uuid.uuid4().hex[:8]}",
        price=Decimal(price),
        status=status,
        stock_quantity=stock,
    )


def _service(clock=None) -> tuple[OrderService, InventoryLedger, DjangoOrderRepository]:
    clock = clock or FixedClock(NOW)
    ledger = InventoryLedger(stock_store=DjangoStockStore(), clock=clock)
    orders = DjangoOrderRepository()
    service = OrderService(
        orders=orders,
        catalog=CatalogSnapshotReader(DjangoCatalogStore()),
        ledger=ledger,
        config_provider=lambda: StoreConfiguration.from_dict(DEFAULT_STORE_CONFIGURATION),
        clock=clock,
        rng=random.Random(11),
    )
    return service, ledger, orders


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

class TestDjangoCatalogStore:
    def test_product_with_variants(self):
        product = _product(stock=3)
        variant = db.ProductVariant.objects.create(
            product=product, sku="TEE-XL", size="XL",
            price_adjustment=Decimal("250.00"), stock_quantity=2,
        )
        record = DjangoCatalogStore().get_product(str(product.id))
        assert record.price == Decimal("1000.00")
        assert record.is_active
        assert record.variant(str(variant.id)).stock_quantity == 2

    def test_unknown_or_malformed_id(self):
        store = DjangoCatalogStore()
        assert store.get_product(str(uuid.uuid4())) is None
        assert store.get_product("not-a-uuid") is None


# ══════════════════════════════════════════════════════════════
# STOCK
# ══════════════════════════════════════════════════════════════

class TestDjangoStockStore:
    def test_conditional_decrement_and_adjustment_row(self):
        product = _product(stock=5)
        store = DjangoStockStore()
        key = StockKey(str(product.id))
        adj = store.apply_delta(
            key, -2, reason="order-create", actor_id="user-1", at=NOW,
            reference="order-1", sales_delta=2,
        )
        assert (adj.previous_stock, adj.new_stock) == (5, 3)
        product.refresh_from_db()
        assert product.stock_quantity == 3
        assert product.sales_count == 2
        row = db.StockAdjustment.objects.get()
        assert row.reference == "order-1"
        assert row.delta == -2

    def test_refused_decrement_writes_nothing(self):
        product = _product(stock=1)
        store = DjangoStockStore()
        result = store.apply_delta(
            StockKey(str(product.id)), -2, reason="order-create", actor_id="u", at=NOW,
        )
        assert result is None
        product.refresh_from_db()
        assert product.stock_quantity == 1
        assert db.StockAdjustment.objects.count() == 0

    def test_sales_count_floors_at_zero(self):
        product = _product(stock=1)
        DjangoStockStore().apply_delta(
            StockKey(str(product.id)), 3, reason="order-cancel", actor_id="u", at=NOW,
            allow_negative=True, sales_delta=-3,
        )
        product.refresh_from_db()
        assert product.sales_count == 0
        assert product.stock_quantity == 4

    def test_variant_stock(self):
        product = _product(stock=9)
        variant = db.ProductVariant.objects.create(product=product, sku="TEE-S", stock_quantity=1)
        store = DjangoStockStore()
        key = StockKey(str(product.id), str(variant.id))
        assert store.apply_delta(key, -1, reason="order-create", actor_id="u", at=NOW)
        assert store.current_stock(key) == 0
        assert store.current_stock(StockKey(str(product.id))) == 9

    def test_unknown_product(self):
        with pytest.raises(ProductNotFound):
            DjangoStockStore().apply_delta(
                StockKey(str(uuid.uuid4())), -1, reason="order-create", actor_id="u", at=NOW,
            )

    def test_ledger_rollback_on_database(self):
        first = _product(stock=5)
        second = _product(stock=0)
        ledger = InventoryLedger(stock_store=DjangoStockStore(), clock=FixedClock(NOW))
        with pytest.raises(InsufficientStock):
            ledger.reserve(
                [StockLine(str(first.id), 2), StockLine(str(second.id), 1)], actor=BUYER,
            )
        first.refresh_from_db()
        assert first.stock_quantity == 5
        deltas = list(
            db.StockAdjustment.objects.filter(product=first)
            .order_by("created_at", "id").values_list("delta", flat=True)
        )
        assert sorted(deltas) == [-2, 2]


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════

class TestDjangoOrderRepository:
    def test_create_and_reload(self):
        product = _product(stock=5)
        service, _, orders = _service()
        order = service.create_order(checkout((str(product.id), 2)), actor=BUYER)

        reloaded = orders.get(order.order_id)
        assert reloaded.total_amount == Decimal("3500.00")
        assert reloaded.items[0].price == Decimal("1000.00")
        assert reloaded.version == 1
        assert orders.get_by_number(order.order_number).order_id == order.order_id
        assert orders.number_exists(order.order_number)
        product.refresh_from_db()
        assert product.stock_quantity == 3

    def test_duplicate_number_maps_to_domain_error(self):
        product = _product(stock=5)
        service, _, orders = _service()
        order = service.create_order(checkout((str(product.id), 1)))
        clone = orders.get(order.order_id)
        clone.order_id = str(uuid.uuid4())
        with pytest.raises(DuplicateOrderNumber):
            orders.add(clone)

    def test_stale_version_rejected(self):
        product = _product(stock=5)
        service, _, orders = _service()
        order = service.create_order(checkout((str(product.id), 1)))
        first = orders.get(order.order_id)
        second = orders.get(order.order_id)
        first.add_note("one", at=NOW)
        orders.update(first, expected_version=first.version)
        second.add_note("two", at=NOW)
        with pytest.raises(ConcurrentUpdate):
            orders.update(second, expected_version=second.version)
        assert [n.content for n in orders.get(order.order_id).notes] == ["one"]

    def test_cancel_releases_stock_on_database(self):
        product = _product(stock=5)
        service, ledger, _ = _service()
        order = service.create_order(checkout((str(product.id), 2)), actor=BUYER)
        cancelled = service.cancel(order.order_id, actor=OPERATOR)
        assert cancelled.status == OrderStatus.CANCELLED
        product.refresh_from_db()
        assert product.stock_quantity == 5
        assert db.StockAdjustment.objects.filter(reason=REASON_ORDER_CANCEL).count() == 1
        assert ledger.history(str(product.id))[-1].reference == order.order_id
