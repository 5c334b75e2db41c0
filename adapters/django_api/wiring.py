"""
Storefront Django Adapter Wiring
================================
Constructs HttpApiDependencies from Django settings.

This module is adapter-only glue:
- Django ORM repositories for catalog, stock and orders
- store policy read from settings.STOREFRONT on every operation
- Paystack gateway only when PAYSTACK_SECRET_KEY is configured
"""

from __future__ import annotations

import logging
import threading

from django.conf import settings

from adapters.django_store.repositories import (
    DjangoCatalogStore,
    DjangoOrderRepository,
    DjangoStockStore,
)
from core.config.rules import StoreConfiguration
from core.http_api.auth import InMemoryAuthProvider
from core.http_api.dependencies import HttpApiDependencies
from engines.catalog import CatalogSnapshotReader
from engines.inventory import InventoryLedger
from engines.notifications import EmailNotifier
from engines.orders import OrderService
from engines.payments import PaymentReconciliationService, PaystackGateway

logger = logging.getLogger("storefront.http")

DEV_OPERATOR_API_KEY = "dev-operator-key"
DEV_CUSTOMER_API_KEY = "dev-customer-key"

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: HttpApiDependencies | None = None


def store_configuration() -> StoreConfiguration:
    return StoreConfiguration.from_dict(settings.STOREFRONT)


def _create_gateway() -> PaystackGateway | None:
    secret_key = getattr(settings, "PAYSTACK_SECRET_KEY", "")
    if not secret_key:
        logger.warning("PAYSTACK_SECRET_KEY is not set; gateway payments are disabled.")
        return None
    return PaystackGateway(
        secret_key,
        base_url=getattr(settings, "PAYSTACK_API_BASE", "https://api.paystack.co"),
    )


def _create_dependencies() -> HttpApiDependencies:
    low_stock_threshold = store_configuration().low_stock_threshold
    stock_store = DjangoStockStore()
    ledger = InventoryLedger(
        stock_store=stock_store,
        low_stock_threshold=low_stock_threshold,
    )
    orders = DjangoOrderRepository()
    order_service = OrderService(
        orders=orders,
        catalog=CatalogSnapshotReader(DjangoCatalogStore()),
        ledger=ledger,
        config_provider=store_configuration,
    )
    payment_service = PaymentReconciliationService(
        orders=orders,
        order_service=order_service,
        config_provider=store_configuration,
        gateway=_create_gateway(),
        notifier=EmailNotifier(),
    )
    return HttpApiDependencies(
        order_service=order_service,
        payment_service=payment_service,
        ledger=ledger,
        config_provider=store_configuration,
        auth_provider=InMemoryAuthProvider.from_settings(
            getattr(settings, "STOREFRONT_API_KEYS", {}),
        ),
    )


def build_dependencies() -> HttpApiDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _create_dependencies()
        return _DEPENDENCIES


def reset_dependencies() -> None:
    """Drop the cached wiring so the next request rebuilds it from settings."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None
