"""
Storefront HTTP API - Dependencies
==================================
Injected services and providers for handler wiring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from core.config.rules import StoreConfiguration
from core.http_api.auth.provider import AuthProvider
from engines.inventory.services import InventoryLedger
from engines.orders.services import OrderService
from engines.payments.service import PaymentReconciliationService


@dataclass(frozen=True)
class HttpApiDependencies:
    order_service: OrderService
    payment_service: PaymentReconciliationService
    ledger: InventoryLedger
    config_provider: Callable[[], StoreConfiguration]
    auth_provider: AuthProvider
