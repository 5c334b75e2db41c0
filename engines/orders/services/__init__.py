"""
Storefront Orders Engine — Application Service
===============================================
Order creation, status transitions, cancellation, notes and restock.

create_order() is one logical transaction across two stores:

    1. validate + snapshot + price       (no writes)
    2. reserve stock                     (ledger, all-or-nothing)
    3. number + insert order             (bounded retry)
    4. on any failure in 3 → release the reservation, re-raise

No lock is held across catalog, ledger or repository calls.
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Callable, List, Optional

from core.config.rules import StoreConfiguration
from core.errors import (
    IllegalStatusTransition,
    InsufficientStock,
    OrderNotFound,
    ValidationError,
    raise_for_rejection,
)
from core.primitives.actor import Actor, ActorRole
from core.primitives.money import ZERO, to_amount
from core.time.clock import Clock, SystemClock
from engines.catalog.reader import CatalogSnapshotReader
from engines.inventory import (
    REASON_ORDER_CANCEL,
    REASON_ORDER_CREATE,
    REASON_ORDER_REFUND,
    InventoryLedger,
    StockLine,
)
from engines.orders.commands import AddNoteRequest, CreateOrderRequest, strip_tags
from engines.orders.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentInfo,
    ShippingAddress,
    ShippingMethodSnapshot,
    TimelineEntry,
)
from engines.orders.numbers import OrderNumberGenerator
from engines.orders.policies import (
    cancellable_policy,
    operator_required_policy,
    order_access_policy,
    payment_method_policy,
    restock_policy,
)
from engines.orders.repository import OrderRepository
from engines.orders.state_machine import DEFAULT_TIMELINE_NOTES, transition
from engines.pricing import resolve_shipping, resolve_tax

logger = logging.getLogger("storefront.orders")


def stock_lines_for(order: Order) -> List[StockLine]:
    return [
        StockLine(
            product_id=item.product_id,
            variant_id=item.variant_id,
            quantity=item.quantity,
            name=item.name,
        )
        for item in order.items
    ]


class OrderService:
    """
    Orders Engine application service.

    config_provider is called once per operation, so every order is
    priced against one consistent configuration snapshot.
    """

    def __init__(
        self,
        *,
        orders: OrderRepository,
        catalog: CatalogSnapshotReader,
        ledger: InventoryLedger,
        config_provider: Callable[[], StoreConfiguration],
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        self._orders = orders
        self._catalog = catalog
        self._ledger = ledger
        self._config_provider = config_provider
        self._clock = clock or SystemClock()
        self._rng = rng

    # ══════════════════════════════════════════════════════════
    # LOOKUP
    # ══════════════════════════════════════════════════════════

    def load(self, order_ref: str) -> Order:
        """Find an order by id or order number."""
        order = self._orders.get(order_ref) or self._orders.get_by_number(order_ref)
        if order is None:
            raise OrderNotFound(order_ref)
        return order

    def get_order(self, order_ref: str, *, actor: Optional[Actor]) -> Order:
        order = self.load(order_ref)
        raise_for_rejection(order_access_policy(order, actor))
        return order

    def track(self, order_ref: str) -> Order:
        """Public tracking lookup by order number."""
        order = self._orders.get_by_number(order_ref)
        if order is None:
            raise OrderNotFound(order_ref)
        return order

    # ══════════════════════════════════════════════════════════
    # CREATE
    # ══════════════════════════════════════════════════════════

    def create_order(
        self, request: CreateOrderRequest, *, actor: Optional[Actor] = None,
    ) -> Order:
        config = self._config_provider()
        raise_for_rejection(payment_method_policy(request.payment_method, config))

        snapshots = self._catalog.snapshot(
            (line.product_id, line.variant_id) for line in request.items
        )
        items: List[OrderItem] = []
        lines: List[StockLine] = []
        for line, snap in zip(request.items, snapshots):
            if line.quantity > snap.available_stock:
                raise InsufficientStock(
                    line.product_id,
                    variant_id=line.variant_id,
                    requested=line.quantity,
                    available=snap.available_stock,
                    name=snap.name,
                )
            items.append(
                OrderItem(
                    product_id=snap.product_id,
                    variant_id=snap.variant_id,
                    name=snap.name,
                    sku=snap.sku,
                    price=snap.effective_price,
                    quantity=line.quantity,
                    subtotal=to_amount(snap.effective_price * line.quantity),
                    image_url=snap.image_url,
                )
            )
            lines.append(
                StockLine(
                    product_id=snap.product_id,
                    variant_id=snap.variant_id,
                    quantity=line.quantity,
                    name=snap.name,
                )
            )

        subtotal = sum((item.subtotal for item in items), ZERO)
        address = request.shipping_address
        quote = resolve_shipping(
            config, address.state, subtotal, rate_id=request.shipping_rate_id,
        )
        tax = resolve_tax(config, subtotal)

        buyer = actor or Actor.system("guest-checkout")
        user_id = (
            actor.actor_id
            if actor is not None and actor.role == ActorRole.CUSTOMER
            else None
        )
        order_id = str(uuid.uuid4())
        now = self._clock.now_utc()

        def _build(order_number: str) -> Order:
            order = Order(
                order_id=order_id,
                order_number=order_number,
                user_id=user_id,
                items=list(items),
                shipping_address=ShippingAddress(
                    first_name=address.first_name,
                    last_name=address.last_name,
                    email=address.email,
                    phone=address.phone,
                    street=address.street,
                    city=address.city,
                    state=address.state,
                    postal_code=address.postal_code,
                    country=address.country,
                ),
                shipping_method=ShippingMethodSnapshot(
                    name=quote.rate_name,
                    rate_id=quote.rate_id,
                    price=quote.price,
                    description=quote.description,
                    zone_name=quote.zone_name,
                    free_shipping=quote.free_shipping,
                ),
                payment_info=PaymentInfo(method=request.payment_method),
                subtotal=subtotal,
                shipping_fee=quote.price,
                tax_amount=tax.amount,
                tax_rate=tax.rate,
                total_amount=subtotal + quote.price + tax.amount,
                created_at=now,
                updated_at=now,
                timeline=[
                    TimelineEntry(
                        status=OrderStatus.PENDING,
                        timestamp=now,
                        note=DEFAULT_TIMELINE_NOTES[OrderStatus.PENDING],
                        actor_id=buyer.actor_id,
                    )
                ],
            )
            if request.customer_note and strip_tags(request.customer_note):
                order.add_note(
                    strip_tags(request.customer_note),
                    at=now,
                    actor_id=buyer.actor_id,
                    internal=False,
                )
            return order

        generator = OrderNumberGenerator(
            prefix=config.order_number_prefix,
            max_attempts=config.order_number_max_attempts,
            clock=self._clock,
            rng=self._rng,
        )

        self._ledger.reserve(lines, actor=buyer, reference=order_id)
        try:
            order = generator.issue(
                lambda number: self._orders.add(_build(number)),
                exists=self._orders.number_exists,
            )
        except Exception:
            logger.warning(
                "Order %s could not be persisted; releasing its reservation",
                order_id,
            )
            self._ledger.release(
                lines, actor=buyer, reference=order_id, reason=REASON_ORDER_CREATE,
            )
            raise

        logger.info(
            "Order %s created: %d line(s), total %s, payment %s",
            order.order_number, len(order.items), order.total_amount,
            order.payment_info.method,
        )
        return order

    # ══════════════════════════════════════════════════════════
    # LIFECYCLE
    # ══════════════════════════════════════════════════════════

    def transition_status(
        self,
        order_ref: str,
        new_status: str,
        *,
        actor: Optional[Actor],
        note: Optional[str] = None,
    ) -> Order:
        raise_for_rejection(operator_required_policy(actor))
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError("Please provide a valid status") from None

        if target == OrderStatus.CANCELLED:
            return self.cancel(order_ref, actor=actor, reason=note)
        if target == OrderStatus.REFUNDED:
            raise IllegalStatusTransition(
                "Refunds are recorded through the refund operation.",
                details={"to": target.value},
            )

        order = self.load(order_ref)
        expected = order.version
        previous = order.status
        transition(
            order,
            target,
            actor=actor,
            at=self._clock.now_utc(),
            note=strip_tags(note) if note else None,
        )
        saved = self._orders.update(order, expected_version=expected)
        logger.info(
            "Order %s: %s → %s by %s",
            saved.order_number, previous.value, target.value, actor.actor_id,
        )
        return saved

    def cancel(
        self,
        order_ref: str,
        *,
        actor: Optional[Actor],
        reason: Optional[str] = None,
    ) -> Order:
        """
        Cancel a pending or processing order and return its stock.

        The versioned write goes first, so of two concurrent cancels
        only one releases stock.
        """
        order = self.load(order_ref)
        raise_for_rejection(order_access_policy(order, actor))
        raise_for_rejection(cancellable_policy(order))

        expected = order.version
        now = self._clock.now_utc()
        clean_reason = strip_tags(reason) if reason else ""
        transition(
            order,
            OrderStatus.CANCELLED,
            actor=actor,
            at=now,
            note=clean_reason or None,
        )
        message = f"Order cancelled by {actor.label}"
        if clean_reason:
            message = f"{message}: {clean_reason}"
        order.add_note(message, at=now, actor_id=actor.actor_id, internal=False)
        if order.payment_info.is_paid:
            order.add_note(
                f"Payment {order.payment_info.reference} was captured before "
                f"cancellation. Refund required.",
                at=now,
                actor_id=actor.actor_id,
                internal=True,
            )
        order.stock_released_at = now
        saved = self._orders.update(order, expected_version=expected)

        self._ledger.release(
            stock_lines_for(saved),
            actor=actor,
            reference=saved.order_id,
            reason=REASON_ORDER_CANCEL,
        )
        logger.info("Order %s cancelled by %s", saved.order_number, actor.actor_id)
        return saved

    def add_note(
        self,
        order_ref: str,
        request: AddNoteRequest,
        *,
        actor: Optional[Actor],
    ) -> Order:
        raise_for_rejection(operator_required_policy(actor))
        order = self.load(order_ref)
        expected = order.version
        order.add_note(
            request.clean_content,
            at=self._clock.now_utc(),
            actor_id=actor.actor_id,
            internal=request.internal,
        )
        return self._orders.update(order, expected_version=expected)

    def restock(self, order_ref: str, *, actor: Optional[Actor]) -> Order:
        """Return a refunded order's items to stock, once."""
        raise_for_rejection(operator_required_policy(actor))
        order = self.load(order_ref)
        raise_for_rejection(restock_policy(order))

        expected = order.version
        now = self._clock.now_utc()
        order.stock_released_at = now
        order.add_note(
            f"Items returned to stock by {actor.label}",
            at=now,
            actor_id=actor.actor_id,
            internal=True,
        )
        saved = self._orders.update(order, expected_version=expected)
        self._ledger.release(
            stock_lines_for(saved),
            actor=actor,
            reference=saved.order_id,
            reason=REASON_ORDER_REFUND,
        )
        logger.info("Order %s restocked by %s", saved.order_number, actor.actor_id)
        return saved
