"""
Storefront Payments Engine — Reconciliation Service
====================================================
Idempotent reconciliation of gateway confirmations against orders.

verify_payment(reference):
    already paid or refunded  → return the order untouched
    gateway not successful    → PaymentNotConfirmed
    confirmed amount < total  → PaymentAmountMismatch (security log,
                                internal note, never marked paid)
    otherwise                 → paid, pending → processing

Duplicate deliveries (client poll + webhook, webhook retries) race on
the versioned order write. The loser reloads, sees the order paid and
returns it.

A refund is claimed on the order (versioned write) before the gateway
is called; only the claim holder moves money, and a declined refund
releases the claim.
"""

from __future__ import annotations

import json
import logging
import uuid
from decimal import Decimal
from typing import Callable, Optional

from core.config.rules import StoreConfiguration
from core.errors import (
    ConcurrentUpdate,
    ExternalGatewayError,
    InvalidWebhookSignature,
    OrderNotFound,
    PaymentAmountMismatch,
    PaymentNotConfirmed,
    ValidationError,
    raise_for_rejection,
)
from core.primitives.actor import Actor
from core.primitives.money import to_minor_units
from core.time.clock import Clock, SystemClock
from engines.notifications import Notifier
from engines.orders.commands import RefundRequest
from engines.orders.models import Order, OrderStatus, PaymentStatus
from engines.orders.policies import operator_required_policy, order_access_policy
from engines.orders.repository import OrderRepository
from engines.orders.services import OrderService
from engines.orders.state_machine import can_transition, transition
from engines.payments.gateway import PaymentGateway, VerificationResult
from engines.payments.policies import (
    awaiting_payment_policy,
    gateway_method_policy,
    not_already_paid_policy,
    refund_policy,
)

logger = logging.getLogger("storefront.payments")
security_logger = logging.getLogger("storefront.security")

WRITE_ATTEMPTS = 3
CHARGE_SUCCESS_EVENT = "charge.success"


class PaymentReconciliationService:
    def __init__(
        self,
        *,
        orders: OrderRepository,
        order_service: OrderService,
        config_provider: Callable[[], StoreConfiguration],
        gateway: Optional[PaymentGateway] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Clock] = None,
    ):
        self._orders = orders
        self._order_service = order_service
        self._config_provider = config_provider
        self._gateway = gateway
        self._notifier = notifier
        self._clock = clock or SystemClock()
        self._system = Actor.system("payments")

    # ══════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════

    def _require_gateway(self) -> PaymentGateway:
        if self._gateway is None:
            raise ExternalGatewayError("Payment gateway is not configured.")
        return self._gateway

    def _reload(self, order: Order) -> Order:
        fresh = self._orders.get(order.order_id)
        if fresh is None:
            raise OrderNotFound(order.order_id)
        return fresh

    def _mutate(self, order: Order, apply: Callable[[Order], Optional[Order]]) -> Order:
        """
        Apply a change and persist it with a versioned write.

        apply() returns an order to short-circuit (nothing to do on the
        current version), or None after mutating its argument. On a
        stale write the order is reloaded and apply() runs again.
        """
        for _ in range(WRITE_ATTEMPTS):
            expected = order.version
            done = apply(order)
            if done is not None:
                return done
            try:
                return self._orders.update(order, expected_version=expected)
            except ConcurrentUpdate:
                logger.info(
                    "Order %s changed underneath (version %d); retrying",
                    order.order_number, expected,
                )
                order = self._reload(order)
        raise ConcurrentUpdate(order.order_id, order.version)

    def _release_refund_claim(self, order: Order, claim_id: str) -> Order:
        def _apply(current: Order) -> Optional[Order]:
            if current.payment_info.refund_claim != claim_id:
                return current
            current.payment_info.refund_claim = None
            current.updated_at = self._clock.now_utc()
            return None
        return self._mutate(order, _apply)

    def _record_note(self, order: Order, content: str, *, actor: Actor) -> Order:
        def _apply(current: Order) -> None:
            current.add_note(
                content, at=self._clock.now_utc(), actor_id=actor.actor_id, internal=True,
            )
        return self._mutate(order, _apply)

    def _find_by_reference(self, reference: str) -> Order:
        order = (
            self._orders.get_by_reference(reference)
            or self._orders.get_by_number(reference)
        )
        if order is None:
            raise OrderNotFound(reference)
        return order

    # ══════════════════════════════════════════════════════════
    # GATEWAY PAYMENT
    # ══════════════════════════════════════════════════════════

    def initialize_payment(
        self,
        order_ref: str,
        *,
        actor: Optional[Actor],
        callback_url: Optional[str] = None,
    ) -> dict:
        order = self._order_service.load(order_ref)
        raise_for_rejection(order_access_policy(order, actor))
        raise_for_rejection(not_already_paid_policy(order))
        raise_for_rejection(awaiting_payment_policy(order))
        raise_for_rejection(gateway_method_policy(order, expect_gateway=True))
        gateway = self._require_gateway()
        config = self._config_provider()

        reference = order.payment_info.reference or order.order_number
        if order.payment_info.reference != reference:
            def _assign(current: Order) -> Optional[Order]:
                if current.payment_info.reference == reference:
                    return current
                current.payment_info.reference = reference
                current.updated_at = self._clock.now_utc()
                return None
            order = self._mutate(order, _assign)

        result = gateway.initialize_transaction(
            amount_minor=to_minor_units(order.total_amount),
            email=order.contact_email,
            reference=reference,
            callback_url=callback_url or config.payment_callback_url,
            metadata={
                "order_id": order.order_id,
                "order_number": order.order_number,
            },
        )
        logger.info("Payment initialized for %s (reference %s)", order.order_number, reference)
        return {
            "authorization_url": result.authorization_url,
            "access_code": result.access_code,
            "reference": result.reference,
        }

    def verify_payment(self, reference: str) -> Order:
        order = self._find_by_reference(reference)
        if order.payment_info.is_settled:
            logger.info(
                "Payment %s already settled (%s); nothing to do",
                reference, order.payment_info.status.value,
            )
            return order

        result = self._require_gateway().verify_transaction(reference)
        if not result.confirmed:
            logger.info(
                "Payment %s not confirmed by gateway (status %r)",
                reference, result.gateway_status,
            )
            raise PaymentNotConfirmed(
                f"Payment not successful: {result.gateway_status or result.message or 'unknown'}",
                details={"reference": reference, "gateway_status": result.gateway_status},
            )

        expected_minor = to_minor_units(order.total_amount)
        if result.amount_minor < expected_minor:
            security_logger.error(
                "Payment amount mismatch for order %s (reference %s): expected %d, "
                "gateway confirmed %d. Order left unpaid for manual review.",
                order.order_number, reference, expected_minor, result.amount_minor,
            )
            self._record_note(
                order,
                f"SECURITY: gateway confirmed {result.amount_minor} minor units for "
                f"reference {reference}, expected {expected_minor}. Payment not "
                f"applied; manual review required.",
                actor=self._system,
            )
            raise PaymentAmountMismatch(
                reference, expected_minor=expected_minor, received_minor=result.amount_minor,
            )

        order, applied = self._apply_gateway_payment(order, reference, result)
        if applied:
            logger.info(
                "Payment %s verified for order %s (transaction %s)",
                reference, order.order_number, result.transaction_id,
            )
            order = self._notify_confirmation(order, actor=self._system)
        return order

    def _apply_gateway_payment(
        self, order: Order, reference: str, result: VerificationResult,
    ) -> tuple:
        applied = []

        def _apply(current: Order) -> Optional[Order]:
            if current.payment_info.is_settled:
                return current
            now = self._clock.now_utc()
            payment = current.payment_info
            payment.status = PaymentStatus.PAID
            payment.reference = reference
            payment.transaction_id = result.transaction_id
            payment.paid_at = result.paid_at or now
            payment.channel = result.channel
            payment.details = {
                "gateway_status": result.gateway_status,
                "amount_minor": result.amount_minor,
                "card": dict(result.card_detail),
            }
            self._advance_after_payment(current, now=now, description=(
                "Payment received, order is being processed"
            ))
            applied.append(True)
            return None

        saved = self._mutate(order, _apply)
        return saved, bool(applied)

    def _advance_after_payment(self, order: Order, *, now, description: str) -> None:
        if order.status == OrderStatus.PENDING:
            transition(
                order, OrderStatus.PROCESSING, actor=self._system, at=now, note=description,
            )
            return
        security_logger.warning(
            "Payment captured for order %s while it was %s",
            order.order_number, order.status.value,
        )
        order.add_note(
            f"Payment {order.payment_info.reference} captured while order was "
            f"{order.status.value}. Manual refund required.",
            at=now,
            actor_id=self._system.actor_id,
            internal=True,
        )

    # ══════════════════════════════════════════════════════════
    # WEBHOOK
    # ══════════════════════════════════════════════════════════

    def handle_webhook(self, raw_body: bytes, signature: str) -> dict:
        gateway = self._require_gateway()
        if not gateway.verify_signature(raw_body, signature or ""):
            security_logger.warning("Rejected payment webhook with invalid signature")
            raise InvalidWebhookSignature("Invalid webhook signature")

        try:
            event = json.loads(raw_body.decode("utf-8"))
        except ValueError as exc:
            raise ValidationError("Webhook body must be valid JSON.") from exc
        if not isinstance(event, dict):
            raise ValidationError("Webhook body must be a JSON object.")

        event_type = str(event.get("event", ""))
        if event_type != CHARGE_SUCCESS_EVENT:
            logger.info("Ignoring payment webhook event %r", event_type)
            return {"event": event_type, "handled": False}

        reference = (event.get("data") or {}).get("reference")
        if not reference:
            raise ValidationError("charge.success webhook has no reference.")
        try:
            order = self.verify_payment(str(reference))
        except PaymentAmountMismatch:
            # Logged and noted; acknowledging stops the gateway retrying.
            return {"event": event_type, "handled": False, "reference": reference}
        return {
            "event": event_type,
            "handled": True,
            "reference": reference,
            "order_number": order.order_number,
        }

    # ══════════════════════════════════════════════════════════
    # OFFLINE PAYMENT
    # ══════════════════════════════════════════════════════════

    def confirm_offline_payment(
        self,
        order_ref: str,
        *,
        actor: Optional[Actor],
        reference: Optional[str] = None,
    ) -> Order:
        """Operator confirms a bank transfer or cash on delivery payment."""
        raise_for_rejection(operator_required_policy(actor))
        order = self._order_service.load(order_ref)
        raise_for_rejection(not_already_paid_policy(order))
        raise_for_rejection(awaiting_payment_policy(order))
        raise_for_rejection(gateway_method_policy(order, expect_gateway=False))

        def _apply(current: Order) -> Optional[Order]:
            raise_for_rejection(not_already_paid_policy(current))
            now = self._clock.now_utc()
            payment = current.payment_info
            payment.status = PaymentStatus.PAID
            payment.reference = reference or payment.reference or f"OFFLINE-{current.order_number}"
            payment.paid_at = now
            payment.details = {"confirmed_by": actor.actor_id}
            transition(
                current,
                OrderStatus.PROCESSING,
                actor=actor,
                at=now,
                note=f"Payment confirmed by {actor.label}",
            )
            return None

        saved = self._mutate(order, _apply)
        logger.info(
            "Offline payment for %s confirmed by %s", saved.order_number, actor.actor_id,
        )
        return self._notify_confirmation(saved, actor=actor)

    # ══════════════════════════════════════════════════════════
    # REFUND
    # ══════════════════════════════════════════════════════════

    def refund(
        self,
        order_ref: str,
        request: RefundRequest,
        *,
        actor: Optional[Actor],
    ) -> Order:
        raise_for_rejection(operator_required_policy(actor))
        order = self._order_service.load(order_ref)
        raise_for_rejection(refund_policy(order, request.amount))
        config = self._config_provider()
        reason = request.clean_reason
        claim_id = uuid.uuid4().hex

        def _claim(current: Order) -> Optional[Order]:
            raise_for_rejection(refund_policy(current, request.amount))
            current.payment_info.refund_claim = claim_id
            current.updated_at = self._clock.now_utc()
            return None

        order = self._mutate(order, _claim)

        transaction_id = order.payment_info.transaction_id
        if transaction_id and self._gateway is not None:
            try:
                result = self._gateway.process_refund(
                    transaction_id=transaction_id,
                    amount_minor=to_minor_units(request.amount),
                    reason=reason,
                )
            except Exception:
                self._release_refund_claim(order, claim_id)
                raise
            if not result.confirmed:
                self._release_refund_claim(order, claim_id)
                raise ExternalGatewayError(
                    f"Refund failed: {result.message or 'Unknown error'}",
                    details={"order_number": order.order_number},
                )
            refund_reference = result.reference or "N/A"
        else:
            now = self._clock.now_utc()
            refund_reference = f"MANUAL-{int(now.timestamp() * 1000)}"

        summary = f"Refund processed: {request.amount:.2f} - Reason: {reason}"

        def _apply(current: Order) -> Optional[Order]:
            if current.payment_info.refund_claim != claim_id:
                return current
            now = self._clock.now_utc()
            payment = current.payment_info
            payment.status = PaymentStatus.REFUNDED
            payment.refund_claim = None
            payment.refund_reference = refund_reference
            payment.refunded_amount = request.amount
            payment.refunded_at = now
            if can_transition(current.status, OrderStatus.REFUNDED):
                transition(current, OrderStatus.REFUNDED, actor=actor, at=now, note=summary)
            current.add_note(
                f"{summary} (Ref: {refund_reference})",
                at=now,
                actor_id=actor.actor_id,
                internal=True,
            )
            return None

        saved = self._mutate(order, _apply)
        logger.info(
            "Refund of %s for order %s recorded (reference %s)",
            request.amount, saved.order_number, refund_reference,
        )

        if (
            config.restock_on_refund
            and saved.status == OrderStatus.REFUNDED
            and saved.stock_released_at is None
        ):
            saved = self._order_service.restock(saved.order_id, actor=actor)

        return self._notify_refund(
            saved, amount=request.amount, reason=reason,
            reference=refund_reference, actor=actor,
        )

    # ══════════════════════════════════════════════════════════
    # EMAIL
    # ══════════════════════════════════════════════════════════

    def send_confirmation_email(self, order_ref: str, *, actor: Optional[Actor]) -> Order:
        """Operator resend. A delivery failure is noted and then raised."""
        raise_for_rejection(operator_required_policy(actor))
        order = self._order_service.load(order_ref)
        if self._notifier is None:
            raise ExternalGatewayError("Email delivery is not configured.")
        try:
            self._notifier.send_order_confirmation(order, store=self._config_provider())
        except Exception as exc:
            logger.exception("Confirmation email for %s failed", order.order_number)
            self._record_note(
                order,
                f"Failed to send order confirmation email to {order.contact_email}: {exc}",
                actor=actor,
            )
            raise ExternalGatewayError(f"Failed to send email: {exc}") from exc
        return self._record_note(
            order,
            f"Order confirmation email sent to {order.contact_email}",
            actor=actor,
        )

    def _notify_confirmation(self, order: Order, *, actor: Actor) -> Order:
        if self._notifier is None:
            return order
        try:
            self._notifier.send_order_confirmation(order, store=self._config_provider())
        except Exception as exc:
            logger.exception("Confirmation email for %s failed", order.order_number)
            return self._record_note(
                order,
                f"Failed to send order confirmation email to {order.contact_email}: {exc}",
                actor=actor,
            )
        return self._record_note(
            order, f"Order confirmation email sent to {order.contact_email}", actor=actor,
        )

    def _notify_refund(
        self,
        order: Order,
        *,
        amount: Decimal,
        reason: str,
        reference: str,
        actor: Actor,
    ) -> Order:
        if self._notifier is None:
            return order
        try:
            self._notifier.send_refund_confirmation(
                order,
                amount=amount,
                reason=reason,
                reference=reference,
                store=self._config_provider(),
            )
        except Exception as exc:
            logger.exception("Refund email for %s failed", order.order_number)
            return self._record_note(
                order,
                f"Failed to send refund email to {order.contact_email}: {exc}",
                actor=actor,
            )
        return self._record_note(
            order, f"Refund confirmation email sent to {order.contact_email}", actor=actor,
        )
