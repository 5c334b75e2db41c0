"""
Storefront Core — Error Hierarchy
==================================
Every business failure is a StorefrontError subclass carrying a
stable machine-readable code and the HTTP status the transport
adapter answers with.

    ValidationError       400  malformed or missing input
    NotFoundError         404  order / product / shipping rate
    UnauthorizedError     401  caller not authenticated
    ForbiddenError        403  caller not owner / operator
    ConflictError         409  stock, duplicate payment, transitions
    ExternalGatewayError  502  payment provider failure
    SecurityAlert         400  amount mismatch (manual review)
"""

from __future__ import annotations

from typing import Any, Optional

from core.commands.rejection import ReasonCode, RejectionReason


class StorefrontError(Exception):
    """Base error for all order-engine failures."""

    code: str = ReasonCode.INTERNAL_ERROR
    http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


# ══════════════════════════════════════════════════════════════
# INPUT
# ══════════════════════════════════════════════════════════════

class ValidationError(StorefrontError):
    code = ReasonCode.VALIDATION_FAILED
    http_status = 400


class ProductUnavailable(ValidationError):
    """Product exists but is not active/published."""

    code = ReasonCode.PRODUCT_UNAVAILABLE

    def __init__(self, product_id: str, name: str = ""):
        self.product_id = product_id
        label = name or product_id
        super().__init__(
            f"Product {label} is currently unavailable",
            details={"product_id": product_id},
        )


# ══════════════════════════════════════════════════════════════
# LOOKUP
# ══════════════════════════════════════════════════════════════

class NotFoundError(StorefrontError):
    code = "NOT_FOUND"
    http_status = 404


class OrderNotFound(NotFoundError):
    code = ReasonCode.ORDER_NOT_FOUND

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(
            f"Order not found with id of {order_ref}",
            details={"order_ref": order_ref},
        )


class ProductNotFound(NotFoundError):
    code = ReasonCode.PRODUCT_NOT_FOUND

    def __init__(self, product_id: str, variant_id: Optional[str] = None):
        self.product_id = product_id
        self.variant_id = variant_id
        if variant_id:
            msg = f"Variant not found with id of {variant_id}"
        else:
            msg = f"Product not found with id of {product_id}"
        super().__init__(
            msg,
            details={"product_id": product_id, "variant_id": variant_id},
        )


class NoShippingAvailable(NotFoundError):
    code = ReasonCode.NO_SHIPPING_AVAILABLE


# ══════════════════════════════════════════════════════════════
# AUTHORIZATION
# ══════════════════════════════════════════════════════════════

class UnauthorizedError(StorefrontError):
    code = ReasonCode.AUTHENTICATION_REQUIRED
    http_status = 401


class InvalidWebhookSignature(UnauthorizedError):
    code = ReasonCode.INVALID_WEBHOOK_SIGNATURE


class ForbiddenError(StorefrontError):
    code = ReasonCode.PERMISSION_DENIED
    http_status = 403


# ══════════════════════════════════════════════════════════════
# CONFLICTS
# ══════════════════════════════════════════════════════════════

class ConflictError(StorefrontError):
    code = "CONFLICT"
    http_status = 409


class InsufficientStock(ConflictError):
    code = ReasonCode.INSUFFICIENT_STOCK
    http_status = 400

    def __init__(
        self,
        product_id: str,
        *,
        variant_id: Optional[str] = None,
        requested: int,
        available: int,
        name: str = "",
    ):
        self.product_id = product_id
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        label = name or product_id
        super().__init__(
            f"Not enough stock for {label}. Only {available} available.",
            details={
                "product_id": product_id,
                "variant_id": variant_id,
                "requested": requested,
                "available": available,
            },
        )


class IllegalStatusTransition(ConflictError):
    code = ReasonCode.ILLEGAL_STATUS_TRANSITION
    http_status = 400


class PaymentAlreadyCompleted(ConflictError):
    code = ReasonCode.PAYMENT_ALREADY_COMPLETED


class DuplicateOrderNumber(ConflictError):
    """Raised by a repository when the order number is already taken."""

    code = "DUPLICATE_ORDER_NUMBER"

    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(
            f"Order number {order_number} already exists.",
            details={"order_number": order_number},
        )


class ConcurrentUpdate(ConflictError):
    code = ReasonCode.CONCURRENT_UPDATE

    def __init__(self, order_id: str, expected_version: int):
        self.order_id = order_id
        self.expected_version = expected_version
        super().__init__(
            f"Order {order_id} was modified concurrently "
            f"(expected version {expected_version}).",
            details={"order_id": order_id, "expected_version": expected_version},
        )


# ══════════════════════════════════════════════════════════════
# PAYMENT GATEWAY
# ══════════════════════════════════════════════════════════════

class ExternalGatewayError(StorefrontError):
    code = ReasonCode.GATEWAY_ERROR
    http_status = 502


class PaymentNotConfirmed(ExternalGatewayError):
    code = ReasonCode.PAYMENT_NOT_CONFIRMED
    http_status = 400


class SecurityAlert(StorefrontError):
    """Conditions that must be surfaced for manual review, never auto-resolved."""

    code = "SECURITY_ALERT"
    http_status = 400


class PaymentAmountMismatch(SecurityAlert):
    code = ReasonCode.PAYMENT_AMOUNT_MISMATCH

    def __init__(self, reference: str, *, expected_minor: int, received_minor: int):
        self.reference = reference
        self.expected_minor = expected_minor
        self.received_minor = received_minor
        super().__init__(
            f"Payment amount mismatch for {reference}: expected "
            f"{expected_minor}, gateway confirmed {received_minor}. "
            f"Order left unpaid for manual review.",
            details={
                "reference": reference,
                "expected_minor": expected_minor,
                "received_minor": received_minor,
            },
        )


# ══════════════════════════════════════════════════════════════
# INTERNAL
# ══════════════════════════════════════════════════════════════

class OrderNumberExhausted(StorefrontError):
    code = ReasonCode.ORDER_NUMBER_EXHAUSTED

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Failed to generate unique order number after {attempts} attempts."
        )


# ══════════════════════════════════════════════════════════════
# REJECTION → ERROR MAPPING
# ══════════════════════════════════════════════════════════════

_REJECTION_ERRORS: dict[str, type[StorefrontError]] = {
    ReasonCode.VALIDATION_FAILED: ValidationError,
    ReasonCode.REFUND_AMOUNT_INVALID: ValidationError,
    ReasonCode.PAYMENT_METHOD_NOT_SUPPORTED: ValidationError,
    ReasonCode.PAYMENT_NOT_PAID: ValidationError,
    ReasonCode.ORDER_NOT_CANCELLABLE: ValidationError,
    ReasonCode.INSUFFICIENT_STOCK: ValidationError,
    ReasonCode.STOCK_ALREADY_RELEASED: ConflictError,
    ReasonCode.REFUND_IN_PROGRESS: ConflictError,
    ReasonCode.AUTHENTICATION_REQUIRED: UnauthorizedError,
    ReasonCode.PERMISSION_DENIED: ForbiddenError,
    ReasonCode.ILLEGAL_STATUS_TRANSITION: IllegalStatusTransition,
    ReasonCode.PAYMENT_ALREADY_COMPLETED: PaymentAlreadyCompleted,
    ReasonCode.NO_SHIPPING_AVAILABLE: NoShippingAvailable,
}


def raise_for_rejection(reason: Optional[RejectionReason]) -> None:
    """Raise the mapped StorefrontError for a policy rejection, if any."""
    if reason is None:
        return
    error_cls = _REJECTION_ERRORS.get(reason.code, StorefrontError)
    raise error_cls(
        reason.message,
        code=reason.code,
        details={"policy_name": reason.policy_name},
    )
