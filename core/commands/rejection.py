"""
Storefront Command Layer — Rejection Model
===========================================
Structured rejection reasons returned by business policies.

Policies never raise. They return a RejectionReason (or None when
the request may proceed) and the calling service turns the reason
into the mapped StorefrontError. Every rejection is:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message)
- Attributable (policy_name)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a refused operation.

    Fields:
        code:        Machine-readable rejection code (e.g. 'ORDER_NOT_CANCELLABLE').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Input ─────────────────────────────────────────────────
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # ── Lookup ────────────────────────────────────────────────
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    NO_SHIPPING_AVAILABLE = "NO_SHIPPING_AVAILABLE"

    # ── Catalog / stock ───────────────────────────────────────
    PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    STOCK_ALREADY_RELEASED = "STOCK_ALREADY_RELEASED"

    # ── Authorization ─────────────────────────────────────────
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_WEBHOOK_SIGNATURE = "INVALID_WEBHOOK_SIGNATURE"

    # ── Order lifecycle ───────────────────────────────────────
    ILLEGAL_STATUS_TRANSITION = "ILLEGAL_STATUS_TRANSITION"
    ORDER_NOT_CANCELLABLE = "ORDER_NOT_CANCELLABLE"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"
    ORDER_NUMBER_EXHAUSTED = "ORDER_NUMBER_EXHAUSTED"

    # ── Payment ───────────────────────────────────────────────
    PAYMENT_ALREADY_COMPLETED = "PAYMENT_ALREADY_COMPLETED"
    PAYMENT_NOT_PAID = "PAYMENT_NOT_PAID"
    PAYMENT_METHOD_NOT_SUPPORTED = "PAYMENT_METHOD_NOT_SUPPORTED"
    REFUND_AMOUNT_INVALID = "REFUND_AMOUNT_INVALID"
    REFUND_IN_PROGRESS = "REFUND_IN_PROGRESS"
    PAYMENT_NOT_CONFIRMED = "PAYMENT_NOT_CONFIRMED"
    PAYMENT_AMOUNT_MISMATCH = "PAYMENT_AMOUNT_MISMATCH"
    GATEWAY_ERROR = "GATEWAY_ERROR"

    # ── General ───────────────────────────────────────────────
    INTERNAL_ERROR = "INTERNAL_ERROR"
