"""
Storefront Payments Engine
===========================
Gateway client and payment reconciliation.
"""

from engines.payments.gateway import (
    PAYSTACK_SIGNATURE_HEADER,
    InitializeResult,
    PaymentGateway,
    PaystackGateway,
    RefundResult,
    VerificationResult,
)
from engines.payments.service import PaymentReconciliationService

__all__ = [
    "PAYSTACK_SIGNATURE_HEADER",
    "InitializeResult",
    "PaymentGateway",
    "PaymentReconciliationService",
    "PaystackGateway",
    "RefundResult",
    "VerificationResult",
]
