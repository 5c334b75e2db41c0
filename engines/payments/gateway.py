"""
Storefront Payments Engine — Gateway Client
============================================
The engine talks to the payment provider only through PaymentGateway.
Amounts cross this boundary as integer minor units (kobo for NGN).

PaystackGateway implements it over the Paystack REST API via httpx:

    POST /transaction/initialize
    GET  /transaction/verify/{reference}
    POST /refund

Webhook deliveries are signed with HMAC-SHA512 of the raw body,
keyed by the secret key, in the x-paystack-signature header.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Protocol

import httpx

from core.errors import ExternalGatewayError

logger = logging.getLogger("storefront.payments")

PAYSTACK_API_BASE = "https://api.paystack.co"
PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InitializeResult:
    authorization_url: str
    access_code: str
    reference: str


@dataclass(frozen=True)
class VerificationResult:
    confirmed: bool
    reference: str
    amount_minor: int = 0
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    channel: Optional[str] = None
    card_detail: Dict[str, Any] = field(default_factory=dict)
    gateway_status: str = ""
    message: str = ""


@dataclass(frozen=True)
class RefundResult:
    confirmed: bool
    reference: Optional[str] = None
    message: str = ""


class PaymentGateway(Protocol):
    def initialize_transaction(
        self,
        *,
        amount_minor: int,
        email: str,
        reference: str,
        callback_url: str,
        metadata: Optional[dict] = None,
    ) -> InitializeResult:
        ...

    def verify_transaction(self, reference: str) -> VerificationResult:
        ...

    def process_refund(
        self, *, transaction_id: str, amount_minor: int, reason: str,
    ) -> RefundResult:
        ...

    def verify_signature(self, raw_body: bytes, signature: str) -> bool:
        ...


# ══════════════════════════════════════════════════════════════
# PAYSTACK
# ══════════════════════════════════════════════════════════════

def _parse_paid_at(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable paid_at from gateway: %r", value)
        return None


class PaystackGateway:
    """
    Synchronous Paystack client.

    transport is injectable so tests can use httpx.MockTransport.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        base_url: str = PAYSTACK_API_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not secret_key:
            raise ValueError("Paystack secret key must be non-empty.")
        self._secret_key = secret_key
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, *, json: Optional[dict] = None) -> dict:
        try:
            response = self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.error("Paystack %s %s failed: %s", method, path, exc)
            raise ExternalGatewayError(
                f"Payment gateway unreachable: {exc}",
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ExternalGatewayError(
                f"Payment gateway returned a non-JSON response "
                f"(HTTP {response.status_code}).",
                details={"status_code": response.status_code},
            ) from exc

        if response.is_error or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.warning(
                "Paystack %s %s rejected (HTTP %d): %s",
                method, path, response.status_code, message,
            )
            raise ExternalGatewayError(
                message,
                details={"status_code": response.status_code},
            )
        return body.get("data") or {}

    def initialize_transaction(
        self,
        *,
        amount_minor: int,
        email: str,
        reference: str,
        callback_url: str,
        metadata: Optional[dict] = None,
    ) -> InitializeResult:
        payload: Dict[str, Any] = {
            "amount": amount_minor,
            "email": email,
            "reference": reference,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url
        data = self._request("POST", "/transaction/initialize", json=payload)
        return InitializeResult(
            authorization_url=data["authorization_url"],
            access_code=data.get("access_code", ""),
            reference=data.get("reference", reference),
        )

    def verify_transaction(self, reference: str) -> VerificationResult:
        data = self._request("GET", f"/transaction/verify/{reference}")
        gateway_status = str(data.get("status", ""))
        authorization = data.get("authorization") or {}
        return VerificationResult(
            confirmed=gateway_status == "success",
            reference=data.get("reference", reference),
            amount_minor=int(data.get("amount") or 0),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            paid_at=_parse_paid_at(data.get("paid_at") or data.get("paidAt")),
            channel=data.get("channel"),
            card_detail={
                key: authorization.get(key)
                for key in ("card_type", "last4", "bank", "brand")
                if authorization.get(key) is not None
            },
            gateway_status=gateway_status,
            message=str(data.get("gateway_response", "")),
        )

    def process_refund(
        self, *, transaction_id: str, amount_minor: int, reason: str,
    ) -> RefundResult:
        data = self._request(
            "POST",
            "/refund",
            json={
                "transaction": transaction_id,
                "amount": amount_minor,
                "merchant_note": reason,
            },
        )
        reference = (data.get("transaction") or {}).get("reference") or data.get("id")
        return RefundResult(
            confirmed=True,
            reference=str(reference) if reference is not None else "N/A",
            message=str(data.get("status", "")),
        )

    def verify_signature(self, raw_body: bytes, signature: str) -> bool:
        if not signature:
            return False
        expected = hmac.new(
            self._secret_key.encode("utf-8"),
            raw_body,
            hashlib.sha512,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)
