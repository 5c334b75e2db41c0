"""
Storefront HTTP API - Contracts
===============================
Framework-agnostic response envelope and request-body parsing.

Bodies arrive as decoded JSON objects; the parsers below turn them
into the engines' typed requests or raise ValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional

from core.errors import ValidationError
from core.primitives.money import to_amount
from engines.inventory.commands import AdjustStockRequest
from engines.orders.commands import (
    AddNoteRequest,
    CartLine,
    CreateOrderRequest,
    RefundRequest,
    ShippingAddressInput,
)


# ══════════════════════════════════════════════════════════════
# ENVELOPE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HttpApiErrorBody:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class HttpApiResponse:
    ok: bool
    data: Any = None
    error: Optional[HttpApiErrorBody] = None
    meta: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            payload = {"ok": True, "data": self.data}
        else:
            if self.error is None:
                raise ValueError("error must be set when ok is False.")
            payload = {"ok": False, "error": self.error.to_dict()}
        if self.meta:
            payload["meta"] = dict(self.meta)
        return payload


@dataclass(frozen=True)
class HttpApiResult:
    """Envelope plus the HTTP status the adapter should answer with."""
    status_code: int
    body: dict[str, Any]


# ══════════════════════════════════════════════════════════════
# BODY PARSING
# ══════════════════════════════════════════════════════════════

def _require(body: Mapping[str, Any], key: str, message: str) -> Any:
    value = body.get(key)
    if value is None or value == "":
        raise ValidationError(message)
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("quantity must be a positive integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError("quantity must be a positive integer.")


def parse_create_order(body: Mapping[str, Any]) -> CreateOrderRequest:
    raw_items = _require(body, "items", "Please provide order items")
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list.")
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object.")
        items.append(
            CartLine(
                product_id=str(raw.get("product_id") or raw.get("product") or ""),
                quantity=_quantity(raw.get("quantity", 1)),
                variant_id=_optional_str(raw.get("variant_id") or raw.get("variant")),
            )
        )

    address = _require(body, "shipping_address", "Please provide shipping address")
    if not isinstance(address, dict):
        raise ValidationError("shipping_address must be an object.")
    shipping_address = ShippingAddressInput(
        first_name=str(address.get("first_name", "")),
        last_name=str(address.get("last_name", "")),
        email=str(address.get("email", "")).strip(),
        phone=str(address.get("phone", "")),
        street=str(address.get("street", "")),
        city=str(address.get("city", "")),
        state=str(address.get("state") or address.get("region") or ""),
        postal_code=str(address.get("postal_code", "")),
        country=str(address.get("country") or "Nigeria"),
    )

    return CreateOrderRequest(
        items=tuple(items),
        shipping_address=shipping_address,
        payment_method=str(_require(body, "payment_method", "Please provide payment method")),
        shipping_rate_id=str(_require(body, "shipping_method", "Please provide shipping method")),
        customer_note=str(body.get("notes") or ""),
    )


def parse_add_note(body: Mapping[str, Any]) -> AddNoteRequest:
    return AddNoteRequest(
        content=str(_require(body, "content", "Please provide note content")),
        internal=bool(body.get("is_internal", True)),
    )


def parse_refund(body: Mapping[str, Any]) -> RefundRequest:
    raw_amount = _require(body, "amount", "Please provide refund amount and reason")
    try:
        amount: Decimal = to_amount(raw_amount, field_name="amount")
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return RefundRequest(
        amount=amount,
        reason=str(_require(body, "reason", "Please provide refund amount and reason")),
    )


def parse_adjust_stock(product_id: str, body: Mapping[str, Any]) -> AdjustStockRequest:
    raw_delta = _require(body, "delta", "Please provide a stock delta")
    if isinstance(raw_delta, bool) or not isinstance(raw_delta, int):
        raise ValidationError("delta must be an integer.")
    return AdjustStockRequest(
        product_id=product_id,
        variant_id=_optional_str(body.get("variant_id")),
        delta=raw_delta,
        note=str(body.get("note") or ""),
        allow_negative=bool(body.get("allow_negative", False)),
    )
