"""
Storefront Orders Engine — Request Commands
============================================
Typed order requests. Each validates itself on construction so that
malformed input never reaches the services.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from core.config.rules import VALID_PAYMENT_METHODS
from core.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TAG_RE = re.compile(r"<[^>]*>")

MAX_NOTE_LENGTH = 2000


def strip_tags(value: str) -> str:
    """Drop HTML tags from operator/customer supplied text."""
    return _TAG_RE.sub("", value).strip()


# ══════════════════════════════════════════════════════════════
# CREATE ORDER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    variant_id: Optional[str] = None

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValidationError("Each item needs a product id.")
        if (
            isinstance(self.quantity, bool)
            or not isinstance(self.quantity, int)
            or self.quantity <= 0
        ):
            raise ValidationError(
                f"Quantity for product {self.product_id} must be a positive integer."
            )


@dataclass(frozen=True)
class ShippingAddressInput:
    first_name: str
    last_name: str
    email: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str = ""
    country: str = "Nigeria"

    def __post_init__(self):
        missing = [
            name for name in ("first_name", "last_name", "phone", "street", "city")
            if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise ValidationError(
                "Shipping address is incomplete.",
                details={"missing": missing},
            )
        if not self.email or not _EMAIL_RE.match(self.email):
            raise ValidationError("Shipping address needs a valid contact email.")
        if not self.state or not self.state.strip():
            raise ValidationError("Shipping address needs a destination region.")


@dataclass(frozen=True)
class CreateOrderRequest:
    items: Tuple[CartLine, ...]
    shipping_address: ShippingAddressInput
    payment_method: str
    shipping_rate_id: str
    customer_note: str = ""

    def __post_init__(self):
        if not isinstance(self.items, tuple) or not self.items:
            raise ValidationError("Please provide order items")
        if not isinstance(self.shipping_address, ShippingAddressInput):
            raise ValidationError("Please provide shipping address")
        if self.payment_method not in VALID_PAYMENT_METHODS:
            raise ValidationError(
                f"Payment method '{self.payment_method}' is not recognised."
            )
        if not self.shipping_rate_id:
            raise ValidationError("Please provide shipping method")


# ══════════════════════════════════════════════════════════════
# OPERATOR REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AddNoteRequest:
    content: str
    internal: bool = True

    def __post_init__(self):
        if not isinstance(self.content, str) or not strip_tags(self.content):
            raise ValidationError("Please provide note content")
        if len(self.content) > MAX_NOTE_LENGTH:
            raise ValidationError(
                f"Note content is limited to {MAX_NOTE_LENGTH} characters."
            )

    @property
    def clean_content(self) -> str:
        return strip_tags(self.content)


@dataclass(frozen=True)
class RefundRequest:
    amount: Decimal
    reason: str

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            raise ValidationError("Refund amount must be a decimal amount.")
        if not self.reason or not strip_tags(self.reason):
            raise ValidationError("Please provide refund amount and reason")

    @property
    def clean_reason(self) -> str:
        return strip_tags(self.reason)
