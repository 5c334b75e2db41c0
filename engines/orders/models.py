"""
Storefront Orders Engine — Order Aggregate
===========================================
The order is a financial record: created once, mutated only through
the state machine, note and payment operations, never deleted.

Standing invariant:
    total_amount == subtotal + shipping_fee + tax_amount - discount

Item prices, the shipping method and tax rate are snapshots taken at
order time. Nothing here points at live catalog or configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from core.errors import StorefrontError
from core.primitives.actor import Actor, ActorRole
from core.primitives.money import ZERO, to_amount


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderTotalsMismatch(StorefrontError):
    code = "ORDER_TOTALS_MISMATCH"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


# ══════════════════════════════════════════════════════════════
# SNAPSHOTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderItem:
    product_id: str
    name: str
    sku: str
    price: Decimal
    quantity: int
    subtotal: Decimal
    variant_id: Optional[str] = None
    image_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "name": self.name,
            "sku": self.sku,
            "price": str(self.price),
            "quantity": self.quantity,
            "subtotal": str(self.subtotal),
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> OrderItem:
        return cls(
            product_id=data["product_id"],
            variant_id=data.get("variant_id"),
            name=data["name"],
            sku=data.get("sku", ""),
            price=to_amount(data["price"]),
            quantity=int(data["quantity"]),
            subtotal=to_amount(data["subtotal"]),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class ShippingAddress:
    first_name: str
    last_name: str
    email: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str = ""
    country: str = "Nigeria"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ShippingAddress:
        return cls(**{k: data.get(k, "") for k in (
            "first_name", "last_name", "email", "phone",
            "street", "city", "state", "postal_code",
        )}, country=data.get("country") or "Nigeria")


@dataclass(frozen=True)
class ShippingMethodSnapshot:
    name: str
    rate_id: str
    price: Decimal
    description: str = ""
    zone_name: str = ""
    free_shipping: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "rate_id": self.rate_id,
            "price": str(self.price),
            "description": self.description,
            "zone_name": self.zone_name,
            "free_shipping": self.free_shipping,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ShippingMethodSnapshot:
        return cls(
            name=data["name"],
            rate_id=data["rate_id"],
            price=to_amount(data["price"]),
            description=data.get("description", ""),
            zone_name=data.get("zone_name", ""),
            free_shipping=bool(data.get("free_shipping", False)),
        )


@dataclass
class PaymentInfo:
    method: str
    status: PaymentStatus = PaymentStatus.PENDING
    reference: Optional[str] = None
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    channel: Optional[str] = None
    refund_reference: Optional[str] = None
    refunded_amount: Optional[Decimal] = None
    refunded_at: Optional[datetime] = None
    refund_claim: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID

    @property
    def is_settled(self) -> bool:
        """Paid or refunded: gateway confirmations no longer apply."""
        return self.status not in (PaymentStatus.PENDING, PaymentStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "status": self.status.value,
            "reference": self.reference,
            "transaction_id": self.transaction_id,
            "paid_at": _iso(self.paid_at),
            "channel": self.channel,
            "refund_reference": self.refund_reference,
            "refunded_amount": (
                str(self.refunded_amount) if self.refunded_amount is not None else None
            ),
            "refunded_at": _iso(self.refunded_at),
            "refund_claim": self.refund_claim,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: dict) -> PaymentInfo:
        refunded = data.get("refunded_amount")
        return cls(
            method=data["method"],
            status=PaymentStatus(data.get("status", "pending")),
            reference=data.get("reference"),
            transaction_id=data.get("transaction_id"),
            paid_at=_parse_dt(data.get("paid_at")),
            channel=data.get("channel"),
            refund_reference=data.get("refund_reference"),
            refunded_amount=to_amount(refunded) if refunded is not None else None,
            refunded_at=_parse_dt(data.get("refunded_at")),
            refund_claim=data.get("refund_claim"),
            details=dict(data.get("details") or {}),
        )


@dataclass(frozen=True)
class TimelineEntry:
    status: OrderStatus
    timestamp: datetime
    note: str = ""
    actor_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
            "actor_id": self.actor_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TimelineEntry:
        return cls(
            status=OrderStatus(data["status"]),
            timestamp=_parse_dt(data["timestamp"]),
            note=data.get("note", ""),
            actor_id=data.get("actor_id"),
        )


@dataclass(frozen=True)
class OrderNote:
    content: str
    internal: bool
    created_at: datetime
    actor_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "internal": self.internal,
            "actor_id": self.actor_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> OrderNote:
        return cls(
            content=data["content"],
            internal=bool(data.get("internal", True)),
            actor_id=data.get("actor_id"),
            created_at=_parse_dt(data["created_at"]),
        )


# ══════════════════════════════════════════════════════════════
# ORDER AGGREGATE
# ══════════════════════════════════════════════════════════════

@dataclass
class Order:
    order_id: str
    order_number: str
    user_id: Optional[str]
    items: List[OrderItem]
    shipping_address: ShippingAddress
    shipping_method: ShippingMethodSnapshot
    payment_info: PaymentInfo
    subtotal: Decimal
    shipping_fee: Decimal
    tax_amount: Decimal
    tax_rate: Decimal
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    discount: Decimal = ZERO
    status: OrderStatus = OrderStatus.PENDING
    timeline: List[TimelineEntry] = field(default_factory=list)
    notes: List[OrderNote] = field(default_factory=list)
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    stock_released_at: Optional[datetime] = None
    version: int = 0

    def __post_init__(self):
        self.verify_totals()

    def verify_totals(self) -> None:
        expected = self.subtotal + self.shipping_fee + self.tax_amount - self.discount
        if self.total_amount != expected:
            raise OrderTotalsMismatch(
                f"Order {self.order_number} total {self.total_amount} does not "
                f"equal subtotal + shipping + tax - discount ({expected}).",
                details={"order_number": self.order_number},
            )
        line_sum = sum((item.subtotal for item in self.items), ZERO)
        if line_sum != self.subtotal:
            raise OrderTotalsMismatch(
                f"Order {self.order_number} subtotal {self.subtotal} does not "
                f"equal the sum of its lines ({line_sum}).",
                details={"order_number": self.order_number},
            )

    # ── ownership ─────────────────────────────────────────────

    def is_owned_by(self, actor: Optional[Actor]) -> bool:
        if actor is None or actor.role != ActorRole.CUSTOMER:
            return False
        return self.user_id is not None and self.user_id == actor.actor_id

    @property
    def contact_email(self) -> str:
        return self.shipping_address.email

    # ── append-only logs ──────────────────────────────────────

    def add_note(
        self,
        content: str,
        *,
        at: datetime,
        actor_id: Optional[str] = None,
        internal: bool = True,
    ) -> OrderNote:
        note = OrderNote(
            content=content, internal=internal, actor_id=actor_id, created_at=at,
        )
        self.notes.append(note)
        self.updated_at = at
        return note

    # ── views ─────────────────────────────────────────────────

    def to_dict(self, *, include_internal: bool = True) -> dict:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "status": self.status.value,
            "items": [item.to_dict() for item in self.items],
            "shipping_address": self.shipping_address.to_dict(),
            "shipping_method": self.shipping_method.to_dict(),
            "payment_info": self.payment_info.to_dict(),
            "subtotal": str(self.subtotal),
            "shipping_fee": str(self.shipping_fee),
            "tax_amount": str(self.tax_amount),
            "tax_rate": str(self.tax_rate),
            "discount": str(self.discount),
            "total_amount": str(self.total_amount),
            "timeline": [entry.to_dict() for entry in self.timeline],
            "notes": [
                note.to_dict() for note in self.notes
                if include_internal or not note.internal
            ],
            "shipped_at": _iso(self.shipped_at),
            "delivered_at": _iso(self.delivered_at),
            "stock_released_at": _iso(self.stock_released_at),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }

    def to_tracking_dict(self) -> dict:
        return {
            "order_number": self.order_number,
            "status": self.status.value,
            "shipping_method": self.shipping_method.name,
            "created_at": self.created_at.isoformat(),
            "shipped_at": _iso(self.shipped_at),
            "delivered_at": _iso(self.delivered_at),
            "timeline": [entry.to_dict() for entry in self.timeline],
        }
