"""
Storefront Store - Django Repositories
======================================
ORM implementations of the engine storage protocols:

    DjangoCatalogStore   → engines.catalog.reader.CatalogStore
    DjangoStockStore     → engines.inventory.store.StockStore
    DjangoOrderRepository→ engines.orders.repository.OrderRepository

Stock mutation is a single conditional UPDATE:

    UPDATE ... SET stock_quantity = stock_quantity + delta
    WHERE id = %s AND stock_quantity >= -delta

The row lock it takes is held until the adjustment insert commits,
so previous_stock/new_stock are exact under concurrent buyers.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Value
from django.db.models.functions import Greatest

from adapters.django_store import models as db
from core.errors import ConcurrentUpdate, DuplicateOrderNumber, ProductNotFound
from engines.catalog.reader import ProductRecord, VariantRecord
from engines.inventory.store import StockAdjustment, StockKey
from engines.orders.models import (
    Order,
    OrderItem,
    OrderNote,
    OrderStatus,
    PaymentInfo,
    ShippingAddress,
    ShippingMethodSnapshot,
    TimelineEntry,
)


def _uuid_or_none(value: Optional[str]) -> Optional[uuid.UUID]:
    if value is None:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

class DjangoCatalogStore:
    def get_product(self, product_id: str) -> Optional[ProductRecord]:
        pk = _uuid_or_none(product_id)
        if pk is None:
            return None
        row = db.Product.objects.prefetch_related("variants").filter(pk=pk).first()
        if row is None:
            return None
        return ProductRecord(
            product_id=str(row.id),
            name=row.name,
            sku=row.sku,
            price=row.price,
            status=row.status,
            stock_quantity=row.stock_quantity,
            variants=tuple(
                VariantRecord(
                    variant_id=str(variant.id),
                    sku=variant.sku,
                    price_adjustment=variant.price_adjustment,
                    stock_quantity=variant.stock_quantity,
                    size=variant.size,
                )
                for variant in row.variants.all()
            ),
            image_url=row.image_url or None,
        )


# ══════════════════════════════════════════════════════════════
# STOCK
# ══════════════════════════════════════════════════════════════

def _adjustment_from_row(row: db.StockAdjustment) -> StockAdjustment:
    return StockAdjustment(
        adjustment_id=str(row.id),
        product_id=str(row.product_id),
        variant_id=str(row.variant_id) if row.variant_id else None,
        delta=row.delta,
        reason=row.reason,
        previous_stock=row.previous_stock,
        new_stock=row.new_stock,
        actor_id=row.actor_id,
        created_at=row.created_at,
        reference=row.reference,
    )


class DjangoStockStore:
    def _rows(self, key: StockKey):
        product_pk = _uuid_or_none(key.product_id)
        if product_pk is None:
            raise ProductNotFound(key.product_id, key.variant_id)
        if key.variant_id is None:
            return product_pk, None, db.Product.objects.filter(pk=product_pk)
        variant_pk = _uuid_or_none(key.variant_id)
        if variant_pk is None:
            raise ProductNotFound(key.product_id, key.variant_id)
        return (
            product_pk,
            variant_pk,
            db.ProductVariant.objects.filter(pk=variant_pk, product_id=product_pk),
        )

    def apply_delta(
        self,
        key: StockKey,
        delta: int,
        *,
        reason: str,
        actor_id: str,
        at: datetime,
        reference: Optional[str] = None,
        allow_negative: bool = False,
        sales_delta: int = 0,
    ) -> Optional[StockAdjustment]:
        product_pk, variant_pk, rows = self._rows(key)
        with transaction.atomic():
            guarded = rows
            if delta < 0 and not allow_negative:
                guarded = rows.filter(stock_quantity__gte=-delta)
            updated = guarded.update(stock_quantity=F("stock_quantity") + delta)
            if updated == 0:
                if not rows.exists():
                    raise ProductNotFound(key.product_id, key.variant_id)
                return None
            new_stock = rows.values_list("stock_quantity", flat=True).get()
            if sales_delta:
                db.Product.objects.filter(pk=product_pk).update(
                    sales_count=Greatest(F("sales_count") + sales_delta, Value(0)),
                )
            row = db.StockAdjustment.objects.create(
                product_id=product_pk,
                variant_id=variant_pk,
                delta=delta,
                reason=reason,
                previous_stock=new_stock - delta,
                new_stock=new_stock,
                actor_id=actor_id,
                reference=reference,
                created_at=at,
            )
        return _adjustment_from_row(row)

    def current_stock(self, key: StockKey) -> int:
        _, _, rows = self._rows(key)
        stock = rows.values_list("stock_quantity", flat=True).first()
        if stock is None:
            raise ProductNotFound(key.product_id, key.variant_id)
        return stock

    def adjustments(
        self, product_id: str, variant_id: Optional[str] = None,
    ) -> List[StockAdjustment]:
        product_pk = _uuid_or_none(product_id)
        if product_pk is None:
            return []
        rows = db.StockAdjustment.objects.filter(product_id=product_pk)
        if variant_id is not None:
            variant_pk = _uuid_or_none(variant_id)
            if variant_pk is None:
                return []
            rows = rows.filter(variant_id=variant_pk)
        return [_adjustment_from_row(row) for row in rows.order_by("created_at", "id")]

    def sales_count(self, product_id: str) -> int:
        pk = _uuid_or_none(product_id)
        if pk is None:
            return 0
        count = db.Product.objects.filter(pk=pk).values_list("sales_count", flat=True).first()
        return count or 0


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════

def _order_fields(order: Order) -> dict:
    return {
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status.value,
        "payment_method": order.payment_info.method,
        "payment_status": order.payment_info.status.value,
        "payment_reference": order.payment_info.reference,
        "subtotal": order.subtotal,
        "shipping_fee": order.shipping_fee,
        "tax_amount": order.tax_amount,
        "tax_rate": order.tax_rate,
        "discount": order.discount,
        "total_amount": order.total_amount,
        "items": [item.to_dict() for item in order.items],
        "shipping_address": order.shipping_address.to_dict(),
        "shipping_method": order.shipping_method.to_dict(),
        "payment_info": order.payment_info.to_dict(),
        "timeline": [entry.to_dict() for entry in order.timeline],
        "notes": [note.to_dict() for note in order.notes],
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "stock_released_at": order.stock_released_at,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def _order_from_row(row: db.Order) -> Order:
    return Order(
        order_id=str(row.id),
        order_number=row.order_number,
        user_id=row.user_id,
        items=[OrderItem.from_dict(item) for item in row.items],
        shipping_address=ShippingAddress.from_dict(row.shipping_address),
        shipping_method=ShippingMethodSnapshot.from_dict(row.shipping_method),
        payment_info=PaymentInfo.from_dict(row.payment_info),
        subtotal=row.subtotal,
        shipping_fee=row.shipping_fee,
        tax_amount=row.tax_amount,
        tax_rate=row.tax_rate,
        discount=row.discount,
        total_amount=row.total_amount,
        status=OrderStatus(row.status),
        timeline=[TimelineEntry.from_dict(entry) for entry in row.timeline],
        notes=[OrderNote.from_dict(note) for note in row.notes],
        shipped_at=row.shipped_at,
        delivered_at=row.delivered_at,
        stock_released_at=row.stock_released_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


class DjangoOrderRepository:
    def add(self, order: Order) -> Order:
        order.verify_totals()
        try:
            with transaction.atomic():
                row = db.Order.objects.create(
                    id=uuid.UUID(order.order_id),
                    version=1,
                    **_order_fields(order),
                )
        except IntegrityError as exc:
            if db.Order.objects.filter(order_number=order.order_number).exists():
                raise DuplicateOrderNumber(order.order_number) from exc
            raise
        return _order_from_row(row)

    def get(self, order_id: str) -> Optional[Order]:
        pk = _uuid_or_none(order_id)
        if pk is None:
            return None
        row = db.Order.objects.filter(pk=pk).first()
        return _order_from_row(row) if row is not None else None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        row = db.Order.objects.filter(order_number=order_number).first()
        return _order_from_row(row) if row is not None else None

    def get_by_reference(self, reference: str) -> Optional[Order]:
        row = db.Order.objects.filter(payment_reference=reference).first()
        return _order_from_row(row) if row is not None else None

    def number_exists(self, order_number: str) -> bool:
        return db.Order.objects.filter(order_number=order_number).exists()

    def update(self, order: Order, *, expected_version: int) -> Order:
        order.verify_totals()
        pk = uuid.UUID(order.order_id)
        updated = db.Order.objects.filter(pk=pk, version=expected_version).update(
            version=expected_version + 1,
            **_order_fields(order),
        )
        if updated == 0:
            raise ConcurrentUpdate(order.order_id, expected_version)
        return _order_from_row(db.Order.objects.get(pk=pk))
