"""
Storefront Store - Persistent Catalog, Stock and Orders
=======================================================
Stock lives on Product (no variant) or ProductVariant rows and only
changes through DjangoStockStore.apply_delta, which writes exactly
one StockAdjustment per change in the same transaction.

Orders keep their snapshots (items, address, shipping method,
payment info, timeline, notes) as JSON. Columns that are queried or
constrained (order_number, status, payment reference, version) are
real columns.
"""

from __future__ import annotations

import uuid

from django.db import models


class ProductStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ACTIVE = "active", "Active"
    PUBLISHED = "published", "Published"
    ARCHIVED = "archived", "Archived"


class AdjustmentReason(models.TextChoices):
    ORDER_CREATE = "order-create", "Order created"
    ORDER_CANCEL = "order-cancel", "Order cancelled"
    ORDER_REFUND = "order-refund", "Order refunded"
    MANUAL_ADJUSTMENT = "manual-adjustment", "Manual adjustment"


class OrderStatusChoice(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class PaymentStatusChoice(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, unique=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.DRAFT,
    )
    stock_quantity = models.IntegerField(default=0)
    sales_count = models.IntegerField(default=0)
    image_url = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "storefront_products"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"


class ProductVariant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )
    sku = models.CharField(max_length=64, unique=True)
    size = models.CharField(max_length=64, blank=True, default="")
    price_adjustment = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    stock_quantity = models.IntegerField(default=0)

    class Meta:
        db_table = "storefront_product_variants"
        ordering = ["product_id", "sku"]

    def __str__(self) -> str:
        return f"{self.sku} ({self.size})"


class StockAdjustment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="stock_adjustments",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        related_name="stock_adjustments",
        null=True,
        blank=True,
    )
    delta = models.IntegerField()
    reason = models.CharField(max_length=32, choices=AdjustmentReason.choices)
    previous_stock = models.IntegerField()
    new_stock = models.IntegerField()
    actor_id = models.CharField(max_length=255)
    reference = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "storefront_stock_adjustments"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["product", "created_at"],
                name="idx_stock_adj_product_created",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} {self.delta:+d} ({self.reason})"


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True)
    user_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=OrderStatusChoice.choices,
        default=OrderStatusChoice.PENDING,
    )
    payment_method = models.CharField(max_length=32)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatusChoice.choices,
        default=PaymentStatusChoice.PENDING,
    )
    payment_reference = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    shipping_fee = models.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    items = models.JSONField(default=list)
    shipping_address = models.JSONField(default=dict)
    shipping_method = models.JSONField(default=dict)
    payment_info = models.JSONField(default=dict)
    timeline = models.JSONField(default=list)
    notes = models.JSONField(default=list)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    stock_released_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "storefront_orders"
        ordering = ["-created_at", "id"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="idx_order_status_created"),
        ]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"
