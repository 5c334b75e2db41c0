import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("price", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("active", "Active"),
                            ("published", "Published"),
                            ("archived", "Archived"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("stock_quantity", models.IntegerField(default=0)),
                ("sales_count", models.IntegerField(default=0)),
                ("image_url", models.CharField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "storefront_products",
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("size", models.CharField(blank=True, default="", max_length=64)),
                (
                    "price_adjustment",
                    models.DecimalField(decimal_places=2, default=0, max_digits=12),
                ),
                ("stock_quantity", models.IntegerField(default=0)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="storefront_store.product",
                    ),
                ),
            ],
            options={
                "db_table": "storefront_product_variants",
                "ordering": ["product_id", "sku"],
            },
        ),
        migrations.CreateModel(
            name="StockAdjustment",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("delta", models.IntegerField()),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("order-create", "Order created"),
                            ("order-cancel", "Order cancelled"),
                            ("order-refund", "Order refunded"),
                            ("manual-adjustment", "Manual adjustment"),
                        ],
                        max_length=32,
                    ),
                ),
                ("previous_stock", models.IntegerField()),
                ("new_stock", models.IntegerField()),
                ("actor_id", models.CharField(max_length=255)),
                ("reference", models.CharField(blank=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField()),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_adjustments",
                        to="storefront_store.product",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_adjustments",
                        to="storefront_store.productvariant",
                    ),
                ),
            ],
            options={
                "db_table": "storefront_stock_adjustments",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["product", "created_at"],
                        name="idx_stock_adj_product_created",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("order_number", models.CharField(max_length=32, unique=True)),
                (
                    "user_id",
                    models.CharField(blank=True, db_index=True, max_length=255, null=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("payment_method", models.CharField(max_length=32)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_reference",
                    models.CharField(blank=True, db_index=True, max_length=64, null=True),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("shipping_fee", models.DecimalField(decimal_places=2, max_digits=12)),
                ("tax_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("tax_rate", models.DecimalField(decimal_places=2, max_digits=5)),
                (
                    "discount",
                    models.DecimalField(decimal_places=2, default=0, max_digits=12),
                ),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("items", models.JSONField(default=list)),
                ("shipping_address", models.JSONField(default=dict)),
                ("shipping_method", models.JSONField(default=dict)),
                ("payment_info", models.JSONField(default=dict)),
                ("timeline", models.JSONField(default=list)),
                ("notes", models.JSONField(default=list)),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("stock_released_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                ("version", models.PositiveIntegerField(default=1)),
            ],
            options={
                "db_table": "storefront_orders",
                "ordering": ["-created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="idx_order_status_created",
                    ),
                ],
            },
        ),
    ]
