"""
Storefront Store - App Configuration
====================================
Catalog, stock ledger and order tables.
"""

from django.apps import AppConfig


class DjangoStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "adapters.django_store"
    label = "storefront_store"
    verbose_name = "Storefront Store"
