"""
Storefront – Django Settings
============================
Django serves as the framework container for the order engine.
Store policy lives in STOREFRONT; secrets come from the environment.
"""

import copy
import os
from pathlib import Path

from core.config.rules import DEFAULT_STORE_CONFIGURATION

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "storefront-dev-key-replace-before-deployment",
)

DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"

ALLOWED_HOSTS = [
    host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "").split(",") if host
]

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "adapters.django_store",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# ── URL ───────────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Email ─────────────────────────────────────────────────────
EMAIL_BACKEND = os.environ.get(
    "DJANGO_EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend",
)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "orders@storefront.local")

# ── Payments ──────────────────────────────────────────────────
PAYSTACK_SECRET_KEY = os.environ.get("PAYSTACK_SECRET_KEY", "")
PAYSTACK_API_BASE = os.environ.get("PAYSTACK_API_BASE", "https://api.paystack.co")

# ── Store policy ──────────────────────────────────────────────
STOREFRONT = copy.deepcopy(DEFAULT_STORE_CONFIGURATION)
STOREFRONT["store_email"] = DEFAULT_FROM_EMAIL
STOREFRONT["payment_callback_url"] = os.environ.get(
    "STOREFRONT_PAYMENT_CALLBACK_URL", "http://localhost:3000/checkout/verify",
)

# API key → principal. Development keys only.
STOREFRONT_API_KEYS = {
    "dev-operator-key": {
        "actor_id": "dev-operator",
        "role": "operator",
        "display_name": "Store Operator",
    },
    "dev-customer-key": {
        "actor_id": "dev-customer",
        "role": "customer",
        "email": "customer@example.com",
    },
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "storefront": {
            "handlers": ["console"],
            "level": os.environ.get("STOREFRONT_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
