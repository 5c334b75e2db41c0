"""
Storefront HTTP API Auth - Public API
=====================================
"""

from core.http_api.auth.provider import (
    API_KEY_HEADER,
    AuthPrincipal,
    AuthProvider,
    InMemoryAuthProvider,
    resolve_actor,
)

__all__ = [
    "API_KEY_HEADER",
    "AuthPrincipal",
    "AuthProvider",
    "InMemoryAuthProvider",
    "resolve_actor",
]
