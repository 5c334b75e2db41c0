"""
Storefront HTTP API Auth - Provider and Principal Models
========================================================
Deterministic API-key principal resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from core.errors import UnauthorizedError
from core.primitives.actor import Actor, ActorRole

API_KEY_HEADER = "X-API-Key"

_PRINCIPAL_ROLES = frozenset({ActorRole.CUSTOMER.value, ActorRole.OPERATOR.value})


@dataclass(frozen=True)
class AuthPrincipal:
    actor_id: str
    role: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")
        if self.role not in _PRINCIPAL_ROLES:
            raise ValueError(
                f"role must be one of {sorted(_PRINCIPAL_ROLES)}."
            )

    def to_actor(self) -> Actor:
        return Actor(
            actor_id=self.actor_id,
            role=ActorRole(self.role),
            display_name=self.display_name,
            email=self.email,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuthPrincipal:
        return cls(
            actor_id=str(data.get("actor_id", "")),
            role=str(data.get("role", "")),
            display_name=data.get("display_name"),
            email=data.get("email"),
        )


class AuthProvider(Protocol):
    def resolve_api_key(self, api_key: str) -> AuthPrincipal | None:
        ...


class InMemoryAuthProvider:
    """
    Deterministic in-memory auth provider for tests/bootstrap.
    """

    def __init__(self, api_key_to_principal: Mapping[str, AuthPrincipal] | None = None):
        normalized: dict[str, AuthPrincipal] = {}
        for api_key, principal in sorted(
            dict(api_key_to_principal or {}).items(),
            key=lambda item: item[0],
        ):
            if not isinstance(api_key, str) or not api_key.strip():
                raise ValueError("API key must be a non-empty string.")
            if not isinstance(principal, AuthPrincipal):
                raise ValueError("Principal must be AuthPrincipal.")
            normalized[api_key] = principal
        self._api_key_to_principal = normalized

    @classmethod
    def from_settings(cls, raw: Mapping[str, Mapping[str, Any]]) -> InMemoryAuthProvider:
        return cls({
            api_key: AuthPrincipal.from_dict(principal)
            for api_key, principal in raw.items()
        })

    def resolve_api_key(self, api_key: str) -> AuthPrincipal | None:
        if not isinstance(api_key, str):
            return None
        return self._api_key_to_principal.get(api_key)


def _header(headers: Mapping[str, Any] | None, name: str) -> Optional[str]:
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if str(key).lower() == wanted:
            return str(value).strip() or None
    return None


def resolve_actor(
    headers: Mapping[str, Any] | None,
    provider: AuthProvider,
) -> Optional[Actor]:
    """
    Map the X-API-Key header to an Actor.

    No header means an anonymous guest (None); a key the provider
    does not know is rejected.
    """
    api_key = _header(headers, API_KEY_HEADER)
    if api_key is None:
        return None
    principal = provider.resolve_api_key(api_key)
    if principal is None:
        raise UnauthorizedError("Invalid API key.")
    return principal.to_actor()
