from __future__ import annotations

import pytest

from core.errors import UnauthorizedError
from core.http_api.auth import (
    API_KEY_HEADER,
    AuthPrincipal,
    InMemoryAuthProvider,
    resolve_actor,
)
from core.primitives.actor import ActorRole


def _provider() -> InMemoryAuthProvider:
    return InMemoryAuthProvider.from_settings({
        "op-key": {"actor_id": "op-1", "role": "operator", "display_name": "Ada"},
        "buyer-key": {"actor_id": "user-1", "role": "customer", "email": "b@example.com"},
    })


class TestAuthPrincipal:
    def test_to_actor(self):
        actor = AuthPrincipal(actor_id="op-1", role="operator", display_name="Ada").to_actor()
        assert actor.role is ActorRole.OPERATOR
        assert actor.label == "Ada"

    def test_rejects_unknown_role(self):
        with pytest.raises(ValueError, match="role must be one of"):
            AuthPrincipal(actor_id="x", role="system")

    def test_rejects_empty_actor_id(self):
        with pytest.raises(ValueError, match="actor_id"):
            AuthPrincipal.from_dict({"role": "customer"})


class TestInMemoryAuthProvider:
    def test_rejects_blank_key(self):
        with pytest.raises(ValueError, match="API key"):
            InMemoryAuthProvider({" ": AuthPrincipal(actor_id="x", role="customer")})

    def test_rejects_non_principal(self):
        with pytest.raises(ValueError, match="AuthPrincipal"):
            InMemoryAuthProvider({"k": {"actor_id": "x", "role": "customer"}})

    def test_unknown_key(self):
        assert _provider().resolve_api_key("missing") is None


class TestResolveActor:
    def test_no_header_is_guest(self):
        assert resolve_actor({}, _provider()) is None
        assert resolve_actor(None, _provider()) is None

    def test_blank_header_is_guest(self):
        assert resolve_actor({API_KEY_HEADER: "  "}, _provider()) is None

    def test_header_name_is_case_insensitive(self):
        actor = resolve_actor({"x-api-key": "buyer-key"}, _provider())
        assert actor.actor_id == "user-1"
        assert actor.email == "b@example.com"
        assert not actor.is_operator

    def test_operator(self):
        actor = resolve_actor({"X-API-KEY": "op-key"}, _provider())
        assert actor.is_operator

    def test_unknown_key_is_rejected(self):
        with pytest.raises(UnauthorizedError, match="Invalid API key"):
            resolve_actor({API_KEY_HEADER: "nope"}, _provider())
