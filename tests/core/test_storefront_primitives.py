"""
Tests for core primitives — money, actors and the error mapping.
"""

from decimal import Decimal

import pytest

from core.commands.rejection import ReasonCode, RejectionReason
from core.errors import (
    ForbiddenError,
    IllegalStatusTransition,
    StorefrontError,
    UnauthorizedError,
    ValidationError,
    raise_for_rejection,
)
from core.primitives.actor import Actor, ActorRole
from core.primitives.money import (
    from_minor_units,
    percentage_of,
    to_amount,
    to_minor_units,
)


# ── Money ────────────────────────────────────────────────────

class TestMoney:
    def test_float_goes_through_string(self):
        assert to_amount(0.1 + 0.2) == Decimal("0.30")
        assert to_amount(2.675) == Decimal("2.68")

    @pytest.mark.parametrize("value", [True, "abc", None, "NaN", "Infinity"])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_amount(value)

    def test_percentage(self):
        assert percentage_of(Decimal("2000.00"), Decimal("7.5")) == Decimal("150.00")

    def test_minor_units(self):
        assert to_minor_units(Decimal("3500.00")) == 350000
        assert to_minor_units(Decimal("35.5")) == 3550
        assert from_minor_units(3550) == Decimal("35.50")

    def test_minor_units_must_be_int(self):
        with pytest.raises(ValueError):
            from_minor_units(35.5)


# ── Actors ───────────────────────────────────────────────────

class TestActor:
    def test_system_actor(self):
        actor = Actor.system("payments")
        assert actor.actor_id == "system:payments"
        assert actor.is_system and not actor.is_operator

    def test_label_falls_back_to_id(self):
        assert Actor.customer("user-1").label == "user-1"
        assert Actor.operator("op-1", display_name="Ada").label == "Ada"

    def test_role_must_be_enum(self):
        with pytest.raises(ValueError, match="ActorRole"):
            Actor(actor_id="x", role="operator")

    def test_roles(self):
        assert Actor.customer("u").role is ActorRole.CUSTOMER


# ── Rejection → error ────────────────────────────────────────

class TestRaiseForRejection:
    def _reason(self, code: str) -> RejectionReason:
        return RejectionReason(code=code, message="no", policy_name="test_policy")

    def test_none_passes(self):
        raise_for_rejection(None)

    @pytest.mark.parametrize(
        "code, error_cls, status",
        [
            (ReasonCode.AUTHENTICATION_REQUIRED, UnauthorizedError, 401),
            (ReasonCode.PERMISSION_DENIED, ForbiddenError, 403),
            (ReasonCode.ILLEGAL_STATUS_TRANSITION, IllegalStatusTransition, 400),
            (ReasonCode.INSUFFICIENT_STOCK, ValidationError, 400),
        ],
    )
    def test_mapped(self, code, error_cls, status):
        with pytest.raises(error_cls) as info:
            raise_for_rejection(self._reason(code))
        assert info.value.code == code
        assert info.value.http_status == status
        assert info.value.details == {"policy_name": "test_policy"}

    def test_unmapped_code_is_internal(self):
        with pytest.raises(StorefrontError) as info:
            raise_for_rejection(self._reason("SOMETHING_ELSE"))
        assert info.value.http_status == 500
