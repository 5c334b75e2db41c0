"""
Storefront Orders — Status State Machine & Aggregate Tests
===========================================================
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, OPERATOR, checkout
from core.errors import IllegalStatusTransition
from engines.orders.models import OrderStatus, OrderTotalsMismatch
from engines.orders.state_machine import ORDER_WORKFLOW, can_transition, transition


def _order(world):
    world.add_product("tee", price="1000.00", stock=10)
    return world.order_service.create_order(checkout(("tee", 1)))


# ══════════════════════════════════════════════════════════════
# TRANSITION TABLE
# ══════════════════════════════════════════════════════════════

class TestTransitionTable:
    @pytest.mark.parametrize("current,target", [
        (OrderStatus.PENDING, OrderStatus.PROCESSING),
        (OrderStatus.PENDING, OrderStatus.CANCELLED),
        (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
        (OrderStatus.PROCESSING, OrderStatus.REFUNDED),
        (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
        (OrderStatus.DELIVERED, OrderStatus.REFUNDED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (OrderStatus.PENDING, OrderStatus.SHIPPED),
        (OrderStatus.PENDING, OrderStatus.REFUNDED),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
        (OrderStatus.PENDING, OrderStatus.PENDING),
    ])
    def test_refused(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_states_have_no_exits(self):
        for status in (OrderStatus.CANCELLED, OrderStatus.REFUNDED):
            assert ORDER_WORKFLOW.is_terminal(status.value)
            assert ORDER_WORKFLOW.allowed_next_states(status.value) == frozenset()


# ══════════════════════════════════════════════════════════════
# TRANSITION ON AN ORDER
# ══════════════════════════════════════════════════════════════

class TestTransition:
    def test_appends_timeline_with_default_note(self, world):
        order = _order(world)
        transition(order, OrderStatus.PROCESSING, actor=OPERATOR, at=NOW)
        assert order.status == OrderStatus.PROCESSING
        entry = order.timeline[-1]
        assert entry.status == OrderStatus.PROCESSING
        assert entry.note == "Order is being processed"
        assert entry.actor_id == "op-1"

    def test_shipped_at_set_once(self, world):
        order = _order(world)
        transition(order, OrderStatus.PROCESSING, actor=OPERATOR, at=NOW)
        transition(order, OrderStatus.SHIPPED, actor=OPERATOR, at=NOW)
        later = NOW + timedelta(days=2)
        transition(order, OrderStatus.DELIVERED, actor=OPERATOR, at=later)
        assert order.shipped_at == NOW
        assert order.delivered_at == later

    def test_illegal_transition_leaves_order_untouched(self, world):
        order = _order(world)
        timeline_before = list(order.timeline)
        with pytest.raises(IllegalStatusTransition) as exc:
            transition(order, OrderStatus.DELIVERED, actor=OPERATOR, at=NOW)
        assert exc.value.details["from"] == "pending"
        assert exc.value.details["to"] == "delivered"
        assert order.status == OrderStatus.PENDING
        assert order.timeline == timeline_before


# ══════════════════════════════════════════════════════════════
# AGGREGATE INVARIANTS
# ══════════════════════════════════════════════════════════════

class TestOrderTotals:
    def test_tampered_total_rejected_on_save(self, world):
        order = _order(world)
        order.total_amount = order.total_amount + Decimal("1.00")
        with pytest.raises(OrderTotalsMismatch):
            world.orders.update(order, expected_version=order.version)

    def test_to_dict_serializes_amounts_as_text(self, world):
        order = _order(world)
        data = order.to_dict()
        assert data["total_amount"] == "2500.00"
        assert data["timeline"][0]["note"] == "Order placed"

    def test_public_view_hides_internal_notes(self, world):
        order = _order(world)
        order.add_note("fraud check passed", at=NOW, internal=True)
        order.add_note("gift wrap", at=NOW, internal=False)
        public = order.to_dict(include_internal=False)
        assert [n["content"] for n in public["notes"]] == ["gift wrap"]
