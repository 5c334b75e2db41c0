"""
Storefront Workflow Primitive — Generic State Machine
======================================================
A frozen transition table shared by every lifecycle in the engine.

Used by:
    Orders Engine — Order status (pending → processing → shipped → delivered)

RULES:
- State transitions are deterministic (same input → same output)
- Invalid transitions are REJECTED — no silent state skips
- Terminal states have no outgoing edges
- The definition is immutable (frozen)

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional


# ══════════════════════════════════════════════════════════════
# WORKFLOW DEFINITION (state machine schema)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Defines the valid states and transitions for a workflow type.

    Fields:
        name:            Identifier for this workflow type (e.g. "Order")
        initial_state:   Starting state for all new instances
        terminal_states: States from which no further transitions are allowed
        transitions:     Dict of {from_state → frozenset(allowed_to_states)}
    """
    name: str
    initial_state: str
    terminal_states: FrozenSet[str]
    transitions: Dict[str, FrozenSet[str]]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Workflow name must be non-empty.")
        if not self.initial_state:
            raise ValueError("initial_state must be non-empty.")
        if self.initial_state not in self.transitions:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in transitions."
            )
        known = set(self.transitions)
        for from_state, targets in self.transitions.items():
            unknown = set(targets) - known
            if unknown:
                raise ValueError(
                    f"State '{from_state}' targets unknown states: {sorted(unknown)}."
                )
        for state in self.terminal_states:
            if self.transitions.get(state):
                raise ValueError(f"Terminal state '{state}' has outgoing edges.")

    @property
    def states(self) -> FrozenSet[str]:
        return frozenset(self.transitions)

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        """Check if a transition is allowed by this definition."""
        allowed = self.transitions.get(from_state, frozenset())
        return to_state in allowed

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def allowed_next_states(self, from_state: str) -> FrozenSet[str]:
        return self.transitions.get(from_state, frozenset())

    def explain_rejection(self, from_state: str, to_state: str) -> Optional[str]:
        """
        Return a human-readable reason the transition is refused,
        or None when it is allowed.
        """
        if to_state not in self.transitions:
            return f"Unknown {self.name.lower()} state '{to_state}'."
        if self.is_terminal(from_state):
            return f"Cannot transition from terminal state '{from_state}'."
        if not self.is_valid_transition(from_state, to_state):
            allowed = sorted(self.allowed_next_states(from_state))
            return (
                f"Invalid transition: {from_state} → {to_state}. "
                f"Allowed: {allowed}."
            )
        return None
