"""
Storefront Actor Primitive — Who Performed an Action
=====================================================
Every timeline entry, note and stock adjustment names its actor.

Actor roles:
    CUSTOMER — an authenticated buyer
    OPERATOR — store staff with back-office rights
    SYSTEM   — automated component (payment webhook, reconciliation)

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActorRole(Enum):
    CUSTOMER = "customer"
    OPERATOR = "operator"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """
    Identifies who performed an action.

    Fields:
        actor_id:     User id, or component name for system actors
        role:         CUSTOMER | OPERATOR | SYSTEM
        display_name: Human-readable name for notes
        email:        Contact email (buyers), used for guest ownership checks
    """
    actor_id: str
    role: ActorRole
    display_name: Optional[str] = None
    email: Optional[str] = None

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")
        if not isinstance(self.role, ActorRole):
            raise ValueError("role must be ActorRole enum.")

    @property
    def is_operator(self) -> bool:
        return self.role == ActorRole.OPERATOR

    @property
    def is_system(self) -> bool:
        return self.role == ActorRole.SYSTEM

    @property
    def label(self) -> str:
        return self.display_name or self.actor_id

    def to_dict(self) -> dict:
        return {
            "actor_id": self.actor_id,
            "role": self.role.value,
            "display_name": self.display_name,
        }

    @classmethod
    def customer(cls, user_id: str, email: Optional[str] = None) -> Actor:
        return cls(actor_id=user_id, role=ActorRole.CUSTOMER, email=email)

    @classmethod
    def operator(cls, user_id: str, display_name: Optional[str] = None) -> Actor:
        return cls(
            actor_id=user_id,
            role=ActorRole.OPERATOR,
            display_name=display_name,
        )

    @classmethod
    def system(cls, component: str) -> Actor:
        return cls(actor_id=f"system:{component}", role=ActorRole.SYSTEM)
