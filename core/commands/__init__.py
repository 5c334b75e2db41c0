"""
Storefront Command Layer
=========================
Rejection reasons shared by every engine policy.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "RejectionReason",
    "ReasonCode",
]
