"""
Storefront Core Primitives — Reusable Building Blocks
======================================================
Pure Python, Django-free, deterministic.

Primitives:
    workflow — Frozen state machine definitions
    money    — Decimal amounts and minor-unit conversion
    actor    — Who performed an action (buyer, operator, system)
"""
