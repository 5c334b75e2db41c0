"""
Storefront Notifications Engine
================================
Order confirmation and refund emails.

Delivery is best effort: callers record failures as order notes and
never fail the operation that triggered the email.
"""

from engines.notifications.email import EmailNotifier, Notifier

__all__ = ["EmailNotifier", "Notifier"]
