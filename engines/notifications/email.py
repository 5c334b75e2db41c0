"""
Storefront Notifications Engine — Email Notifier
=================================================
Sends through django.core.mail, so the backend (SMTP, console,
locmem under test) is chosen by EMAIL_BACKEND in settings.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol

from django.core.mail import send_mail
from django.utils.html import escape

from core.config.rules import StoreConfiguration
from engines.orders.models import Order

logger = logging.getLogger("storefront.notifications")


class Notifier(Protocol):
    def send_order_confirmation(self, order: Order, *, store: StoreConfiguration) -> None:
        ...

    def send_refund_confirmation(
        self,
        order: Order,
        *,
        amount: Decimal,
        reason: str,
        reference: str,
        store: StoreConfiguration,
    ) -> None:
        ...


def _money(store: StoreConfiguration, amount: Decimal) -> str:
    return f"{store.currency_symbol}{amount:,.2f}"


class EmailNotifier:
    def __init__(self, *, from_email: str = ""):
        self._from_email = from_email

    def _sender(self, store: StoreConfiguration) -> str | None:
        # None falls back to DEFAULT_FROM_EMAIL
        return self._from_email or store.store_email or None

    def send_order_confirmation(self, order: Order, *, store: StoreConfiguration) -> None:
        address = order.shipping_address
        lines = [
            f"{item.quantity} x {item.name} - {_money(store, item.subtotal)}"
            for item in order.items
        ]
        text = "\n".join([
            f"Dear {address.first_name or 'Customer'},",
            "",
            f"Thank you for your order {order.order_number}.",
            "",
            *lines,
            "",
            f"Subtotal: {_money(store, order.subtotal)}",
            f"Shipping ({order.shipping_method.name}): "
            f"{_money(store, order.shipping_fee)}",
            f"Tax: {_money(store, order.tax_amount)}",
            f"Total: {_money(store, order.total_amount)}",
            "",
            f"Thank you for shopping with {store.store_name}!",
        ])
        rows = "".join(
            f"<tr><td>{escape(item.name)}</td><td>{item.quantity}</td>"
            f"<td>{escape(_money(store, item.subtotal))}</td></tr>"
            for item in order.items
        )
        html = (
            f"<h2>Order Confirmation</h2>"
            f"<p>Dear {escape(address.first_name or 'Customer')},</p>"
            f"<p>Thank you for your order <strong>{escape(order.order_number)}</strong>.</p>"
            f"<table>{rows}</table>"
            f"<p><strong>Total:</strong> {escape(_money(store, order.total_amount))}</p>"
            f"<p>Thank you for shopping with {escape(store.store_name)}!</p>"
        )
        send_mail(
            subject=f"Order Confirmation - {order.order_number}",
            message=text,
            from_email=self._sender(store),
            recipient_list=[order.contact_email],
            html_message=html,
        )
        logger.info("Order confirmation for %s sent to %s", order.order_number, order.contact_email)

    def send_refund_confirmation(
        self,
        order: Order,
        *,
        amount: Decimal,
        reason: str,
        reference: str,
        store: StoreConfiguration,
    ) -> None:
        name = order.shipping_address.first_name or "Customer"
        text = (
            f"Dear {name},\n\n"
            f"We have processed a refund of {_money(store, amount)} for your "
            f"order {order.order_number}.\n\n"
            f"Reason: {reason}\n\n"
            f"The refund should appear in your account within 5-10 business "
            f"days, depending on your payment provider.\n\n"
            f"Thank you for shopping with {store.store_name}!"
        )
        html = (
            f"<h2>Refund Processed</h2>"
            f"<p>Dear {escape(name)},</p>"
            f"<p><strong>Order Number:</strong> {escape(order.order_number)}</p>"
            f"<p><strong>Refund Amount:</strong> {escape(_money(store, amount))}</p>"
            f"<p><strong>Reason:</strong> {escape(reason)}</p>"
            f"<p><strong>Refund Reference:</strong> {escape(reference)}</p>"
        )
        send_mail(
            subject=f"Refund Processed for Order {order.order_number}",
            message=text,
            from_email=self._sender(store),
            recipient_list=[order.contact_email],
            html_message=html,
        )
        logger.info("Refund confirmation for %s sent to %s", order.order_number, order.contact_email)
