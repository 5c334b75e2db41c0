"""
Storefront HTTP API - Framework-Agnostic Handlers
=================================================
Pure handler functions over decoded request bodies and injected
dependencies. Every handler returns an HttpApiResult; the framework
adapter only turns it into a response object.
"""

from __future__ import annotations

import functools
import logging
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional

from core.commands.rejection import ReasonCode
from core.errors import StorefrontError, ValidationError, raise_for_rejection
from core.http_api.auth.provider import resolve_actor
from core.http_api.contracts import (
    HttpApiResult,
    parse_add_note,
    parse_adjust_stock,
    parse_create_order,
    parse_refund,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import error_response, error_result, success_response
from core.primitives.actor import Actor
from engines.orders.models import Order
from engines.orders.policies import operator_required_policy
from engines.payments.gateway import PAYSTACK_SIGNATURE_HEADER
from engines.pricing import list_payment_methods, list_rates

logger = logging.getLogger("storefront.http")

Headers = Optional[Mapping[str, Any]]


def _guarded(handler: Callable[..., HttpApiResult]) -> Callable[..., HttpApiResult]:
    """Map StorefrontError to its status; anything else becomes a 500."""

    @functools.wraps(handler)
    def wrapper(*args, **kwargs) -> HttpApiResult:
        try:
            return handler(*args, **kwargs)
        except StorefrontError as exc:
            if exc.http_status >= 500:
                logger.error("%s failed: %s", handler.__name__, exc.message)
            else:
                logger.info(
                    "%s rejected: %s (%s)", handler.__name__, exc.message, exc.code,
                )
            return error_result(exc)
        except Exception:
            logger.exception("Unhandled error in %s", handler.__name__)
            return HttpApiResult(
                status_code=500,
                body=error_response(
                    code=ReasonCode.INTERNAL_ERROR,
                    message="Internal server error.",
                ),
            )

    return wrapper


def _ok(data: Any, *, status_code: int = 200, meta: Optional[dict] = None) -> HttpApiResult:
    return HttpApiResult(status_code=status_code, body=success_response(data, meta=meta))


def _actor(headers: Headers, dependencies: HttpApiDependencies) -> Optional[Actor]:
    return resolve_actor(headers, dependencies.auth_provider)


def _operator(headers: Headers, dependencies: HttpApiDependencies) -> Actor:
    actor = _actor(headers, dependencies)
    raise_for_rejection(operator_required_policy(actor))
    return actor


def _serialize_order(order: Order, actor: Optional[Actor]) -> dict[str, Any]:
    return order.to_dict(include_internal=actor is not None and actor.is_operator)


def _decimal_text(value: Any) -> Any:
    return str(value) if isinstance(value, Decimal) else value


def _body(body: Any) -> Mapping[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object.")
    return body


# ══════════════════════════════════════════════════════════════
# STOREFRONT
# ══════════════════════════════════════════════════════════════

@_guarded
def post_create_order(
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _actor(headers, dependencies)
    request = parse_create_order(_body(body))
    order = dependencies.order_service.create_order(request, actor=actor)
    return _ok(_serialize_order(order, actor), status_code=201)


@_guarded
def get_shipping_rates(
    region: Optional[str],
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    if not region or not region.strip():
        raise ValidationError("Please provide a region.")
    quotes = list_rates(dependencies.config_provider(), region)
    data = [
        {key: _decimal_text(value) for key, value in quote.to_dict().items()}
        for quote in quotes
    ]
    return _ok(data, meta={"count": len(data), "region": region.strip()})


@_guarded
def get_payment_methods(
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    methods = list(list_payment_methods(dependencies.config_provider()))
    return _ok(methods, meta={"count": len(methods)})


@_guarded
def get_order(
    order_ref: str,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _actor(headers, dependencies)
    order = dependencies.order_service.get_order(order_ref, actor=actor)
    return _ok(_serialize_order(order, actor))


@_guarded
def get_order_tracking(
    order_ref: str,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    order = dependencies.order_service.track(order_ref)
    return _ok(order.to_tracking_dict())


@_guarded
def post_cancel_order(
    order_ref: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _actor(headers, dependencies)
    reason = _body(body).get("reason")
    order = dependencies.order_service.cancel(
        order_ref, actor=actor, reason=str(reason) if reason else None,
    )
    return _ok(_serialize_order(order, actor))


# ══════════════════════════════════════════════════════════════
# PAYMENTS
# ══════════════════════════════════════════════════════════════

@_guarded
def post_initialize_payment(
    order_ref: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _actor(headers, dependencies)
    callback_url = _body(body).get("callback_url")
    data = dependencies.payment_service.initialize_payment(
        order_ref,
        actor=actor,
        callback_url=str(callback_url) if callback_url else None,
    )
    return _ok(data)


@_guarded
def get_verify_payment(
    reference: str,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    order = dependencies.payment_service.verify_payment(reference)
    return _ok(_serialize_order(order, None))


@_guarded
def post_paystack_webhook(
    raw_body: bytes,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    signature = ""
    for key, value in (headers or {}).items():
        if str(key).lower() == PAYSTACK_SIGNATURE_HEADER:
            signature = str(value)
            break
    data = dependencies.payment_service.handle_webhook(raw_body, signature)
    return _ok(data)


# ══════════════════════════════════════════════════════════════
# OPERATOR: ORDERS
# ══════════════════════════════════════════════════════════════

@_guarded
def post_admin_order_status(
    order_ref: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    payload = _body(body)
    status = payload.get("status")
    if not status:
        raise ValidationError("Please provide a valid status")
    note = payload.get("note")
    order = dependencies.order_service.transition_status(
        order_ref, str(status), actor=actor, note=str(note) if note else None,
    )
    return _ok(_serialize_order(order, actor))


@_guarded
def post_admin_order_note(
    order_ref: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    request = parse_add_note(_body(body))
    order = dependencies.order_service.add_note(order_ref, request, actor=actor)
    return _ok(_serialize_order(order, actor))


@_guarded
def post_admin_order_refund(
    order_ref: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    request = parse_refund(_body(body))
    order = dependencies.payment_service.refund(order_ref, request, actor=actor)
    return _ok(_serialize_order(order, actor))


@_guarded
def post_admin_order_restock(
    order_ref: str,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    order = dependencies.order_service.restock(order_ref, actor=actor)
    return _ok(_serialize_order(order, actor))


@_guarded
def post_admin_confirm_payment(
    order_ref: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    reference = _body(body).get("reference")
    order = dependencies.payment_service.confirm_offline_payment(
        order_ref, actor=actor, reference=str(reference) if reference else None,
    )
    return _ok(_serialize_order(order, actor))


@_guarded
def post_admin_order_email(
    order_ref: str,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    order = dependencies.payment_service.send_confirmation_email(order_ref, actor=actor)
    return _ok(_serialize_order(order, actor))


# ══════════════════════════════════════════════════════════════
# OPERATOR: INVENTORY
# ══════════════════════════════════════════════════════════════

@_guarded
def post_admin_inventory_adjust(
    product_id: str,
    body: Any,
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    actor = _operator(headers, dependencies)
    request = parse_adjust_stock(product_id, _body(body))
    adjustment = dependencies.ledger.adjust(request, actor=actor)
    return _ok(adjustment.to_dict())


@_guarded
def get_admin_inventory_history(
    product_id: str,
    variant_id: Optional[str],
    dependencies: HttpApiDependencies,
    *,
    headers: Headers = None,
) -> HttpApiResult:
    _operator(headers, dependencies)
    history = dependencies.ledger.history(product_id, variant_id or None)
    data = [adjustment.to_dict() for adjustment in history]
    return _ok(
        data,
        meta={
            "count": len(data),
            "stock_quantity": dependencies.ledger.stock_level(
                product_id, variant_id or None,
            ),
        },
    )
