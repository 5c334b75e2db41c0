"""
Storefront Django Adapter Views
===============================
Pass-through HTTP views over core/http_api handlers.
"""

from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import build_dependencies
from core.http_api import handlers
from core.http_api.contracts import HttpApiResult
from core.http_api.errors import error_response


def _headers_from_request(request: HttpRequest) -> dict[str, str]:
    return {str(key): str(value) for key, value in request.headers.items()}


def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _method_not_allowed(allowed: str) -> JsonResponse:
    response = _json_error(
        "METHOD_NOT_ALLOWED",
        f"Only {allowed} is supported.",
        status=405,
    )
    response["Allow"] = allowed
    return response


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _respond(result: HttpApiResult) -> JsonResponse:
    return JsonResponse(result.body, status=result.status_code)


def _dispatch_write(request: HttpRequest, handler, *args) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed("POST")
    try:
        body = _parse_json_body(request)
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    return _respond(
        handler(
            *args,
            body,
            build_dependencies(),
            headers=_headers_from_request(request),
        )
    )


def _dispatch_action(request: HttpRequest, handler, *args) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed("POST")
    return _respond(
        handler(*args, build_dependencies(), headers=_headers_from_request(request))
    )


def _dispatch_read(request: HttpRequest, handler, *args) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed("GET")
    return _respond(
        handler(*args, build_dependencies(), headers=_headers_from_request(request))
    )


# ══════════════════════════════════════════════════════════════
# STOREFRONT
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def orders_create_view(request: HttpRequest):
    return _dispatch_write(request, handlers.post_create_order)


@csrf_exempt
def shipping_rates_view(request: HttpRequest):
    return _dispatch_read(
        request, handlers.get_shipping_rates, request.GET.get("region"),
    )


@csrf_exempt
def payment_methods_view(request: HttpRequest):
    return _dispatch_read(request, handlers.get_payment_methods)


@csrf_exempt
def order_detail_view(request: HttpRequest, order_ref: str):
    return _dispatch_read(request, handlers.get_order, order_ref)


@csrf_exempt
def order_tracking_view(request: HttpRequest, order_ref: str):
    return _dispatch_read(request, handlers.get_order_tracking, order_ref)


@csrf_exempt
def order_cancel_view(request: HttpRequest, order_ref: str):
    return _dispatch_write(request, handlers.post_cancel_order, order_ref)


# ══════════════════════════════════════════════════════════════
# PAYMENTS
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def initialize_payment_view(request: HttpRequest, order_ref: str):
    return _dispatch_write(request, handlers.post_initialize_payment, order_ref)


@csrf_exempt
def verify_payment_view(request: HttpRequest, reference: str):
    return _dispatch_read(request, handlers.get_verify_payment, reference)


@csrf_exempt
def paystack_webhook_view(request: HttpRequest):
    if request.method != "POST":
        return _method_not_allowed("POST")
    return _respond(
        handlers.post_paystack_webhook(
            request.body,
            build_dependencies(),
            headers=_headers_from_request(request),
        )
    )


# ══════════════════════════════════════════════════════════════
# OPERATOR
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def admin_order_status_view(request: HttpRequest, order_ref: str):
    return _dispatch_write(request, handlers.post_admin_order_status, order_ref)


@csrf_exempt
def admin_order_notes_view(request: HttpRequest, order_ref: str):
    return _dispatch_write(request, handlers.post_admin_order_note, order_ref)


@csrf_exempt
def admin_order_refund_view(request: HttpRequest, order_ref: str):
    return _dispatch_write(request, handlers.post_admin_order_refund, order_ref)


@csrf_exempt
def admin_order_restock_view(request: HttpRequest, order_ref: str):
    return _dispatch_action(request, handlers.post_admin_order_restock, order_ref)


@csrf_exempt
def admin_order_confirm_payment_view(request: HttpRequest, order_ref: str):
    return _dispatch_write(request, handlers.post_admin_confirm_payment, order_ref)


@csrf_exempt
def admin_order_email_view(request: HttpRequest, order_ref: str):
    return _dispatch_action(request, handlers.post_admin_order_email, order_ref)


@csrf_exempt
def admin_inventory_adjust_view(request: HttpRequest, product_id: str):
    return _dispatch_write(request, handlers.post_admin_inventory_adjust, product_id)


@csrf_exempt
def admin_inventory_history_view(request: HttpRequest, product_id: str):
    return _dispatch_read(
        request,
        handlers.get_admin_inventory_history,
        product_id,
        request.GET.get("variant_id"),
    )
