"""
Storefront HTTP API - Error Mapping
===================================
Stable transport error mapping for StorefrontError.
"""

from __future__ import annotations

from typing import Any, Optional

from core.errors import StorefrontError
from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse, HttpApiResult


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
        ),
    ).to_dict()


def success_response(
    data: Any,
    *,
    meta: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data, meta=meta).to_dict()


def error_result(exc: StorefrontError) -> HttpApiResult:
    return HttpApiResult(
        status_code=exc.http_status,
        body=error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
        ),
    )
