"""
Error handlers — map service errors to RFC 7807 responses.

Fallback results are not errors and never pass through here; the
orders router renders them itself.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_spine.api.schemas.common import ErrorDetail, ProblemDetail
from order_spine.core.errors import (
    AuthError,
    ErrorCategory,
    OrderSpineError,
    PermissionDeniedError,
    ValidationError,
)
from order_spine.core.logging import get_logger

logger = get_logger(__name__)

# ── Error category → HTTP status mapping ─────────────────────────────────
CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTH: 401,
    ErrorCategory.RESILIENCE: 503,
    ErrorCategory.NETWORK: 503,
    ErrorCategory.DOWNSTREAM: 503,
    ErrorCategory.STORAGE: 500,
    ErrorCategory.CONFIG: 500,
    ErrorCategory.INTERNAL: 500,
}


def status_for_error(error: OrderSpineError) -> int:
    """Resolve an error's category to an HTTP status, defaulting to 500."""
    return CATEGORY_TO_STATUS.get(error.category, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
    )
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(status_code=status, content=body.model_dump())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Bad paging parameters or order fields → 400."""
    return problem_response(
        status=400,
        title="Validation failed",
        detail=exc.message,
        instance=str(request.url),
        errors=[{"code": "INVALID", "message": exc.message, "field": exc.field}],
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query strings → 400 with field errors."""
    errors = [
        {
            "code": str(err.get("type", "invalid")).upper(),
            "message": err.get("msg", "Invalid value"),
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query")),
        }
        for err in exc.errors()
    ]
    return problem_response(
        status=400,
        title="Validation failed",
        detail="Request did not match the expected schema",
        instance=str(request.url),
        errors=errors,
    )


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Missing caller identity → 401."""
    return problem_response(
        status=401,
        title="Unauthorized",
        detail=exc.message,
        instance=str(request.url),
    )


async def permission_error_handler(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    """Known caller without the required group → 403."""
    return problem_response(
        status=403,
        title="Forbidden",
        detail=exc.message,
        instance=str(request.url),
    )


async def service_error_handler(request: Request, exc: OrderSpineError) -> JSONResponse:
    """Any other typed error that escaped the pipeline."""
    status = status_for_error(exc)
    logger.error("request_failed", path=request.url.path, status=status, **exc.to_dict())
    debug = request.app.state.settings.debug
    return problem_response(
        status=status,
        title=exc.category.value.title(),
        detail=exc.message if debug else "The request could not be completed.",
        instance=str(request.url),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — returns 500 with ProblemDetail."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install every handler above on ``app``."""
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PermissionDeniedError, permission_error_handler)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(OrderSpineError, service_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
