"""Custom exceptions and JSON ``{error, details}`` error handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → ``{"error": ..., "details": ...}``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error = error
        self.details = details
        super().__init__(error)


class UnauthorizedException(AppException):
    """401: missing or invalid credentials."""

    def __init__(self, error: str = "Unauthorized") -> None:
        super().__init__(status_code=401, error=error)


class ForbiddenException(AppException):
    """403: insufficient permissions."""

    def __init__(
        self,
        error: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(status_code=403, error=error)


class NotFoundException(AppException):
    """404: entity not found."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Any = None,
        error: Optional[str] = None,
    ) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(status_code=404, error=error or f"{entity_type} not found")


class ValidationException(AppException):
    """400: business-rule validation failures, keyed by field.

    The top-level ``error`` message defaults to the first field message so
    clients that only read ``error`` still get something meaningful.
    """

    def __init__(
        self,
        errors: dict[str, list[str]],
        error: Optional[str] = None,
    ) -> None:
        if error is None:
            first = next((msgs[0] for msgs in errors.values() if msgs), None)
            error = first or "Invalid request data"
        super().__init__(status_code=400, error=error, details=errors)


# ── Response builder ────────────────────────────────────────────────

def _error_body(error: str, details: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": error}
    if details:
        body["details"] = details
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.error)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error, exc.details),
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name or "body", []).append(
            str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        )

    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request data", field_errors),
    )


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def _handle_unexpected_error(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error"),
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)              # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)   # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
