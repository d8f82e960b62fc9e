# backend/app/core/errors.py
"""
Every failure leaves the API in the same envelope:

    {"success": false, "error": "...", "details": {"field": ["message", ...]}}

Handlers raise ``HTTPException`` with either a string detail or a dict
``{"error": ..., "details": ...}`` (see ``http_error``). Anything else that
escapes a handler is logged with its traceback and answered with a generic
500.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.tenant_context import extract_tenant_slug_from_path

logger = structlog.get_logger(__name__)

INTERNAL_ERROR = "Internal server error"
VALIDATION_ERROR = "Validation failed"

_UNIQUE_SQLSTATE = "23505"


def error_response(
    status_code: int,
    error: str,
    details: Optional[Mapping[str, list[str]]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": error}
    if details:
        body["details"] = dict(details)
    return JSONResponse(status_code=status_code, content=body)


def http_error(
    status_code: int,
    error: str,
    details: Optional[Mapping[str, list[str]]] = None,
) -> HTTPException:
    detail: dict[str, Any] = {"error": error}
    if details:
        detail["details"] = dict(details)
    return HTTPException(status_code=status_code, detail=detail)


def is_unique_violation(
    exc: IntegrityError,
    *,
    constraint: Optional[str] = None,
    column: Optional[str] = None,
) -> bool:
    """
    True when ``exc`` is a unique-constraint violation. With ``constraint``
    or ``column`` given, the violation must also name one of them: Postgres
    reports the constraint name, SQLite reports ``table.column``.
    """
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc)
    lowered = message.lower()

    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate != _UNIQUE_SQLSTATE and "unique" not in lowered and "duplicate key" not in lowered:
        return False

    if constraint is None and column is None:
        return True
    return bool(
        (constraint is not None and constraint in message)
        or (column is not None and column in message)
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    # ("body", "first_name") -> "first_name"; ("query", "page") -> "page"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        error = str(detail.get("error") or detail.get("message") or "Request failed")
        details = detail.get("details")
    else:
        error = str(detail)
        details = None

    response = error_response(exc.status_code, error, details)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for err in exc.errors():
        details.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(str(err.get("msg")))
    return error_response(status.HTTP_400_BAD_REQUEST, VALIDATION_ERROR, details)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds the request path and tenant slug into structlog contextvars and
    turns any exception that reached this far into the generic 500 envelope.
    """

    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            path=request.url.path,
            method=request.method,
            tenant_slug=extract_tenant_slug_from_path(request.url.path),
        )
        try:
            return await call_next(request)
        except Exception:
            logger.exception("unhandled_exception")
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)
        finally:
            structlog.contextvars.clear_contextvars()


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(RequestContextMiddleware)
