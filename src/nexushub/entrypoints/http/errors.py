"""Error envelopes and exception handlers for the HTTP API.

Every error response has the shape ``{"message", "code", "errors"?}`` where
``errors`` maps a camelCase field name to a list of messages.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nexushub.domain.errors import (
    ConflictError,
    ContentFlaggedError,
    DomainError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)
from nexushub.interfaces.collection import InvalidIdentifierError, StoreUnavailableError

logger = logging.getLogger(__name__)

#: Most specific classes first.
DOMAIN_STATUS: tuple[tuple[type[DomainError], int, str], ...] = (
    (ContentFlaggedError, 400, "CONTENT_FLAGGED"),
    (InvalidInputError, 400, "INVALID_INPUT"),
    (UnauthenticatedError, 401, "UNAUTHENTICATED"),
    (ForbiddenError, 403, "FORBIDDEN"),
    (NotFoundError, 404, "NOT_FOUND"),
    (ConflictError, 409, "CONFLICT"),
)


def error_envelope(
    *, code: str, message: str, errors: dict[str, list[str]] | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message, "code": code}
    if errors:
        body["errors"] = errors
    return body


def status_for(exc: DomainError) -> tuple[int, str]:
    for kind, status_code, code in DOMAIN_STATUS:
        if isinstance(exc, kind):
            return status_code, code
    return 500, "INTERNAL_ERROR"


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status_code, code = status_for(exc)
    errors = exc.errors if isinstance(exc, InvalidInputError) else None
    logger.info(
        "%s %s -> %d %s: %s", request.method, request.url.path, status_code, code, exc.message
    )
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(code=code, message=exc.message, errors=errors),
    )


async def handle_invalid_identifier(
    request: Request, exc: InvalidIdentifierError
) -> JSONResponse:
    logger.info("%s %s -> 400 invalid id: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content=error_envelope(code="INVALID_ID", message=str(exc)),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(tuple(error.get("loc", ()))), []).append(error["msg"])
    logger.info("%s %s -> 400 validation: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=400,
        content=error_envelope(
            code="VALIDATION_ERROR", message="Invalid request data.", errors=errors
        ),
    )


async def handle_store_unavailable(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    logger.error("%s %s -> 500 store unavailable: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content=error_envelope(
            code="STORE_UNAVAILABLE",
            message="The data store is temporarily unavailable. Please retry.",
        ),
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(code="HTTP_ERROR", message=message),
    )


async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s -> 500 unhandled error", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_envelope(code="INTERNAL_ERROR", message="An unexpected error occurred."),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(InvalidIdentifierError, handle_invalid_identifier)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StoreUnavailableError, handle_store_unavailable)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unhandled_exception)
