"""
Error taxonomy and the central exception handlers.

Services raise `AppError` with an `ErrorKind`; the handlers registered by
`register_error_handlers` turn every failure into the JSON envelope

    {"error": "<ErrorKind>", "message": "<text>"}

Stack traces are logged, never returned.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Iterable

import asyncpg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Location prefixes FastAPI adds in front of the field path.
_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


class ErrorKind(str, enum.Enum):
    VALIDATION = "ValidationError"
    AUTHENTICATION = "AuthenticationError"
    AUTHORIZATION = "AuthorizationError"
    NOT_FOUND = "NotFoundError"
    CONFLICT = "ConflictError"
    DATABASE = "DatabaseError"
    INTERNAL = "InternalServerError"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DATABASE: 500,
    ErrorKind.INTERNAL: 500,
}

_DEFAULT_MESSAGES = {
    ErrorKind.VALIDATION: "Invalid data.",
    ErrorKind.AUTHENTICATION: "Authentication required.",
    ErrorKind.AUTHORIZATION: "Insufficient permissions.",
    ErrorKind.NOT_FOUND: "Resource not found.",
    ErrorKind.CONFLICT: "Resource already exists.",
    ErrorKind.DATABASE: "Database error.",
    ErrorKind.INTERNAL: "An internal error occurred.",
}


class AppError(Exception):
    """
    A failure with a known kind. The message is safe to show to clients.
    """

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or _DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"AppError({self.kind.value!r}, {self.message!r})"


def kind_for_status(status_code: int) -> ErrorKind:
    for kind, code in _STATUS_BY_KIND.items():
        if code == status_code and kind is not ErrorKind.DATABASE:
            return kind
    if 400 <= status_code < 500:
        return ErrorKind.VALIDATION
    return ErrorKind.INTERNAL


def first_error_message(errors: Iterable[dict[str, Any]]) -> str:
    """
    Build the client message from the first validation error only.
    """
    for err in errors:
        # Positions (list indexes, JSON decode offsets) are not field names.
        loc = [part for part in err.get("loc", ()) if isinstance(part, str)]
        if loc and loc[0] in _REQUEST_PARTS:
            loc = loc[1:]
        msg = str(err.get("msg") or "Invalid value.")
        # pydantic prefixes messages raised from validators.
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        field = ".".join(loc)
        return f"{field}: {msg}" if field else msg
    return _DEFAULT_MESSAGES[ErrorKind.VALIDATION]


def from_database_error(exc: asyncpg.PostgresError) -> AppError:
    if isinstance(exc, asyncpg.exceptions.UniqueViolationError):
        return AppError(ErrorKind.CONFLICT, "Resource already exists.")
    if isinstance(exc, asyncpg.exceptions.ForeignKeyViolationError):
        return AppError(ErrorKind.VALIDATION, "Invalid reference.")
    if isinstance(exc, asyncpg.exceptions.CheckViolationError):
        return AppError(ErrorKind.VALIDATION, "Value violates a data constraint.")
    return AppError(ErrorKind.DATABASE)


def _envelope(err: AppError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _handle_app_error(_: Request, exc: AppError) -> JSONResponse:
    return _envelope(exc)


async def _handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(AppError(ErrorKind.VALIDATION, first_error_message(exc.errors())))


async def _handle_pydantic_validation(_: Request, exc: ValidationError) -> JSONResponse:
    return _envelope(AppError(ErrorKind.VALIDATION, first_error_message(exc.errors())))


async def _handle_database_error(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    err = from_database_error(exc)
    if err.kind is ErrorKind.DATABASE:
        logger.exception("database_error method=%s path=%s", request.method, request.url.path)
    else:
        logger.info(
            "constraint_violation method=%s path=%s sqlstate=%s",
            request.method,
            request.url.path,
            getattr(exc, "sqlstate", None),
        )
    return _envelope(err)


async def _handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = kind_for_status(exc.status_code)
    message = exc.detail if isinstance(exc.detail, str) else _DEFAULT_MESSAGES[kind]
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": kind.value, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    return _envelope(AppError(ErrorKind.INTERNAL))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(ValidationError, _handle_pydantic_validation)
    app.add_exception_handler(asyncpg.PostgresError, _handle_database_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(Exception, _handle_unexpected)
