"""
Auth dependencies for protected FastAPI routes.

They resolve the caller id from the bearer token only; loading the user row
is left to the handlers that need it.
"""

from __future__ import annotations

from fastapi import Header

from core.errors import AppError, ErrorKind

from . import security


def _unauthenticated(message: str) -> AppError:
    return AppError(ErrorKind.AUTHENTICATION, message)


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise _unauthenticated("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise _unauthenticated("Authorization must be: Bearer <token>.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise _unauthenticated("Authorization must be: Bearer <token>.")
    return token


def _user_id_from_header(authorization: str | None) -> int:
    token = _extract_bearer_token(authorization)
    try:
        return security.user_id_from_token(token)
    except security.AuthSecurityError as exc:
        raise _unauthenticated(str(exc)) from exc


async def get_current_user_id(authorization: str | None = Header(default=None)) -> int:
    return _user_id_from_header(authorization)


async def get_optional_user_id(authorization: str | None = Header(default=None)) -> int | None:
    # Anonymous callers are fine here, but a token that is sent must be valid.
    if not (authorization or "").strip():
        return None
    return _user_id_from_header(authorization)

