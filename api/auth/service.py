"""
Auth business logic.
"""

from __future__ import annotations

import logging

import asyncpg

from core.db import Database
from core.errors import AppError, ErrorKind
from listings import service as listing_service

from . import repository, schemas, security

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


def to_user_response(user_row: dict) -> dict:
    """
    Public user shape. The password hash never leaves this module.
    """
    return {
        "id": int(user_row["id"]),
        "email": str(user_row["email"]),
        "name": str(user_row["name"]),
        "phone": user_row.get("phone"),
        "createdAt": user_row.get("created_at"),
        "updatedAt": user_row.get("updated_at"),
    }


def _auth_response(user_row: dict) -> dict:
    token = security.build_access_token(user_id=int(user_row["id"]))
    return {"user": to_user_response(user_row), "token": token}


async def register(db: Database, payload: schemas.RegisterRequest) -> dict:
    existing = await repository.get_user_by_email(db, payload.email)
    if existing is not None:
        raise AppError(ErrorKind.CONFLICT, "Email is already registered.")

    password_hash = security.hash_password(payload.password)
    try:
        user_row = await repository.create_user(
            db,
            email=payload.email,
            password_hash=password_hash,
            name=payload.name,
            phone=payload.phone,
        )
    except asyncpg.exceptions.UniqueViolationError as exc:
        # Lost a race with a concurrent registration for the same email.
        raise AppError(ErrorKind.CONFLICT, "Email is already registered.") from exc

    logger.info("user_registered user_id=%s", user_row["id"])
    return _auth_response(user_row)


async def login(db: Database, payload: schemas.LoginRequest) -> dict:
    user_row = await repository.get_user_by_email(db, payload.email)
    if user_row is None:
        security.verify_dummy_password(payload.password)
        raise AppError(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS)

    is_valid = security.verify_password(payload.password, str(user_row.get("password_hash") or ""))
    if not is_valid:
        logger.info("login_failed user_id=%s", user_row["id"])
        raise AppError(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS)

    return _auth_response(user_row)


async def me(db: Database, user_id: int) -> dict:
    user_row = await repository.get_user_by_id(db, user_id)
    if user_row is None:
        raise AppError(ErrorKind.NOT_FOUND, "User not found.")

    user = to_user_response(user_row)
    user["listings"] = await listing_service.listings_for_owner(db, user_id)
    return {"user": user}
