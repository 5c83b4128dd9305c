"""
Listing business logic: search, ownership-gated mutation, favorites.

Visibility rule: a listing that is not ACTIVE exists only for its owner.
Everyone else gets the same NotFoundError as for a missing id.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import asyncpg

from categories import service as category_service
from core.db import Database
from core.errors import AppError, ErrorKind

from . import repository, schemas, search

logger = logging.getLogger(__name__)

LISTING_NOT_FOUND = "Listing not found."


def to_listing_response(row: dict, *, include_contact: bool = False) -> dict:
    owner: dict[str, Any] = {"id": int(row["user_id"]), "name": row.get("user_name")}
    if include_contact:
        owner["phone"] = row.get("user_phone")

    return {
        "id": int(row["id"]),
        "title": str(row["title"]),
        "description": str(row["description"]),
        "price": float(row["price"]),
        "location": str(row["location"]),
        "status": str(row["status"]),
        "userId": int(row["user_id"]),
        "categoryId": int(row["category_id"]),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
        "user": owner,
        "category": {
            "id": int(row["category_id"]),
            "name": row.get("category_name"),
            "slug": row.get("category_slug"),
        },
    }


def is_visible_to(row: dict, caller_id: int | None) -> bool:
    if str(row["status"]) == schemas.ListingStatus.ACTIVE.value:
        return True
    return caller_id is not None and int(row["user_id"]) == caller_id


async def _load_visible(db: Database, listing_id: int, caller_id: int | None) -> dict:
    row = await repository.get_listing(db, listing_id)
    if row is None or not is_visible_to(row, caller_id):
        raise AppError(ErrorKind.NOT_FOUND, LISTING_NOT_FOUND)
    return row


async def _load_owned(db: Database, listing_id: int, caller_id: int) -> dict:
    row = await repository.get_listing(db, listing_id)
    if row is None:
        raise AppError(ErrorKind.NOT_FOUND, LISTING_NOT_FOUND)
    if int(row["user_id"]) != caller_id:
        raise AppError(ErrorKind.AUTHORIZATION, "You can only modify your own listings.")
    return row


async def search_listings(db: Database, filters: schemas.ListingFilters) -> dict:
    total = await repository.count_listings(db, filters)
    meta = search.page_meta(total=total, page=filters.page, page_size=filters.page_size)

    rows: list[dict] = []
    if meta.offset < total:
        rows = await repository.search_listings(db, filters, limit=meta.page_size, offset=meta.offset)

    return {
        "data": [to_listing_response(row) for row in rows],
        "meta": meta.to_dict(),
    }


async def get_listing(db: Database, listing_id: int, caller_id: int | None = None) -> dict:
    row = await _load_visible(db, listing_id, caller_id)
    return to_listing_response(row, include_contact=True)


async def listings_for_owner(db: Database, user_id: int) -> list[dict]:
    rows = await repository.list_listings_by_owner(db, user_id)
    return [to_listing_response(row) for row in rows]


async def create_listing(db: Database, payload: schemas.ListingCreate, owner_id: int) -> dict:
    await category_service.ensure_exists(db, payload.category_id)

    try:
        listing_id = await repository.insert_listing(
            db,
            title=payload.title,
            description=payload.description,
            price=payload.price,
            location=payload.location,
            category_id=payload.category_id,
            user_id=owner_id,
        )
    except asyncpg.exceptions.ForeignKeyViolationError as exc:
        raise AppError(ErrorKind.VALIDATION, "Category does not exist.") from exc

    logger.info("listing_created listing_id=%s user_id=%s", listing_id, owner_id)
    return await get_listing(db, listing_id, owner_id)


def _decode_patch(body: bytes) -> Any:
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError as exc:
        raise AppError(ErrorKind.VALIDATION, "Invalid JSON body.") from exc


async def update_listing(db: Database, listing_id: int, caller_id: int, body: bytes) -> dict:
    """
    `body` is the raw request body. Ownership is checked before it is decoded
    or validated, so a non-owner gets AuthorizationError whatever was sent.
    """
    await _load_owned(db, listing_id, caller_id)

    update = schemas.ListingUpdate.model_validate(_decode_patch(body))

    changes = update.changes()
    if "category_id" in changes:
        await category_service.ensure_exists(db, changes["category_id"])

    try:
        updated = await repository.update_listing(db, listing_id, changes)
    except asyncpg.exceptions.ForeignKeyViolationError as exc:
        raise AppError(ErrorKind.VALIDATION, "Category does not exist.") from exc
    if not updated:
        # Deleted between the ownership check and the update.
        raise AppError(ErrorKind.NOT_FOUND, LISTING_NOT_FOUND)

    logger.info(
        "listing_updated listing_id=%s user_id=%s fields=%s",
        listing_id,
        caller_id,
        ",".join(sorted(changes)),
    )
    return await get_listing(db, listing_id, caller_id)


async def delete_listing(db: Database, listing_id: int, caller_id: int) -> dict:
    await _load_owned(db, listing_id, caller_id)

    if not await repository.delete_listing(db, listing_id):
        raise AppError(ErrorKind.NOT_FOUND, LISTING_NOT_FOUND)

    logger.info("listing_deleted listing_id=%s user_id=%s", listing_id, caller_id)
    return {"ok": True, "id": listing_id, "message": "Listing deleted."}


def _favorite_response(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "userId": int(row["user_id"]),
        "listingId": int(row["listing_id"]),
        "createdAt": row.get("created_at"),
    }


async def add_favorite(db: Database, listing_id: int, user_id: int) -> dict:
    await _load_visible(db, listing_id, user_id)

    row = await repository.insert_favorite(db, user_id=user_id, listing_id=listing_id)
    if row is None:
        raise AppError(ErrorKind.CONFLICT, "Listing is already in favorites.")

    logger.info("favorite_added listing_id=%s user_id=%s", listing_id, user_id)
    return _favorite_response(row)


async def remove_favorite(db: Database, listing_id: int, user_id: int) -> dict:
    removed = await repository.delete_favorite(db, user_id=user_id, listing_id=listing_id)
    if not removed:
        raise AppError(ErrorKind.NOT_FOUND, "Favorite not found.")

    logger.info("favorite_removed listing_id=%s user_id=%s", listing_id, user_id)
    return {"ok": True, "listingId": listing_id}


async def list_favorites(db: Database, user_id: int) -> dict:
    rows = await repository.list_favorites(db, user_id)
    data = [
        {
            "id": int(row["favorite_id"]),
            "userId": user_id,
            "listingId": int(row["id"]),
            "createdAt": row.get("favorited_at"),
            "listing": to_listing_response(row),
        }
        for row in rows
    ]
    return {"data": data, "count": len(data)}
