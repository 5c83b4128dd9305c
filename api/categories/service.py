"""
Category lookups.
"""

from __future__ import annotations

from core.db import Database
from core.errors import AppError, ErrorKind

from . import repository

CATEGORY_NOT_FOUND = "Category not found."


def to_category_response(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "name": str(row["name"]),
        "slug": str(row["slug"]),
        "createdAt": row.get("created_at"),
        "_count": {"listings": int(row.get("listing_count") or 0)},
    }


async def list_categories(db: Database) -> dict:
    rows = await repository.list_categories(db)
    data = [to_category_response(row) for row in rows]
    return {"data": data, "count": len(data)}


async def get_by_id(db: Database, category_id: int) -> dict:
    row = await repository.get_category_by_id(db, category_id)
    if row is None:
        raise AppError(ErrorKind.NOT_FOUND, CATEGORY_NOT_FOUND)
    return to_category_response(row)


async def get_by_slug(db: Database, slug: str) -> dict:
    slug = (slug or "").strip()
    if not slug:
        raise AppError(ErrorKind.VALIDATION, "Invalid category slug.")

    row = await repository.get_category_by_slug(db, slug)
    if row is None:
        raise AppError(ErrorKind.NOT_FOUND, CATEGORY_NOT_FOUND)
    return to_category_response(row)


async def ensure_exists(db: Database, category_id: int) -> None:
    if not await repository.category_exists(db, category_id):
        raise AppError(ErrorKind.VALIDATION, "Category does not exist.")
