"""
Listing and favorite persistence.
This module is where listing-related SQL lives.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from core.db import Database

from .schemas import ListingFilters
from .search import build_search_query

# Listing row joined with its owner and category. Every listing read goes
# through this shape so the service serializes one thing.
_LISTING_SELECT = """
SELECT
  l.id,
  l.title,
  l.description,
  l.price,
  l.location,
  l.status,
  l.user_id,
  l.category_id,
  l.created_at,
  l.updated_at,
  u.name AS user_name,
  u.phone AS user_phone,
  c.name AS category_name,
  c.slug AS category_slug
FROM listings l
JOIN users u ON u.id = l.user_id
JOIN categories c ON c.id = l.category_id
"""

_UPDATABLE_COLUMNS = ("title", "description", "price", "location", "category_id", "status")


async def search_listings(
    db: Database,
    filters: ListingFilters,
    *,
    limit: int,
    offset: int,
) -> list[dict[str, Any]]:
    query = build_search_query(filters)
    n = len(query.args)
    return await db.fetch_all(
        _LISTING_SELECT
        + f"""
        WHERE {query.where_sql}
        ORDER BY l.created_at DESC, l.id DESC
        LIMIT ${n + 1}
        OFFSET ${n + 2}
        """,
        *query.args,
        limit,
        offset,
    )


async def count_listings(db: Database, filters: ListingFilters) -> int:
    query = build_search_query(filters)
    row = await db.fetch_one(
        f"""
        SELECT count(*) AS n
        FROM listings l
        WHERE {query.where_sql}
        """,
        *query.args,
    )
    return int((row or {}).get("n", 0))


async def get_listing(db: Database, listing_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        _LISTING_SELECT
        + """
        WHERE l.id = $1
        """,
        listing_id,
    )


async def list_listings_by_owner(db: Database, user_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        _LISTING_SELECT
        + """
        WHERE l.user_id = $1
        ORDER BY l.created_at DESC, l.id DESC
        """,
        user_id,
    )


async def insert_listing(
    db: Database,
    *,
    title: str,
    description: str,
    price: Decimal,
    location: str,
    category_id: int,
    user_id: int,
) -> int:
    row = await db.fetch_one(
        """
        INSERT INTO listings (title, description, price, location, category_id, user_id)
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING id
        """,
        title,
        description,
        price,
        location,
        category_id,
        user_id,
    )
    if row is None:
        raise RuntimeError("Failed to insert listing.")
    return int(row["id"])


async def update_listing(db: Database, listing_id: int, changes: dict[str, Any]) -> bool:
    """
    Apply a partial update. Unknown keys are rejected rather than interpolated.
    """
    unknown = set(changes) - set(_UPDATABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Columns cannot be updated: {sorted(unknown)}")

    assignments: list[str] = []
    args: list[Any] = [listing_id]
    for column in _UPDATABLE_COLUMNS:
        if column in changes:
            args.append(changes[column])
            assignments.append(f"{column} = ${len(args)}")
    assignments.append("updated_at = now()")

    row = await db.fetch_one(
        f"""
        UPDATE listings
        SET {", ".join(assignments)}
        WHERE id = $1
        RETURNING id
        """,
        *args,
    )
    return row is not None


async def delete_listing(db: Database, listing_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM listings
        WHERE id = $1
        RETURNING id
        """,
        listing_id,
    )
    return row is not None


async def insert_favorite(db: Database, *, user_id: int, listing_id: int) -> dict[str, Any] | None:
    """
    Returns the new favorite, or None when (user_id, listing_id) already exists.
    """
    return await db.fetch_one(
        """
        INSERT INTO favorites (user_id, listing_id)
        VALUES ($1, $2)
        ON CONFLICT (user_id, listing_id) DO NOTHING
        RETURNING id, user_id, listing_id, created_at
        """,
        user_id,
        listing_id,
    )


async def delete_favorite(db: Database, *, user_id: int, listing_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM favorites
        WHERE user_id = $1
          AND listing_id = $2
        RETURNING id
        """,
        user_id,
        listing_id,
    )
    return row is not None


async def list_favorites(db: Database, user_id: int) -> list[dict[str, Any]]:
    """
    Favorites of a user whose listing is still visible to them
    (ACTIVE, or owned by the user).
    """
    return await db.fetch_all(
        """
        SELECT
          f.id AS favorite_id,
          f.created_at AS favorited_at,
          l.id,
          l.title,
          l.description,
          l.price,
          l.location,
          l.status,
          l.user_id,
          l.category_id,
          l.created_at,
          l.updated_at,
          u.name AS user_name,
          u.phone AS user_phone,
          c.name AS category_name,
          c.slug AS category_slug
        FROM favorites f
        JOIN listings l ON l.id = f.listing_id
        JOIN users u ON u.id = l.user_id
        JOIN categories c ON c.id = l.category_id
        WHERE f.user_id = $1
          AND (l.status = 'ACTIVE' OR l.user_id = $1)
        ORDER BY f.created_at DESC, f.id DESC
        """,
        user_id,
    )
