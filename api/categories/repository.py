"""
Category persistence (raw SQL). Read-only apart from seeding.
"""

from __future__ import annotations

from core.db import Database

_SELECT_WITH_COUNT = """
SELECT
  c.id,
  c.name,
  c.slug,
  c.created_at,
  COALESCE(stats.listing_count, 0) AS listing_count
FROM categories c
LEFT JOIN LATERAL (
  SELECT count(*) AS listing_count
  FROM listings l
  WHERE l.category_id = c.id
) stats ON true
"""


async def list_categories(db: Database) -> list[dict]:
    return await db.fetch_all(
        _SELECT_WITH_COUNT
        + """
        ORDER BY c.name ASC, c.id ASC
        """
    )


async def get_category_by_id(db: Database, category_id: int) -> dict | None:
    return await db.fetch_one(
        _SELECT_WITH_COUNT
        + """
        WHERE c.id = $1
        """,
        category_id,
    )


async def get_category_by_slug(db: Database, slug: str) -> dict | None:
    return await db.fetch_one(
        _SELECT_WITH_COUNT
        + """
        WHERE c.slug = $1
        """,
        slug,
    )


async def category_exists(db: Database, category_id: int) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM categories
        WHERE id = $1
        LIMIT 1
        """,
        category_id,
    )
    return row is not None


async def insert_category_if_missing(db: Database, *, name: str, slug: str) -> bool:
    """
    Insert a category unless its slug exists. Returns True when a row was created.
    """
    row = await db.fetch_one(
        """
        INSERT INTO categories (name, slug)
        VALUES ($1, $2)
        ON CONFLICT (slug) DO NOTHING
        RETURNING id
        """,
        name,
        slug,
    )
    return row is not None
