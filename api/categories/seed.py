"""
Seed the default categories.

Run from the `api/` directory (or with the package installed):

    python -m categories.seed
"""

from __future__ import annotations

import asyncio
import logging

from core.db import Database
from core.log import configure_logging

from . import repository

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Immobilier", "immobilier"),
    ("Véhicules", "vehicules"),
    ("Multimédia", "multimedia"),
    ("Maison & Jardin", "maison-jardin"),
    ("Emploi & Services", "emploi-services"),
    ("Mode", "mode"),
    ("Loisirs", "loisirs"),
)


async def seed_categories(
    db: Database,
    categories: tuple[tuple[str, str], ...] = DEFAULT_CATEGORIES,
) -> int:
    """
    Insert missing categories (matched by slug). Returns how many were created.
    """
    created = 0
    for name, slug in categories:
        if await repository.insert_category_if_missing(db, name=name, slug=slug):
            created += 1
            logger.info("category_created slug=%s", slug)
        else:
            logger.info("category_exists slug=%s", slug)
    return created


async def _main() -> None:
    db = Database.from_env()
    await db.connect()
    try:
        await db.apply_schema()
        created = await seed_categories(db)
        logger.info("seed_done created=%s total=%s", created, len(DEFAULT_CATEGORIES))
    finally:
        await db.close()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(_main())
