"""
Category API endpoints (read-only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from core.db import Database, get_db
from core.schema import MAX_ID

from . import service

router = APIRouter(prefix="/categories")


@router.get("")
async def list_categories(db: Database = Depends(get_db)) -> dict:
    return await service.list_categories(db)


@router.get("/slug/{slug}")
async def get_category_by_slug(
    slug: str = Path(..., max_length=100),
    db: Database = Depends(get_db),
) -> dict:
    return await service.get_by_slug(db, slug)


@router.get("/{category_id}")
async def get_category(
    category_id: int = Path(..., ge=1, le=MAX_ID),
    db: Database = Depends(get_db),
) -> dict:
    return await service.get_by_id(db, category_id)
