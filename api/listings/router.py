"""
Listing and favorite API endpoints.
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query, Request, status

from auth import dependencies as auth_dependencies
from core.db import Database, get_db
from core.schema import MAX_ID

from . import schemas, service

router = APIRouter(prefix="/listings")


@router.get("")
async def search_listings(
    q: str | None = Query(default=None),
    category_id: int | None = Query(default=None, alias="categoryId"),
    min_price: Decimal | None = Query(default=None, alias="minPrice"),
    max_price: Decimal | None = Query(default=None, alias="maxPrice"),
    page: int = Query(default=1),
    page_size: int = Query(default=10, alias="pageSize"),
    db: Database = Depends(get_db),
) -> dict:
    """
    Search ACTIVE listings, newest first. Range checks live on `ListingFilters`.
    """
    filters = schemas.ListingFilters(
        q=q,
        categoryId=category_id,
        minPrice=min_price,
        maxPrice=max_price,
        page=page,
        pageSize=page_size,
    )
    return await service.search_listings(db, filters)


# Declared before /{listing_id} so "favorites" is not parsed as an id.
@router.get("/favorites")
async def list_favorites(
    user_id: int = Depends(auth_dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.list_favorites(db, user_id)


@router.get("/{listing_id}")
async def get_listing(
    listing_id: int = Path(..., ge=1, le=MAX_ID),
    caller_id: int | None = Depends(auth_dependencies.get_optional_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.get_listing(db, listing_id, caller_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    payload: schemas.ListingCreate,
    user_id: int = Depends(auth_dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.create_listing(db, payload, user_id)


@router.api_route("/{listing_id}", methods=["PUT", "PATCH"])
async def update_listing(
    request: Request,
    listing_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(auth_dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    # Raw body: decoded and validated by the service after the ownership check.
    return await service.update_listing(db, listing_id, user_id, await request.body())


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(auth_dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.delete_listing(db, listing_id, user_id)


@router.post("/{listing_id}/favorite", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    listing_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(auth_dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.add_favorite(db, listing_id, user_id)


@router.delete("/{listing_id}/favorite")
async def remove_favorite(
    listing_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(auth_dependencies.get_current_user_id),
    db: Database = Depends(get_db),
) -> dict:
    return await service.remove_favorite(db, listing_id, user_id)
