"""
Client-side view state over `ApiClient`.

Mirrors what a UI keeps around between calls: the current user, the category
list (loaded once), the listing page being shown with its filters and
pagination meta, and the user's favorites. Every action sets `loading` while
it runs and records the last failure message in `error` before re-raising.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from .api import ApiClient, ApiError

logger = logging.getLogger(__name__)


@dataclass
class ListingPage:
    items: list[dict] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 0
    has_next_page: bool = False
    has_previous_page: bool = False

    @classmethod
    def from_response(cls, data: dict) -> "ListingPage":
        meta = data.get("meta") or {}
        return cls(
            items=list(data.get("data") or []),
            page=int(meta.get("page", 1)),
            page_size=int(meta.get("pageSize", 10)),
            total=int(meta.get("total", 0)),
            total_pages=int(meta.get("totalPages", 0)),
            has_next_page=bool(meta.get("hasNextPage", False)),
            has_previous_page=bool(meta.get("hasPreviousPage", False)),
        )


class MarketplaceSession:
    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.current_user: dict | None = None
        self.categories: list[dict] = []
        self.listings = ListingPage()
        self.filters: dict[str, Any] = {}
        self.favorites: list[dict] = []
        self.loading = False
        self.error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def clear_error(self) -> None:
        self.error = None

    @asynccontextmanager
    async def _action(self) -> AsyncIterator[None]:
        self.loading = True
        self.error = None
        try:
            yield
        except ApiError as exc:
            self.error = exc.message
            raise
        finally:
            self.loading = False

    # Authentication

    async def register(self, *, name: str, email: str, password: str, phone: str | None = None) -> dict:
        async with self._action():
            data = await self.client.register(name=name, email=email, password=password, phone=phone)
            self.current_user = data["user"]
            return data["user"]

    async def login(self, *, email: str, password: str) -> dict:
        async with self._action():
            data = await self.client.login(email=email, password=password)
            self.current_user = data["user"]
            return data["user"]

    def logout(self) -> None:
        self.client.logout()
        self.current_user = None
        self.favorites = []
        self.error = None

    async def check_auth(self) -> dict | None:
        """
        Refresh the current user from the stored token. An invalid or expired
        token logs the session out instead of raising.
        """
        if not self.client.is_authenticated:
            return None
        try:
            self.current_user = await self.client.me()
        except ApiError as exc:
            logger.info("session_token_rejected kind=%s", exc.kind)
            self.logout()
        return self.current_user

    # Categories

    async def load_categories(self, *, force: bool = False) -> list[dict]:
        if self.categories and not force:
            return self.categories
        async with self._action():
            self.categories = await self.client.categories()
            return self.categories

    def category_by_id(self, category_id: int) -> dict | None:
        return next((c for c in self.categories if int(c["id"]) == category_id), None)

    # Listings

    async def load_listings(self, *, page: int = 1, page_size: int | None = None, **filters: Any) -> ListingPage:
        """
        Load a listing page. Filters given here replace the previous ones.
        """
        async with self._action():
            self.filters = {k: v for k, v in filters.items() if v is not None}
            data = await self.client.listings(
                page=page,
                page_size=page_size or self.listings.page_size,
                **self.filters,
            )
            self.listings = ListingPage.from_response(data)
            return self.listings

    async def next_page(self) -> ListingPage:
        if not self.listings.has_next_page:
            return self.listings
        return await self.load_listings(page=self.listings.page + 1, **self.filters)

    async def previous_page(self) -> ListingPage:
        if not self.listings.has_previous_page:
            return self.listings
        return await self.load_listings(page=self.listings.page - 1, **self.filters)

    async def create_listing(self, **fields: Any) -> dict:
        async with self._action():
            listing = await self.client.create_listing(**fields)
            self.listings.items.insert(0, listing)
            return listing

    async def update_listing(self, listing_id: int, changes: dict[str, Any]) -> dict:
        async with self._action():
            listing = await self.client.update_listing(listing_id, changes)
            self.listings.items = [listing if int(item["id"]) == listing_id else item for item in self.listings.items]
            return listing

    async def delete_listing(self, listing_id: int) -> None:
        async with self._action():
            await self.client.delete_listing(listing_id)
            self.listings.items = [item for item in self.listings.items if int(item["id"]) != listing_id]
            self.favorites = [fav for fav in self.favorites if int(fav["listingId"]) != listing_id]

    # Favorites

    async def load_favorites(self) -> list[dict]:
        async with self._action():
            self.favorites = await self.client.favorites()
            return self.favorites

    def is_favorite(self, listing_id: int) -> bool:
        return any(int(fav["listingId"]) == listing_id for fav in self.favorites)

    async def toggle_favorite(self, listing_id: int) -> bool:
        """
        Add or remove a favorite. Returns True when the listing is now a favorite.
        """
        async with self._action():
            if self.is_favorite(listing_id):
                await self.client.remove_favorite(listing_id)
                self.favorites = [fav for fav in self.favorites if int(fav["listingId"]) != listing_id]
                return False
            favorite = await self.client.add_favorite(listing_id)
            self.favorites.insert(0, favorite)
            return True
