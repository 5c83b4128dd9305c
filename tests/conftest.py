"""
Shared fixtures.

`FakeStore` replaces the repository functions with in-memory versions that
keep the same signatures and row shapes, so the API runs end-to-end without
PostgreSQL.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from auth import repository as auth_repository
from categories import repository as category_repository
from listings import repository as listing_repository
from main import create_app

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)

DEFAULT_PASSWORD = "secret1"
TEST_SECRET = "test-secret-for-the-marketplace-suite"


class FakeStore:
    def __init__(self) -> None:
        self.users: dict[int, dict] = {}
        self.categories: dict[int, dict] = {}
        self.listings: dict[int, dict] = {}
        self.favorites: dict[int, dict] = {}
        self._ids = {name: itertools.count(1) for name in ("users", "categories", "listings", "favorites")}
        self._clock = itertools.count()

    def _now(self) -> datetime:
        return BASE_TIME + timedelta(seconds=next(self._clock))

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        patches = {
            auth_repository: ("create_user", "get_user_by_email", "get_user_by_id"),
            category_repository: (
                "list_categories",
                "get_category_by_id",
                "get_category_by_slug",
                "category_exists",
                "insert_category_if_missing",
            ),
            listing_repository: (
                "search_listings",
                "count_listings",
                "get_listing",
                "list_listings_by_owner",
                "insert_listing",
                "update_listing",
                "delete_listing",
                "insert_favorite",
                "delete_favorite",
                "list_favorites",
            ),
        }
        for module, names in patches.items():
            for name in names:
                monkeypatch.setattr(module, name, getattr(self, name))

    # Direct setup helpers

    def add_category(self, name: str, slug: str) -> dict:
        category_id = self._next_id("categories")
        row = {"id": category_id, "name": name, "slug": slug, "created_at": self._now()}
        self.categories[category_id] = row
        return row

    def add_listing(self, *, user_id: int, category_id: int, status: str = "ACTIVE", **fields) -> dict:
        listing_id = self._next_id("listings")
        now = self._now()
        row = {
            "id": listing_id,
            "title": fields.get("title", f"Listing {listing_id}"),
            "description": fields.get("description", f"Description of listing {listing_id}"),
            "price": Decimal(str(fields.get("price", "10.00"))),
            "location": fields.get("location", "Paris"),
            "status": status,
            "user_id": user_id,
            "category_id": category_id,
            "created_at": fields.get("created_at", now),
            "updated_at": now,
        }
        self.listings[listing_id] = row
        return row

    # Row shapes

    def _listing_row(self, listing: dict) -> dict:
        owner = self.users[listing["user_id"]]
        category = self.categories[listing["category_id"]]
        return {
            **listing,
            "user_name": owner["name"],
            "user_phone": owner.get("phone"),
            "category_name": category["name"],
            "category_slug": category["slug"],
        }

    def _category_row(self, category: dict) -> dict:
        count = sum(1 for l in self.listings.values() if l["category_id"] == category["id"])
        return {**category, "listing_count": count}

    # auth.repository

    async def create_user(self, db, *, email, password_hash, name, phone=None) -> dict:
        user_id = self._next_id("users")
        now = self._now()
        row = {
            "id": user_id,
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "name": name,
            "phone": phone,
            "created_at": now,
            "updated_at": now,
        }
        self.users[user_id] = row
        return dict(row)

    async def get_user_by_email(self, db, email) -> dict | None:
        email = email.strip().lower()
        for row in self.users.values():
            if row["email"] == email:
                return dict(row)
        return None

    async def get_user_by_id(self, db, user_id) -> dict | None:
        row = self.users.get(user_id)
        return dict(row) if row is not None else None

    # categories.repository

    async def list_categories(self, db) -> list[dict]:
        rows = sorted(self.categories.values(), key=lambda c: (c["name"], c["id"]))
        return [self._category_row(c) for c in rows]

    async def get_category_by_id(self, db, category_id) -> dict | None:
        row = self.categories.get(category_id)
        return self._category_row(row) if row is not None else None

    async def get_category_by_slug(self, db, slug) -> dict | None:
        for row in self.categories.values():
            if row["slug"] == slug:
                return self._category_row(row)
        return None

    async def category_exists(self, db, category_id) -> bool:
        return category_id in self.categories

    async def insert_category_if_missing(self, db, *, name, slug) -> bool:
        if any(c["slug"] == slug for c in self.categories.values()):
            return False
        self.add_category(name, slug)
        return True

    # listings.repository

    def _matching(self, filters) -> list[dict]:
        rows = []
        for listing in self.listings.values():
            if listing["status"] != "ACTIVE":
                continue
            if filters.q:
                needle = filters.q.lower()
                if needle not in listing["title"].lower() and needle not in listing["description"].lower():
                    continue
            if filters.category_id is not None and listing["category_id"] != filters.category_id:
                continue
            if filters.min_price is not None and listing["price"] < filters.min_price:
                continue
            if filters.max_price is not None and listing["price"] > filters.max_price:
                continue
            rows.append(listing)
        rows.sort(key=lambda l: (l["created_at"], l["id"]), reverse=True)
        return rows

    async def search_listings(self, db, filters, *, limit, offset) -> list[dict]:
        rows = self._matching(filters)[offset : offset + limit]
        return [self._listing_row(l) for l in rows]

    async def count_listings(self, db, filters) -> int:
        return len(self._matching(filters))

    async def get_listing(self, db, listing_id) -> dict | None:
        row = self.listings.get(listing_id)
        return self._listing_row(row) if row is not None else None

    async def list_listings_by_owner(self, db, user_id) -> list[dict]:
        rows = [l for l in self.listings.values() if l["user_id"] == user_id]
        rows.sort(key=lambda l: (l["created_at"], l["id"]), reverse=True)
        return [self._listing_row(l) for l in rows]

    async def insert_listing(self, db, *, title, description, price, location, category_id, user_id) -> int:
        row = self.add_listing(
            user_id=user_id,
            category_id=category_id,
            title=title,
            description=description,
            price=price,
            location=location,
        )
        return row["id"]

    async def update_listing(self, db, listing_id, changes) -> bool:
        row = self.listings.get(listing_id)
        if row is None:
            return False
        row.update(changes)
        row["updated_at"] = self._now()
        return True

    async def delete_listing(self, db, listing_id) -> bool:
        if self.listings.pop(listing_id, None) is None:
            return False
        self.favorites = {k: f for k, f in self.favorites.items() if f["listing_id"] != listing_id}
        return True

    async def insert_favorite(self, db, *, user_id, listing_id) -> dict | None:
        if any(f["user_id"] == user_id and f["listing_id"] == listing_id for f in self.favorites.values()):
            return None
        favorite_id = self._next_id("favorites")
        row = {"id": favorite_id, "user_id": user_id, "listing_id": listing_id, "created_at": self._now()}
        self.favorites[favorite_id] = row
        return dict(row)

    async def delete_favorite(self, db, *, user_id, listing_id) -> bool:
        for key, f in list(self.favorites.items()):
            if f["user_id"] == user_id and f["listing_id"] == listing_id:
                del self.favorites[key]
                return True
        return False

    async def list_favorites(self, db, user_id) -> list[dict]:
        rows = []
        for f in sorted(self.favorites.values(), key=lambda f: (f["created_at"], f["id"]), reverse=True):
            if f["user_id"] != user_id:
                continue
            listing = self.listings[f["listing_id"]]
            if listing["status"] != "ACTIVE" and listing["user_id"] != user_id:
                continue
            rows.append({"favorite_id": f["id"], "favorited_at": f["created_at"], **self._listing_row(listing)})
        return rows


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("JWT_EXPIRE_HOURS", "24")


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    fake = FakeStore()
    fake.install(monkeypatch)
    fake.add_category("Immobilier", "immobilier")
    fake.add_category("Véhicules", "vehicules")
    fake.add_category("Multimédia", "multimedia")
    return fake


@pytest.fixture
def client(store: FakeStore) -> TestClient:
    return TestClient(create_app(db=store))


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register_user(
    client: TestClient,
    email: str = "ann@example.com",
    password: str = DEFAULT_PASSWORD,
    name: str = "Ann",
    **extra,
) -> tuple[str, dict]:
    resp = client.post("/auth/register", json={"email": email, "password": password, "name": name, **extra})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["token"], body["user"]


def listing_payload(**overrides) -> dict:
    payload = {
        "title": "Vélo de course",
        "description": "Vélo en très bon état, peu servi.",
        "price": 250,
        "location": "Lyon",
        "categoryId": 1,
    }
    payload.update(overrides)
    return payload


def create_listing(client: TestClient, token: str, **overrides) -> dict:
    resp = client.post("/listings", json=listing_payload(**overrides), headers=auth_headers(token))
    assert resp.status_code == 201, resp.text
    return resp.json()
