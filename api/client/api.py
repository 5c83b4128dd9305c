"""
HTTP client for the marketplace API.

Keeps the bearer token in memory: register/login store it, logout drops it.
Non-2xx responses raise `ApiError` built from the `{error, message}` envelope.
"""

from __future__ import annotations

from typing import Any

import httpx

from core import settings

DEFAULT_BASE_URL = "http://localhost:8000"


class ApiError(RuntimeError):
    def __init__(self, kind: str, message: str, status_code: int) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"ApiError({self.kind!r}, {self.message!r}, status_code={self.status_code})"


def api_base_url() -> str:
    return settings.env_str("MARKETPLACE_API_URL", DEFAULT_BASE_URL).rstrip("/")


def _error_from_response(resp: httpx.Response) -> ApiError:
    kind, message = "Error", ""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        kind = str(data.get("error") or kind)
        message = str(data.get("message") or "")
    if not message:
        # Avoid dumping huge bodies; include a small snippet.
        message = resp.text[:300] or f"Request failed with status {resp.status_code}."
    return ApiError(kind, message, resp.status_code)


def _query_params(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None and v != ""}


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self._http = httpx.AsyncClient(
            base_url=base_url or api_base_url(),
            timeout=timeout_s,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = await self._http.request(method, path, json=json, params=params, headers=headers)
        if resp.status_code >= 400:
            raise _error_from_response(resp)
        return resp.json()

    # Authentication

    async def register(self, *, name: str, email: str, password: str, phone: str | None = None) -> dict:
        body = {"name": name, "email": email, "password": password}
        if phone:
            body["phone"] = phone
        data = await self._request("POST", "/auth/register", json=body)
        self.token = data["token"]
        return data

    async def login(self, *, email: str, password: str) -> dict:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self.token = None

    async def me(self) -> dict:
        data = await self._request("GET", "/auth/me")
        return data["user"]

    # Categories

    async def categories(self) -> list[dict]:
        data = await self._request("GET", "/categories")
        return data["data"]

    async def category(self, category_id: int) -> dict:
        return await self._request("GET", f"/categories/{category_id}")

    async def category_by_slug(self, slug: str) -> dict:
        return await self._request("GET", f"/categories/slug/{slug}")

    # Listings

    async def listings(
        self,
        *,
        q: str | None = None,
        category_id: int | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> dict:
        params = _query_params(
            {
                "q": q,
                "categoryId": category_id,
                "minPrice": min_price,
                "maxPrice": max_price,
                "page": page,
                "pageSize": page_size,
            }
        )
        return await self._request("GET", "/listings", params=params)

    async def listing(self, listing_id: int) -> dict:
        return await self._request("GET", f"/listings/{listing_id}")

    async def create_listing(
        self,
        *,
        title: str,
        description: str,
        price: float,
        location: str,
        category_id: int,
    ) -> dict:
        body = {
            "title": title,
            "description": description,
            "price": price,
            "location": location,
            "categoryId": category_id,
        }
        return await self._request("POST", "/listings", json=body)

    async def update_listing(self, listing_id: int, changes: dict[str, Any]) -> dict:
        return await self._request("PUT", f"/listings/{listing_id}", json=changes)

    async def delete_listing(self, listing_id: int) -> dict:
        return await self._request("DELETE", f"/listings/{listing_id}")

    # Favorites

    async def add_favorite(self, listing_id: int) -> dict:
        return await self._request("POST", f"/listings/{listing_id}/favorite")

    async def remove_favorite(self, listing_id: int) -> dict:
        return await self._request("DELETE", f"/listings/{listing_id}/favorite")

    async def favorites(self) -> list[dict]:
        data = await self._request("GET", "/listings/favorites")
        return data["data"]
