import asyncio

import httpx
import pytest

from client import ApiClient, ApiError, ListingPage, MarketplaceSession
from main import create_app

BASE_URL = "http://marketplace.test"


@pytest.fixture
def make_client(store):
    app = create_app(db=store)

    def factory(token=None) -> ApiClient:
        return ApiClient(BASE_URL, token=token, transport=httpx.ASGITransport(app=app))

    return factory


def _listing_fields(**overrides) -> dict:
    fields = {
        "title": "Guitare acoustique",
        "description": "Guitare en bon état avec housse.",
        "price": 120.0,
        "location": "Nantes",
        "category_id": 3,
    }
    fields.update(overrides)
    return fields


def test_register_stores_token_and_me(make_client):
    async def scenario():
        async with make_client() as api:
            data = await api.register(name="Ann", email="ann@example.com", password="secret1")
            assert api.is_authenticated
            me = await api.me()
            assert me["id"] == data["user"]["id"]
            assert me["listings"] == []

            api.logout()
            with pytest.raises(ApiError) as exc_info:
                await api.me()
            assert exc_info.value.status_code == 401
            assert exc_info.value.kind == "AuthenticationError"

    asyncio.run(scenario())


def test_api_error_carries_envelope(make_client):
    async def scenario():
        async with make_client() as api:
            await api.register(name="Ann", email="ann@example.com", password="secret1")
            with pytest.raises(ApiError) as exc_info:
                await api.register(name="Ann", email="ann@example.com", password="secret1")
            err = exc_info.value
            assert (err.kind, err.status_code) == ("ConflictError", 409)
            assert err.message == "Email is already registered."

    asyncio.run(scenario())


def test_listing_crud_and_search_through_client(make_client):
    async def scenario():
        async with make_client() as api:
            await api.register(name="Ann", email="ann@example.com", password="secret1")
            created = await api.create_listing(**_listing_fields())
            updated = await api.update_listing(created["id"], {"price": 100})
            assert updated["price"] == 100

            page = await api.listings(q="guitare", category_id=3, max_price=150)
            assert [l["id"] for l in page["data"]] == [created["id"]]

            fetched = await api.listing(created["id"])
            assert fetched["category"]["slug"] == "multimedia"

            category = await api.category_by_slug("multimedia")
            assert category["_count"]["listings"] == 1

            await api.delete_listing(created["id"])
            with pytest.raises(ApiError) as exc_info:
                await api.listing(created["id"])
            assert exc_info.value.status_code == 404

    asyncio.run(scenario())


def test_error_without_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway")

    async def scenario():
        async with ApiClient(BASE_URL, transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.categories()
            assert exc_info.value.kind == "Error"
            assert exc_info.value.message == "Bad gateway"
            assert exc_info.value.status_code == 502

    asyncio.run(scenario())


def test_listing_query_omits_empty_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"data": [], "meta": {}})

    async def scenario():
        async with ApiClient(BASE_URL, transport=httpx.MockTransport(handler)) as api:
            await api.listings(q="", min_price=5, page=2)

    asyncio.run(scenario())
    assert seen == {"minPrice": "5", "page": "2", "pageSize": "10"}


def test_listing_page_from_response():
    page = ListingPage.from_response(
        {
            "data": [{"id": 1}],
            "meta": {
                "page": 2,
                "pageSize": 1,
                "total": 3,
                "totalPages": 3,
                "hasNextPage": True,
                "hasPreviousPage": True,
            },
        }
    )
    assert page.items == [{"id": 1}]
    assert (page.page, page.page_size, page.total, page.total_pages) == (2, 1, 3, 3)
    assert page.has_next_page and page.has_previous_page


def test_session_flow(make_client, store):
    async def scenario():
        async with make_client() as api:
            seller = MarketplaceSession(api)
            await seller.register(name="Seller", email="seller@example.com", password="secret1")
            for i in range(3):
                await seller.create_listing(**_listing_fields(title=f"Guitare {i}"))
            seller.logout()
            assert not seller.is_authenticated

        async with make_client() as api:
            session = MarketplaceSession(api)
            categories = await session.load_categories()
            assert len(categories) == 3
            assert session.category_by_id(2)["slug"] == "vehicules"

            page = await session.load_listings(page_size=2, q="guitare")
            assert page.total == 3
            assert len(page.items) == 2
            assert session.filters == {"q": "guitare"}

            page = await session.next_page()
            assert page.page == 2
            assert len(page.items) == 1
            assert await session.next_page() is page

            page = await session.previous_page()
            assert page.page == 1

            with pytest.raises(ApiError):
                await session.login(email="buyer@example.com", password="secret1")
            assert session.error == "Invalid email or password."
            assert session.loading is False

            await session.register(name="Buyer", email="buyer@example.com", password="secret1")
            assert session.error is None
            listing_id = page.items[0]["id"]
            assert await session.toggle_favorite(listing_id) is True
            assert session.is_favorite(listing_id)
            await session.load_favorites()
            assert [f["listingId"] for f in session.favorites] == [listing_id]
            assert await session.toggle_favorite(listing_id) is False
            assert not session.is_favorite(listing_id)

    asyncio.run(scenario())


def test_check_auth_logs_out_on_rejected_token(make_client):
    async def scenario():
        async with make_client(token="not-a-valid-token") as api:
            session = MarketplaceSession(api)
            assert await session.check_auth() is None
            assert not api.is_authenticated
            assert session.current_user is None

        async with make_client() as api:
            session = MarketplaceSession(api)
            assert await session.check_auth() is None

    asyncio.run(scenario())
