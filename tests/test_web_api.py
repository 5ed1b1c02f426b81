import os
import pytest
from httpx import AsyncClient, ASGITransport

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")

from web_app.dependencies import get_session
from web_app.web_main import app


@pytest.fixture
def client_factory(session):
    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session

    def make_client():
        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="http://test")

    yield make_client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_list_products_enriched_with_image_src(client_factory, sample_data, monkeypatch):
    monkeypatch.delenv("IMAGE_PLACEHOLDER", raising=False)
    async with client_factory() as ac:
        resp = await ac.get("/api/products", params={"limit": 10})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["pagination"] == {"page": 1, "limit": 10, "total": 3, "total_pages": 1}

    image_src = {item["id"]: item["image_src"] for item in body["data"]["items"]}
    assert image_src == {
        "inv-6000": "/images/products/full/inv-6000/main.jpg",
        "bat-48v": "https://cdn.example.com/bat.jpg",
        "cab-10": "/images/placeholder.svg",
    }


@pytest.mark.asyncio
async def test_list_products_filters_and_custom_placeholder(client_factory, sample_data, monkeypatch):
    monkeypatch.setenv("IMAGE_PLACEHOLDER", "/img/no-photo.png")
    async with client_factory() as ac:
        resp = await ac.get("/api/products", params={"category": "cables"})

    items = resp.json()["data"]["items"]
    assert [item["id"] for item in items] == ["cab-10"]
    assert items[0]["image_src"] == "/img/no-photo.png"
    assert items[0]["unit"] == "ft"
    assert items[0]["price"] == 1.25


@pytest.mark.asyncio
async def test_list_products_rejects_bad_paging(client_factory):
    async with client_factory() as ac:
        resp = await ac.get("/api/products", params={"limit": 500})

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_product_detail(client_factory, sample_data):
    async with client_factory() as ac:
        resp = await ac.get("/api/products/inv-6000")
        missing = await ac.get("/api/products/nope")

    data = resp.json()["data"]
    assert data["image_src"] == "/images/products/full/inv-6000/main.jpg"
    assert [image["is_primary"] for image in data["images"]] == [False, True]
    assert data["primary_image_url"] == "https://cdn.example.com/inv-6000.jpg"
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_subscription_plans(client_factory):
    async with client_factory() as ac:
        resp = await ac.get("/api/subscriptions/plans")

    plans = resp.json()["plans"]
    assert [plan["slug"] for plan in plans] == ["free", "pro", "enterprise"]
    assert plans[1]["formatted_price"] == "$29"


@pytest.mark.asyncio
async def test_favicon(client_factory):
    async with client_factory() as ac:
        resp = await ac.get("/favicon.ico")

    assert resp.status_code == 204
