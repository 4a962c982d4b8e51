from __future__ import annotations

import httpx
import pytest

from catalog_admin.api.deps import get_product_service
from catalog_admin.main import app
from catalog_admin.services.catalog.product_service import ProductService
from catalog_fakes import (
    COLOR_ATTR,
    COLOR_BLACK,
    FIXED_NOW,
    SIZE_ATTR,
    SIZE_S,
    UNKNOWN_ID,
    InMemoryAttributeCatalog,
    InMemoryProductStore,
    color_attribute,
    size_attribute,
)

BASE = "/api/v1/admin/products"


@pytest.fixture
def api_store():
    store = InMemoryProductStore()
    catalog = InMemoryAttributeCatalog([size_attribute(), color_attribute()])
    app.dependency_overrides[get_product_service] = lambda: ProductService(store, catalog, clock=lambda: FIXED_NOW)
    yield store
    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


def _tee_payload(**kwargs) -> dict:
    payload = {
        "title": "Classic Tee",
        "imageUrl": "https://cdn.example.com/tee.png",
        "price": 10,
        "variants": [
            {
                "sku": "TEE-S",
                "price": 10,
                "salePrice": 8,
                "stock": 2,
                "values": [{"attributeId": SIZE_ATTR, "attributesValueId": SIZE_S, "stock": 2}],
            }
        ],
    }
    payload.update(kwargs)
    return payload


@pytest.mark.asyncio
async def test_health() -> None:
    async with _client() as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_create_and_read_product(api_store) -> None:
    async with _client() as client:
        created = await client.post(f"{BASE}/", json=_tee_payload())
        assert created.status_code == 201
        body = created.json()
        assert body["slug"] == "classic-tee"
        assert body["mainAttributeId"] == SIZE_ATTR
        assert body["totalStock"] == 2
        assert body["variants"][0]["values"][0]["attributesValueId"] == [SIZE_S]

        fetched = await client.get(f"{BASE}/{body['id']}")

    assert fetched.status_code == 200
    resolved = fetched.json()
    assert resolved["hasVariants"] is True
    assert resolved["price"] is None
    assert resolved["variants"][0]["effectivePrice"] == 8
    assert resolved["variants"][0]["discountPercent"] == 20
    pair = resolved["variants"][0]["attributesResolved"][0]
    assert pair["attribute"]["name"] == "Size"
    assert pair["values"][0]["label"] == "S"


@pytest.mark.asyncio
async def test_create_validation_error_shape(api_store) -> None:
    payload = _tee_payload(
        variants=[
            {
                "price": 10,
                "stock": 1,
                "values": [
                    {"attributeId": SIZE_ATTR, "attributesValueId": SIZE_S, "stock": 1},
                    {"attributeId": COLOR_ATTR, "attributesValueId": COLOR_BLACK, "stock": 1},
                ],
            }
        ]
    )

    async with _client() as client:
        response = await client.post(f"{BASE}/", json=payload)

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["field"] == "mainAttributeId"
    assert api_store.docs == {}


@pytest.mark.asyncio
async def test_update_and_bulk_delete(api_store) -> None:
    async with _client() as client:
        created = (await client.post(f"{BASE}/", json=_tee_payload())).json()

        updated = await client.post(f"{BASE}/update", json={"id": created["id"], "title": "Graphic Tee"})
        assert updated.status_code == 200
        assert updated.json()["slug"] == "graphic-tee"

        deleted = await client.post(f"{BASE}/delete", json={"ids": [created["id"], "bad-id", UNKNOWN_ID]})

    assert deleted.status_code == 200
    assert deleted.json() == {"requested": [created["id"], UNKNOWN_ID], "deletedCount": 1}
    assert api_store.docs == {}


@pytest.mark.asyncio
async def test_list_accepts_camel_case_params(api_store) -> None:
    async with _client() as client:
        await client.post(f"{BASE}/", json=_tee_payload())
        await client.post(
            f"{BASE}/", json={"title": "Socks", "imageUrl": "https://cdn.example.com/s.png", "price": 3, "stock": 0}
        )

        response = await client.get(f"{BASE}/", params={"inStock": "true", "sort": "-totalStock", "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["limit"] == 5
    assert body["items"][0]["hasVariants"] is True
    assert body["items"][0]["title"] == "Classic Tee"


@pytest.mark.asyncio
async def test_missing_product_is_404(api_store) -> None:
    async with _client() as client:
        response = await client.get(f"{BASE}/{UNKNOWN_ID}")

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Product not found"
