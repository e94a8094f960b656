"""
Tests for category endpoints.
"""

import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, headers: dict, name: str, **extra):
    return await client.post("/api/v1/categories/", json={"name": name, **extra}, headers=headers)


@pytest.mark.asyncio
async def test_create_category(client: AsyncClient, auth_headers):
    response = await _create(client, auth_headers, "  Music ", icon="music", color="#ff0000")

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Music"
    assert data["icon"] == "music"
    assert data["color"] == "#ff0000"


@pytest.mark.asyncio
async def test_create_category_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/categories/", json={"name": "Music"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_duplicate_category(client: AsyncClient, auth_headers):
    await _create(client, auth_headers, "Music")

    response = await _create(client, auth_headers, "music")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_list_categories(client: AsyncClient, auth_headers):
    await _create(client, auth_headers, "Theatre")
    await _create(client, auth_headers, "Comedy")

    response = await client.get("/api/v1/categories/")

    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Comedy", "Theatre"]


@pytest.mark.asyncio
async def test_get_category(client: AsyncClient, auth_headers):
    category_id = (await _create(client, auth_headers, "Sports")).json()["id"]

    response = await client.get(f"/api/v1/categories/{category_id}")
    assert response.status_code == 200
    assert response.json()["name"] == "Sports"

    missing = await client.get("/api/v1/categories/99999")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_category(client: AsyncClient, auth_headers):
    category_id = (await _create(client, auth_headers, "Sports")).json()["id"]

    response = await client.put(
        f"/api/v1/categories/{category_id}",
        json={"description": "Games and matches"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Sports"
    assert response.json()["description"] == "Games and matches"


@pytest.mark.asyncio
async def test_rename_category_to_existing_name(client: AsyncClient, auth_headers):
    await _create(client, auth_headers, "Music")
    category_id = (await _create(client, auth_headers, "Sports")).json()["id"]

    response = await client.put(
        f"/api/v1/categories/{category_id}", json={"name": "MUSIC"}, headers=auth_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_category(client: AsyncClient, auth_headers):
    category_id = (await _create(client, auth_headers, "Sports")).json()["id"]

    response = await client.delete(f"/api/v1/categories/{category_id}", headers=auth_headers)
    assert response.status_code == 204

    assert (await client.get(f"/api/v1/categories/{category_id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_category_in_use(client: AsyncClient, auth_headers, make_event):
    category_id = (await _create(client, auth_headers, "Music")).json()["id"]
    await make_event(category_id=category_id)

    response = await client.delete(f"/api/v1/categories/{category_id}", headers=auth_headers)
    assert response.status_code == 409
