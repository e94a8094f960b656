"""
Tests for event CRUD endpoints.
"""

import pytest
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from httpx import AsyncClient


def _event_payload(**overrides) -> dict:
    payload = {
        "title": "Python Conference 2026",
        "description": "Annual Python gathering",
        "date": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        "location": "Convention Center",
        "price": "49.90",
        "capacity": 500,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, auth_headers, test_user):
    """Authenticated user can create an event; every ticket starts available."""
    response = await client.post("/api/v1/events/", json=_event_payload(), headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Python Conference 2026"
    assert data["capacity"] == 500
    assert data["tickets_available"] == 500
    assert Decimal(data["price"]) == Decimal("49.90")
    assert data["organizer_id"] == test_user.id
    assert "version" not in data


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/events/", json=_event_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_past_date(client: AsyncClient, auth_headers):
    past_date = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = await client.post(
        "/api/v1/events/", json=_event_payload(date=past_date), headers=auth_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [{"capacity": 0}, {"price": "-1"}, {"title": ""}])
async def test_create_event_invalid_fields(client: AsyncClient, auth_headers, overrides):
    response = await client.post(
        "/api/v1/events/", json=_event_payload(**overrides), headers=auth_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_event_unknown_category(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/events/", json=_event_payload(category_id=99999), headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    response = await client.get(f"/api/v1/events/{test_event.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_event.id
    assert data["tickets_available"] == 100


@pytest.mark.asyncio
async def test_get_nonexistent_event(client: AsyncClient):
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_events(client: AsyncClient, make_event):
    await make_event(title="Later", days_ahead=20)
    await make_event(title="Sooner", days_ahead=10)
    await make_event(title="Over", days_ahead=-5)

    response = await client.get("/api/v1/events/")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [e["title"] for e in data["events"]] == ["Sooner", "Later"]
    assert data["cached"] is False

    everything = await client.get("/api/v1/events/", params={"upcoming_only": False})
    assert everything.json()["total"] == 3


@pytest.mark.asyncio
async def test_list_events_pagination(client: AsyncClient, make_event):
    for i in range(5):
        await make_event(title=f"Event {i}", days_ahead=10 + i)

    response = await client.get("/api/v1/events/", params={"page": 2, "page_size": 2})

    data = response.json()
    assert data["total"] == 5
    assert data["page"] == 2
    assert [e["title"] for e in data["events"]] == ["Event 2", "Event 3"]


@pytest.mark.asyncio
async def test_list_events_search(client: AsyncClient, make_event):
    await make_event(title="Jazz Night")
    await make_event(title="Rock Festival")

    response = await client.get("/api/v1/events/", params={"search": "jazz"})

    titles = [e["title"] for e in response.json()["events"]]
    assert titles == ["Jazz Night"]


@pytest.mark.asyncio
async def test_list_events_by_category(client: AsyncClient, auth_headers, make_event):
    category = (
        await client.post("/api/v1/categories/", json={"name": "Music"}, headers=auth_headers)
    ).json()
    await make_event(title="Concert", category_id=category["id"])
    await make_event(title="Uncategorised")

    response = await client.get(f"/api/v1/events/category/{category['id']}")
    assert response.status_code == 200
    assert [e["title"] for e in response.json()] == ["Concert"]
    assert response.json()[0]["category"]["name"] == "Music"

    filtered = await client.get("/api/v1/events/", params={"category_id": category["id"]})
    assert filtered.json()["total"] == 1


@pytest.mark.asyncio
async def test_update_event(client: AsyncClient, auth_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Renamed", "price": "30.00"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed"
    assert Decimal(data["price"]) == Decimal("30.00")
    assert data["capacity"] == 100
    assert data["tickets_available"] == 100


@pytest.mark.asyncio
async def test_update_event_ignores_availability(client: AsyncClient, auth_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"tickets_available": 1, "capacity": 1},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["tickets_available"] == 100
    assert response.json()["capacity"] == 100


@pytest.mark.asyncio
async def test_update_event_not_organizer(client: AsyncClient, other_auth_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Hijacked"},
        headers=other_auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_price_change_keeps_existing_booking_totals(client: AsyncClient, auth_headers, test_event):
    booking = (
        await client.post(
            "/api/v1/bookings/",
            json={"event_id": test_event.id, "number_of_tickets": 2},
            headers=auth_headers,
        )
    ).json()

    await client.put(f"/api/v1/events/{test_event.id}", json={"price": "99.00"}, headers=auth_headers)

    response = await client.get(f"/api/v1/bookings/{booking['id']}")
    assert Decimal(response.json()["total_price"]) == Decimal("50.00")


@pytest.mark.asyncio
async def test_delete_event(client: AsyncClient, auth_headers, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_event_with_confirmed_bookings(client: AsyncClient, auth_headers, test_event):
    booking = (
        await client.post(
            "/api/v1/bookings/",
            json={"event_id": test_event.id, "number_of_tickets": 1},
            headers=auth_headers,
        )
    ).json()

    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=auth_headers)
    assert response.status_code == 409

    await client.put(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth_headers)
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=auth_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_delete_event_not_organizer(client: AsyncClient, other_auth_headers, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=other_auth_headers)
    assert response.status_code == 403
