"""Tests for practice settings and consulting rooms."""

import pytest
from httpx import AsyncClient

from gpms.schemas.rooms import RoomCreate
from gpms.services.room_service import RoomService


@pytest.mark.asyncio
async def test_get_and_update_practice(client: AsyncClient, auth_headers: dict, ctx) -> None:
    """The caller sees and edits only their own practice."""
    response = await client.get("/api/v1/practice", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == str(ctx.practice_id)
    assert response.json()["name"] == "Riverside Surgery"

    response = await client.put(
        "/api/v1/practice",
        json={"ods_code": "B82005", "phone": "01904 123456"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["ods_code"] == "B82005"
    assert response.json()["name"] == "Riverside Surgery"


@pytest.mark.asyncio
async def test_rooms(client: AsyncClient, auth_headers: dict, db_session, ctx, other_ctx) -> None:
    """Rooms are created per practice and listed by name."""
    await RoomService(db_session).create_room(other_ctx, RoomCreate(name="Other practice room"))

    for name in ("Room 2", "Room 1"):
        response = await client.post(
            "/api/v1/rooms", json={"name": name, "description": "Ground floor"}, headers=auth_headers
        )
        assert response.status_code == 201
        assert response.json()["is_active"] is True

    response = await client.get("/api/v1/rooms", headers=auth_headers)
    assert response.status_code == 200
    assert [r["name"] for r in response.json()] == ["Room 1", "Room 2"]


@pytest.mark.asyncio
async def test_booking_with_room(
    client: AsyncClient, auth_headers: dict, db_session, ctx, patient_id, clinician_id
) -> None:
    """A booked room is summarised on the appointment."""
    room = await RoomService(db_session).create_room(ctx, RoomCreate(name="Treatment Room"))

    response = await client.post(
        "/api/v1/appointments",
        json={
            "patient_id": str(patient_id),
            "clinician_id": str(clinician_id),
            "room_id": str(room["id"]),
            "appointment_type": "HCA_BLOOD_TEST",
            "scheduled_start": "2026-03-03T08:30:00Z",
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["room"] == {"id": str(room["id"]), "name": "Treatment Room"}


@pytest.mark.asyncio
async def test_practice_timezone(client: AsyncClient, auth_headers: dict) -> None:
    """A practice can set its own IANA time zone; unknown names are refused."""
    response = await client.get("/api/v1/practice", headers=auth_headers)
    assert response.json()["timezone"] is None

    response = await client.put(
        "/api/v1/practice", json={"timezone": "Europe/Dublin"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["timezone"] == "Europe/Dublin"

    response = await client.put(
        "/api/v1/practice", json={"timezone": "Mars/Olympus_Mons"}, headers=auth_headers
    )
    assert response.status_code == 422

    response = await client.get("/api/v1/practice", headers=auth_headers)
    assert response.json()["timezone"] == "Europe/Dublin"
