"""Tests for the staff directory and its caching."""

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import redis
from httpx import AsyncClient
from sqlalchemy import select

from conftest import create_user
from gpms.core.exceptions import BadRequestException, ConflictException, NotFoundException
from gpms.core.redis_client import CacheManager
from gpms.core.security import verify_password
from gpms.models.users import users
from gpms.schemas.enums import UserRole
from gpms.schemas.staff import PasswordChange, StaffCreate, StaffUpdate
from gpms.services.staff_service import StaffService


@pytest.fixture
def sample_staff_data() -> dict:
    """Sample staff payload for testing."""
    return {
        "email": "dr.okafor@riverside.nhs.uk",
        "first_name": "Ngozi",
        "last_name": "Okafor",
        "role": "GP",
        "gmc_number": "7012345",
        "password": "s3cure-passw0rd",
    }


@pytest.mark.asyncio
async def test_create_staff_hashes_password(db_session, ctx, sample_staff_data):
    """The password is stored as a bcrypt hash and never returned."""
    service = StaffService(db_session)
    staff = await service.create_staff(ctx, StaffCreate(**sample_staff_data))

    assert "password_hash" not in staff
    assert staff["role"] == "GP"

    stored = await db_session.execute(select(users.c.password_hash).where(users.c.id == staff["id"]))
    password_hash = stored.scalar_one()
    assert password_hash != sample_staff_data["password"]
    assert verify_password(sample_staff_data["password"], password_hash)


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(db_session, ctx, sample_staff_data):
    """Emails are unique across practices."""
    service = StaffService(db_session)
    await service.create_staff(ctx, StaffCreate(**sample_staff_data))

    with pytest.raises(ConflictException):
        await service.create_staff(ctx, StaffCreate(**sample_staff_data))


@pytest.mark.asyncio
async def test_list_clinicians(db_session, ctx, clinician_id):
    """Only active GPs, nurses and HCAs are clinicians."""
    nurse_id = await create_user(db_session, ctx.practice_id, UserRole.NURSE)
    await create_user(db_session, ctx.practice_id, UserRole.HCA, is_active=False)
    await create_user(db_session, ctx.practice_id, UserRole.PRACTICE_MANAGER)

    clinicians = await StaffService(db_session).list_clinicians(ctx)

    assert {c["id"] for c in clinicians} == {clinician_id, nurse_id}


@pytest.mark.asyncio
async def test_list_staff_filters(db_session, ctx, clinician_id):
    """Staff can be filtered by role and active flag."""
    await create_user(db_session, ctx.practice_id, UserRole.GP, is_active=False)
    service = StaffService(db_session)

    active_gps = await service.list_staff(ctx, role=UserRole.GP)
    assert [s["id"] for s in active_gps] == [clinician_id]

    all_gps = await service.list_staff(ctx, role=UserRole.GP, is_active=None)
    assert len(all_gps) == 2

    everyone = await service.list_staff(ctx)
    # GP fixture plus the receptionist behind ctx
    assert len(everyone) == 2


@pytest.mark.asyncio
async def test_staff_is_tenant_scoped(db_session, ctx, other_ctx, clinician_id):
    """Another practice cannot read the staff member."""
    with pytest.raises(NotFoundException):
        await StaffService(db_session).get_staff(other_ctx, clinician_id)


@pytest.mark.asyncio
async def test_update_staff(db_session, ctx, clinician_id):
    """Deactivating a clinician removes them from the clinician list."""
    service = StaffService(db_session)
    updated = await service.update_staff(ctx, clinician_id, StaffUpdate(is_active=False))

    assert updated["is_active"] is False
    assert await service.list_clinicians(ctx) == []


@pytest.mark.asyncio
async def test_get_staff_uses_cache(db_session, ctx, clinician_id):
    """A cache hit is returned without touching the database."""
    cache = MagicMock(spec=CacheManager)
    cache.get_json.return_value = {"id": str(clinician_id), "first_name": "Cached"}

    staff = await StaffService(db_session, cache).get_staff(ctx, clinician_id)

    assert staff["first_name"] == "Cached"
    cache.get_json.assert_called_once_with(f"staff:{ctx.practice_id}:{clinician_id}")
    cache.set_json.assert_not_called()


@pytest.mark.asyncio
async def test_get_staff_populates_cache(db_session, ctx, clinician_id):
    """A cache miss reads the database and stores the result."""
    cache = MagicMock(spec=CacheManager)
    cache.get_json.return_value = None

    staff = await StaffService(db_session, cache).get_staff(ctx, clinician_id)

    assert staff["id"] == clinician_id
    key, value = cache.set_json.call_args.args
    assert key == f"staff:{ctx.practice_id}:{clinician_id}"
    assert value["email"] == "gp@riverside.nhs.uk"
    assert cache.set_json.call_args.kwargs["ttl"] == StaffService.STAFF_CACHE_TTL


@pytest.mark.asyncio
async def test_staff_writes_invalidate_cache(db_session, ctx, clinician_id, sample_staff_data):
    """Creating or updating staff drops the practice's cached entries."""
    cache = MagicMock(spec=CacheManager)
    cache.get_json.return_value = None
    service = StaffService(db_session, cache)

    await service.create_staff(ctx, StaffCreate(**sample_staff_data))
    await service.update_staff(ctx, clinician_id, StaffUpdate(phone="01234 567890"))

    assert cache.delete_pattern.call_count == 2
    cache.delete_pattern.assert_called_with(f"staff:{ctx.practice_id}:*")


def test_cache_manager_round_trip():
    """CacheManager stores JSON with a TTL and reads it back."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.set_json("staff:1:2", {"name": "Test"}, ttl=300) is True
    key, ttl, payload = mock_redis.setex.call_args.args
    assert (key, ttl) == ("staff:1:2", 300)

    mock_redis.get.return_value = payload
    assert cache_manager.get_json("staff:1:2") == {"name": "Test"}


def test_cache_manager_fails_soft():
    """Redis errors degrade to cache misses."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("redis down")
    mock_redis.setex.side_effect = redis.ConnectionError("redis down")
    mock_redis.scan_iter.side_effect = redis.ConnectionError("redis down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("key") is None
    assert cache_manager.set_json("key", {"a": 1}, ttl=60) is False
    assert cache_manager.delete_pattern("staff:*") == 0


def test_cache_manager_delete_pattern():
    """Test CacheManager delete_pattern method."""
    mock_redis = MagicMock()
    mock_redis.scan_iter.return_value = iter(["staff:p:1", "staff:p:list:GP:True"])
    mock_redis.delete.return_value = 2
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.delete_pattern("staff:p:*") == 2
    mock_redis.scan_iter.assert_called_once_with(match="staff:p:*", count=CacheManager.SCAN_BATCH)
    mock_redis.delete.assert_called_once_with("staff:p:1", "staff:p:list:GP:True")


def test_cache_manager_serialises_uuids_and_datetimes():
    """Values that JSON cannot encode natively are stored as strings."""
    mock_redis = MagicMock()
    staff_id = uuid4()
    CacheManager(redis_client=mock_redis).set_json(
        "k", {"id": staff_id, "created_at": datetime(2026, 3, 1, tzinfo=UTC)}
    )

    stored = json.loads(mock_redis.set.call_args.args[1])
    assert stored["id"] == str(staff_id)
    assert stored["created_at"].startswith("2026-03-01")


@pytest.mark.asyncio
async def test_staff_over_http(client: AsyncClient, auth_headers: dict, sample_staff_data):
    """Create, fetch and list staff through the API."""
    response = await client.post("/api/v1/staff", json=sample_staff_data, headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert "password" not in data
    assert "password_hash" not in data
    staff_id = data["id"]

    response = await client.get(f"/api/v1/staff/{staff_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == sample_staff_data["email"]

    response = await client.get("/api/v1/staff/clinicians", headers=auth_headers)
    assert response.status_code == 200
    assert [c["id"] for c in response.json()] == [staff_id]

    response = await client.post("/api/v1/staff", json=sample_staff_data, headers=auth_headers)
    assert response.status_code == 409


async def stored_hash(db_session, staff_id) -> str:
    result = await db_session.execute(select(users.c.password_hash).where(users.c.id == staff_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_change_password(db_session, ctx):
    """The current password must match before the new one is stored."""
    service = StaffService(db_session)

    with pytest.raises(BadRequestException):
        await service.change_password(
            ctx, PasswordChange(current_password="wrong-password", new_password="n3w-passw0rd")
        )
    assert verify_password("password123", await stored_hash(db_session, ctx.user_id))

    await service.change_password(
        ctx, PasswordChange(current_password="password123", new_password="n3w-passw0rd")
    )

    password_hash = await stored_hash(db_session, ctx.user_id)
    assert verify_password("n3w-passw0rd", password_hash)
    assert not verify_password("password123", password_hash)


@pytest.mark.asyncio
async def test_change_password_over_http(client: AsyncClient, auth_headers: dict, db_session, ctx):
    """Only the caller's own password is changed."""
    response = await client.put(
        "/api/v1/staff/me/password",
        json={"current_password": "not-it", "new_password": "n3w-passw0rd"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"

    response = await client.put(
        "/api/v1/staff/me/password",
        json={"current_password": "password123", "new_password": "n3w-passw0rd"},
        headers=auth_headers,
    )
    assert response.status_code == 204
    assert verify_password("n3w-passw0rd", await stored_hash(db_session, ctx.user_id))
