"""
Integration tests for the REST API endpoints.

Uses the in-memory SQLite session factory from ``conftest`` in place of
the lifespan-built one; Redis, WhatsApp and file storage are overridden
with the shared test doubles.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi.routing import APIRoute
from httpx import ASGITransport, AsyncClient

from uturn.api.app import create_app
from uturn.api.dependencies import get_db, get_notifier, get_redis, get_storage
from uturn.api.middleware import limiter
from uturn.config import Settings

BOOKING = {
    "vendor_id": "vendor-1",
    "publish": True,
    "customer_name": "Lakshmi",
    "customer_phone": "+919500000001",
    "pickup_address": "Chennai Airport",
    "pickup_city": "Chennai",
    "pickup_location": {"lat": 12.9941, "lng": 80.1709},
    "drop_address": "Pondicherry",
    "drop_city": "Pondicherry",
    "vehicle_type": "Sedan",
    "distance_km": 52,
    "schedule_date": "2026-11-01",
    "schedule_time": "09:00",
    "base_fare": 150,
    "per_km_rate": 15,
    "waiting_charges_per_hour": 60,
    "estimated_fare": 930,
}


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory, mock_redis, notifier, storage):
    """AsyncClient backed by SQLite and mocked collaborators."""

    # DB session dependency
    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app(Settings(rate_limit_enabled=False))
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_redis] = lambda: mock_redis
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _driver(client: AsyncClient, phone="+919840000001", **extra) -> dict:
    resp = await client.post(
        "/api/v1/drivers",
        json={"name": "Senthil", "phone": phone, "vehicle_number": "TN01AB1234",
              "vehicle_type": "Sedan", **extra},
    )
    assert resp.status_code == 201
    return resp.json()


async def _booking(client: AsyncClient, **overrides) -> dict:
    resp = await client.post("/api/v1/bookings", json={**BOOKING, **overrides})
    assert resp.status_code == 201
    return resp.json()


async def _approved(client: AsyncClient) -> tuple[dict, dict]:
    driver = await _driver(client)
    job = await _booking(client)
    resp = await client.post(f"/api/v1/bookings/{job['id']}/accept", json={"driver_id": driver["id"]})
    assert resp.status_code == 200
    resp = await client.post(f"/api/v1/bookings/{job['id']}/approve-driver")
    assert resp.status_code == 200
    return driver, resp.json()


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "ok", "redis": "ok"}


@pytest.mark.asyncio
async def test_health_reports_redis_outage(client: AsyncClient, mock_redis):
    from redis.exceptions import ConnectionError as RedisConnectionError

    mock_redis.ping.side_effect = RedisConnectionError("down")
    resp = await client.get("/api/v1/admin/health")
    assert resp.json()["status"] == "degraded"
    assert resp.json()["redis"] == "unavailable"


def test_every_route_is_rate_limited():
    app = create_app(Settings(rate_limit_enabled=False))
    routes = [r for r in app.routes if isinstance(r, APIRoute)]
    assert routes
    for route in routes:
        name = f"{route.endpoint.__module__}.{route.endpoint.__name__}"
        assert name in limiter._route_limits, route.path


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient):
    data = await _booking(client)
    assert data["status"] == "pending"
    assert data["kind"] == "vendor"
    assert data["pickup_location"] == {"lat": 12.9941, "lng": 80.1709}
    assert data["total_amount"] == 930


@pytest.mark.asyncio
async def test_draft_publish_and_delete(client: AsyncClient):
    draft = await _booking(client, publish=False)
    assert draft["status"] == "draft"

    resp = await client.post(f"/api/v1/bookings/{draft['id']}/publish")
    assert resp.json()["status"] == "pending"

    resp = await client.delete(f"/api/v1/bookings/{draft['id']}")
    assert resp.status_code == 409

    other = await _booking(client, publish=False)
    resp = await client.delete(f"/api/v1/bookings/{other['id']}")
    assert resp.status_code == 204
    assert (await client.get(f"/api/v1/jobs/{other['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_list_pending_filters(client: AsyncClient):
    chennai = await _booking(client)
    await _booking(client, pickup_city="Madurai")

    resp = await client.get("/api/v1/bookings/pending", params={"city": "Chennai"})
    assert [j["id"] for j in resp.json()] == [chennai["id"]]


@pytest.mark.asyncio
async def test_list_pending_unknown_driver(client: AsyncClient):
    resp = await client.get("/api/v1/bookings/pending", params={"driver_id": "ghost"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Driver not found"


@pytest.mark.asyncio
async def test_full_trip_over_http(client: AsyncClient, notifier):
    driver, job = await _approved(client)
    job_id = job["id"]
    assert job["status"] == "vendor_approved"
    notifier.notify_driver_confirmed.assert_awaited_once()

    resp = await client.post(
        f"/api/v1/jobs/{job_id}/start-trip",
        data={"start_odometer": "1000", "otp": job["otp"]},
        files={"odometer_photo": ("odo.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "in_progress"
    assert resp.json()["start_odometer_photo_url"].endswith(f"start-{job_id}.jpg")

    resp = await client.patch(f"/api/v1/jobs/{job_id}/waiting-time", json={"additional_minutes": 30})
    assert resp.json()["waiting_time_mins"] == 30

    resp = await client.post(
        f"/api/v1/jobs/{job_id}/complete",
        data={"end_odometer": "1052", "payment_method": "cash"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "completed"
    assert data["total_amount"] == 960
    assert data["commission_status"] == "pending"

    blocked = await client.get("/api/v1/drivers/blocked")
    assert [d["id"] for d in blocked.json()] == [driver["id"]]

    resp = await client.post(f"/api/v1/bookings/{job_id}/commission-paid")
    assert resp.json()["commission_status"] == "paid"
    assert (await client.get(f"/api/v1/drivers/{driver['id']}")).json()["status"] == "active"


@pytest.mark.asyncio
async def test_wrong_otp_returns_400(client: AsyncClient):
    _, job = await _approved(client)
    wrong = "000000" if job["otp"] != "000000" else "111111"
    resp = await client.post(
        f"/api/v1/jobs/{job['id']}/start-trip",
        data={"start_odometer": "1000", "otp": wrong},
    )
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid OTP"}
    assert (await client.get(f"/api/v1/jobs/{job['id']}")).json()["status"] == "vendor_approved"


@pytest.mark.asyncio
async def test_odometer_regression_returns_422(client: AsyncClient):
    _, job = await _approved(client)
    await client.post(
        f"/api/v1/jobs/{job['id']}/start-trip",
        data={"start_odometer": "1000", "otp": job["otp"]},
    )
    resp = await client.post(
        f"/api/v1/jobs/{job['id']}/complete",
        data={"end_odometer": "900", "payment_method": "cash"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_driver_video_upload(client: AsyncClient):
    driver = await _driver(client)
    job = await _booking(client)
    await client.post(f"/api/v1/bookings/{job['id']}/accept", json={"driver_id": driver["id"]})

    resp = await client.post(
        f"/api/v1/bookings/{job['id']}/driver-video",
        files={"video": ("clip.txt", b"not a video", "text/plain")},
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"/api/v1/bookings/{job['id']}/driver-video",
        files={"video": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
    )
    assert resp.status_code == 200
    assert "/driver-videos/" in resp.json()["driver_video_url"]


@pytest.mark.asyncio
async def test_reject_driver(client: AsyncClient):
    driver = await _driver(client)
    job = await _booking(client)
    await client.post(f"/api/v1/bookings/{job['id']}/accept", json={"driver_id": driver["id"]})

    resp = await client.post(f"/api/v1/bookings/{job['id']}/reject-driver", json={"reason": ""})
    assert resp.status_code == 422

    resp = await client.post(
        f"/api/v1/bookings/{job['id']}/reject-driver", json={"reason": "Wrong vehicle"}
    )
    data = resp.json()
    assert data["status"] == "pending"
    assert data["assigned_driver_id"] is None
    assert data["rejection_reason"] == "Wrong vehicle"


@pytest.mark.asyncio
async def test_double_accept_returns_409(client: AsyncClient):
    first = await _driver(client)
    second = await _driver(client, phone="+919840000002")
    job = await _booking(client)
    await client.post(f"/api/v1/bookings/{job['id']}/accept", json={"driver_id": first["id"]})
    resp = await client.post(f"/api/v1/bookings/{job['id']}/accept", json={"driver_id": second["id"]})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_solo_ride_conflict_returns_conflict_id(client: AsyncClient):
    driver = await _driver(client)
    ride = {
        "driver_id": driver["id"],
        "customer_name": "Hari",
        "customer_phone": "+919500000002",
        "schedule_date": "2026-11-01",
        "schedule_time": "09:00",
        "rental_hours": 3,
        "base_fare": 200,
        "per_km_rate": 12,
        "distance_km": 40,
    }
    resp = await client.post("/api/v1/solo-rides", json=ride)
    assert resp.status_code == 201
    first = resp.json()
    assert first["status"] == "confirmed"
    assert first["tracking_id"].startswith("SOLO-")

    resp = await client.post("/api/v1/solo-rides", json={**ride, "schedule_time": "11:00"})
    assert resp.status_code == 409
    assert resp.json()["conflict_id"] == first["id"]

    resp = await client.post("/api/v1/solo-rides", json={**ride, "schedule_time": "12:00"})
    assert resp.status_code == 201

    listing = await client.get(f"/api/v1/solo-rides/driver/{driver['id']}")
    assert len(listing.json()) == 2


@pytest.mark.asyncio
async def test_public_tracking_masks_driver_phone(client: AsyncClient):
    driver, job = await _approved(client)
    resp = await client.post(f"/api/v1/bookings/{job['id']}/tracking")
    tracking_id = resp.json()["tracking_id"]

    resp = await client.get(f"/api/v1/track/{tracking_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["driver_name"] == "Senthil"
    assert data["driver_phone"] == f"+91 XXXXX {driver['phone'][-4:]}"
    assert data["is_closed"] is False
    assert "otp" not in data


@pytest.mark.asyncio
async def test_tracking_hides_driver_while_pending(client: AsyncClient):
    job = await _booking(client)
    data = (await client.get(f"/api/v1/track/{job['id']}")).json()
    assert data["driver_name"] is None
    assert data["driver_phone"] is None


@pytest.mark.asyncio
async def test_cancel_and_closed_tracking(client: AsyncClient):
    job = await _booking(client)
    resp = await client.post(f"/api/v1/jobs/{job['id']}/cancel")
    assert resp.json()["status"] == "cancelled"

    data = (await client.get(f"/api/v1/track/{job['id']}")).json()
    assert data["is_closed"] is True
    assert data["closed_message"]

    resp = await client.post(f"/api/v1/jobs/{job['id']}/cancel")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_quote(client: AsyncClient):
    job = await _booking(client, trip_type="round")
    resp = await client.get(f"/api/v1/jobs/{job['id']}/quote")
    assert resp.json() == {"job_id": job["id"], "estimated_fare": 1674}


@pytest.mark.asyncio
async def test_unknown_job_returns_404(client: AsyncClient):
    resp = await client.get("/api/v1/jobs/missing")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Ride not found"


@pytest.mark.asyncio
async def test_duplicate_driver_phone(client: AsyncClient):
    await _driver(client)
    resp = await client.post(
        "/api/v1/drivers", json={"name": "Other", "phone": "+919840000001"}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_unblock_driver(client: AsyncClient):
    driver = await _driver(client)
    resp = await client.post(f"/api/v1/drivers/{driver['id']}/unblock")
    assert resp.json()["status"] == "active"
    assert (await client.post("/api/v1/drivers/ghost/unblock")).status_code == 404
