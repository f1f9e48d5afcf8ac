"""WhatsApp notifier against a mocked Twilio endpoint (``httpx.MockTransport``)."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from factories import booking
from uturn.infrastructure.messaging import WhatsAppNotifier


def _notifier(handler, sid="AC123", token="secret"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WhatsAppNotifier(
        client,
        account_sid=sid,
        auth_token=token,
        from_number="whatsapp:+14155238886",
        app_base_url="https://uturn.example/",
    )


@pytest.mark.asyncio
async def test_send_posts_to_twilio():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM1"})

    notifier = _notifier(handler)
    assert await notifier.send("+919500000001", "hello") is True

    request = seen[0]
    assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    body = request.content.decode()
    assert "To=whatsapp%3A%2B919500000001" in body
    assert request.headers["authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_delivery_failure_is_swallowed():
    notifier = _notifier(lambda request: httpx.Response(500, json={"message": "down"}))
    assert await notifier.send("+919500000001", "hello") is False


@pytest.mark.asyncio
async def test_transport_error_is_swallowed():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    notifier = _notifier(handler)
    assert await notifier.notify_trip_otp(booking(), "123456") is False


@pytest.mark.asyncio
async def test_simulated_without_credentials():
    def handler(request):
        raise AssertionError("simulated notifier must not call Twilio")

    notifier = _notifier(handler, sid="", token="")
    assert notifier.simulated
    assert await notifier.send("+919500000001", "hello") is True


@pytest.mark.asyncio
async def test_missing_phone_is_skipped():
    notifier = _notifier(lambda request: httpx.Response(201, json={}), sid="", token="")
    assert await notifier.send(None, "hello") is False


@pytest.mark.asyncio
async def test_templates_mention_trip_details():
    messages = []

    def handler(request):
        messages.append(request.content.decode())
        return httpx.Response(201, json={"sid": "SM1"})

    notifier = _notifier(handler)
    start = datetime(2026, 11, 1, 9, 0, tzinfo=timezone.utc)
    job = booking(
        id="job-1",
        driver_name="Senthil",
        actual_distance_km=52.0,
        waiting_time_mins=30,
        total_amount=960.0,
        start_time=start,
        end_time=start + timedelta(minutes=95),
    )

    await notifier.notify_driver_confirmed(job)
    await notifier.notify_trip_summary(job)

    confirmed, summary = (httpx.QueryParams(m)["Body"] for m in messages)
    assert "Senthil" in confirmed
    assert "https://uturn.example/trip/job-1" in confirmed
    assert "Duration: 95 mins" in summary
    assert "Waiting: 30 mins" in summary
    assert "Rs.960" in summary
