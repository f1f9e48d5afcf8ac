"""
WhatsApp notifications to customers (Twilio REST API over ``httpx``).

Notifications are fire-and-forget: every ``notify_*`` call swallows and
logs delivery failures, so a trip state change that has already been
written is never undone by a messaging outage.  Without Twilio credentials
the notifier only logs what it would have sent.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from uturn.domain.entities import Job

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class WhatsAppNotifier:
    def __init__(
        self,
        http: httpx.AsyncClient,
        account_sid: str = "",
        auth_token: str = "",
        from_number: str = "",
        app_base_url: str = "",
    ):
        self.http = http
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.app_base_url = app_base_url.rstrip("/")

    @property
    def simulated(self) -> bool:
        return not (self.account_sid.startswith("AC") and self.auth_token)

    async def send(self, to: Optional[str], message: str) -> bool:
        """Deliver *message*; returns False instead of raising on failure."""
        if not to:
            logger.warning("Skipping WhatsApp message: no recipient phone")
            return False

        if self.simulated:
            logger.info("[SIMULATED] WhatsApp to %s: %s", to, message[:100])
            return True

        recipient = to if to.startswith("whatsapp:") else f"whatsapp:{to}"
        try:
            resp = await self.http.post(
                f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json",
                data={"From": self.from_number, "To": recipient, "Body": message},
                auth=(self.account_sid, self.auth_token),
            )
            resp.raise_for_status()
            sid = resp.json().get("sid")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("WhatsApp send to %s failed: %s", to, exc)
            return False

        logger.info("WhatsApp sent to %s: %s", to, sid)
        return True

    # ── Templates ─────────────────────────────────────────────────────

    async def notify_driver_confirmed(self, job: Job) -> bool:
        trip_link = f"{self.app_base_url}/trip/{job.id}"
        message = (
            "*Driver Confirmed for Your Trip!*\n\n"
            f"Hi {job.customer_name},\n\n"
            "Your driver has been assigned!\n\n"
            f"Driver: {job.driver_name or 'Verified Driver'}\n"
            f"Phone: {job.driver_phone or ''}\n"
            f"Vehicle: {job.vehicle_number or ''}\n\n"
            f"View trip details & track:\n{trip_link}\n\n"
            "Your OTP for trip start will be sent when driver arrives."
        )
        return await self.send(job.customer_phone, message)

    async def notify_trip_otp(self, job: Job, otp: str) -> bool:
        message = (
            "*Trip Start OTP*\n\n"
            f"Hi {job.customer_name},\n\n"
            "Your driver has arrived at the pickup location.\n\n"
            f"Your OTP: *{otp}*\n\n"
            "Please provide this OTP to the driver to start your trip."
        )
        return await self.send(job.customer_phone, message)

    async def notify_trip_summary(self, job: Job) -> bool:
        duration = 0
        if job.start_time and job.end_time:
            duration = round((job.end_time - job.start_time).total_seconds() / 60)
        waiting = (
            f"Waiting: {job.waiting_time_mins} mins\n" if job.waiting_time_mins else ""
        )
        message = (
            "*Trip Completed!*\n\n"
            f"Hi {job.customer_name},\n\n"
            "Thank you for choosing U-Turn!\n\n"
            f"Distance: {job.actual_distance_km} km\n"
            f"Duration: {duration} mins\n"
            f"{waiting}"
            f"Total Amount: Rs.{job.total_amount:g}"
        )
        return await self.send(job.customer_phone, message)
