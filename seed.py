"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample drivers (one blocked for an unpaid commission)
  - 6 sample bookings (mix of draft, pending, driver_accepted, completed)
  - 1 confirmed solo ride
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from uturn.config import Settings
from uturn.domain.codes import booking_tracking_id, generate_otp, solo_tracking_id
from uturn.domain.enums import CommissionStatus, DriverStatus, JobStatus, PaymentStatus
from uturn.infrastructure.database import build_engine, build_session_factory
from uturn.infrastructure.models import BookingModel, DriverModel, SoloRideModel

VENDOR_ID = "vendor-chennai-01"

DRIVERS = [
    {"name": "Senthil Kumar", "phone": "+919840011001", "vehicle_number": "TN01AB1234", "vehicle_type": "Sedan"},
    {"name": "Murugan R", "phone": "+919840011002", "vehicle_number": "TN02CD5678", "vehicle_type": "SUV"},
    {"name": "Karthik S", "phone": "+919840011003", "vehicle_number": "TN09EF9012", "vehicle_type": "Sedan"},
    {"name": "Arun Prakash", "phone": "+919840011004", "vehicle_number": "TN10GH3456", "vehicle_type": "Innova"},
    {"name": "Vignesh M", "phone": "+919840011005", "vehicle_number": "TN22JK7890", "vehicle_type": "Hatchback"},
    {"name": "Prakash Raj", "phone": "+919840011006", "vehicle_number": "TN07LM2468", "vehicle_type": "SUV",
     "status": DriverStatus.BLOCKED_FOR_PAYMENT},
]


def _day(offset: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=offset)).date().isoformat()


async def seed(session_factory):
    async with session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM drivers"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Drivers ───────────────────────────────────────────────────
        drivers = []
        for d in DRIVERS:
            m = DriverModel(id=str(uuid.uuid4()), **d)
            session.add(m)
            drivers.append(m)
        await session.flush()
        print(f"  Created {len(drivers)} drivers")

        # ── Bookings ──────────────────────────────────────────────────
        common = {
            "vendor_id": VENDOR_ID,
            "customer_language": "Tamil",
            "pickup_city": "Chennai",
            "base_fare": 300.0,
            "per_km_rate": 14.0,
            "waiting_charges_per_hour": 120.0,
        }
        bookings_data = [
            {
                "customer_name": "Lakshmi N", "customer_phone": "+919500022001",
                "pickup_address": "Chennai Airport", "drop_address": "Pondicherry",
                "drop_city": "Pondicherry", "distance_km": 150.0, "vehicle_type": "Sedan",
                "schedule_date": _day(1), "schedule_time": "06:00",
                "status": JobStatus.PENDING, "estimated_fare": 2400.0,
            },
            {
                "customer_name": "Ramesh V", "customer_phone": "+919500022002",
                "pickup_address": "T Nagar", "drop_address": "Vellore",
                "drop_city": "Vellore", "distance_km": 140.0, "vehicle_type": "SUV",
                "trip_type": "round", "schedule_date": _day(2), "schedule_time": "08:30",
                "return_date": _day(2), "return_time": "20:00",
                "status": JobStatus.PENDING, "estimated_fare": 4068.0,
            },
            {
                "customer_name": "Divya K", "customer_phone": "+919500022003",
                "pickup_address": "Anna Nagar", "drop_address": "Mahabalipuram",
                "drop_city": "Mahabalipuram", "distance_km": 60.0, "vehicle_type": "Sedan",
                "trip_type": "rental", "schedule_date": _day(3), "schedule_time": "10:00",
                "status": JobStatus.DRAFT, "estimated_fare": 2850.0,
            },
            {
                "customer_name": "Suresh B", "customer_phone": "+919500022004",
                "pickup_address": "Velachery", "drop_address": "Chennai Central",
                "drop_city": "Chennai", "distance_km": 18.0, "vehicle_type": "Sedan",
                "schedule_date": _day(1), "schedule_time": "14:00",
                "status": JobStatus.DRIVER_ACCEPTED, "driver": drivers[0],
                "estimated_fare": 552.0,
            },
            {
                "customer_name": "Meena P", "customer_phone": "+919500022005",
                "pickup_address": "Adyar", "drop_address": "Kanchipuram",
                "drop_city": "Kanchipuram", "distance_km": 75.0, "vehicle_type": "SUV",
                "schedule_date": _day(-1), "schedule_time": "07:00",
                "status": JobStatus.COMPLETED, "driver": drivers[5],
                "estimated_fare": 1350.0, "total_amount": 1410.0,
                "start_odometer": 42100.0, "end_odometer": 42178.0, "actual_distance_km": 78.0,
                "payment_method": "cash", "payment_status": PaymentStatus.COMPLETED,
                "commission_status": CommissionStatus.PENDING,
            },
            {
                "customer_name": "Gopal A", "customer_phone": "+919500022006",
                "pickup_address": "Tambaram", "drop_address": "Tiruvannamalai",
                "drop_city": "Tiruvannamalai", "distance_km": 185.0, "vehicle_type": "Innova",
                "schedule_date": _day(4), "schedule_time": "05:30",
                "status": JobStatus.PENDING, "estimated_fare": 2890.0,
            },
        ]
        for b in bookings_data:
            driver = b.pop("driver", None)
            booking = BookingModel(id=str(uuid.uuid4()), tracking_id=booking_tracking_id(), **common, **b)
            if driver is not None:
                booking.assigned_driver_id = driver.id
                booking.driver_name = driver.name
                booking.driver_phone = driver.phone
                booking.vehicle_number = driver.vehicle_number
            session.add(booking)
        await session.flush()
        print(f"  Created {len(bookings_data)} bookings")

        # ── Solo ride ─────────────────────────────────────────────────
        driver = drivers[2]
        session.add(
            SoloRideModel(
                id=str(uuid.uuid4()),
                tracking_id=solo_tracking_id(),
                assigned_driver_id=driver.id,
                driver_name=driver.name,
                driver_phone=driver.phone,
                vehicle_number=driver.vehicle_number,
                vehicle_type=driver.vehicle_type,
                customer_name="Hari Krishnan",
                customer_phone="+919500022010",
                pickup_address="Porur",
                drop_address="Chengalpattu",
                drop_city="Chengalpattu",
                distance_km=55.0,
                schedule_date=_day(2),
                schedule_time="09:00",
                rental_hours=6.0,
                base_fare=250.0,
                per_km_rate=13.0,
                driver_allowance=300.0,
                status=JobStatus.CONFIRMED,
                otp=generate_otp(),
            )
        )
        await session.flush()
        print("  Created 1 solo ride")

        await session.commit()
        print("\nSeed complete!")


async def main():
    settings = Settings()
    engine = build_engine(settings.database_url)
    print("Seeding database...")
    await seed(build_session_factory(engine))
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
