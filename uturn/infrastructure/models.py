"""
SQLAlchemy ORM models.

Tables
------
* ``drivers``     -- driver directory (contact, vehicle, availability status)
* ``bookings``    -- vendor-created jobs
* ``solo_rides``  -- driver-created jobs

``bookings`` and ``solo_rides`` share every lifecycle column through
``JobColumns``; only ``bookings`` carries ``vendor_id``.

Indexes
-------
* **B-Tree** on ``status``, ``assigned_driver_id``, ``vendor_id`` and
  ``tracking_id`` for the pending-work listing, availability scans and the
  public tracking lookup.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
)

from .database import Base
from uturn.domain.enums import (
    CommissionStatus,
    DriverStatus,
    JobStatus,
    PaymentStatus,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _str_enum(enum_cls, length: int = 32) -> Enum:
    # Persist the enum *values* ("driver_accepted"), not member names.
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False)
    phone = Column(String(20), unique=True, nullable=False)
    vehicle_number = Column(String(20), default="")
    vehicle_type = Column(String(40), default="")
    profile_photo_url = Column(String(512), nullable=True)
    status = Column(_str_enum(DriverStatus), default=DriverStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("idx_drivers_status", "status"),)


class JobColumns:
    id = Column(String(36), primary_key=True)
    tracking_id = Column(String(16), nullable=True)

    # Parties (driver fields are a snapshot taken at acceptance)
    assigned_driver_id = Column(String(36), nullable=True)
    driver_name = Column(String(120), nullable=True)
    driver_phone = Column(String(20), nullable=True)
    vehicle_number = Column(String(20), nullable=True)
    driver_photo_url = Column(String(512), nullable=True)
    customer_name = Column(String(120), nullable=True)
    customer_phone = Column(String(20), nullable=True)
    customer_language = Column(String(30), default="Tamil")
    number_of_people = Column(Integer, default=1)

    # Itinerary
    trip_type = Column(String(30), default="oneWay", nullable=False)
    vehicle_type = Column(String(40), nullable=True)
    pickup_address = Column(Text, nullable=True)
    pickup_city = Column(String(80), nullable=True)
    pickup_lat = Column(Float, nullable=True)
    pickup_lng = Column(Float, nullable=True)
    drop_address = Column(Text, nullable=True)
    drop_city = Column(String(80), nullable=True)
    drop_lat = Column(Float, nullable=True)
    drop_lng = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=True)
    estimated_duration_mins = Column(Integer, nullable=True)
    schedule_date = Column(String(40), nullable=True)
    schedule_time = Column(String(10), nullable=True)
    return_date = Column(String(40), nullable=True)
    return_time = Column(String(10), nullable=True)

    # Fare inputs
    base_fare = Column(Float, default=0.0, nullable=False)
    per_km_rate = Column(Float, default=0.0, nullable=False)
    hourly_rate = Column(Float, default=0.0, nullable=False)
    estimated_hours = Column(Float, default=0.0, nullable=False)
    night_allowance = Column(Float, default=0.0, nullable=False)
    hills_allowance = Column(Float, default=0.0, nullable=False)
    driver_allowance = Column(Float, default=0.0, nullable=False)
    waiting_charges_per_hour = Column(Float, default=0.0, nullable=False)
    extra_charges = Column(Float, default=0.0, nullable=False)
    package_amount = Column(Float, default=0.0, nullable=False)
    rental_hours = Column(Float, default=0.0, nullable=False)
    vendor_commission = Column(Float, default=0.0, nullable=False)
    estimated_fare = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, default=0.0, nullable=False)

    # Lifecycle
    status = Column(_str_enum(JobStatus), default=JobStatus.DRAFT, nullable=False)
    otp = Column(String(10), nullable=True)
    driver_video_url = Column(String(512), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    start_odometer = Column(Float, nullable=True)
    end_odometer = Column(Float, nullable=True)
    start_odometer_photo_url = Column(String(512), nullable=True)
    end_odometer_photo_url = Column(String(512), nullable=True)
    actual_distance_km = Column(Float, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    waiting_time_mins = Column(Integer, default=0, nullable=False)
    payment_method = Column(String(20), nullable=True)
    payment_status = Column(
        _str_enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    commission_status = Column(
        _str_enum(CommissionStatus), default=CommissionStatus.NONE, nullable=False
    )

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class BookingModel(JobColumns, Base):
    __tablename__ = "bookings"

    vendor_id = Column(String(36), nullable=True)

    __table_args__ = (
        Index("idx_bookings_status", "status"),
        Index("idx_bookings_driver", "assigned_driver_id"),
        Index("idx_bookings_vendor", "vendor_id"),
        Index("idx_bookings_tracking", "tracking_id"),
    )


class SoloRideModel(JobColumns, Base):
    __tablename__ = "solo_rides"

    __table_args__ = (
        Index("idx_solo_rides_status", "status"),
        Index("idx_solo_rides_driver", "assigned_driver_id"),
        Index("idx_solo_rides_tracking", "tracking_id"),
    )
