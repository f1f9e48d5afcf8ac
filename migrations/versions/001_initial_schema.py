"""Initial schema: drivers, bookings and solo rides.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _job_columns() -> list:
    """Columns shared by ``bookings`` and ``solo_rides``."""
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tracking_id", sa.String(16), nullable=True),
        # Parties
        sa.Column("assigned_driver_id", sa.String(36), nullable=True),
        sa.Column("driver_name", sa.String(120), nullable=True),
        sa.Column("driver_phone", sa.String(20), nullable=True),
        sa.Column("vehicle_number", sa.String(20), nullable=True),
        sa.Column("driver_photo_url", sa.String(512), nullable=True),
        sa.Column("customer_name", sa.String(120), nullable=True),
        sa.Column("customer_phone", sa.String(20), nullable=True),
        sa.Column("customer_language", sa.String(30), server_default="Tamil"),
        sa.Column("number_of_people", sa.Integer, server_default="1"),
        # Itinerary
        sa.Column("trip_type", sa.String(30), server_default="oneWay", nullable=False),
        sa.Column("vehicle_type", sa.String(40), nullable=True),
        sa.Column("pickup_address", sa.Text, nullable=True),
        sa.Column("pickup_city", sa.String(80), nullable=True),
        sa.Column("pickup_lat", sa.Float, nullable=True),
        sa.Column("pickup_lng", sa.Float, nullable=True),
        sa.Column("drop_address", sa.Text, nullable=True),
        sa.Column("drop_city", sa.String(80), nullable=True),
        sa.Column("drop_lat", sa.Float, nullable=True),
        sa.Column("drop_lng", sa.Float, nullable=True),
        sa.Column("distance_km", sa.Float, nullable=True),
        sa.Column("estimated_duration_mins", sa.Integer, nullable=True),
        sa.Column("schedule_date", sa.String(40), nullable=True),
        sa.Column("schedule_time", sa.String(10), nullable=True),
        sa.Column("return_date", sa.String(40), nullable=True),
        sa.Column("return_time", sa.String(10), nullable=True),
        # Fare inputs
        *[
            sa.Column(name, sa.Float, server_default="0", nullable=False)
            for name in (
                "base_fare",
                "per_km_rate",
                "hourly_rate",
                "estimated_hours",
                "night_allowance",
                "hills_allowance",
                "driver_allowance",
                "waiting_charges_per_hour",
                "extra_charges",
                "package_amount",
                "rental_hours",
                "vendor_commission",
                "estimated_fare",
                "total_amount",
            )
        ],
        # Lifecycle
        sa.Column("status", sa.String(32), server_default="draft", nullable=False),
        sa.Column("otp", sa.String(10), nullable=True),
        sa.Column("driver_video_url", sa.String(512), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("start_odometer", sa.Float, nullable=True),
        sa.Column("end_odometer", sa.Float, nullable=True),
        sa.Column("start_odometer_photo_url", sa.String(512), nullable=True),
        sa.Column("end_odometer_photo_url", sa.String(512), nullable=True),
        sa.Column("actual_distance_km", sa.Float, nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("waiting_time_mins", sa.Integer, server_default="0", nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=True),
        sa.Column("payment_status", sa.String(32), server_default="pending", nullable=False),
        sa.Column("commission_status", sa.String(32), server_default="none", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(20), unique=True, nullable=False),
        sa.Column("vehicle_number", sa.String(20), server_default=""),
        sa.Column("vehicle_type", sa.String(40), server_default=""),
        sa.Column("profile_photo_url", sa.String(512), nullable=True),
        sa.Column("status", sa.String(32), server_default="active", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_drivers_status", "drivers", ["status"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        *_job_columns(),
        sa.Column("vendor_id", sa.String(36), nullable=True),
    )
    op.create_index("idx_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_driver", "bookings", ["assigned_driver_id"])
    op.create_index("idx_bookings_vendor", "bookings", ["vendor_id"])
    op.create_index("idx_bookings_tracking", "bookings", ["tracking_id"])

    # ── solo_rides ────────────────────────────────────────────────────
    op.create_table("solo_rides", *_job_columns())
    op.create_index("idx_solo_rides_status", "solo_rides", ["status"])
    op.create_index("idx_solo_rides_driver", "solo_rides", ["assigned_driver_id"])
    op.create_index("idx_solo_rides_tracking", "solo_rides", ["tracking_id"])


def downgrade() -> None:
    op.drop_table("solo_rides")
    op.drop_table("bookings")
    op.drop_table("drivers")
