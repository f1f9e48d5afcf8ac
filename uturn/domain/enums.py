"""Domain enumerations and state-transition rules."""

import enum


class JobKind(str, enum.Enum):
    VENDOR = "vendor"  # Booking: created by a vendor, needs vendor approval
    SOLO = "solo"  # SoloRide: created by the driver who drives it


class JobStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    DRIVER_ACCEPTED = "driver_accepted"
    VENDOR_APPROVED = "vendor_approved"
    CONFIRMED = "confirmed"  # solo rides only
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
JOB_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.DRAFT: {JobStatus.PENDING, JobStatus.CANCELLED},
    JobStatus.PENDING: {JobStatus.DRIVER_ACCEPTED, JobStatus.CANCELLED},
    JobStatus.DRIVER_ACCEPTED: {
        JobStatus.VENDOR_APPROVED,
        JobStatus.PENDING,  # vendor rejected the driver
        JobStatus.CANCELLED,
    },
    JobStatus.VENDOR_APPROVED: {JobStatus.IN_PROGRESS, JobStatus.CANCELLED},
    JobStatus.CONFIRMED: {JobStatus.IN_PROGRESS, JobStatus.CANCELLED},
    JobStatus.IN_PROGRESS: {JobStatus.COMPLETED, JobStatus.CANCELLED},
    JobStatus.COMPLETED: set(),
    JobStatus.CANCELLED: set(),
}

# Statuses in which a trip may be started with the customer's OTP
STARTABLE_STATUSES = frozenset({JobStatus.VENDOR_APPROVED, JobStatus.CONFIRMED})

# Vendor bookings that keep a driver busy ("has an active booking")
ACTIVE_BOOKING_STATUSES = frozenset(
    {JobStatus.DRIVER_ACCEPTED, JobStatus.VENDOR_APPROVED, JobStatus.IN_PROGRESS}
)

# Jobs that occupy a slot in the driver's schedule, per kind
COMMITTED_STATUSES: dict[JobKind, frozenset[JobStatus]] = {
    JobKind.VENDOR: ACTIVE_BOOKING_STATUSES,
    JobKind.SOLO: frozenset({JobStatus.CONFIRMED, JobStatus.IN_PROGRESS}),
}

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED})


class TripType(str, enum.Enum):
    ONE_WAY = "oneWay"
    ROUND = "round"
    ROUND_TRIP = "roundTrip"
    RENTAL = "rental"
    LOCAL_HOURLY = "localHourly"
    LOCAL_DRIVER_ALLOWANCE = "localDriverAllowance"
    OUTSTATION = "outstation"
    TOUR_PACKAGE = "tourPackage"


class DriverStatus(str, enum.Enum):
    ACTIVE = "active"
    BLOCKED_FOR_PAYMENT = "blocked_for_payment"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    ONLINE = "online"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class CommissionStatus(str, enum.Enum):
    NONE = "none"
    PENDING = "pending"
    PAID = "paid"
