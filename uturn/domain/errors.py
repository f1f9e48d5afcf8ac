"""Domain exceptions raised by the trip lifecycle.

Every exception carries a human-readable message; the API layer maps each
class to an HTTP status code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .entities import Job


class TripError(Exception):
    """Base class for all lifecycle errors."""


class JobNotFound(TripError):
    def __init__(self, job_id: str, label: str = "Booking"):
        super().__init__(f"{label} not found")
        self.job_id = job_id


class DriverNotFound(TripError):
    def __init__(self, driver_id: str):
        super().__init__("Driver not found")
        self.driver_id = driver_id


class InvalidOTP(TripError):
    def __init__(self):
        super().__init__("Invalid OTP")


class InvalidStateTransition(TripError):
    """Raised when a job status change violates the state machine."""


class DriverUnavailable(TripError):
    """Driver is blocked, already on an active booking, or mid-acceptance."""


class ScheduleConflict(TripError):
    def __init__(self, conflict: "Job"):
        super().__init__(
            "Slot taken: You already have a booking during this time slot."
        )
        self.conflict = conflict

    @property
    def conflict_id(self) -> Optional[str]:
        return self.conflict.id


class InvalidTripData(TripError):
    """Input that is well-formed but violates a trip invariant."""
