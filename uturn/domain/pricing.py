"""
Trip Fare Engine  (Strategy Pattern)
====================================

Vendor bookings
---------------
  Fare = (Base_Fare + Distance x Rate_Per_KM) x Trip_Multiplier
         + Waiting_Charges + Extra_Charges

* **Trip_Multiplier** = 1.8 for ``round``, 2.5 for ``rental``, else 1.0.
  Only those two literal trip types are recognised; ``roundTrip``,
  ``outstation``, ``tourPackage`` etc. pass through unmultiplied.

Solo rides
----------
  Fare = Base_Fare + Distance x Rate_Per_KM
         + (Driver_Allowance + Night_Allowance) x Days
         + Waiting_Charges + Extra_Charges

* **Days** = ceil(elapsed / 24h), minimum 1.

Both: Waiting_Charges = (Waiting_Charges_Per_Hour / 60) x Waiting_Minutes,
final fare rounded half-up to a whole currency unit.

Complexity: O(1) per fare calculation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from .entities import Job
from .enums import JobKind

TRIP_MULTIPLIERS = {"round": 1.8, "rental": 2.5}
DAY = timedelta(days=1)


def coerce_amount(value: Any) -> float:
    """Turn form/JSON input ("100", 100, None, "") into a number; junk -> 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).strip() or 0)
    except ValueError:
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def round_fare(amount: float) -> int:
    """Round half away from zero to a whole currency unit."""
    return int(math.floor(abs(amount) + 0.5)) * (1 if amount >= 0 else -1)


def waiting_charges(per_hour: float, waiting_mins: int) -> float:
    if waiting_mins <= 0:
        return 0.0
    return (per_hour / 60) * waiting_mins


def trip_days(start: Optional[datetime], end: Optional[datetime]) -> int:
    if start is None or end is None:
        return 1
    return max(1, math.ceil((end - start) / DAY))


@dataclass(frozen=True)
class FareInputs:
    distance_km: float
    waiting_mins: int = 0
    extra_charges: float = 0.0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareStrategy(ABC):
    @abstractmethod
    def subtotal(self, job: Job, inputs: FareInputs) -> float:
        """Fare before waiting/extra charges and rounding."""

    def calculate(self, job: Job, inputs: FareInputs) -> int:
        total = self.subtotal(job, inputs)
        total += waiting_charges(job.waiting_charges_per_hour, inputs.waiting_mins)
        total += coerce_amount(inputs.extra_charges)
        return round_fare(total)


class VendorFare(FareStrategy):
    def subtotal(self, job: Job, inputs: FareInputs) -> float:
        total = job.base_fare + inputs.distance_km * job.per_km_rate
        return total * TRIP_MULTIPLIERS.get(job.trip_type, 1.0)


class SoloFare(FareStrategy):
    def subtotal(self, job: Job, inputs: FareInputs) -> float:
        days = trip_days(inputs.start_time, inputs.end_time)
        total = job.base_fare + inputs.distance_km * job.per_km_rate
        total += job.driver_allowance * days
        total += job.night_allowance * days
        return total


_STRATEGIES: dict[JobKind, FareStrategy] = {
    JobKind.VENDOR: VendorFare(),
    JobKind.SOLO: SoloFare(),
}


def strategy_for(kind: JobKind) -> FareStrategy:
    return _STRATEGIES[kind]


# ── Facade ────────────────────────────────────────────────────────────


def settle_fare(job: Job, end_time: datetime, extra_charges: Any = 0) -> int:
    """Actual fare at trip completion; ``job`` carries the odometer readings."""
    inputs = FareInputs(
        distance_km=job.actual_distance_km or 0.0,
        waiting_mins=job.waiting_time_mins,
        extra_charges=coerce_amount(extra_charges),
        start_time=job.start_time,
        end_time=end_time,
    )
    return strategy_for(job.kind).calculate(job, inputs)


def quote_fare(job: Job) -> int:
    """Pre-trip estimate from the planned distance (one day for solo rides)."""
    inputs = FareInputs(
        distance_km=job.distance_km or 0.0,
        extra_charges=job.extra_charges,
    )
    return strategy_for(job.kind).calculate(job, inputs)
