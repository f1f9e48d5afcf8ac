"""
Schedule windows and overlap detection.

A job occupies ``[start, end)`` in its driver's calendar.  ``start`` is the
scheduled date/time; ``end`` is the return date/time when the job has one,
otherwise a default duration after ``start``:

* vendor bookings  -- ``default_hours`` (4 h)
* solo rides       -- the ride's ``rental_hours``, falling back to 4 h

Two windows conflict iff ``start < other_end and end > other_start``, so a
job ending exactly when the next one begins is not a conflict.

All datetimes are compared as naive UTC; timezone-aware inputs are
converted.  Schedules that cannot be parsed yield no window and therefore
never conflict.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from .entities import Job
from .enums import JobKind

Window = tuple[datetime, datetime]


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_moment(date_part: Optional[str], time_part: Optional[str] = None) -> Optional[datetime]:
    """Combine a schedule date and optional time into a datetime.

    ``date_part`` may already be a full ISO timestamp, in which case
    ``time_part`` is ignored.  A time of ``"Now"`` means the date alone;
    any other time that is not a clock time makes the moment unparseable.
    """
    if not date_part:
        return None
    date_part = date_part.strip()
    time_part = (time_part or "").strip()
    if time_part and time_part.lower() != "now" and "T" not in date_part:
        try:
            return _naive_utc(datetime.fromisoformat(f"{date_part}T{time_part}"))
        except ValueError:
            return None
    try:
        return _naive_utc(datetime.fromisoformat(date_part.replace("Z", "+00:00")))
    except ValueError:
        return None


def job_window(job: Job, default_hours: float = 4.0) -> Optional[Window]:
    start = parse_moment(job.schedule_date, job.schedule_time)
    if start is None:
        return None

    if job.kind == JobKind.VENDOR:
        end = None
        if job.return_date and job.return_time:
            end = parse_moment(job.return_date, job.return_time)
        if end is None:
            end = start + timedelta(hours=default_hours)
    else:
        end = parse_moment(job.return_date, job.return_time) if job.return_date else None
        if end is None:
            end = start + timedelta(hours=job.rental_hours or default_hours)
    return start, end


def windows_overlap(a: Window, b: Window) -> bool:
    """Half-open interval intersection."""
    return a[0] < b[1] and a[1] > b[0]


def find_conflict(
    jobs: Iterable[Job],
    start: datetime,
    end: datetime,
    default_hours: float = 4.0,
) -> Optional[Job]:
    """First job whose window intersects ``[start, end)``, else ``None``."""
    requested = (_naive_utc(start), _naive_utc(end))
    for job in jobs:
        window = job_window(job, default_hours)
        if window is not None and windows_overlap(requested, window):
            return job
    return None
