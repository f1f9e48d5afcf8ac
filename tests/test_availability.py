"""Tests for driver availability: active bookings, overlaps, pending work."""

from datetime import datetime, timedelta

import pytest

from factories import booking, solo_ride
from uturn.domain.enums import DriverStatus, JobStatus
from uturn.domain.errors import DriverNotFound, DriverUnavailable, ScheduleConflict

NINE = datetime(2026, 11, 1, 9, 0)


async def _assigned(jobs, driver, status, factory=booking, **overrides):
    return await jobs.add(
        factory(assigned_driver_id=driver.id, status=status, **overrides)
    )


class TestActiveBooking:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [JobStatus.DRIVER_ACCEPTED, JobStatus.VENDOR_APPROVED, JobStatus.IN_PROGRESS],
    )
    async def test_busy_statuses(self, availability, jobs, make_driver, status):
        driver = await make_driver()
        await _assigned(jobs, driver, status)
        assert await availability.has_active_booking(driver.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [JobStatus.COMPLETED, JobStatus.CANCELLED])
    async def test_closed_bookings_do_not_count(self, availability, jobs, make_driver, status):
        driver = await make_driver()
        await _assigned(jobs, driver, status)
        assert not await availability.has_active_booking(driver.id)

    @pytest.mark.asyncio
    async def test_solo_rides_do_not_count(self, availability, jobs, make_driver):
        driver = await make_driver()
        await _assigned(jobs, driver, JobStatus.IN_PROGRESS, factory=solo_ride)
        assert not await availability.has_active_booking(driver.id)


class TestCheckOverlap:
    @pytest.mark.asyncio
    async def test_one_minute_overlap(self, availability, jobs, make_driver):
        driver = await make_driver()
        existing = await _assigned(jobs, driver, JobStatus.VENDOR_APPROVED)  # 09:00-13:00
        conflict = await availability.check_overlap(
            driver.id, NINE + timedelta(hours=3, minutes=59), NINE + timedelta(hours=6)
        )
        assert conflict.id == existing.id

    @pytest.mark.asyncio
    async def test_back_to_back(self, availability, jobs, make_driver):
        driver = await make_driver()
        await _assigned(jobs, driver, JobStatus.VENDOR_APPROVED)
        assert await availability.check_overlap(
            driver.id, NINE + timedelta(hours=4), NINE + timedelta(hours=8)
        ) is None

    @pytest.mark.asyncio
    async def test_scans_solo_rides_too(self, availability, jobs, make_driver):
        driver = await make_driver()
        ride = await _assigned(jobs, driver, JobStatus.CONFIRMED, factory=solo_ride, rental_hours=2)
        conflict = await availability.check_overlap(
            driver.id, NINE + timedelta(hours=1), NINE + timedelta(hours=3)
        )
        assert conflict.id == ride.id

    @pytest.mark.asyncio
    async def test_uncommitted_jobs_ignored(self, availability, jobs, make_driver):
        driver = await make_driver()
        await _assigned(jobs, driver, JobStatus.COMPLETED)
        await _assigned(jobs, driver, JobStatus.CANCELLED, factory=solo_ride)
        assert await availability.check_overlap(driver.id, NINE, NINE + timedelta(hours=1)) is None

    @pytest.mark.asyncio
    async def test_other_drivers_ignored(self, availability, jobs, make_driver):
        driver, other = await make_driver(), await make_driver()
        await _assigned(jobs, other, JobStatus.VENDOR_APPROVED)
        assert await availability.check_overlap(driver.id, NINE, NINE + timedelta(hours=1)) is None

    @pytest.mark.asyncio
    async def test_unparseable_schedule_never_conflicts(self, availability, jobs, make_driver):
        driver = await make_driver()
        await _assigned(jobs, driver, JobStatus.VENDOR_APPROVED, schedule_date="next week")
        assert await availability.check_overlap(driver.id, NINE, NINE + timedelta(hours=1)) is None


class TestEnsureCanTake:
    @pytest.mark.asyncio
    async def test_blocked_driver(self, availability, make_driver):
        driver = await make_driver(status=DriverStatus.BLOCKED_FOR_PAYMENT)
        with pytest.raises(DriverUnavailable, match="blocked"):
            await availability.ensure_can_take(driver, booking())

    @pytest.mark.asyncio
    async def test_overlap_raises_with_conflict(self, availability, jobs, make_driver):
        driver = await make_driver()
        ride = await _assigned(jobs, driver, JobStatus.CONFIRMED, factory=solo_ride)
        with pytest.raises(ScheduleConflict) as exc_info:
            await availability.ensure_can_take(driver, solo_ride(schedule_time="12:00"))
        assert exc_info.value.conflict_id == ride.id

    @pytest.mark.asyncio
    async def test_free_driver(self, availability, make_driver):
        driver = await make_driver()
        await availability.ensure_can_take(driver, booking())


class TestListPending:
    @pytest.mark.asyncio
    async def test_filters_by_city_and_vehicle(self, availability, jobs):
        chennai = await jobs.add(booking(pickup_city="Chennai", vehicle_type="Sedan"))
        await jobs.add(booking(pickup_city="Madurai", vehicle_type="Sedan"))
        await jobs.add(booking(pickup_city="Chennai", vehicle_type="SUV"))
        await jobs.add(booking(pickup_city="Chennai", vehicle_type="Sedan", status=JobStatus.DRAFT))

        pending = await availability.list_pending(city="Chennai", vehicle_type="Sedan")
        assert [j.id for j in pending] == [chennai.id]
        assert len(await availability.list_pending()) == 3

    @pytest.mark.asyncio
    async def test_busy_driver_sees_nothing(self, availability, jobs, make_driver):
        driver = await make_driver()
        await jobs.add(booking())
        assert len(await availability.list_pending(driver_id=driver.id)) == 1

        await _assigned(jobs, driver, JobStatus.DRIVER_ACCEPTED)
        assert await availability.list_pending(driver_id=driver.id) == []

    @pytest.mark.asyncio
    async def test_blocked_driver_sees_nothing(self, availability, jobs, make_driver):
        driver = await make_driver(status=DriverStatus.BLOCKED_FOR_PAYMENT)
        await jobs.add(booking())
        assert await availability.list_pending(driver_id=driver.id) == []

    @pytest.mark.asyncio
    async def test_unknown_driver(self, availability):
        with pytest.raises(DriverNotFound):
            await availability.list_pending(driver_id="ghost")
