"""Commission blocking and settlement."""

import pytest

from factories import booking
from uturn.domain.enums import CommissionStatus, DriverStatus, JobStatus
from uturn.domain.errors import DriverNotFound, JobNotFound


async def _complete(lifecycle, driver, **overrides):
    job = await lifecycle.create_booking(booking(**overrides))
    await lifecycle.accept(job.id, driver.id)
    approved = await lifecycle.approve(job.id)
    await lifecycle.start_trip(job.id, 100.0, approved.otp)
    return await lifecycle.complete_trip(job.id, 152.0, "cash")


@pytest.mark.asyncio
async def test_completion_blocks_driver(lifecycle, drivers, make_driver):
    driver = await make_driver()
    await _complete(lifecycle, driver)
    assert (await drivers.get_by_id(driver.id)).status == DriverStatus.BLOCKED_FOR_PAYMENT


@pytest.mark.asyncio
async def test_blocked_driver_cannot_take_work_until_paid(
    lifecycle, commission, drivers, make_driver
):
    driver = await make_driver()
    done = await _complete(lifecycle, driver)
    assert await lifecycle.availability.list_pending(driver_id=driver.id) == []

    await commission.mark_commission_paid(done.id)
    next_job = await lifecycle.create_booking(booking(schedule_date="2026-11-02"))
    accepted = await lifecycle.accept(next_job.id, driver.id)
    assert accepted.status == JobStatus.DRIVER_ACCEPTED


@pytest.mark.asyncio
async def test_one_payment_unblocks_despite_other_unpaid_trip(
    lifecycle, commission, drivers, jobs, make_driver
):
    driver = await make_driver()
    first = await _complete(lifecycle, driver, schedule_date="2026-11-01")
    await commission.unblock_driver(driver.id)  # so the second trip can be accepted
    second = await _complete(lifecycle, driver, schedule_date="2026-11-02")
    assert (await drivers.get_by_id(driver.id)).is_blocked

    paid = await commission.mark_commission_paid(second.id)
    assert paid.commission_status == CommissionStatus.PAID
    assert (await drivers.get_by_id(driver.id)).status == DriverStatus.ACTIVE

    still_owed = await jobs.get(first.kind, first.id)
    assert still_owed.commission_status == CommissionStatus.PENDING


@pytest.mark.asyncio
async def test_mark_paid_unknown_job(commission):
    with pytest.raises(JobNotFound):
        await commission.mark_commission_paid("missing")


@pytest.mark.asyncio
async def test_list_and_unblock(commission, make_driver):
    blocked = await make_driver(status=DriverStatus.BLOCKED_FOR_PAYMENT)
    await make_driver()

    assert [d.id for d in await commission.list_blocked_drivers()] == [blocked.id]
    unblocked = await commission.unblock_driver(blocked.id)
    assert unblocked.status == DriverStatus.ACTIVE
    assert await commission.list_blocked_drivers() == []


@pytest.mark.asyncio
async def test_unblock_unknown_driver(commission):
    with pytest.raises(DriverNotFound):
        await commission.unblock_driver("ghost")
