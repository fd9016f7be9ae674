# tests/test_notification_scheduler.py

from __future__ import annotations

from datetime import datetime

import pytest
import pytest_asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from radio_reminder.errors import ReminderSchedulingError
from radio_reminder.services.notification_scheduler import APSchedulerReminderBackend
from radio_reminder.services.reminder_service import ReminderPayload


FAR_FUTURE = datetime(2099, 1, 1, 18, 0)
PAYLOAD = ReminderPayload(task_id=1, title="title", body="body")


@pytest_asyncio.fixture()
async def scheduler():
    scheduler = AsyncIOScheduler(timezone="Asia/Tokyo")
    scheduler.start()
    yield scheduler
    scheduler.shutdown(wait=False)


@pytest.mark.asyncio
async def test_schedule_registers_a_date_job(scheduler: AsyncIOScheduler) -> None:
    backend = APSchedulerReminderBackend(scheduler, timezone="Asia/Tokyo")

    assert backend.schedule("task_1", FAR_FUTURE, PAYLOAD) == "task_1"

    job = scheduler.get_job("task_1")
    assert job is not None
    assert job.next_run_time.replace(tzinfo=None) == FAR_FUTURE
    assert backend.list_ids() == ["task_1"]


@pytest.mark.asyncio
async def test_rescheduling_replaces_the_job(scheduler: AsyncIOScheduler) -> None:
    backend = APSchedulerReminderBackend(scheduler, timezone="Asia/Tokyo")
    backend.schedule("task_1", FAR_FUTURE, PAYLOAD)
    backend.schedule("task_1", datetime(2099, 2, 1, 18, 0), PAYLOAD)

    assert backend.list_ids() == ["task_1"]
    assert scheduler.get_job("task_1").next_run_time.month == 2


@pytest.mark.asyncio
async def test_cancel(scheduler: AsyncIOScheduler) -> None:
    backend = APSchedulerReminderBackend(scheduler, timezone="Asia/Tokyo")
    backend.schedule("task_1", FAR_FUTURE, PAYLOAD)

    backend.cancel("task_1")
    backend.cancel("task_1")

    assert backend.list_ids() == []


@pytest.mark.asyncio
async def test_cancel_all_leaves_other_jobs_alone(scheduler: AsyncIOScheduler) -> None:
    backend = APSchedulerReminderBackend(scheduler, timezone="Asia/Tokyo")
    scheduler.add_job(lambda: None, "interval", hours=1, id="expiry_sweep")
    backend.schedule("task_1", FAR_FUTURE, PAYLOAD)
    backend.schedule("task_2", FAR_FUTURE, PAYLOAD)

    backend.cancel_all()

    assert backend.list_ids() == []
    assert scheduler.get_job("expiry_sweep") is not None


def test_stopped_scheduler_refuses_reminders() -> None:
    backend = APSchedulerReminderBackend(AsyncIOScheduler(timezone="Asia/Tokyo"), timezone="Asia/Tokyo")

    with pytest.raises(ReminderSchedulingError):
        backend.schedule("task_1", FAR_FUTURE, PAYLOAD)


@pytest.mark.asyncio
async def test_delivery_calls_sync_and_async_sinks() -> None:
    delivered: list[ReminderPayload] = []

    async def async_sink(payload: ReminderPayload) -> None:
        delivered.append(payload)

    await APSchedulerReminderBackend(AsyncIOScheduler(), timezone="UTC", sink=delivered.append)._deliver(PAYLOAD)
    await APSchedulerReminderBackend(AsyncIOScheduler(), timezone="UTC", sink=async_sink)._deliver(PAYLOAD)

    assert delivered == [PAYLOAD, PAYLOAD]


@pytest.mark.asyncio
async def test_delivery_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def broken_sink(payload: ReminderPayload) -> None:
        raise RuntimeError("no display")

    backend = APSchedulerReminderBackend(AsyncIOScheduler(), timezone="UTC", sink=broken_sink)
    await backend._deliver(PAYLOAD)

    assert "Reminder delivery failed for task 1" in caplog.text
