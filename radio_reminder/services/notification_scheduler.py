"""
APScheduler-backed reminder delivery

Each reminder is a one-shot DateTrigger job whose job id is the reminder id,
so rescheduling replaces the job and cancelling removes it.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from radio_reminder.errors import ReminderSchedulingError
from radio_reminder.services.reminder_service import ReminderPayload


logger = logging.getLogger(__name__)

NotificationSink = Callable[[ReminderPayload], Awaitable[None] | None]

REMINDER_JOB_PREFIX = "task_"


def log_notification(payload: ReminderPayload) -> None:
    """Default sink: write the notification to the log."""
    logger.info("Reminder for task %s: %s | %s", payload.task_id, payload.title, payload.body.replace("\n", " / "))


class APSchedulerReminderBackend:
    """Reminder backend registering date jobs on an AsyncIOScheduler"""

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        *,
        timezone: str,
        sink: NotificationSink | None = None,
        misfire_grace_sec: int = 3600,
    ) -> None:
        self.scheduler = scheduler
        self._timezone = timezone
        self._sink = sink or log_notification
        self._misfire_grace_sec = misfire_grace_sec

    async def _deliver(self, payload: ReminderPayload) -> None:
        """Job body: hand the notification to the sink"""
        try:
            result = self._sink(payload)
            if result is not None:
                await result
        except Exception as e:
            logger.error(f"Reminder delivery failed for task {payload.task_id}: {e}", exc_info=True)

    def schedule(self, reminder_id: str, run_at: datetime, payload: ReminderPayload) -> str:
        if not self.scheduler.running:
            raise ReminderSchedulingError("Reminder scheduler is not running")

        self.scheduler.add_job(
            self._deliver,
            trigger=DateTrigger(run_date=run_at, timezone=self._timezone),
            args=[payload],
            id=reminder_id,
            replace_existing=True,
            misfire_grace_time=self._misfire_grace_sec,
        )
        return reminder_id

    def cancel(self, reminder_id: str) -> None:
        try:
            self.scheduler.remove_job(reminder_id)
        except JobLookupError:
            logger.debug("Reminder %s not scheduled, nothing to cancel", reminder_id)

    def cancel_all(self) -> None:
        for job_id in self.list_ids():
            self.cancel(job_id)

    def list_ids(self) -> list[str]:
        return [job.id for job in self.scheduler.get_jobs() if job.id.startswith(REMINDER_JOB_PREFIX)]
