import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from radio_reminder.services.task_lifecycle import TaskLifecycleEngine


logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "expiry_sweep"


class SweepScheduler:
    """
    Periodic expiry sweep and history cleanup.

    Shares its AsyncIOScheduler with the reminder backend, so starting this
    scheduler also starts reminder delivery.
    """

    def __init__(
        self,
        engine: TaskLifecycleEngine,
        scheduler: AsyncIOScheduler,
        *,
        cron: str,
        timezone: str,
        misfire_grace_sec: int = 300,
    ):
        self.engine = engine
        self.scheduler = scheduler
        self._cron = cron
        self._timezone = timezone
        self._misfire_grace_sec = misfire_grace_sec

    async def _sweep_job(self) -> None:
        """Background job that sweeps expired tasks and prunes old history"""
        logger.info("Scheduled expiry sweep triggered")
        try:
            cleaned_up = await self.engine.sweep_expired()
            if cleaned_up:
                logger.info("Scheduled sweep removed %s expired tasks", len(cleaned_up))
        except Exception as e:
            logger.error(f"Exception in scheduled sweep: {e}", exc_info=True)

        try:
            await self.engine.cleanup_old_history()
        except Exception as e:
            logger.error(f"Exception in scheduled history cleanup: {e}", exc_info=True)

    def start(self) -> None:
        """Register the sweep job and start the scheduler"""
        if self.scheduler.get_job(SWEEP_JOB_ID):
            logger.warning("Sweep job already scheduled")
            return

        try:
            trigger = CronTrigger.from_crontab(self._cron, timezone=self._timezone)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", self._cron, exc)
            raise

        self.scheduler.add_job(
            self._sweep_job,
            trigger=trigger,
            id=SWEEP_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._misfire_grace_sec,
            replace_existing=True,
        )

        if not self.scheduler.running:
            self.scheduler.start()

        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next sweep: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler, dropping pending reminders with it"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled sweep time"""
        job = self.scheduler.get_job(SWEEP_JOB_ID)
        return getattr(job, "next_run_time", None) if job else None
