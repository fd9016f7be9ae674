"""
Reminder Scheduling Adapter

Turns "this task has this deadline" into a one-shot notification on the
reminder backend. Reminder ids are derived from task ids, so a reminder can be
replaced or cancelled without storing its id anywhere.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from radio_reminder.errors import ReminderSchedulingError
from radio_reminder.utils.deadlines import calculate_reminder_time
from radio_reminder.utils.timezone import Clock


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ReminderPayload:
    task_id: int
    title: str
    body: str


class ReminderBackend(Protocol):
    """
    Notification collaborator.

    Implementations raise ReminderSchedulingError when they cannot deliver,
    e.g. when notifications are not permitted or the scheduler is stopped.
    Cancelling an unknown id is not an error.
    """

    def schedule(self, reminder_id: str, run_at: datetime, payload: ReminderPayload) -> str: ...

    def cancel(self, reminder_id: str) -> None: ...

    def cancel_all(self) -> None: ...

    def list_ids(self) -> list[str]: ...


def reminder_id_for(task_id: int) -> str:
    return f"task_{task_id}"


class ReminderService:
    """Schedules and cancels deadline reminders for tasks"""

    def __init__(
        self,
        backend: ReminderBackend,
        clock: Clock,
        *,
        lead_days: int = 1,
        reminder_hour: int = 18,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._lead_days = lead_days
        self._reminder_hour = reminder_hour

    def schedule_reminder(
        self,
        task_id: int,
        program_name: str,
        station_name: str,
        deadline: datetime,
    ) -> str | None:
        """
        Schedule the reminder of a task.

        The reminder fires `lead_days` before the deadline at `reminder_hour`:00.
        Scheduling twice for the same task replaces the earlier reminder.

        Args:
            task_id: Task the reminder belongs to
            program_name: Program name shown in the notification
            station_name: Station name shown in the notification
            deadline: Task deadline (civil time)

        Returns:
            Reminder id, or None when the trigger time has already passed

        Raises:
            ReminderSchedulingError: When the backend rejected the request
        """
        trigger_at = calculate_reminder_time(
            deadline,
            lead_days=self._lead_days,
            hour=self._reminder_hour,
        )
        now = self._clock()
        if trigger_at < now:
            logger.info(
                "Reminder time already passed, not scheduling: task_id=%s, reminder_time=%s",
                task_id,
                trigger_at,
            )
            return None

        remaining_hours = math.ceil((deadline - trigger_at) / timedelta(hours=1))
        payload = ReminderPayload(
            task_id=task_id,
            title="Radio listening deadline approaching",
            body=f"{station_name} \"{program_name}\"\nAbout {remaining_hours} hours left",
        )

        reminder_id = reminder_id_for(task_id)
        try:
            self._backend.schedule(reminder_id, trigger_at, payload)
        except ReminderSchedulingError:
            raise
        except Exception as exc:
            raise ReminderSchedulingError(f"Failed to schedule reminder {reminder_id}: {exc}") from exc

        logger.info("Reminder scheduled: task_id=%s, id=%s, reminder_time=%s", task_id, reminder_id, trigger_at)
        return reminder_id

    def cancel_reminder(self, task_id: int) -> None:
        """Cancel the reminder of a task; a missing reminder is fine."""
        reminder_id = reminder_id_for(task_id)
        try:
            self._backend.cancel(reminder_id)
        except ReminderSchedulingError:
            raise
        except Exception as exc:
            raise ReminderSchedulingError(f"Failed to cancel reminder {reminder_id}: {exc}") from exc
        logger.debug("Reminder cancelled: task_id=%s, id=%s", task_id, reminder_id)

    def cancel_all(self) -> None:
        try:
            self._backend.cancel_all()
        except ReminderSchedulingError:
            raise
        except Exception as exc:
            raise ReminderSchedulingError(f"Failed to cancel all reminders: {exc}") from exc
        logger.info("All reminders cancelled")

    def list_scheduled(self) -> list[str]:
        """Ids of the reminders currently pending (debugging aid)."""
        try:
            ids = self._backend.list_ids()
        except ReminderSchedulingError:
            raise
        except Exception as exc:
            raise ReminderSchedulingError(f"Failed to list reminders: {exc}") from exc
        logger.debug("Scheduled reminders: %s", len(ids))
        return ids
