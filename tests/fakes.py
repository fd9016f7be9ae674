# tests/fakes.py

from __future__ import annotations

from datetime import datetime, timedelta

from radio_reminder.errors import ReminderSchedulingError
from radio_reminder.services.reminder_service import ReminderPayload


class FakeClock:
    """
    Settable clock.

    The engine only ever calls the clock; tests move time with `advance`/`set`.
    """

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeReminderBackend:
    """
    In-memory ReminderBackend.

    - Records scheduled reminders and cancellations for assertions
    - With `fail=True` every call raises ReminderSchedulingError,
      like a device that denied notification permission
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.scheduled: dict[str, tuple[datetime, ReminderPayload]] = {}
        self.cancelled: list[str] = []

    def _check(self) -> None:
        if self.fail:
            raise ReminderSchedulingError("Notifications are not permitted")

    def schedule(self, reminder_id: str, run_at: datetime, payload: ReminderPayload) -> str:
        self._check()
        self.scheduled[reminder_id] = (run_at, payload)
        return reminder_id

    def cancel(self, reminder_id: str) -> None:
        self._check()
        self.cancelled.append(reminder_id)
        self.scheduled.pop(reminder_id, None)

    def cancel_all(self) -> None:
        self._check()
        self.cancelled.extend(self.scheduled)
        self.scheduled.clear()

    def list_ids(self) -> list[str]:
        return sorted(self.scheduled)


def program_data(**overrides) -> dict:
    """Valid program form data (Thursday 18:00, one-shot) with overrides."""
    data = {
        "station_name": "TBS Radio",
        "program_name": "Junk",
        "day_of_week": 4,
        "hour": 18,
        "minute": 0,
        "repeat_type": "none",
    }
    data.update(overrides)
    return data
