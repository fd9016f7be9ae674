"""
Deadline and occurrence calculations

A time-shifted listening window stays open for seven full days after the
nominal broadcast day plus a grace period ending at 05:00, which works out to
"nominal broadcast day + 8 days, 05:00".
"""
from datetime import datetime, time, timedelta
from enum import StrEnum
import math

from radio_reminder.errors import ValidationError
from radio_reminder.utils.broadcast_clock import (
    nominal_broadcast_date,
    to_standard_hour,
)


TIMEFREE_PERIOD_DAYS = 7
DEADLINE_DAYS_AFTER_BROADCAST = TIMEFREE_PERIOD_DAYS + 1
DEADLINE_HOUR = 5
REPEAT_INTERVAL = timedelta(days=7)


class DeadlineSeverity(StrEnum):
    URGENT = "urgent"
    WARNING = "warning"
    NORMAL = "normal"


def next_broadcast_datetime(day_of_week: int, hour: int, minute: int, now: datetime) -> datetime:
    """
    Calculate the next broadcast of a weekly slot

    The day of week is the nominal broadcast day, so a Tuesday 25:00 slot airs
    on Wednesday at 01:00. The search starts from the calendar date of `now`,
    which counts when it matches.

    Args:
        day_of_week: Nominal broadcast weekday (0=Sunday ... 6=Saturday)
        hour: Broadcast-clock hour (5-29)
        minute: Minute of the hour
        now: Current civil time

    Returns:
        Civil timestamp of the next occurrence not earlier than `now`

    Example:
        next_broadcast_datetime(2, 25, 0, datetime(2024, 12, 2, 15, 0))
        # => datetime(2024, 12, 4, 1, 0)
    """
    if not 0 <= day_of_week <= 6:
        raise ValidationError(f"day_of_week must be within 0-6, got {day_of_week}")
    if not 0 <= minute <= 59:
        raise ValidationError(f"minute must be within 0-59, got {minute}")
    standard_hour, day_offset = to_standard_hour(hour)

    start_day = now.date()
    current_weekday = (start_day.weekday() + 1) % 7  # Sunday=0
    days_ahead = (day_of_week - current_weekday) % 7

    broadcast_date = start_day + timedelta(days=days_ahead + day_offset)
    candidate = datetime.combine(broadcast_date, time(standard_hour, minute))

    if candidate < now:
        candidate += REPEAT_INTERVAL
    return candidate


def calculate_deadline(broadcast_at: datetime, broadcast_hour: int) -> datetime:
    """
    Calculate the listening deadline of a broadcast

    Args:
        broadcast_at: Stored (wall-clock) broadcast timestamp
        broadcast_hour: The program's broadcast-clock hour; hours 24-29 mean the
            timestamp's date is one day after the nominal broadcast day

    Returns:
        Nominal broadcast day + 8 days at 05:00:00

    Example:
        calculate_deadline(datetime(2024, 12, 4, 1, 0), 25)
        # => datetime(2024, 12, 11, 5, 0)
    """
    nominal = nominal_broadcast_date(broadcast_at, broadcast_hour)
    deadline_date = nominal + timedelta(days=DEADLINE_DAYS_AFTER_BROADCAST)
    return datetime.combine(deadline_date, time(DEADLINE_HOUR, 0))


def next_occurrence(previous_broadcast_at: datetime) -> datetime:
    """Broadcast timestamp one week after the previous one."""
    return previous_broadcast_at + REPEAT_INTERVAL


def calculate_remaining_days(deadline: datetime, now: datetime) -> int:
    """
    Days left until the deadline, rounded up

    Zero when the deadline is exactly now, negative once it has passed.
    """
    remaining = (deadline - now) / timedelta(days=1)
    return math.ceil(remaining)


def remaining_days_severity(days: int) -> DeadlineSeverity:
    if days <= 1:
        return DeadlineSeverity.URGENT
    if days <= 3:
        return DeadlineSeverity.WARNING
    return DeadlineSeverity.NORMAL


def calculate_reminder_time(deadline: datetime, *, lead_days: int = 1, hour: int = 18) -> datetime:
    """Reminder trigger: `lead_days` before the deadline, pinned to `hour`:00."""
    trigger_date = (deadline - timedelta(days=lead_days)).date()
    return datetime.combine(trigger_date, time(hour, 0))
