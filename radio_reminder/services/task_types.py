"""
Shared dataclasses used across the task lifecycle.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from radio_reminder.models import RepeatType, TaskStatus


@dataclass(slots=True)
class TaskWithProgram:
    """A task row joined with the fields of its program the callers need."""
    id: int
    program_id: int
    broadcast_at: datetime
    deadline_at: datetime
    status: TaskStatus
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    station_name: str
    program_name: str
    repeat_type: RepeatType
    program_hour: int


@dataclass(slots=True, frozen=True)
class CleanedUpTask:
    """Descriptor of an expired task removed by a sweep, for user notification."""
    station_name: str
    program_name: str
    broadcast_at: datetime


@dataclass(slots=True)
class ReminderFollowUp:
    """Reminder work deferred until the enclosing transaction has committed."""
    old_task_id: int | None = None
    new_task_id: int | None = None
    program_name: str | None = None
    station_name: str | None = None
    deadline_at: datetime | None = None


__all__ = ["TaskWithProgram", "CleanedUpTask", "ReminderFollowUp"]
