"""
Services package for Radio Reminder

This package contains the task lifecycle and its collaborators.
"""
from radio_reminder.services.reminder_service import ReminderService
from radio_reminder.services.scheduler_service import SweepScheduler
from radio_reminder.services.task_actions import complete_or_update_status, refresh_task_list
from radio_reminder.services.task_lifecycle import TaskLifecycleEngine

__all__ = [
    'ReminderService',
    'SweepScheduler',
    'TaskLifecycleEngine',
    'complete_or_update_status',
    'refresh_task_list',
]
