"""
Error taxonomy for Radio Reminder

Every error raised by the core carries a stable machine-readable code and a
human-readable message so the HTTP layer can render a single message per error.
"""


class RadioReminderError(Exception):
    """Base class for all application errors"""

    code = "RADIO_REMINDER_ERROR"

    def __init__(self, message: str, *, code: str | None = None, context: dict | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context


class ValidationError(RadioReminderError):
    """Caller supplied malformed input; raised before any persistence call"""

    code = "VALIDATION_ERROR"


class PersistenceError(RadioReminderError):
    """Underlying store operation failed; the enclosing transaction was rolled back"""

    code = "PERSISTENCE_ERROR"


class NotFoundError(RadioReminderError):
    """A referenced entity does not exist"""

    code = "NOT_FOUND"


class ProgramNotFound(NotFoundError):
    code = "PROGRAM_NOT_FOUND"

    def __init__(self, program_id: int):
        super().__init__(f"Program {program_id} not found", context={"program_id": program_id})
        self.program_id = program_id


class TaskNotFound(NotFoundError):
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found", context={"task_id": task_id})
        self.task_id = task_id


class ReminderSchedulingError(RadioReminderError):
    """Notification collaborator failed. Never propagated past the lifecycle engine."""

    code = "REMINDER_SCHEDULING_FAILED"


__all__ = [
    "RadioReminderError",
    "ValidationError",
    "PersistenceError",
    "NotFoundError",
    "ProgramNotFound",
    "TaskNotFound",
    "ReminderSchedulingError",
]
