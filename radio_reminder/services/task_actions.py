"""
Caller-level task flows

Policies that sit on top of the lifecycle engine rather than inside it: the
"complete a weekly task, queue next week's" rule and the list refresh that
sweeps before reading.
"""
import logging

from radio_reminder.errors import ValidationError
from radio_reminder.models import RepeatType, TaskStatus
from radio_reminder.services.task_lifecycle import TaskLifecycleEngine, coerce_task_status
from radio_reminder.services.task_types import CleanedUpTask, TaskWithProgram


logger = logging.getLogger(__name__)


async def complete_or_update_status(
    engine: TaskLifecycleEngine,
    task_id: int,
    status: TaskStatus | str,
) -> TaskWithProgram:
    """
    Change a task's status and, when a weekly task becomes completed,
    generate its next occurrence.

    Completed is final: re-completing does not generate another occurrence,
    and moving a completed task to any other status raises ValidationError.
    """
    new_status = coerce_task_status(status)
    previous = await engine.get_task(task_id)
    if previous.status == TaskStatus.COMPLETED and new_status != TaskStatus.COMPLETED:
        raise ValidationError(
            f"Task {task_id} is completed and cannot be set to '{new_status.value}'",
            context={"task_id": task_id, "status": previous.status.value},
        )
    task = await engine.update_task_status(task_id, new_status)

    if (
        new_status == TaskStatus.COMPLETED
        and previous.status != TaskStatus.COMPLETED
        and task.repeat_type == RepeatType.WEEKLY
    ):
        next_task_id = await engine.generate_next_task(task.program_id, task.broadcast_at)
        logger.info("Weekly task %s completed, next occurrence is task %s", task_id, next_task_id)

    return task


async def refresh_task_list(engine: TaskLifecycleEngine) -> tuple[list[TaskWithProgram], list[CleanedUpTask]]:
    """
    Sweep expired tasks, then read the active list.

    Returns:
        Tuple of (active tasks, tasks removed by the sweep)
    """
    cleaned_up = await engine.sweep_expired()
    if cleaned_up:
        logger.info("%s expired tasks removed during refresh", len(cleaned_up))
    tasks = await engine.get_active_tasks()
    return tasks, cleaned_up
