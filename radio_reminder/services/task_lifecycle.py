"""
Task Lifecycle Engine

Owns program registration, task status changes, next-occurrence generation,
the expiry sweep and history retention.

Transaction rule: every multi-row change runs inside one session scope, and
reminder calls are made only after that scope has committed. Store failures
propagate as PersistenceError; reminder failures are logged and dropped so a
broken notification path never blocks task tracking.
"""
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

import pydantic

from radio_reminder.database import Database
from radio_reminder.errors import ProgramNotFound, TaskNotFound, ValidationError
from radio_reminder.models import Program, RepeatType, TaskStatus
from radio_reminder.schemas import ProgramIn
from radio_reminder.services import db_service
from radio_reminder.services.reminder_service import ReminderService
from radio_reminder.services.sweep_coordinator import SweepCoordinator
from radio_reminder.services.task_types import CleanedUpTask, ReminderFollowUp, TaskWithProgram
from radio_reminder.utils.deadlines import (
    REPEAT_INTERVAL,
    calculate_deadline,
    next_broadcast_datetime,
    next_occurrence,
)
from radio_reminder.utils.timezone import Clock


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_RETENTION_DAYS = 30


def validate_program_data(data: ProgramIn | Mapping[str, Any]) -> ProgramIn:
    """
    Validate program form data.

    Raises:
        ValidationError: With one message per invalid field
    """
    if isinstance(data, ProgramIn):
        return data
    try:
        return ProgramIn.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValidationError(
            f"Invalid program data: {problems}",
            context={"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid program data: {exc}") from exc


def coerce_task_status(status: TaskStatus | str) -> TaskStatus:
    try:
        return TaskStatus(status)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown task status '{status}'",
            context={"allowed": [s.value for s in TaskStatus]},
        ) from exc


class TaskLifecycleEngine:
    """Task state machine and expiry sweep over an injected store and reminder adapter"""

    def __init__(
        self,
        database: Database,
        reminders: ReminderService,
        clock: Clock,
        *,
        history_retention_days: int = DEFAULT_HISTORY_RETENTION_DAYS,
    ) -> None:
        self._db = database
        self._reminders = reminders
        self._clock = clock
        self._history_retention = timedelta(days=history_retention_days)
        self._sweep_coordinator = SweepCoordinator()

    def now(self) -> datetime:
        """Current civil time as seen by the engine"""
        return self._clock()

    # ---- reminder isolation ----

    def _schedule_quietly(self, task_id: int, program_name: str, station_name: str, deadline: datetime) -> None:
        try:
            self._reminders.schedule_reminder(task_id, program_name, station_name, deadline)
        except Exception as e:
            logger.error(f"Reminder scheduling failed for task {task_id}: {e}", exc_info=True)

    def _cancel_quietly(self, task_id: int) -> None:
        try:
            self._reminders.cancel_reminder(task_id)
        except Exception as e:
            logger.error(f"Reminder cancellation failed for task {task_id}: {e}", exc_info=True)

    # ---- programs ----

    async def create_program(self, data: ProgramIn | Mapping[str, Any]) -> int:
        """
        Register a program together with its first task.

        For weekly programs the first task is the most recent past occurrence,
        whose listening window is still open at registration time.

        Returns:
            Id of the new program
        """
        program_data = validate_program_data(data)
        now = self._clock()

        broadcast_at = next_broadcast_datetime(
            program_data.day_of_week,
            program_data.hour,
            program_data.minute,
            now,
        )
        if program_data.repeat_type == RepeatType.WEEKLY:
            broadcast_at -= REPEAT_INTERVAL
        deadline_at = calculate_deadline(broadcast_at, program_data.hour)

        async with self._db.session_scope() as session:
            program = await db_service.insert_program(session, program_data, now)
            task = await db_service.insert_task(session, program.id, broadcast_at, deadline_at, now)
            program_id, task_id = program.id, task.id

        logger.info(
            "Program created: id=%s, first task id=%s, broadcast=%s, deadline=%s",
            program_id,
            task_id,
            broadcast_at,
            deadline_at,
        )
        self._schedule_quietly(task_id, program_data.program_name, program_data.station_name, deadline_at)
        return program_id

    async def get_program(self, program_id: int) -> Program:
        async with self._db.session_scope() as session:
            program = await db_service.get_program(session, program_id)
        if program is None:
            raise ProgramNotFound(program_id)
        return program

    async def list_programs(self) -> list[Program]:
        async with self._db.session_scope() as session:
            return await db_service.list_programs(session)

    async def update_program(self, program_id: int, data: ProgramIn | Mapping[str, Any]) -> None:
        """Update a program in place. Existing tasks keep their schedule."""
        program_data = validate_program_data(data)
        now = self._clock()

        async with self._db.session_scope() as session:
            updated = await db_service.update_program(session, program_id, program_data, now)
            if not updated:
                raise ProgramNotFound(program_id)

        logger.info("Program updated: id=%s", program_id)

    async def delete_program(self, program_id: int) -> None:
        """Delete a program and all its tasks, then cancel their reminders."""
        async with self._db.session_scope() as session:
            task_ids = await db_service.list_task_ids_for_program(session, program_id)
            deleted = await db_service.delete_program(session, program_id)
            if not deleted:
                raise ProgramNotFound(program_id)

        logger.info("Program deleted: id=%s (%s tasks)", program_id, len(task_ids))

        for task_id in task_ids:
            self._cancel_quietly(task_id)
        logger.info("Cancelled %s reminders for program %s", len(task_ids), program_id)

    # ---- tasks ----

    async def get_task(self, task_id: int) -> TaskWithProgram:
        async with self._db.session_scope() as session:
            task = await db_service.get_task_with_program(session, task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def update_task_status(self, task_id: int, status: TaskStatus | str) -> TaskWithProgram:
        """
        Set a task's status.

        COMPLETED stamps completed_at and cancels the reminder; the other
        statuses leave completed_at empty. A completed task stays completed:
        setting COMPLETED again keeps the original completed_at, and any other
        status is rejected. Generating the next occurrence of a completed
        weekly task is left to the caller.

        Raises:
            ValidationError: Unknown status, or a move out of COMPLETED
            TaskNotFound: If the task does not exist

        Returns:
            The task as stored after the update
        """
        new_status = coerce_task_status(status)
        now = self._clock()

        async with self._db.session_scope() as session:
            current = await db_service.get_task_with_program(session, task_id)
            if current is None:
                raise TaskNotFound(task_id)
            if current.status == TaskStatus.COMPLETED:
                if new_status != TaskStatus.COMPLETED:
                    raise ValidationError(
                        f"Task {task_id} is completed and cannot be set to '{new_status.value}'",
                        context={"task_id": task_id, "status": current.status.value},
                    )
                return current

            await db_service.set_task_status(session, task_id, new_status, now)
            task = await db_service.get_task_with_program(session, task_id)

        logger.info("Task status updated: id=%s, status=%s", task_id, new_status.value)

        if new_status == TaskStatus.COMPLETED:
            self._cancel_quietly(task_id)
        return task

    async def generate_next_task(self, program_id: int, previous_broadcast_at: datetime) -> int:
        """
        Create the occurrence one week after `previous_broadcast_at`.

        Raises:
            ProgramNotFound: If the program does not exist

        Returns:
            Id of the new task
        """
        now = self._clock()

        async with self._db.session_scope() as session:
            program = await db_service.get_program(session, program_id)
            if program is None:
                raise ProgramNotFound(program_id)

            broadcast_at = next_occurrence(previous_broadcast_at)
            deadline_at = calculate_deadline(broadcast_at, program.hour)
            task = await db_service.insert_task(session, program_id, broadcast_at, deadline_at, now)
            task_id = task.id
            program_name, station_name = program.program_name, program.station_name

        logger.info("Next task generated: program_id=%s, task_id=%s, broadcast=%s", program_id, task_id, broadcast_at)
        self._schedule_quietly(task_id, program_name, station_name, deadline_at)
        return task_id

    async def delete_task(self, task_id: int) -> None:
        """Delete a single occurrence; the program stays."""
        async with self._db.session_scope() as session:
            deleted = await db_service.delete_task(session, task_id)
            if not deleted:
                raise TaskNotFound(task_id)

        logger.info("Task deleted: id=%s", task_id)
        self._cancel_quietly(task_id)

    # ---- expiry sweep ----

    async def sweep_expired(self) -> list[CleanedUpTask]:
        """
        Remove expired, unfinished tasks and regenerate weekly ones.

        Returns immediately with an empty list when another sweep is running.
        A weekly program advances by one occurrence per sweep.

        Returns:
            Descriptors of the removed tasks
        """
        return await self._sweep_coordinator.execute(self._sweep, [])

    def is_sweeping(self) -> bool:
        return self._sweep_coordinator.is_sweeping()

    async def _sweep(self) -> list[CleanedUpTask]:
        now = self._clock()
        follow_ups: list[ReminderFollowUp] = []

        async with self._db.session_scope() as session:
            expired = await db_service.list_expired_tasks(session, now)
            if not expired:
                logger.debug("No expired tasks to clean up")
                return []

            logger.info("Found %s expired tasks", len(expired))

            for task in expired:
                await db_service.delete_task(session, task.id)
                follow_up = ReminderFollowUp(old_task_id=task.id)

                if task.repeat_type == RepeatType.WEEKLY:
                    broadcast_at = next_occurrence(task.broadcast_at)
                    deadline_at = calculate_deadline(broadcast_at, task.program_hour)
                    new_task = await db_service.insert_task(
                        session, task.program_id, broadcast_at, deadline_at, now
                    )
                    follow_up.new_task_id = new_task.id
                    follow_up.program_name = task.program_name
                    follow_up.station_name = task.station_name
                    follow_up.deadline_at = deadline_at

                follow_ups.append(follow_up)

        for follow_up in follow_ups:
            self._cancel_quietly(follow_up.old_task_id)
            if follow_up.new_task_id is not None:
                self._schedule_quietly(
                    follow_up.new_task_id,
                    follow_up.program_name,
                    follow_up.station_name,
                    follow_up.deadline_at,
                )

        logger.info(
            "Expired tasks processed: %s removed, %s regenerated",
            len(expired),
            sum(1 for f in follow_ups if f.new_task_id is not None),
        )
        return [
            CleanedUpTask(
                station_name=task.station_name,
                program_name=task.program_name,
                broadcast_at=task.broadcast_at,
            )
            for task in expired
        ]

    # ---- lists & history ----

    async def get_active_tasks(self) -> list[TaskWithProgram]:
        """Unfinished tasks within their window, earliest deadline first."""
        now = self._clock()
        async with self._db.session_scope() as session:
            return await db_service.list_active_tasks(session, now)

    async def restore_reminders(self) -> int:
        """
        Re-register the reminder of every active task.

        Scheduled reminders live in memory only, so they are rebuilt from the
        store on startup. Reminders already past their trigger time are skipped
        by the reminder service.

        Returns:
            Number of active tasks processed
        """
        tasks = await self.get_active_tasks()
        for task in tasks:
            self._schedule_quietly(task.id, task.program_name, task.station_name, task.deadline_at)
        logger.info("Reminders restored for %s active tasks", len(tasks))
        return len(tasks)

    async def get_history(self) -> list[TaskWithProgram]:
        """Tasks completed within the retention window, most recent first."""
        since = self._clock() - self._history_retention
        async with self._db.session_scope() as session:
            return await db_service.list_history(session, since)

    async def cleanup_old_history(self) -> int:
        """Delete completed tasks older than the retention window."""
        cutoff = self._clock() - self._history_retention
        async with self._db.session_scope() as session:
            deleted = await db_service.delete_completed_before(session, cutoff)
        logger.info("Old history cleaned up: %s tasks removed", deleted)
        return deleted
