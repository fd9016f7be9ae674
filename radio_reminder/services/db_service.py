"""
Database operations for programs and tasks

This module contains all database CRUD operations. Every function works on a
caller-supplied session so several calls can share one transaction.
"""
import logging
from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from radio_reminder.models import Program, RepeatType, Task, TaskStatus
from radio_reminder.schemas import ProgramIn
from radio_reminder.services.task_types import TaskWithProgram


logger = logging.getLogger(__name__)


def _rowcount(result) -> int:
    count = cast(CursorResult, result).rowcount
    return count if count and count > 0 else 0


def _to_task_with_program(task: Task, program: Program) -> TaskWithProgram:
    return TaskWithProgram(
        id=task.id,
        program_id=task.program_id,
        broadcast_at=task.broadcast_at,
        deadline_at=task.deadline_at,
        status=TaskStatus(task.status),
        completed_at=task.completed_at,
        created_at=task.created_at,
        updated_at=task.updated_at,
        station_name=program.station_name,
        program_name=program.program_name,
        repeat_type=RepeatType(program.repeat_type),
        program_hour=program.hour,
    )


def _task_with_program_query():
    return select(Task, Program).join(Program, Task.program_id == Program.id)


# ---- programs ----

async def insert_program(db: AsyncSession, data: ProgramIn, now: datetime) -> Program:
    """
    Insert a program row and flush to obtain its id.

    Args:
        db: Database session
        data: Validated program fields
        now: Civil time used for created_at/updated_at

    Returns:
        The persisted Program
    """
    program = Program(
        station_name=data.station_name,
        program_name=data.program_name,
        day_of_week=data.day_of_week,
        hour=data.hour,
        minute=data.minute,
        repeat_type=data.repeat_type.value,
        created_at=now,
        updated_at=now,
    )
    db.add(program)
    await db.flush()
    logger.debug("Inserted program id=%s", program.id)
    return program


async def get_program(db: AsyncSession, program_id: int) -> Program | None:
    result = await db.execute(select(Program).where(Program.id == program_id))
    return result.scalar_one_or_none()


async def list_programs(db: AsyncSession) -> list[Program]:
    stmt = select(Program).order_by(Program.day_of_week, Program.hour, Program.minute, Program.id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_program(db: AsyncSession, program_id: int, data: ProgramIn, now: datetime) -> int:
    """
    Update program fields in place. Existing tasks are not touched.

    Returns:
        Number of updated rows (0 when the program does not exist)
    """
    stmt = (
        update(Program)
        .where(Program.id == program_id)
        .values(
            station_name=data.station_name,
            program_name=data.program_name,
            day_of_week=data.day_of_week,
            hour=data.hour,
            minute=data.minute,
            repeat_type=data.repeat_type.value,
            updated_at=now,
        )
    )
    return _rowcount(await db.execute(stmt))


async def delete_program(db: AsyncSession, program_id: int) -> int:
    """Delete a program; its tasks go with it through ON DELETE CASCADE."""
    result = await db.execute(delete(Program).where(Program.id == program_id))
    return _rowcount(result)


# ---- tasks ----

async def list_task_ids_for_program(db: AsyncSession, program_id: int) -> list[int]:
    result = await db.execute(select(Task.id).where(Task.program_id == program_id).order_by(Task.id))
    return list(result.scalars().all())


async def insert_task(
    db: AsyncSession,
    program_id: int,
    broadcast_at: datetime,
    deadline_at: datetime,
    now: datetime,
) -> Task:
    """
    Insert a new unlistened task and flush to obtain its id.
    """
    task = Task(
        program_id=program_id,
        broadcast_at=broadcast_at,
        deadline_at=deadline_at,
        status=TaskStatus.UNLISTENED.value,
        completed_at=None,
        created_at=now,
        updated_at=now,
    )
    db.add(task)
    await db.flush()
    logger.debug(
        "Inserted task id=%s program_id=%s broadcast=%s deadline=%s",
        task.id,
        program_id,
        broadcast_at,
        deadline_at,
    )
    return task


async def get_task_with_program(db: AsyncSession, task_id: int) -> TaskWithProgram | None:
    result = await db.execute(_task_with_program_query().where(Task.id == task_id))
    row = result.one_or_none()
    if row is None:
        return None
    task, program = row
    return _to_task_with_program(task, program)


async def set_task_status(
    db: AsyncSession,
    task_id: int,
    status: TaskStatus,
    now: datetime,
) -> int:
    """
    Set a task's status, keeping completed_at in step with it.

    completed_at becomes `now` for COMPLETED and NULL for every other status.

    Returns:
        Number of updated rows (0 when the task does not exist)
    """
    completed_at = now if status == TaskStatus.COMPLETED else None
    stmt = (
        update(Task)
        .where(Task.id == task_id)
        .values(status=status.value, completed_at=completed_at, updated_at=now)
    )
    return _rowcount(await db.execute(stmt))


async def delete_task(db: AsyncSession, task_id: int) -> int:
    return _rowcount(await db.execute(delete(Task).where(Task.id == task_id)))


async def list_expired_tasks(db: AsyncSession, now: datetime) -> list[TaskWithProgram]:
    """Non-completed tasks whose deadline is strictly before `now`."""
    stmt = (
        _task_with_program_query()
        .where(Task.status != TaskStatus.COMPLETED.value, Task.deadline_at < now)
        .order_by(Task.deadline_at, Task.id)
    )
    result = await db.execute(stmt)
    return [_to_task_with_program(task, program) for task, program in result.all()]


async def list_active_tasks(db: AsyncSession, now: datetime) -> list[TaskWithProgram]:
    """Non-completed tasks still within their window, earliest deadline first."""
    stmt = (
        _task_with_program_query()
        .where(Task.status != TaskStatus.COMPLETED.value, Task.deadline_at >= now)
        .order_by(Task.deadline_at.asc(), Task.id.asc())
    )
    result = await db.execute(stmt)
    return [_to_task_with_program(task, program) for task, program in result.all()]


async def list_history(db: AsyncSession, since: datetime) -> list[TaskWithProgram]:
    """Completed tasks with completed_at >= since, most recent first."""
    stmt = (
        _task_with_program_query()
        .where(Task.status == TaskStatus.COMPLETED.value, Task.completed_at >= since)
        .order_by(Task.completed_at.desc(), Task.id.desc())
    )
    result = await db.execute(stmt)
    return [_to_task_with_program(task, program) for task, program in result.all()]


async def delete_completed_before(db: AsyncSession, cutoff: datetime) -> int:
    """
    Delete completed tasks finished before cutoff.

    Returns:
        Number of deleted tasks
    """
    stmt = delete(Task).where(Task.status == TaskStatus.COMPLETED.value, Task.completed_at < cutoff)
    deleted_count = _rowcount(await db.execute(stmt))
    logger.info("Deleted %s old history tasks (completed_at < %s)", deleted_count, cutoff)
    return deleted_count
