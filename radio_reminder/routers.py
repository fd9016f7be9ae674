from typing import Annotated
import logging

from fastapi import APIRouter, Depends, Response, status

from radio_reminder.dependencies import get_sweep_scheduler, get_task_engine
from radio_reminder.schemas import (
    CleanedUpTaskResponse,
    HistoryCleanupResponse,
    HistoryResponse,
    ProgramCreatedResponse,
    ProgramIn,
    ProgramResponse,
    SweepResponse,
    TaskListResponse,
    TaskResponse,
    TaskStatusUpdate,
)
from radio_reminder.services.scheduler_service import SweepScheduler
from radio_reminder.services.task_actions import complete_or_update_status, refresh_task_list
from radio_reminder.services.task_lifecycle import TaskLifecycleEngine
from radio_reminder.services.task_types import CleanedUpTask, TaskWithProgram
from radio_reminder.utils.broadcast_clock import format_broadcast_display
from radio_reminder.utils.deadlines import calculate_remaining_days, remaining_days_severity


logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "YYYY/MM/DD(ddd) HH:mm"

EngineDep = Annotated[TaskLifecycleEngine, Depends(get_task_engine)]
SchedulerDep = Annotated[SweepScheduler | None, Depends(get_sweep_scheduler)]

main_router = APIRouter()
tasks_router = APIRouter(prefix="/tasks", tags=["tasks"])
programs_router = APIRouter(prefix="/programs", tags=["programs"])


def _task_response(task: TaskWithProgram, engine: TaskLifecycleEngine) -> TaskResponse:
    remaining = calculate_remaining_days(task.deadline_at, engine.now())
    return TaskResponse(
        id=task.id,
        program_id=task.program_id,
        station_name=task.station_name,
        program_name=task.program_name,
        repeat_type=task.repeat_type,
        status=task.status,
        broadcast_at=task.broadcast_at,
        deadline_at=task.deadline_at,
        completed_at=task.completed_at,
        broadcast_display=format_broadcast_display(task.broadcast_at, DISPLAY_FORMAT),
        remaining_days=remaining,
        severity=remaining_days_severity(remaining).value,
    )


def _cleaned_up_response(items: list[CleanedUpTask]) -> list[CleanedUpTaskResponse]:
    return [
        CleanedUpTaskResponse(
            station_name=item.station_name,
            program_name=item.program_name,
            broadcast_at=item.broadcast_at,
            broadcast_display=format_broadcast_display(item.broadcast_at, DISPLAY_FORMAT),
        )
        for item in items
    ]


@main_router.get("/")
async def root(scheduler: SchedulerDep) -> dict:
    """Root endpoint with service information"""
    next_run = scheduler.get_next_run_time() if scheduler else None

    return {
        "service": "Radio Reminder",
        "version": "0.1.0",
        "next_scheduled_sweep": next_run.isoformat() if next_run else None,
        "endpoints": {
            "tasks": "/tasks - Active tasks (sweeps expired ones first)",
            "history": "/tasks/history - Recently completed tasks",
            "programs": "/programs - Registered programs",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check(scheduler: SchedulerDep) -> dict:
    """Health check endpoint"""
    next_run = scheduler.get_next_run_time() if scheduler else None
    return {
        "status": "ok",
        "scheduler_running": scheduler.scheduler.running if scheduler else False,
        "next_sweep": next_run.isoformat() if next_run else None
    }


# ---- tasks ----

@tasks_router.get("", response_model=TaskListResponse)
async def list_tasks(engine: EngineDep) -> TaskListResponse:
    """
    Refresh the task list

    Expired tasks are swept first; the ones removed are reported in `cleaned_up`.
    """
    tasks, cleaned_up = await refresh_task_list(engine)
    return TaskListResponse(
        timestamp=engine.now(),
        tasks=[_task_response(task, engine) for task in tasks],
        cleaned_up=_cleaned_up_response(cleaned_up),
    )


@tasks_router.get("/history", response_model=HistoryResponse)
async def get_history(engine: EngineDep) -> HistoryResponse:
    tasks = await engine.get_history()
    return HistoryResponse(timestamp=engine.now(), tasks=[_task_response(task, engine) for task in tasks])


@tasks_router.post("/sweep", response_model=SweepResponse)
async def trigger_sweep(engine: EngineDep) -> SweepResponse:
    """Manually trigger the expiry sweep"""
    logger.info("Manual expiry sweep triggered via API")
    cleaned_up = await engine.sweep_expired()
    return SweepResponse(timestamp=engine.now(), cleaned_up=_cleaned_up_response(cleaned_up))


@tasks_router.post("/history/cleanup", response_model=HistoryCleanupResponse)
async def cleanup_history(engine: EngineDep) -> HistoryCleanupResponse:
    deleted = await engine.cleanup_old_history()
    return HistoryCleanupResponse(timestamp=engine.now(), deleted=deleted)


@tasks_router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, engine: EngineDep) -> TaskResponse:
    return _task_response(await engine.get_task(task_id), engine)


@tasks_router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(task_id: int, update: TaskStatusUpdate, engine: EngineDep) -> TaskResponse:
    """
    Change a task's status

    Completing a weekly task queues next week's occurrence.
    """
    task = await complete_or_update_status(engine, task_id, update.status)
    return _task_response(task, engine)


@tasks_router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, engine: EngineDep) -> Response:
    await engine.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---- programs ----

@programs_router.get("", response_model=list[ProgramResponse])
async def list_programs(engine: EngineDep) -> list[ProgramResponse]:
    programs = await engine.list_programs()
    return [ProgramResponse.model_validate(program) for program in programs]


@programs_router.post("", response_model=ProgramCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_program(data: ProgramIn, engine: EngineDep) -> ProgramCreatedResponse:
    """Register a program and its first task"""
    program_id = await engine.create_program(data)
    return ProgramCreatedResponse(id=program_id)


@programs_router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(program_id: int, engine: EngineDep) -> ProgramResponse:
    return ProgramResponse.model_validate(await engine.get_program(program_id))


@programs_router.put("/{program_id}", response_model=ProgramResponse)
async def update_program(program_id: int, data: ProgramIn, engine: EngineDep) -> ProgramResponse:
    """Edit a program. Tasks already generated keep their schedule."""
    await engine.update_program(program_id, data)
    return ProgramResponse.model_validate(await engine.get_program(program_id))


@programs_router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(program_id: int, engine: EngineDep) -> Response:
    """Delete a program together with all its tasks"""
    await engine.delete_program(program_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
