from contextlib import asynccontextmanager
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from radio_reminder.config import settings, setup_logging
from radio_reminder.database import close_db, init_db
from radio_reminder.dependencies import get_service_locator, reset_service_locator
from radio_reminder.errors import (
    NotFoundError,
    PersistenceError,
    RadioReminderError,
    ValidationError,
)
from radio_reminder.routers import main_router, programs_router, tasks_router
from radio_reminder.schemas import ErrorDetail, StandardErrorResponse
from radio_reminder.services.notification_scheduler import APSchedulerReminderBackend
from radio_reminder.services.reminder_service import ReminderService
from radio_reminder.services.scheduler_service import SweepScheduler
from radio_reminder.services.task_lifecycle import TaskLifecycleEngine
from radio_reminder.utils.timezone import make_clock


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("="*60)
    logger.info("Starting Radio Reminder...")
    logger.info("="*60)

    sweep_scheduler: SweepScheduler | None = None
    try:
        logger.info("Initializing database...")
        database = await init_db(settings.database_path)

        clock = make_clock(settings.timezone)
        scheduler = AsyncIOScheduler(timezone=settings.timezone)
        reminders = ReminderService(
            APSchedulerReminderBackend(scheduler, timezone=settings.timezone),
            clock,
            lead_days=settings.reminder_lead_days,
            reminder_hour=settings.reminder_hour,
        )
        engine = TaskLifecycleEngine(
            database,
            reminders,
            clock,
            history_retention_days=settings.history_retention_days,
        )
        sweep_scheduler = SweepScheduler(
            engine,
            scheduler,
            cron=settings.sweep_cron,
            timezone=settings.timezone,
            misfire_grace_sec=settings.sweep_misfire_grace_sec,
        )

        locator = get_service_locator()
        locator.register_singleton(ReminderService, reminders)
        locator.register_singleton(TaskLifecycleEngine, engine)
        locator.register_singleton(SweepScheduler, sweep_scheduler)

        logger.info("Starting scheduler...")
        sweep_scheduler.start()

        if settings.sweep_on_startup:
            logger.info("Running startup sweep...")
            cleaned_up = await engine.sweep_expired()
            deleted = await engine.cleanup_old_history()
            logger.info(
                "Startup sweep finished: %s expired tasks removed, %s old history tasks deleted",
                len(cleaned_up),
                deleted,
            )

        # Reminder jobs are kept in memory only
        logger.info("Restoring reminders...")
        await engine.restore_reminders()

        logger.info("="*60)
        logger.info("Radio Reminder started successfully")
        logger.info("="*60)
    except Exception as e:
        logger.error("="*60)
        logger.error(f"Failed to start Radio Reminder: {e}", exc_info=True)
        logger.error("="*60)
        raise

    yield

    logger.info("="*60)
    logger.info("Shutting down Radio Reminder...")
    logger.info("="*60)

    try:
        if sweep_scheduler:
            sweep_scheduler.shutdown()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error during database shutdown: {e}", exc_info=True)

    reset_service_locator()

    logger.info("="*60)
    logger.info("Radio Reminder stopped")
    logger.info("="*60)


app = FastAPI(
    title="Radio Reminder",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)
app.include_router(tasks_router)
app.include_router(programs_router)


def _error_response(status_code: int, exc: RadioReminderError, now: str) -> JSONResponse:
    body = StandardErrorResponse(
        timestamp=now,
        error=ErrorDetail(code=exc.code, message=exc.message, context=exc.context),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _timestamp() -> str:
    return make_clock(settings.timezone)().isoformat()


@app.exception_handler(ValidationError)
async def domain_validation_handler(request: Request, exc: ValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.message}")
    return _error_response(422, exc, _timestamp())


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.info(f"{request.method} {request.url.path}: {exc.message}")
    return _error_response(404, exc, _timestamp())


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc.message}")
    return _error_response(500, exc, _timestamp())


@app.exception_handler(RadioReminderError)
async def application_error_handler(request: Request, exc: RadioReminderError):
    logger.error(f"Unhandled application error on {request.method} {request.url.path}: {exc.message}")
    return _error_response(500, exc, _timestamp())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    errors = []
    for error in exc.errors():
        errors.append({
            "type": error.get("type"),
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        })

    body = StandardErrorResponse(
        timestamp=_timestamp(),
        error=ErrorDetail(
            code="VALIDATION_ERROR",
            message="; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in errors),
            context={"errors": errors},
        ),
    )
    return JSONResponse(status_code=422, content=body.model_dump())
