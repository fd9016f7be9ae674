# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
import pytest_asyncio

from radio_reminder.database import Database
from radio_reminder.services.reminder_service import ReminderService
from radio_reminder.services.task_lifecycle import TaskLifecycleEngine

from .fakes import FakeClock, FakeReminderBackend


# Thursday afternoon
START = datetime(2024, 12, 5, 15, 0)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture()
def backend() -> FakeReminderBackend:
    return FakeReminderBackend()


@pytest.fixture()
def reminders(backend: FakeReminderBackend, clock: FakeClock) -> ReminderService:
    return ReminderService(backend, clock)


@pytest_asyncio.fixture()
async def database(tmp_path: Path):
    """
    Real SQLite file per test.

    Cascade delete and the CHECK constraints live in the schema, so the store
    is not faked.
    """
    db = Database(str(tmp_path / "radio_reminder.db"))
    await db.init()
    yield db
    await db.close()


@pytest.fixture()
def engine(database: Database, reminders: ReminderService, clock: FakeClock) -> TaskLifecycleEngine:
    return TaskLifecycleEngine(database, reminders, clock)

