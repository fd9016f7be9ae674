# tests/test_main.py

from __future__ import annotations

from pathlib import Path

import pytest

from radio_reminder import main
from radio_reminder.config import CustomSettings
from radio_reminder.dependencies import get_service_locator, get_task_engine
from radio_reminder.services.reminder_service import ReminderService

from .fakes import program_data


@pytest.fixture()
def app_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CustomSettings:
    app_settings = CustomSettings(
        database_path=str(tmp_path / "radio_reminder.db"),
        sweep_on_startup=False,
    )
    monkeypatch.setattr(main, "settings", app_settings)
    return app_settings


@pytest.mark.asyncio
async def test_restart_restores_pending_reminders(app_settings: CustomSettings) -> None:
    # One-shot program: its reminder always lies ahead of the wall clock
    async with main.lifespan(main.app):
        engine = get_task_engine()
        await engine.create_program(program_data())
        (task,) = await engine.get_active_tasks()
        assert get_service_locator().get(ReminderService).list_scheduled() == [f"task_{task.id}"]

    async with main.lifespan(main.app):
        reminders = get_service_locator().get(ReminderService)
        assert reminders.list_scheduled() == [f"task_{task.id}"]
        assert [t.id for t in await get_task_engine().get_active_tasks()] == [task.id]
