# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from radio_reminder.config import CustomSettings


@pytest.fixture()
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "nested" / "radio_reminder.db")


def test_defaults(db_path: str) -> None:
    settings = CustomSettings(database_path=db_path)

    assert settings.timezone == "Asia/Tokyo"
    assert settings.sweep_cron == "*/15 * * * *"
    assert settings.history_retention_days == 30
    assert settings.reminder_hour == 18
    assert settings.reminder_lead_days == 1
    assert settings.sweep_on_startup is True


def test_database_directory_is_created(db_path: str) -> None:
    CustomSettings(database_path=db_path)
    assert Path(db_path).parent.is_dir()


def test_environment_overrides(db_path: str, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RADIO_REMINDER_HISTORY_RETENTION_DAYS", "7")
    monkeypatch.setenv("RADIO_REMINDER_LOG_LEVEL", "debug")

    settings = CustomSettings(database_path=db_path)

    assert settings.history_retention_days == 7
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"timezone": "Mars/Olympus_Mons"},
        {"sweep_cron": "every minute"},
        {"log_level": "LOUD"},
        {"history_retention_days": 0},
        {"history_retention_days": 366},
        {"reminder_hour": 24},
        {"sweep_misfire_grace_sec": -1},
        {"reminder_lead_days": 0},
    ],
)
def test_invalid_settings_are_rejected(db_path: str, overrides: dict) -> None:
    with pytest.raises(pydantic.ValidationError):
        CustomSettings(database_path=db_path, **overrides)


def test_same_day_reminder_before_deadline_is_allowed(db_path: str) -> None:
    settings = CustomSettings(database_path=db_path, reminder_lead_days=0, reminder_hour=3)
    assert settings.reminder_hour == 3
