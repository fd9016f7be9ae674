from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    database_path: str = "./data/radio_reminder.db"
    timezone: str = "Asia/Tokyo"  # The single civil timezone all timestamps live in
    log_level: str = "INFO"

    sweep_cron: str = "*/15 * * * *"  # Every 15 minutes
    sweep_misfire_grace_sec: int = 300
    sweep_on_startup: bool = True

    history_retention_days: int = 30
    reminder_hour: int = 18  # Reminders fire at 18:00 the day before the deadline
    reminder_lead_days: int = 1

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RADIO_REMINDER_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate timezone is a known IANA zone."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Invalid timezone '{value}'") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("sweep_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @field_validator("sweep_misfire_grace_sec", "reminder_lead_days")
    @classmethod
    def validate_non_negative_ints(cls, value: int, info) -> int:
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("history_retention_days")
    @classmethod
    def validate_retention(cls, value: int) -> int:
        """Validate history retention is positive and reasonable."""
        if value <= 0:
            raise ValueError("history_retention_days must be > 0")
        if value > 365:
            raise ValueError("history_retention_days must be <= 365 days")
        return value

    @field_validator("reminder_hour")
    @classmethod
    def validate_reminder_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("reminder_hour must be within 0-23")
        return value

    @model_validator(mode="after")
    def validate_reminder_window(self):
        """A reminder with zero lead time would fire after a 05:00 deadline."""
        if self.reminder_lead_days == 0 and self.reminder_hour >= 5:
            raise ValueError(
                "reminder_lead_days=0 requires reminder_hour < 5 to fire before the deadline"
            )
        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info("  Timezone: %s", self.timezone)
        logger.info("  Sweep Schedule: %s", self.sweep_cron)
        logger.info("  Sweep Misfire Grace: %ss", self.sweep_misfire_grace_sec)
        logger.info("  Sweep On Startup: %s", self.sweep_on_startup)
        logger.info("  History Retention: %s days", self.history_retention_days)
        logger.info(
            "  Reminder: %s day(s) before deadline at %02d:00",
            self.reminder_lead_days,
            self.reminder_hour,
        )

settings = CustomSettings()


def setup_logging(level: str | None = None) -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
