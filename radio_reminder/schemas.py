from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from radio_reminder.models import RepeatType, TaskStatus
from radio_reminder.utils.broadcast_clock import (
    MAX_BROADCAST_HOUR,
    MIN_BROADCAST_HOUR,
    VALID_MINUTES,
)


class ProgramIn(BaseModel):
    """Program registration / edit form data"""
    station_name: str = Field(..., description="Station name (e.g. 'TBS Radio')")
    program_name: str = Field(..., description="Program name")
    day_of_week: int = Field(..., ge=0, le=6, description="Nominal broadcast weekday, 0=Sunday ... 6=Saturday")
    hour: int = Field(
        ...,
        ge=MIN_BROADCAST_HOUR,
        le=MAX_BROADCAST_HOUR,
        description="Broadcast-clock hour (5-29), 25 = 01:00 the next day",
    )
    minute: int = Field(..., description="Broadcast minute (0, 15, 30 or 45)")
    repeat_type: RepeatType = Field(default=RepeatType.NONE, description="'none' or 'weekly'")

    @field_validator("station_name", "program_name")
    @classmethod
    def validate_required_text(cls, v: str, info) -> str:
        """Strip surrounding whitespace and reject empty names"""
        stripped = v.strip()
        if not stripped:
            raise ValueError(f"{info.field_name} must not be empty")
        return stripped

    @field_validator("minute")
    @classmethod
    def validate_minute(cls, v: int) -> int:
        if v not in VALID_MINUTES:
            raise ValueError(f"minute must be one of {list(VALID_MINUTES)}")
        return v


class ProgramResponse(BaseModel):
    """Program data"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    station_name: str
    program_name: str
    day_of_week: int
    hour: int
    minute: int
    repeat_type: RepeatType
    created_at: datetime
    updated_at: datetime


class ProgramCreatedResponse(BaseModel):
    id: int = Field(..., description="Id of the created program")


class TaskStatusUpdate(BaseModel):
    status: TaskStatus = Field(..., description="New status: unlistened, listening or completed")


class TaskResponse(BaseModel):
    """Single task with its program and deadline information"""
    id: int
    program_id: int
    station_name: str
    program_name: str
    repeat_type: RepeatType
    status: TaskStatus
    broadcast_at: datetime
    deadline_at: datetime
    completed_at: datetime | None
    broadcast_display: str = Field(..., description="Broadcast time on the 29-hour clock")
    remaining_days: int = Field(..., description="Days until the deadline, rounded up")
    severity: str = Field(..., description="urgent, warning or normal")


class CleanedUpTaskResponse(BaseModel):
    station_name: str
    program_name: str
    broadcast_at: datetime
    broadcast_display: str


class TaskListResponse(BaseModel):
    """Active tasks, earliest deadline first, plus what the refresh swept away"""
    timestamp: datetime
    tasks: list[TaskResponse]
    cleaned_up: list[CleanedUpTaskResponse]


class HistoryResponse(BaseModel):
    timestamp: datetime
    tasks: list[TaskResponse]


class SweepResponse(BaseModel):
    timestamp: datetime
    cleaned_up: list[CleanedUpTaskResponse]


class HistoryCleanupResponse(BaseModel):
    timestamp: datetime
    deleted: int


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'TASK_NOT_FOUND', 'VALIDATION_ERROR')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")
