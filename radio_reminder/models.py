"""
SQLAlchemy ORM Models for Radio Reminder

This module defines the database models for programs and their tasks.
All timestamps are naive civil datetimes in the configured timezone.
"""
from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class RepeatType(StrEnum):
    NONE = "none"
    WEEKLY = "weekly"


class TaskStatus(StrEnum):
    UNLISTENED = "unlistened"
    LISTENING = "listening"
    COMPLETED = "completed"


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Program(Base):
    """A recurring (or one-shot) broadcast registered by the user"""
    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    station_name: Mapped[str] = mapped_column(String, nullable=False)
    program_name: Mapped[str] = mapped_column(String, nullable=False)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    minute: Mapped[int] = mapped_column(Integer, nullable=False)
    repeat_type: Mapped[str] = mapped_column(String, nullable=False, default=RepeatType.NONE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    tasks: Mapped[list["Task"]] = relationship(
        back_populates="program",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_programs_day_of_week"),
        CheckConstraint("hour >= 5 AND hour <= 29", name="ck_programs_hour"),
        CheckConstraint("minute IN (0, 15, 30, 45)", name="ck_programs_minute"),
        CheckConstraint("repeat_type IN ('none', 'weekly')", name="ck_programs_repeat_type"),
        Index("idx_programs_program_name", "program_name"),
        Index("idx_programs_day_of_week", "day_of_week"),
    )

    def __repr__(self) -> str:
        return f"<Program(id={self.id}, program_name={self.program_name}, station={self.station_name})>"


class Task(Base):
    """One concrete occurrence of a program awaiting listener action"""
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
    )
    broadcast_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    deadline_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=TaskStatus.UNLISTENED.value)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    program: Mapped[Program] = relationship(back_populates="tasks")

    __table_args__ = (
        CheckConstraint(
            "status IN ('unlistened', 'listening', 'completed')",
            name="ck_tasks_status",
        ),
        CheckConstraint("deadline_at >= broadcast_at", name="ck_tasks_deadline_after_broadcast"),
        Index("idx_tasks_program_id", "program_id"),
        Index("idx_tasks_status_deadline", "status", "deadline_at"),
        Index("idx_tasks_completed_at", "completed_at"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, program_id={self.program_id}, status={self.status})>"
