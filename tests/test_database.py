# tests/test_database.py

from __future__ import annotations

import pytest

from radio_reminder.database import Database
from radio_reminder.errors import ValidationError
from radio_reminder.schemas import ProgramIn
from radio_reminder.services import db_service

from .conftest import START
from .fakes import program_data


@pytest.mark.asyncio
async def test_scope_commits_on_clean_exit(database: Database) -> None:
    async with database.session_scope() as session:
        await db_service.insert_program(session, ProgramIn(**program_data()), START)

    async with database.session_scope() as session:
        assert [p.program_name for p in await db_service.list_programs(session)] == ["Junk"]


@pytest.mark.asyncio
async def test_scope_rolls_back_and_reraises_other_errors(database: Database) -> None:
    with pytest.raises(ValidationError):
        async with database.session_scope() as session:
            await db_service.insert_program(session, ProgramIn(**program_data()), START)
            raise ValidationError("rejected after the insert")

    async with database.session_scope() as session:
        assert await db_service.list_programs(session) == []
