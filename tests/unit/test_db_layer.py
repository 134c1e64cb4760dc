"""
Unit tests for the database connection helpers and the repository base.

Sessions are mocked; no database is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from match_engine.config.settings import get_settings
from match_engine.infrastructure.db.database import Database, normalize_database_url
from match_engine.infrastructure.db.models.program import Program, ProgramUpdate
from match_engine.infrastructure.db.repositories import ProgramRepository
from match_engine.infrastructure.exceptions import ConfigurationError


def stored_program() -> Program:
    return Program(
        id="prog-1",
        name="Mechanical Engineering",
        university_name="TU Delft",
        field_id="engineering",
        country_id="NL",
        minimum_points=36,
    )


@pytest.fixture
def session():
    session = MagicMock()
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    return session


class TestDatabase:

    @pytest.mark.parametrize("url, expected", [
        ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
    ])
    def test_normalize_database_url(self, url, expected):
        assert normalize_database_url(url) == expected

    def test_missing_url_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "database_url", None)

        with pytest.raises(ConfigurationError):
            Database().sessions

    @pytest.mark.asyncio
    async def test_dispose_without_engine_is_noop(self):
        await Database().dispose()

    def test_no_schema_creation_helper(self):
        assert not hasattr(Database, "create_tables")


class TestRepositoryBase:

    @pytest.mark.asyncio
    async def test_update_applies_only_set_fields(self, session):
        row = stored_program()
        session.get.return_value = row

        updated = await ProgramRepository(session).update("prog-1", ProgramUpdate(minimum_points=38))

        assert updated is row
        assert row.minimum_points == 38
        assert row.name == "Mechanical Engineering"
        session.flush.assert_awaited_once()
        session.refresh.assert_awaited_once_with(row)

    @pytest.mark.asyncio
    async def test_update_unknown_id_returns_none(self, session):
        assert await ProgramRepository(session).update("nope", ProgramUpdate(name="X")) is None
        session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self, session):
        row = stored_program()
        session.get.return_value = row

        assert await ProgramRepository(session).delete("prog-1") is True
        session.delete.assert_awaited_once_with(row)

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, session):
        assert await ProgramRepository(session).delete("nope") is False
        session.delete.assert_not_awaited()

    def test_no_unpaged_listing(self, session):
        assert not hasattr(ProgramRepository(session), "get_all")
