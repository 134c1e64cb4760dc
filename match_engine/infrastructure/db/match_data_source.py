"""
SQL Match Data Source

Feeds the match cache from the database. Each call opens its own
short-lived session, so cache fills triggered by background jobs never
share a session with the request that scheduled them.
"""

from contextlib import AbstractAsyncContextManager
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from match_engine.domain.models import StudentAcademicProfile, ProgramRequirement
from match_engine.infrastructure.db.database import get_session_context
from match_engine.infrastructure.db.repositories import (
    ProgramRepository,
    StudentProfileRepository,
)


SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlMatchDataSource:
    """MatchDataSource backed by the student profile and program tables."""

    def __init__(self, session_factory: SessionFactory = get_session_context):
        self._session_factory = session_factory

    async def get_profile(self, student_id: str) -> Optional[StudentAcademicProfile]:
        async with self._session_factory() as session:
            return await StudentProfileRepository(session).get_profile(student_id)

    async def list_active_programs(self) -> List[ProgramRequirement]:
        async with self._session_factory() as session:
            return await ProgramRepository(session).list_active()
