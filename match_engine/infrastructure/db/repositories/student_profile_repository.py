"""
Student Profile Repository

Persists StudentAcademicProfile domain objects.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from match_engine.domain.models import StudentAcademicProfile
from match_engine.infrastructure.db.models.student_profile import StudentProfileRecord
from match_engine.infrastructure.db.repositories.base_repository import BaseRepository


class StudentProfileRepository(BaseRepository[StudentProfileRecord]):
    """
    Repository for student academic profiles.

    Works in domain objects: rows never leave this class.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(StudentProfileRecord, session)

    async def get_profile(self, student_id: str) -> Optional[StudentAcademicProfile]:
        """
        Get a student's profile.

        Returns:
            StudentAcademicProfile or None if the student has none
        """
        record = await self.get_by_id(student_id)
        return record.to_domain() if record else None

    async def save_profile(self, profile: StudentAcademicProfile) -> StudentAcademicProfile:
        """Insert or replace a student's profile."""
        record = await self.get_by_id(profile.student_id)
        if record is None:
            record = StudentProfileRecord(student_id=profile.student_id)
        record.apply_domain(profile)

        await self._store(record)
        return record.to_domain()
