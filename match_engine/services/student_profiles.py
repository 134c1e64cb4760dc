"""
Student Profile Service

Saves and deletes academic profiles, then tells the orchestrator.

Ordering: validate, persist and commit, invalidate, acknowledge. A
rejected configuration never reaches the database and never touches the
cache.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from match_engine.domain.changes import StudentProfileDeleted, StudentProfileSaved
from match_engine.domain.models import StudentAcademicProfile, StudentProfileUpdate
from match_engine.domain.scoring.preference_validator import (
    PreferenceIssue,
    validate_preferences,
)
from match_engine.infrastructure.db.repositories import StudentProfileRepository
from match_engine.infrastructure.exceptions import (
    DatabaseError,
    ProfileNotFoundError,
    ValidationError,
)
from match_engine.services.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

TABLE = "student_academic_profiles"


@dataclass(frozen=True)
class PreferenceLimits:
    max_fields: int = 10
    max_countries: int = 15
    require_explicit: bool = False


class StudentProfileService:
    """Profile writes with cache invalidation."""

    def __init__(
        self,
        repository: StudentProfileRepository,
        orchestrator: Orchestrator,
        limits: Optional[PreferenceLimits] = None,
    ):
        self._repo = repository
        self._orchestrator = orchestrator
        self._limits = limits or PreferenceLimits()

    async def get_profile(self, student_id: str) -> StudentAcademicProfile:
        profile = await self._repo.get_profile(student_id)
        if profile is None:
            raise ProfileNotFoundError(student_id)
        return profile

    async def save_profile(
        self,
        student_id: str,
        update: StudentProfileUpdate,
    ) -> Tuple[StudentAcademicProfile, List[PreferenceIssue]]:
        """
        Create or update a student's profile.

        Args:
            student_id: Authenticated student
            update: Fields to set; unset fields keep their stored value

        Returns:
            Tuple of (saved profile, preference warnings)

        Raises:
            ValidationError: Contradictory preference configuration
            DatabaseError: Persistence failed
        """
        existing = await self._repo.get_profile(student_id)
        base = existing or StudentAcademicProfile(student_id=student_id)
        updated, changed = update.apply_to(base)

        validation = validate_preferences(
            updated.preferred_fields,
            updated.preferred_countries,
            updated.open_to_all_fields,
            updated.open_to_all_locations,
            max_fields=self._limits.max_fields,
            max_countries=self._limits.max_countries,
            require_explicit=self._limits.require_explicit,
        )
        if not validation.is_valid:
            raise ValidationError(
                "Invalid preference configuration",
                errors=[issue.to_dict() for issue in validation.errors],
            )

        if existing is not None and not changed:
            logger.debug(f"[PROFILES] No changes for student {student_id}")
            return existing, validation.warnings

        try:
            saved = await self._repo.save_profile(updated)
            await self._repo.session.commit()
        except SQLAlchemyError as e:
            await self._repo.session.rollback()
            raise DatabaseError(
                f"Failed to save profile for student {student_id}",
                operation="upsert",
                table=TABLE,
                original_error=e,
            )

        await self._orchestrator.apply(
            StudentProfileSaved(student_id=student_id, changed_fields=changed)
        )
        logger.info(
            f"[PROFILES] Saved student {student_id} "
            f"(changed: {', '.join(sorted(changed)) or 'none'})"
        )
        return saved, validation.warnings

    async def delete_profile(self, student_id: str) -> None:
        """
        Remove a student's profile and every cached match for them.

        Raises:
            ProfileNotFoundError: Student has no profile
        """
        try:
            deleted = await self._repo.delete(student_id)
            if deleted:
                await self._repo.session.commit()
        except SQLAlchemyError as e:
            await self._repo.session.rollback()
            raise DatabaseError(
                f"Failed to delete profile for student {student_id}",
                operation="delete",
                table=TABLE,
                original_error=e,
            )

        if not deleted:
            raise ProfileNotFoundError(student_id)

        await self._orchestrator.apply(StudentProfileDeleted(student_id=student_id))
        logger.info(f"[PROFILES] Deleted student {student_id}")
