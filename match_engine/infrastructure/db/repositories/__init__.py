"""
Repository Layer for the Match Engine

Exports all repository classes for dependency injection.
"""

from match_engine.infrastructure.db.repositories.base_repository import BaseRepository
from match_engine.infrastructure.db.repositories.student_profile_repository import (
    StudentProfileRepository,
)
from match_engine.infrastructure.db.repositories.program_repository import (
    ProgramRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    # Repositories
    "StudentProfileRepository",
    "ProgramRepository",
]
