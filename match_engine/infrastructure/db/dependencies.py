"""
Dependency Injection Providers for the Match Engine

Provides FastAPI dependencies for database sessions and repositories.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from match_engine.infrastructure.db.database import get_session
from match_engine.infrastructure.db.repositories import (
    StudentProfileRepository,
    ProgramRepository,
)


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_student_profile_repository(
    session: SessionDep,
) -> AsyncGenerator[StudentProfileRepository, None]:
    """
    Dependency provider for StudentProfileRepository.

    Usage:
        @router.get("/profile")
        async def get_profile(
            repo: StudentProfileRepository = Depends(get_student_profile_repository)
        ):
            ...
    """
    yield StudentProfileRepository(session)


async def get_program_repository(
    session: SessionDep,
) -> AsyncGenerator[ProgramRepository, None]:
    """Dependency provider for ProgramRepository."""
    yield ProgramRepository(session)


# Type aliases for repository dependencies
StudentProfileRepoDep = Annotated[
    StudentProfileRepository,
    Depends(get_student_profile_repository)
]
ProgramRepoDep = Annotated[
    ProgramRepository,
    Depends(get_program_repository)
]
