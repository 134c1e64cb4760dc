"""
SQLModel ORM Models for the Match Engine

Import models here to register them with SQLModel.metadata.
"""

from match_engine.infrastructure.db.models.base import (
    StringIdMixin,
    TimestampMixin,
)
from match_engine.infrastructure.db.models.student_profile import StudentProfileRecord
from match_engine.infrastructure.db.models.program import (
    Program,
    ProgramBase,
    ProgramCreate,
    ProgramUpdate,
)


__all__ = [
    # Base
    "StringIdMixin",
    "TimestampMixin",
    # Student profiles
    "StudentProfileRecord",
    # Programs
    "Program",
    "ProgramBase",
    "ProgramCreate",
    "ProgramUpdate",
]
