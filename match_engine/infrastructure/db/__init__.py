"""
Database Infrastructure Package for the Match Engine

Exports database utilities, repositories and the match data source.
"""

from match_engine.infrastructure.db.database import (
    Database,
    get_database,
    get_session,
    get_session_context,
    init_db,
    close_db,
)

from match_engine.infrastructure.db.dependencies import (
    SessionDep,
    get_student_profile_repository,
    get_program_repository,
    StudentProfileRepoDep,
    ProgramRepoDep,
)
from match_engine.infrastructure.db.match_data_source import SqlMatchDataSource


__all__ = [
    # Database management
    "Database",
    "get_database",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "get_student_profile_repository",
    "get_program_repository",
    "StudentProfileRepoDep",
    "ProgramRepoDep",
    # Match cache feed
    "SqlMatchDataSource",
]
