"""
Change Sets

Closed set of mutations the invalidation orchestrator reacts to.
Each variant is a frozen dataclass tagged with a `kind` literal.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Literal, Union


@dataclass(frozen=True)
class StudentProfileSaved:
    """A student's academic profile was created or changed."""
    student_id: str
    changed_fields: FrozenSet[str] = field(default_factory=frozenset)
    kind: Literal["student_profile_saved"] = "student_profile_saved"


@dataclass(frozen=True)
class StudentProfileDeleted:
    """A student's profile was removed along with the account."""
    student_id: str
    kind: Literal["student_profile_deleted"] = "student_profile_deleted"


@dataclass(frozen=True)
class ProgramCreated:
    program_id: str
    kind: Literal["program_created"] = "program_created"


@dataclass(frozen=True)
class ProgramUpdated:
    program_id: str
    changed_fields: FrozenSet[str] = field(default_factory=frozenset)
    kind: Literal["program_updated"] = "program_updated"


@dataclass(frozen=True)
class ProgramDeleted:
    program_id: str
    kind: Literal["program_deleted"] = "program_deleted"


CatalogChange = Union[
    StudentProfileSaved,
    StudentProfileDeleted,
    ProgramCreated,
    ProgramUpdated,
    ProgramDeleted,
]
