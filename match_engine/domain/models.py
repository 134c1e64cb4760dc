"""
Domain Models for the Match Engine

Pure Pydantic models with no framework dependencies.
These models define the student and program records the scoring engine
reads, and the validation rules that apply to them.
"""

from enum import Enum
from typing import Optional, List, Tuple, FrozenSet
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CourseLevel(str, Enum):
    """Depth tier a course is taken at."""
    HL = "HL"
    SL = "SL"

    def satisfies(self, required: "CourseLevel") -> bool:
        """HL covers an SL requirement; SL never covers HL."""
        return self == required or (self == CourseLevel.HL and required == CourseLevel.SL)


class CoreGrade(str, Enum):
    """Letter grade for the two capstone components (TOK, EE)."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class StudentCourse(BaseModel):
    """A single course record on a student's transcript."""
    model_config = ConfigDict(frozen=True)

    course_id: str = Field(..., min_length=1)
    level: CourseLevel
    grade: int = Field(..., ge=1, le=7)


def _normalize_ids(values: List[str]) -> List[str]:
    """Strip, drop blanks, de-duplicate and sort an id list."""
    return sorted({v.strip() for v in values if v and v.strip()})


class StudentAcademicProfile(BaseModel):
    """
    A student's academic record and preferences.

    Preference lists are stored as sorted, de-duplicated id lists so that
    two equal profiles always produce identical match results.
    A flag together with a non-empty list on the same axis is accepted here
    and rejected at save time by the preference validator.
    """
    model_config = ConfigDict(frozen=True)

    student_id: str = Field(..., min_length=1)
    total_points: Optional[int] = Field(None, ge=0, le=45, description="Total diploma points")
    tok_grade: Optional[CoreGrade] = None
    ee_grade: Optional[CoreGrade] = None
    courses: List[StudentCourse] = Field(default_factory=list)
    preferred_fields: List[str] = Field(default_factory=list)
    preferred_countries: List[str] = Field(default_factory=list)
    open_to_all_fields: bool = False
    open_to_all_locations: bool = False

    @field_validator("preferred_fields", "preferred_countries")
    @classmethod
    def normalize_preferences(cls, v: List[str]) -> List[str]:
        return _normalize_ids(v)

    @field_validator("courses")
    @classmethod
    def sort_courses(cls, v: List[StudentCourse]) -> List[StudentCourse]:
        return sorted(v, key=lambda c: (c.course_id, c.level.value, c.grade))


class StudentProfileUpdate(BaseModel):
    """
    Schema for updating a student profile. All fields optional.

    Only fields explicitly provided are applied; a full replacement is an
    update that sets every field.
    """
    total_points: Optional[int] = Field(None, ge=0, le=45)
    tok_grade: Optional[CoreGrade] = None
    ee_grade: Optional[CoreGrade] = None
    courses: Optional[List[StudentCourse]] = None
    preferred_fields: Optional[List[str]] = None
    preferred_countries: Optional[List[str]] = None
    open_to_all_fields: Optional[bool] = None
    open_to_all_locations: Optional[bool] = None

    @field_validator(
        "courses",
        "preferred_fields",
        "preferred_countries",
        "open_to_all_fields",
        "open_to_all_locations",
    )
    @classmethod
    def reject_null(cls, v):
        # Omit a field to keep it; these cannot be cleared with null
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    def apply_to(
        self,
        profile: StudentAcademicProfile,
    ) -> Tuple[StudentAcademicProfile, FrozenSet[str]]:
        """
        Apply this update to a profile.

        Returns:
            Tuple of (updated profile, names of fields whose value changed)
        """
        provided = self.model_dump(exclude_unset=True)
        merged = profile.model_dump()
        merged.update(provided)
        updated = StudentAcademicProfile.model_validate(merged)

        changed = frozenset(
            name for name in provided
            if getattr(updated, name) != getattr(profile, name)
        )
        return updated, changed


class RequirementOption(BaseModel):
    """One alternative inside a requirement group."""
    model_config = ConfigDict(frozen=True)

    course_id: str = Field(..., min_length=1)
    level: CourseLevel
    minimum_grade: int = Field(..., ge=1, le=7)
    is_critical: bool = False


class RequirementGroup(BaseModel):
    """
    OR-group: satisfying any one option satisfies the whole group.

    A group with at least one critical option is a critical group.
    """
    model_config = ConfigDict(frozen=True)

    options: List[RequirementOption] = Field(..., min_length=1)

    @property
    def is_critical(self) -> bool:
        return any(option.is_critical for option in self.options)


class ProgramRequirement(BaseModel):
    """Read side of a catalog program: what the scorer needs."""
    model_config = ConfigDict(frozen=True)

    program_id: str = Field(..., min_length=1)
    name: str = ""
    university_name: str = ""
    field_id: str = Field(..., min_length=1)
    country_id: str = Field(..., min_length=1)
    minimum_points: Optional[int] = Field(None, ge=0, le=45)
    requirement_groups: List[RequirementGroup] = Field(default_factory=list)
    is_active: bool = True

    def summary(self) -> "ProgramSummary":
        return ProgramSummary(
            id=self.program_id,
            name=self.name,
            university_name=self.university_name,
            field_id=self.field_id,
            country_id=self.country_id,
            minimum_points=self.minimum_points,
        )


class ProgramSummary(BaseModel):
    """Display subset attached to match list responses."""
    id: str
    name: str
    university_name: str
    field_id: str
    country_id: str
    minimum_points: Optional[int] = None
