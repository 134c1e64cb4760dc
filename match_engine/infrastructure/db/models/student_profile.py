"""
Student Academic Profile SQLModel

Database model for a student's transcript and preferences.
Course and preference lists are stored as JSON columns.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field

from match_engine.domain.models import StudentAcademicProfile
from match_engine.infrastructure.db.models.base import TimestampMixin


class StudentProfileRecord(TimestampMixin, table=True):
    """One row per student; the student id is the primary key."""

    __tablename__ = "student_academic_profiles"

    student_id: str = Field(
        primary_key=True,
        max_length=64,
        description="Authenticated student identifier"
    )
    total_points: Optional[int] = Field(
        default=None,
        ge=0,
        le=45,
        description="Total diploma points"
    )
    tok_grade: Optional[str] = Field(default=None, max_length=1)
    ee_grade: Optional[str] = Field(default=None, max_length=1)
    courses: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Course records: course_id, level, grade"
    )
    preferred_fields: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    preferred_countries: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    open_to_all_fields: bool = Field(default=False)
    open_to_all_locations: bool = Field(default=False)

    def to_domain(self) -> StudentAcademicProfile:
        return StudentAcademicProfile(
            student_id=self.student_id,
            total_points=self.total_points,
            tok_grade=self.tok_grade,
            ee_grade=self.ee_grade,
            courses=self.courses or [],
            preferred_fields=self.preferred_fields or [],
            preferred_countries=self.preferred_countries or [],
            open_to_all_fields=self.open_to_all_fields,
            open_to_all_locations=self.open_to_all_locations,
        )

    def apply_domain(self, profile: StudentAcademicProfile) -> None:
        """Copy every profile field onto this row."""
        data = profile.model_dump(mode="json", exclude={"student_id"})
        for name, value in data.items():
            setattr(self, name, value)
