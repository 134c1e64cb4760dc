"""
Program SQLModel

Catalog programs and their entry requirements.
Requirement groups are validated against the domain model and stored as a
JSON column.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON
from pydantic import field_validator
from sqlmodel import Field, SQLModel

from match_engine.domain.models import ProgramRequirement, RequirementGroup
from match_engine.infrastructure.db.models.base import StringIdMixin, TimestampMixin


def _normalize_groups(value: Any) -> List[Dict[str, Any]]:
    return [
        RequirementGroup.model_validate(group).model_dump(mode="json")
        for group in value or []
    ]


class ProgramBase(SQLModel):
    """Fields shared between create and read schemas."""

    name: str = Field(..., min_length=1, max_length=255)
    university_name: str = Field(..., min_length=1, max_length=255)
    field_id: str = Field(..., min_length=1, max_length=64, index=True)
    country_id: str = Field(..., min_length=1, max_length=64, index=True)
    minimum_points: Optional[int] = Field(
        default=None,
        ge=0,
        le=45,
        description="Minimum total diploma points, if any"
    )
    requirement_groups: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="AND-ed list of OR-groups of subject requirements"
    )
    is_active: bool = Field(default=True, index=True)

    @field_validator("requirement_groups", mode="before")
    @classmethod
    def validate_groups(cls, v: Any) -> List[Dict[str, Any]]:
        return _normalize_groups(v)


class Program(ProgramBase, StringIdMixin, TimestampMixin, table=True):
    """Program database table model."""

    __tablename__ = "programs"

    def to_domain(self) -> ProgramRequirement:
        return ProgramRequirement(
            program_id=self.id,
            name=self.name,
            university_name=self.university_name,
            field_id=self.field_id,
            country_id=self.country_id,
            minimum_points=self.minimum_points,
            requirement_groups=self.requirement_groups or [],
            is_active=self.is_active,
        )


class ProgramCreate(ProgramBase):
    """Schema for creating a program."""
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)


class ProgramUpdate(SQLModel):
    """Schema for updating a program (all fields optional)."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    university_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    field_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    country_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    minimum_points: Optional[int] = Field(default=None, ge=0, le=45)
    requirement_groups: Optional[List[Dict[str, Any]]] = None
    is_active: Optional[bool] = None

    @field_validator("requirement_groups", mode="before")
    @classmethod
    def validate_groups(cls, v: Any) -> Optional[List[Dict[str, Any]]]:
        if v is None:
            return None
        return _normalize_groups(v)
