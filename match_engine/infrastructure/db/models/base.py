"""
Base Model for SQLModel ORM

Provides common fields and behavior for all database models.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """Mixin providing timestamp fields for models."""

    created_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        description="Record creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        sa_column_kwargs={"onupdate": utc_now},
        description="Last update timestamp (UTC)"
    )


class StringIdMixin(SQLModel):
    """
    Mixin providing a string primary key.

    Program ids are opaque strings; new rows get a UUID v4 in text form.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        nullable=False,
        max_length=64,
        description="Unique identifier"
    )
