"""create_match_engine_tables

Revision ID: 0001_match_engine_tables
Revises:
Create Date: 2026-10-17

Creates the two tables the match engine reads:
- student_academic_profiles: transcript and preferences, one row per student
- programs: catalog programs with JSON requirement groups
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_match_engine_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create profile and program tables."""

    op.create_table(
        'student_academic_profiles',
        sa.Column('student_id', sa.String(64), nullable=False, primary_key=True),
        sa.Column('total_points', sa.Integer(), nullable=True),
        sa.Column('tok_grade', sa.String(1), nullable=True),
        sa.Column('ee_grade', sa.String(1), nullable=True),
        sa.Column('courses', sa.JSON(), nullable=False),
        sa.Column('preferred_fields', sa.JSON(), nullable=False),
        sa.Column('preferred_countries', sa.JSON(), nullable=False),
        sa.Column('open_to_all_fields', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('open_to_all_locations', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('total_points BETWEEN 0 AND 45', name='ck_student_profiles_total_points'),
    )

    op.create_table(
        'programs',
        sa.Column('id', sa.String(64), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('university_name', sa.String(255), nullable=False),
        sa.Column('field_id', sa.String(64), nullable=False),
        sa.Column('country_id', sa.String(64), nullable=False),
        sa.Column('minimum_points', sa.Integer(), nullable=True),
        sa.Column('requirement_groups', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('minimum_points BETWEEN 0 AND 45', name='ck_programs_minimum_points'),
    )
    op.create_index('ix_programs_field_id', 'programs', ['field_id'])
    op.create_index('ix_programs_country_id', 'programs', ['country_id'])
    op.create_index('ix_programs_is_active', 'programs', ['is_active'])


def downgrade() -> None:
    """Drop profile and program tables."""
    op.drop_index('ix_programs_is_active', table_name='programs')
    op.drop_index('ix_programs_country_id', table_name='programs')
    op.drop_index('ix_programs_field_id', table_name='programs')
    op.drop_table('programs')
    op.drop_table('student_academic_profiles')
