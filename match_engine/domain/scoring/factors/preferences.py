"""
Preference Factors (Field & Location)

Anti-gaming preference scoring. Leaving an axis blank must never score
better than declaring it, and "open to all" must never score as well as an
explicit match.

Classification, first match wins:
1. OPEN_TO_ALL     - flag set
2. IMPLICIT_EMPTY  - no preferences, flag not set
3. EXPLICIT_MATCH  - preferences contain the target
4. MISMATCH        - preferences do not contain the target
"""

from typing import Iterable

from match_engine.domain.models import StudentAcademicProfile, ProgramRequirement
from match_engine.domain.scoring.interfaces import (
    BaseScoringFactor,
    PreferenceMatch,
    PreferenceMatchType,
)


OPEN_TO_ALL_FIELD_SCORE = 0.70
OPEN_TO_ALL_LOCATION_SCORE = 0.85

# Transition-period fallbacks for profiles that never answered the question.
# Fields keep the legacy 0.50; locations drop well below open-to-all.
IMPLICIT_EMPTY_FIELD_SCORE = 0.50
IMPLICIT_EMPTY_LOCATION_SCORE = 0.60

EXPLICIT_MATCH_SCORE = 1.0
MISMATCH_SCORE = 0.0


def _classify(
    preferences: Iterable[str],
    target: str,
    open_to_all: bool,
    open_to_all_score: float,
    implicit_empty_score: float,
) -> PreferenceMatch:
    if open_to_all:
        return PreferenceMatch(
            score=open_to_all_score,
            match_type=PreferenceMatchType.OPEN_TO_ALL,
            is_match=False,
            no_preferences=True,
        )

    preference_set = set(preferences)
    if not preference_set:
        return PreferenceMatch(
            score=implicit_empty_score,
            match_type=PreferenceMatchType.IMPLICIT_EMPTY,
            is_match=False,
            no_preferences=True,
        )

    if target in preference_set:
        return PreferenceMatch(
            score=EXPLICIT_MATCH_SCORE,
            match_type=PreferenceMatchType.EXPLICIT_MATCH,
            is_match=True,
            no_preferences=False,
        )

    return PreferenceMatch(
        score=MISMATCH_SCORE,
        match_type=PreferenceMatchType.MISMATCH,
        is_match=False,
        no_preferences=False,
    )


def score_field_preference(
    preferred_fields: Iterable[str],
    field_id: str,
    open_to_all_fields: bool,
) -> PreferenceMatch:
    """Score a program's field of study against the student's field preferences."""
    return _classify(
        preferred_fields,
        field_id,
        open_to_all_fields,
        OPEN_TO_ALL_FIELD_SCORE,
        IMPLICIT_EMPTY_FIELD_SCORE,
    )


def score_location_preference(
    preferred_countries: Iterable[str],
    country_id: str,
    open_to_all_locations: bool,
) -> PreferenceMatch:
    """Score a program's country against the student's location preferences."""
    return _classify(
        preferred_countries,
        country_id,
        open_to_all_locations,
        OPEN_TO_ALL_LOCATION_SCORE,
        IMPLICIT_EMPTY_LOCATION_SCORE,
    )


class FieldPreferenceFactor(BaseScoringFactor):
    """Field-of-study fit."""

    @property
    def name(self) -> str:
        return "field"

    def calculate(
        self,
        profile: StudentAcademicProfile,
        program: ProgramRequirement,
    ) -> PreferenceMatch:
        return score_field_preference(
            profile.preferred_fields,
            program.field_id,
            profile.open_to_all_fields,
        )


class LocationPreferenceFactor(BaseScoringFactor):
    """Country fit."""

    @property
    def name(self) -> str:
        return "location"

    def calculate(
        self,
        profile: StudentAcademicProfile,
        program: ProgramRequirement,
    ) -> PreferenceMatch:
        return score_location_preference(
            profile.preferred_countries,
            program.country_id,
            profile.open_to_all_locations,
        )
