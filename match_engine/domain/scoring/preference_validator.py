"""
Preference Validator

Save-time checks on a student's preference configuration.
Never called on the match path: stored profiles always score.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Sequence


BOTH_PREFS_AND_FLAG = "BOTH_PREFS_AND_FLAG"
IMPLICIT_OPEN_TO_ALL = "IMPLICIT_OPEN_TO_ALL"
TOO_MANY_PREFERENCES = "TOO_MANY_PREFERENCES"


@dataclass(frozen=True)
class PreferenceIssue:
    """A single validation finding."""
    code: str
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "field": self.field, "message": self.message}


@dataclass(frozen=True)
class PreferenceValidationResult:
    is_valid: bool
    errors: List[PreferenceIssue] = field(default_factory=list)
    warnings: List[PreferenceIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def _check_axis(
    axis: str,
    flag_name: str,
    preferences: Sequence[str],
    open_to_all: bool,
    limit: int,
    require_explicit: bool,
    errors: List[PreferenceIssue],
    warnings: List[PreferenceIssue],
) -> None:
    if open_to_all and preferences:
        errors.append(PreferenceIssue(
            code=BOTH_PREFS_AND_FLAG,
            field=axis,
            message=f"Cannot set {flag_name} while also listing {axis}",
        ))
    elif not open_to_all and not preferences:
        issue = PreferenceIssue(
            code=IMPLICIT_OPEN_TO_ALL,
            field=axis,
            message=f"No {axis} selected; choose some or set {flag_name}",
        )
        (errors if require_explicit else warnings).append(issue)

    if len(preferences) > limit:
        warnings.append(PreferenceIssue(
            code=TOO_MANY_PREFERENCES,
            field=axis,
            message=f"{len(preferences)} {axis} selected; more than {limit} dilutes matching",
        ))


def validate_preferences(
    preferred_fields: Sequence[str],
    preferred_countries: Sequence[str],
    open_to_all_fields: bool,
    open_to_all_locations: bool,
    max_fields: int = 10,
    max_countries: int = 15,
    require_explicit: bool = False,
) -> PreferenceValidationResult:
    """
    Validate a preference configuration before it is persisted.

    Args:
        preferred_fields: Declared field ids
        preferred_countries: Declared country ids
        open_to_all_fields: Field flag
        open_to_all_locations: Location flag
        max_fields: Field count above which a warning is raised
        max_countries: Country count above which a warning is raised
        require_explicit: Treat blank axes as errors instead of warnings

    Returns:
        PreferenceValidationResult; is_valid is False when any error fired
    """
    errors: List[PreferenceIssue] = []
    warnings: List[PreferenceIssue] = []

    _check_axis(
        "preferred_fields", "open_to_all_fields",
        preferred_fields, open_to_all_fields,
        max_fields, require_explicit, errors, warnings,
    )
    _check_axis(
        "preferred_countries", "open_to_all_locations",
        preferred_countries, open_to_all_locations,
        max_countries, require_explicit, errors, warnings,
    )

    return PreferenceValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
    )
