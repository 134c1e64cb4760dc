# Scoring factors submodule
from match_engine.domain.scoring.factors.academic_requirements import (
    AcademicRequirementsFactor,
    evaluate_academic_requirements,
)
from match_engine.domain.scoring.factors.preferences import (
    FieldPreferenceFactor,
    LocationPreferenceFactor,
    score_field_preference,
    score_location_preference,
)

__all__ = [
    "AcademicRequirementsFactor",
    "evaluate_academic_requirements",
    "FieldPreferenceFactor",
    "LocationPreferenceFactor",
    "score_field_preference",
    "score_location_preference",
]
