# Scoring module for the Match Engine
from match_engine.domain.scoring.interfaces import (
    AcademicMatch,
    BaseScoringFactor,
    MatchAdjustments,
    MatchingMode,
    MatchResult,
    PreferenceMatch,
    PreferenceMatchType,
    ScoringFactor,
    WeightConfig,
    WEIGHT_CONFIGS,
    resolve_weights,
)
from match_engine.domain.scoring.categorization import (
    CategorizationResult,
    MatchCategory,
    categorize_match,
)
from match_engine.domain.scoring.combiner import ScoreCombiner
from match_engine.domain.scoring.match_scorer import MatchScorer
from match_engine.domain.scoring.preference_validator import (
    PreferenceValidationResult,
    validate_preferences,
)

__all__ = [
    "AcademicMatch",
    "BaseScoringFactor",
    "MatchAdjustments",
    "MatchingMode",
    "MatchResult",
    "PreferenceMatch",
    "PreferenceMatchType",
    "ScoringFactor",
    "WeightConfig",
    "WEIGHT_CONFIGS",
    "resolve_weights",
    "CategorizationResult",
    "MatchCategory",
    "categorize_match",
    "ScoreCombiner",
    "MatchScorer",
    "PreferenceValidationResult",
    "validate_preferences",
]
