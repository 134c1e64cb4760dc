"""
Match Categorization

Sorts a scored match into an admission-chance band:

- SAFETY: exceeds the requirements
- MATCH: meets the requirements
- REACH: slightly below, still worth applying
- UNLIKELY: significant gaps

The band is decided from the overall score, the points margin and the
subject coverage of the academic sub-result. Each input also yields a
contributing factor so the band can be explained.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from match_engine.domain.scoring.interfaces import AcademicMatch, MatchResult


class MatchCategory(str, Enum):
    SAFETY = "SAFETY"
    MATCH = "MATCH"
    REACH = "REACH"
    UNLIKELY = "UNLIKELY"


class FactorType(str, Enum):
    SCORE = "SCORE"
    POINTS = "POINTS"
    SUBJECTS = "SUBJECTS"
    CRITICAL = "CRITICAL"


class Contribution(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# Score thresholds
SAFETY_MIN_SCORE = 0.92
MATCH_MIN_SCORE = 0.78
REACH_MIN_SCORE = 0.55
REACH_NEAR_MISS_SCORE = 0.45

# Points margin thresholds
SAFETY_MIN_MARGIN = 5
MATCH_MIN_MARGIN = 0
REACH_MIN_MARGIN = -3

CATEGORY_INFO: Dict[MatchCategory, Dict[str, str]] = {
    MatchCategory.SAFETY: {
        "label": "Safety",
        "description": "You exceed the requirements. High likelihood of admission.",
    },
    MatchCategory.MATCH: {
        "label": "Match",
        "description": "You meet the requirements. Good chance of admission.",
    },
    MatchCategory.REACH: {
        "label": "Reach",
        "description": "Aspirational choice. You may need to strengthen other parts of your application.",
    },
    MatchCategory.UNLIKELY: {
        "label": "Unlikely",
        "description": "Significant gaps exist. Consider this as a backup or for future planning.",
    },
}


@dataclass(frozen=True)
class CategorizationFactor:
    type: FactorType
    contribution: Contribution
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "contribution": self.contribution.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class CategorizationResult:
    category: MatchCategory
    confidence: str
    factors: List[CategorizationFactor] = field(default_factory=list)

    @property
    def label(self) -> str:
        return CATEGORY_INFO[self.category]["label"]

    @property
    def description(self) -> str:
        return CATEGORY_INFO[self.category]["description"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "label": self.label,
            "description": self.description,
            "confidenceIndicator": self.confidence,
            "factors": [f.to_dict() for f in self.factors],
        }


def categorize_match(result: MatchResult) -> CategorizationResult:
    """
    Categorize a scored match.

    An unknown points total has no margin: it can still reach REACH on
    score alone, never SAFETY or MATCH.
    """
    academic = result.academic_match
    score = result.overall_score
    margin = academic.points_margin
    meets_all_subjects = _meets_all_subjects(academic)
    missing_critical = academic.missing_critical_count > 0

    factors = [_score_factor(score), _points_factor(margin)]
    factors.extend(_subject_factors(academic, meets_all_subjects))

    if (
        score >= SAFETY_MIN_SCORE
        and margin is not None
        and margin >= SAFETY_MIN_MARGIN
        and meets_all_subjects
        and not missing_critical
    ):
        category = MatchCategory.SAFETY
    elif (
        score >= MATCH_MIN_SCORE
        and margin is not None
        and margin >= MATCH_MIN_MARGIN
        and meets_all_subjects
    ):
        category = MatchCategory.MATCH
    elif score >= REACH_MIN_SCORE or (
        margin is not None
        and margin >= REACH_MIN_MARGIN
        and score >= REACH_NEAR_MISS_SCORE
    ):
        category = MatchCategory.REACH
    else:
        category = MatchCategory.UNLIKELY

    negatives = sum(1 for f in factors if f.contribution == Contribution.NEGATIVE)
    if category in (MatchCategory.SAFETY, MatchCategory.MATCH):
        confidence = "high" if negatives == 0 else "medium"
    else:
        confidence = "medium" if negatives <= 1 else "low"

    return CategorizationResult(category=category, confidence=confidence, factors=factors)


def _meets_all_subjects(academic: AcademicMatch) -> bool:
    return all(g.satisfied for g in academic.group_matches)


def _score_factor(score: float) -> CategorizationFactor:
    percent = f"{score * 100:.0f}%"
    if score >= SAFETY_MIN_SCORE:
        return CategorizationFactor(FactorType.SCORE, Contribution.POSITIVE, f"Excellent match score ({percent})")
    if score >= MATCH_MIN_SCORE:
        return CategorizationFactor(FactorType.SCORE, Contribution.POSITIVE, f"Good match score ({percent})")
    if score >= REACH_MIN_SCORE:
        return CategorizationFactor(FactorType.SCORE, Contribution.NEUTRAL, f"Moderate match score ({percent})")
    return CategorizationFactor(FactorType.SCORE, Contribution.NEGATIVE, f"Low match score ({percent})")


def _points_factor(margin: Optional[int]) -> CategorizationFactor:
    if margin is None:
        return CategorizationFactor(FactorType.POINTS, Contribution.NEUTRAL, "Points total unknown")
    if margin > MATCH_MIN_MARGIN:
        return CategorizationFactor(FactorType.POINTS, Contribution.POSITIVE, f"{margin} points above requirement")
    if margin == MATCH_MIN_MARGIN:
        return CategorizationFactor(FactorType.POINTS, Contribution.POSITIVE, "Meets points requirement")
    if margin >= REACH_MIN_MARGIN:
        return CategorizationFactor(FactorType.POINTS, Contribution.NEUTRAL, f"{-margin} points below requirement")
    return CategorizationFactor(FactorType.POINTS, Contribution.NEGATIVE, f"{-margin} points below requirement")


def _subject_factors(
    academic: AcademicMatch,
    meets_all_subjects: bool,
) -> List[CategorizationFactor]:
    factors = []
    if academic.missing_critical_count:
        factors.append(CategorizationFactor(
            FactorType.CRITICAL,
            Contribution.NEGATIVE,
            f"Missing {academic.missing_critical_count} critical subject(s)",
        ))

    if meets_all_subjects:
        factors.append(CategorizationFactor(
            FactorType.SUBJECTS, Contribution.POSITIVE, "All subject requirements met"
        ))
    elif not academic.missing_critical_count:
        missing = sum(1 for g in academic.group_matches if not g.satisfied)
        factors.append(CategorizationFactor(
            FactorType.SUBJECTS,
            Contribution.NEUTRAL,
            f"{missing} non-critical subject requirement(s) not met",
        ))
    return factors
