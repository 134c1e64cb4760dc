"""
Scoring Interfaces for the Match Engine

Defines protocols and data models for the scoring engine.
Every score carried by these models is a real number in [0, 1].
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Protocol, runtime_checkable
from enum import Enum

from match_engine.domain.models import StudentAcademicProfile, ProgramRequirement


def clamp_unit(value: float) -> float:
    """Clamp a score to the closed unit interval."""
    return max(0.0, min(1.0, value))


class MatchingMode(str, Enum):
    """Predefined weight configurations."""
    BALANCED = "BALANCED"
    ACADEMIC_FOCUSED = "ACADEMIC_FOCUSED"
    LOCATION_FOCUSED = "LOCATION_FOCUSED"


class PreferenceMatchType(str, Enum):
    """Terminal classifications of the preference state machine."""
    OPEN_TO_ALL = "OPEN_TO_ALL"
    IMPLICIT_EMPTY = "IMPLICIT_EMPTY"
    EXPLICIT_MATCH = "EXPLICIT_MATCH"
    MISMATCH = "MISMATCH"


@dataclass(frozen=True)
class WeightConfig:
    """Weights for the academic, location and field sub-scores."""
    academic: float
    location: float
    field: float

    def normalized(self) -> "WeightConfig":
        """Rescale so the three weights sum to 1.0."""
        total = self.academic + self.location + self.field
        if total <= 0:
            raise ValueError("At least one weight must be positive")
        return WeightConfig(
            academic=self.academic / total,
            location=self.location / total,
            field=self.field / total,
        )

    def cache_token(self) -> str:
        """Stable short form used inside cache keys."""
        return f"{self.academic:.2f}_{self.location:.2f}_{self.field:.2f}"

    def to_dict(self) -> Dict[str, float]:
        return {
            "academic": self.academic,
            "location": self.location,
            "field": self.field,
        }


WEIGHT_CONFIGS: Dict[MatchingMode, WeightConfig] = {
    MatchingMode.BALANCED: WeightConfig(academic=0.6, location=0.3, field=0.1),
    MatchingMode.ACADEMIC_FOCUSED: WeightConfig(academic=0.8, location=0.1, field=0.1),
    MatchingMode.LOCATION_FOCUSED: WeightConfig(academic=0.4, location=0.5, field=0.1),
}


def resolve_weights(
    mode: Optional[MatchingMode] = None,
    custom: Optional[WeightConfig] = None,
) -> WeightConfig:
    """Custom weights win (normalized); otherwise the mode's preset, BALANCED by default."""
    if custom is not None:
        return custom.normalized()
    return WEIGHT_CONFIGS[mode or MatchingMode.BALANCED]


@dataclass(frozen=True)
class PreferenceMatch:
    """Field or location sub-result."""
    score: float
    match_type: PreferenceMatchType
    is_match: bool
    no_preferences: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "isMatch": self.is_match,
            "noPreferences": self.no_preferences,
        }


@dataclass(frozen=True)
class GroupMatch:
    """Evaluation of a single requirement group."""
    satisfied: bool
    is_critical: bool
    matched_course_id: Optional[str] = None
    margin: Optional[int] = None  # grade minus minimum for the best satisfying option


@dataclass(frozen=True)
class AcademicMatch:
    """
    Academic sub-result.

    `score` is the academic sub-score fed to the combiner; the remaining
    fields explain it.
    """
    score: float
    meets_points_requirement: bool
    points_shortfall: int
    points_known: bool
    subjects_match_score: float
    missing_critical_count: int
    critical_near_miss_count: int = 0
    points_margin: Optional[int] = None  # total minus minimum (or baseline); None when unknown
    group_matches: List[GroupMatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meetsPointsRequirement": self.meets_points_requirement,
            "pointsShortfall": self.points_shortfall,
            "subjectsMatchScore": self.subjects_match_score,
            "missingCriticalCount": self.missing_critical_count,
        }


@dataclass(frozen=True)
class CapsApplied:
    """Which score caps fired."""
    missing_critical_subject: bool = False
    critical_near_miss: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "missingCriticalSubject": self.missing_critical_subject,
            "criticalNearMiss": self.critical_near_miss,
        }


@dataclass(frozen=True)
class MatchAdjustments:
    """Raw weighted score, final capped score, and the caps that produced it."""
    raw_score: float
    final_score: float
    caps: CapsApplied = field(default_factory=CapsApplied)
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rawScore": self.raw_score,
            "finalScore": self.final_score,
            "caps": self.caps.to_dict(),
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Complete, explainable match between one student and one program.

    Derived data: safe to cache and safe to drop.
    """
    program_id: str
    overall_score: float
    academic_match: AcademicMatch
    field_match: PreferenceMatch
    location_match: PreferenceMatch
    weights_used: WeightConfig
    adjustments: MatchAdjustments

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form consumed by presentation layers."""
        return {
            "programId": self.program_id,
            "overallScore": self.overall_score,
            "academicMatch": self.academic_match.to_dict(),
            "fieldMatch": self.field_match.to_dict(),
            "locationMatch": self.location_match.to_dict(),
            "weightsUsed": self.weights_used.to_dict(),
            "adjustments": self.adjustments.to_dict(),
        }


@runtime_checkable
class ScoringFactor(Protocol):
    """
    Protocol for scoring factors.

    Each factor turns a (profile, program) pair into one sub-result.
    """

    @property
    def name(self) -> str:
        """Factor name for transparency."""
        ...

    def calculate(
        self,
        profile: StudentAcademicProfile,
        program: ProgramRequirement,
    ) -> Any:
        ...


class BaseScoringFactor(ABC):
    """Base class for scoring factors with common functionality."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def calculate(
        self,
        profile: StudentAcademicProfile,
        program: ProgramRequirement,
    ) -> Any:
        pass
