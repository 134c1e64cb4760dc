"""
Score Combiner

Weighted combination of the three sub-scores followed by score caps.

Caps put a ceiling on the final score when a critical subject requirement
is not (or only barely) met, so a strong location or field fit cannot hide
an academic blocker. When several caps fire the tightest ceiling wins.
"""

from typing import List

from match_engine.domain.scoring.interfaces import (
    AcademicMatch,
    CapsApplied,
    MatchAdjustments,
    PreferenceMatch,
    WeightConfig,
    clamp_unit,
)


MISSING_CRITICAL_SUBJECT_CEILING = 0.45
CRITICAL_NEAR_MISS_CEILING = 0.80


class ScoreCombiner:
    """Combines academic, field and location sub-results into one score."""

    def __init__(
        self,
        missing_critical_ceiling: float = MISSING_CRITICAL_SUBJECT_CEILING,
        near_miss_ceiling: float = CRITICAL_NEAR_MISS_CEILING,
    ):
        self._missing_critical_ceiling = missing_critical_ceiling
        self._near_miss_ceiling = near_miss_ceiling

    def combine(
        self,
        academic: AcademicMatch,
        field_match: PreferenceMatch,
        location_match: PreferenceMatch,
        weights: WeightConfig,
    ) -> MatchAdjustments:
        """
        Args:
            academic: Academic sub-result
            field_match: Field preference sub-result
            location_match: Location preference sub-result
            weights: Weights summing to 1.0

        Returns:
            MatchAdjustments with raw score, capped final score and the caps that fired
        """
        raw = clamp_unit(
            academic.score * weights.academic
            + location_match.score * weights.location
            + field_match.score * weights.field
        )

        ceiling = 1.0
        reasons: List[str] = []

        missing_critical = academic.missing_critical_count > 0
        if missing_critical:
            ceiling = min(ceiling, self._missing_critical_ceiling)
            reasons.append(
                f"{academic.missing_critical_count} critical subject requirement(s) not met; "
                f"score capped at {self._missing_critical_ceiling:.2f}"
            )

        near_miss = academic.critical_near_miss_count > 0
        if near_miss:
            ceiling = min(ceiling, self._near_miss_ceiling)
            reasons.append(
                f"{academic.critical_near_miss_count} critical subject requirement(s) met "
                f"at the minimum grade; score capped at {self._near_miss_ceiling:.2f}"
            )

        return MatchAdjustments(
            raw_score=raw,
            final_score=min(raw, ceiling),
            caps=CapsApplied(
                missing_critical_subject=missing_critical,
                critical_near_miss=near_miss,
            ),
            reasons=reasons,
        )
