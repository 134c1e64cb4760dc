"""
Match Scorer

Central scoring engine: runs the academic, field and location factors for a
program and hands the sub-results to the combiner.
Pure computation, no I/O.
"""

from typing import List, Optional

from match_engine.domain.models import StudentAcademicProfile, ProgramRequirement
from match_engine.domain.scoring.interfaces import (
    MatchingMode,
    MatchResult,
    WeightConfig,
    resolve_weights,
)
from match_engine.domain.scoring.factors import (
    AcademicRequirementsFactor,
    FieldPreferenceFactor,
    LocationPreferenceFactor,
)
from match_engine.domain.scoring.combiner import ScoreCombiner


class MatchScorer:
    """
    Program match scoring engine.

    Deterministic: the same profile, program and weights always produce an
    identical MatchResult, which is what makes results safe to cache.
    """

    def __init__(self, combiner: Optional[ScoreCombiner] = None):
        self._academic = AcademicRequirementsFactor()
        self._field = FieldPreferenceFactor()
        self._location = LocationPreferenceFactor()
        self._combiner = combiner or ScoreCombiner()

    def score_program(
        self,
        profile: StudentAcademicProfile,
        program: ProgramRequirement,
        mode: Optional[MatchingMode] = None,
        weights: Optional[WeightConfig] = None,
    ) -> MatchResult:
        """
        Score a single program for the student.

        Args:
            profile: Student academic profile
            program: Program requirements
            mode: Weight preset, BALANCED when omitted
            weights: Custom weights; override mode when given

        Returns:
            MatchResult with overall score and explanation
        """
        resolved = resolve_weights(mode, weights)

        academic = self._academic.calculate(profile, program)
        field_match = self._field.calculate(profile, program)
        location_match = self._location.calculate(profile, program)

        adjustments = self._combiner.combine(
            academic, field_match, location_match, resolved
        )

        return MatchResult(
            program_id=program.program_id,
            overall_score=adjustments.final_score,
            academic_match=academic,
            field_match=field_match,
            location_match=location_match,
            weights_used=resolved,
            adjustments=adjustments,
        )

    def score_programs(
        self,
        profile: StudentAcademicProfile,
        programs: List[ProgramRequirement],
        mode: Optional[MatchingMode] = None,
        weights: Optional[WeightConfig] = None,
    ) -> List[MatchResult]:
        """
        Score multiple programs.

        Returns:
            List of MatchResult sorted by overall score (descending),
            ties broken by program id
        """
        scored = [
            self.score_program(profile, program, mode, weights)
            for program in programs
        ]
        return sorted(scored, key=lambda r: (-r.overall_score, r.program_id))
