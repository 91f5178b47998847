#!/usr/bin/env python3
"""
Matching Engine - orchestrates one recommendation request.

Pipeline:
1. Validate preference and strategy
2. Load the assessment; normalize it into a care need (health-based only)
3. Read the candidate pool (region snapshot or full pool)
4. Apply hard constraints
5. Score every eligible candidate with the selected strategy
6. Sort, truncate and rank
7. Hand the shown set to the history sink (never blocks or fails the call)

The engine holds no per-request state, so one instance serves concurrent
requests.
"""
from typing import List, Optional, Sequence
import logging
import time

from core.config_loader import MatchingConfig, SimulationConfig
from core.matcher.interfaces import AssessmentSource, CandidateStore, HistorySink
from core.matcher.models import (
    CandidateKind, CareAssessment, MatchCandidate, MatchingPreference,
    MatchResult, ScoringStrategy
)
from core.matcher.normalizer import normalize
from core.matcher.pipeline import rank_pool
from core.matcher.simulation import SimulationRequest, SimulationResult, run_simulation
from core.scorer.models import ScoringContext
from core.scorer.strategies import StrategyDefinition, get_strategy

logger = logging.getLogger(__name__)


class MatchingEngine:
    """
    Entry point for producing ranked care recommendations.
    """

    def __init__(
        self,
        assessments: Optional[AssessmentSource],
        candidates: Optional[CandidateStore],
        config: Optional[MatchingConfig] = None,
        history: Optional[HistorySink] = None,
    ):
        """
        Args:
            assessments: Source of stored assessments
            candidates: Source of candidate pools (usually cache-backed)
            config: MatchingConfig with weights and presentation scales
            history: Optional sink receiving every shown result set
        """
        self.assessments = assessments
        self.candidates = candidates
        self.config = config or MatchingConfig()
        self.history = history

    def match(
        self,
        assessment_id: str,
        preference: MatchingPreference,
        strategy=ScoringStrategy.HEALTH_BASED,
        candidate_kind: CandidateKind = CandidateKind.COORDINATOR,
    ) -> List[MatchResult]:
        """
        Recommend candidates for a stored assessment.

        Raises:
            ValidationError: unknown strategy or unusable preference
            NotFoundError: assessment does not exist
            InvalidAssessmentError: assessment values out of range (health-based)
        """
        definition = get_strategy(strategy)
        context = ScoringContext(preference=preference, config=self.config.scorer)
        if definition.validate:
            definition.validate(context)

        assessment = self.assessments.get_assessment(assessment_id)
        return self.match_assessment(assessment, preference, definition.strategy, candidate_kind)

    def match_assessment(
        self,
        assessment: CareAssessment,
        preference: MatchingPreference,
        strategy=ScoringStrategy.HEALTH_BASED,
        candidate_kind: CandidateKind = CandidateKind.COORDINATOR,
    ) -> List[MatchResult]:
        """Run the pipeline for an assessment already in memory."""
        start = time.perf_counter()
        definition = get_strategy(strategy)

        care_need = normalize(assessment, self.config.normalizer) if definition.uses_care_need else None
        context = ScoringContext(preference=preference, config=self.config.scorer, care_need=care_need)
        if definition.validate:
            definition.validate(context)

        pool = self._load_pool(preference, candidate_kind)
        results = self.rank_pool(pool, context, definition)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Matched assessment {assessment.id} ({definition.strategy.value}, {candidate_kind.value}): "
            f"pool={len(pool)} results={len(results)} in {elapsed_ms:.1f}ms"
        )

        self._submit_history(
            assessment, results, preference, definition.strategy,
            care_need.care_grade_level if care_need else None
        )
        return results

    def rank_pool(
        self,
        pool: Sequence[MatchCandidate],
        context: ScoringContext,
        definition: StrategyDefinition,
    ) -> List[MatchResult]:
        """Filter, score and assemble a candidate pool. Pure apart from logging."""
        return rank_pool(pool, context, definition, self.config)

    def simulate(
        self,
        request: SimulationRequest,
        simulation_config: Optional[SimulationConfig] = None,
    ) -> SimulationResult:
        """Run the same pipeline over a seeded synthetic pool; no store or history access."""
        return run_simulation(request, self.config, simulation_config)

    def _load_pool(self, preference: MatchingPreference, kind: CandidateKind) -> List[MatchCandidate]:
        if preference.preferred_region:
            return list(self.candidates.list_candidates_by_region(preference.preferred_region, kind))
        return list(self.candidates.list_all_candidates(kind))

    def _submit_history(
        self,
        assessment: CareAssessment,
        results: List[MatchResult],
        preference: MatchingPreference,
        strategy: ScoringStrategy,
        care_grade_level: Optional[int],
    ) -> None:
        if self.history is None or not results:
            return
        try:
            self.history.submit_shown(assessment, results, preference, strategy, care_grade_level)
        except Exception as e:
            logger.error(f"Failed to submit matching history for assessment {assessment.id}: {e}")
