"""
Ranking pipeline shared by live matching and simulation:
filter -> score -> strategy post-filter -> assemble.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from core.config_loader import MatchingConfig
from core.matcher.constraint_filter import filter_candidates
from core.matcher.models import CandidateKind, MatchCandidate, MatchResult, ScoredCandidate
from core.matcher.ranking import assemble
from core.scorer.models import ScoringContext
from core.scorer.strategies import StrategyDefinition


def presentation_scale(kind: CandidateKind, config: MatchingConfig) -> float:
    if kind == CandidateKind.FACILITY:
        return config.scorer.facility_scale
    return config.scorer.coordinator_scale


def score_candidate(
    candidate: MatchCandidate,
    context: ScoringContext,
    definition: StrategyDefinition,
    config: MatchingConfig,
) -> ScoredCandidate:
    result = definition.score(candidate, context)
    presented = round(result.normalized * presentation_scale(candidate.kind, config), config.score_precision)
    return ScoredCandidate(
        candidate=candidate,
        score=presented,
        reason=result.reason,
        components=result.components,
        distance_km=result.distance_km,
    )


def score_candidates(
    eligible: List[MatchCandidate],
    context: ScoringContext,
    definition: StrategyDefinition,
    config: MatchingConfig,
) -> List[ScoredCandidate]:
    if len(eligible) > config.parallel_threshold and config.scoring_workers > 1:
        # map() keeps input order
        with ThreadPoolExecutor(max_workers=config.scoring_workers) as executor:
            return list(executor.map(lambda c: score_candidate(c, context, definition, config), eligible))
    return [score_candidate(c, context, definition, config) for c in eligible]


def rank_pool(
    pool: Sequence[MatchCandidate],
    context: ScoringContext,
    definition: StrategyDefinition,
    config: MatchingConfig,
) -> List[MatchResult]:
    eligible = filter_candidates(pool, context.preference)
    scored = score_candidates(eligible, context, definition, config)
    if definition.post_filter:
        scored = definition.post_filter(scored, context)
    return assemble(scored, context.preference.max_results, definition.tie_breaker)
