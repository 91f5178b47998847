#!/usr/bin/env python3
"""
Strategy registry - maps a ScoringStrategy value to its pure functions.

Adding a strategy means writing a module with score() and tie_breaker()
and registering it here; nothing else dispatches on the enum.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from core.matcher.models import MatchCandidate, ScoringStrategy
from core.scorer import distance_based, health_based, rating_based
from core.scorer.models import ScoringContext, StrategyScore


@dataclass(frozen=True)
class StrategyDefinition:
    strategy: ScoringStrategy
    score: Callable[[MatchCandidate, ScoringContext], StrategyScore]
    tie_breaker: Callable[[MatchCandidate], float]
    # Whether the strategy reads the normalized care need
    uses_care_need: bool = False
    validate: Optional[Callable[[ScoringContext], None]] = None
    post_filter: Optional[Callable[[List, ScoringContext], List]] = None


STRATEGIES = {
    ScoringStrategy.HEALTH_BASED: StrategyDefinition(
        strategy=ScoringStrategy.HEALTH_BASED,
        score=health_based.score,
        tie_breaker=health_based.tie_breaker,
        uses_care_need=True,
    ),
    ScoringStrategy.DISTANCE_BASED: StrategyDefinition(
        strategy=ScoringStrategy.DISTANCE_BASED,
        score=distance_based.score,
        tie_breaker=distance_based.tie_breaker,
        validate=distance_based.validate,
        post_filter=distance_based.within_radius,
    ),
    ScoringStrategy.RATING_BASED: StrategyDefinition(
        strategy=ScoringStrategy.RATING_BASED,
        score=rating_based.score,
        tie_breaker=rating_based.tie_breaker,
    ),
}


def get_strategy(strategy) -> StrategyDefinition:
    """Resolve a strategy name or enum value; unknown names raise ValidationError."""
    return STRATEGIES[ScoringStrategy.parse(strategy)]
