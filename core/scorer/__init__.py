"""Scorer Module - Pluggable scoring strategies for care candidates."""
from core.scorer.models import ScoringContext, StrategyScore
from core.scorer.strategies import StrategyDefinition, STRATEGIES, get_strategy
from core.scorer.distance_based import haversine_km

__all__ = [
    'ScoringContext',
    'StrategyScore',
    'StrategyDefinition',
    'STRATEGIES',
    'get_strategy',
    'haversine_km',
]
