#!/usr/bin/env python3
"""
Scorer Models - inputs and outputs shared by every scoring strategy.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from core.config_loader import ScorerConfig
from core.matcher.models import CareNeedSummary, MatchingPreference


@dataclass(frozen=True)
class ScoringContext:
    """Everything a strategy may read. Strategies never mutate it."""
    preference: MatchingPreference
    config: ScorerConfig = field(default_factory=ScorerConfig)
    care_need: Optional[CareNeedSummary] = None


@dataclass(frozen=True)
class StrategyScore:
    """
    Output of a strategy.

    normalized is always within [0, 1]; the engine maps it to the
    presentation scale of the candidate kind.
    """
    normalized: float
    reason: str
    components: Dict[str, float] = field(default_factory=dict)
    distance_km: Optional[float] = None


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))
