#!/usr/bin/env python3
"""
Health-based scoring - weighted blend of care-fit components.

Components (each in [0, 1]):
- specialty: share of need-implied specialties the candidate covers
  (neutral score when the assessment implies none)
- experience: mean of capped years and capped successful cases
- satisfaction: customer_satisfaction / 5
- availability: required flags satisfied, else share of flags held
- workload: 1 - workload_ratio
- evaluation: facility evaluation score / 100, else grade A..E

overall = sum(w_i * c_i) / sum(w_i), clamped to [0, 1]
"""

import logging
from typing import Dict

from core.config_loader import HealthWeights
from core.matcher.models import CandidateKind, MatchCandidate
from core.scorer.models import ScoringContext, StrategyScore, clamp_unit

logger = logging.getLogger(__name__)

GRADE_SCORES = {'A': 1.0, 'B': 0.8, 'C': 0.6, 'D': 0.4, 'E': 0.2}

COMPONENT_ORDER = ('specialty', 'evaluation', 'satisfaction', 'experience', 'workload', 'availability')

COMPONENT_LABELS = {
    'specialty': "specialty match",
    'evaluation': "strong evaluation grade",
    'satisfaction': "high customer satisfaction",
    'experience': "extensive experience",
    'workload': "available capacity",
    'availability': "flexible availability",
}


def specialty_component(candidate: MatchCandidate, context: ScoringContext) -> float:
    required = context.care_need.required_specialties if context.care_need else frozenset()
    if not required:
        return context.config.neutral_specialty_score
    return len(required & candidate.specialties) / len(required)


def experience_component(candidate: MatchCandidate, context: ScoringContext) -> float:
    cfg = context.config
    years = min(candidate.experience_years / cfg.experience_years_cap, 1.0) if cfg.experience_years_cap > 0 else 0.0
    cases = min(candidate.successful_cases / cfg.successful_cases_cap, 1.0) if cfg.successful_cases_cap > 0 else 0.0
    return clamp_unit((years + cases) / 2.0)


def availability_component(candidate: MatchCandidate, context: ScoringContext) -> float:
    pref = context.preference
    required = []
    if pref.needs_weekend_availability:
        required.append(candidate.weekend_available)
    if pref.needs_emergency_availability:
        required.append(candidate.emergency_available)

    if required:
        return sum(1 for ok in required if ok) / len(required)
    return (int(candidate.weekend_available) + int(candidate.emergency_available)) / 2.0


def evaluation_component(candidate: MatchCandidate) -> float:
    if candidate.evaluation_score is not None:
        return clamp_unit(candidate.evaluation_score / 100.0)
    if candidate.evaluation_grade:
        return GRADE_SCORES.get(candidate.evaluation_grade.upper(), 0.0)
    return 0.0


def calculate_components(candidate: MatchCandidate, context: ScoringContext) -> Dict[str, float]:
    components = {
        'specialty': specialty_component(candidate, context),
        'experience': experience_component(candidate, context),
        'satisfaction': clamp_unit(candidate.customer_satisfaction / 5.0),
        'availability': availability_component(candidate, context),
        'workload': clamp_unit(1.0 - candidate.workload_ratio),
    }
    if candidate.kind == CandidateKind.FACILITY:
        components['evaluation'] = evaluation_component(candidate)
    return components


def weights_for(candidate: MatchCandidate, context: ScoringContext) -> HealthWeights:
    if candidate.kind == CandidateKind.FACILITY:
        return context.config.facility_weights
    return context.config.coordinator_weights


def build_reason(contributions: Dict[str, float]) -> str:
    """Name the one or two largest weighted contributions."""
    ranked = sorted(
        (name for name, value in contributions.items() if value > 0),
        key=lambda name: (-contributions[name], COMPONENT_ORDER.index(name))
    )
    if not ranked:
        return "meets all required conditions"
    return " and ".join(COMPONENT_LABELS[name] for name in ranked[:2])


def score(candidate: MatchCandidate, context: ScoringContext) -> StrategyScore:
    """
    Score a candidate on care fit.

    Returns:
        StrategyScore with the normalized value and a component breakdown
    """
    components = calculate_components(candidate, context)
    weights = weights_for(candidate, context).model_dump()

    total_weight = sum(weights[name] for name in components)
    if total_weight <= 0:
        return StrategyScore(normalized=0.0, reason="no scoring weights configured", components=components)

    contributions = {name: weights[name] * value / total_weight for name, value in components.items()}
    normalized = clamp_unit(sum(contributions.values()))

    return StrategyScore(
        normalized=normalized,
        reason=build_reason(contributions),
        components=components,
    )


def tie_breaker(candidate: MatchCandidate) -> float:
    return candidate.experience_years
