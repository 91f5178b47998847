#!/usr/bin/env python3
"""
Rating-based scoring - ranks purely on external quality ratings.

Uses the facility evaluation score when present, then the evaluation
grade, then customer satisfaction.
"""

from core.matcher.models import MatchCandidate
from core.scorer.health_based import GRADE_SCORES
from core.scorer.models import ScoringContext, StrategyScore, clamp_unit


def score(candidate: MatchCandidate, context: ScoringContext) -> StrategyScore:
    grade = candidate.evaluation_grade.upper() if candidate.evaluation_grade else None

    if candidate.evaluation_score is not None:
        normalized = clamp_unit(candidate.evaluation_score / 100.0)
        if grade:
            reason = f"evaluation grade {grade} ({candidate.evaluation_score:g} points)"
        else:
            reason = f"evaluation score {candidate.evaluation_score:g} points"
        source = 'evaluation_score'
    elif grade in GRADE_SCORES:
        normalized = GRADE_SCORES[grade]
        reason = f"evaluation grade {grade}"
        source = 'evaluation_grade'
    else:
        normalized = clamp_unit(candidate.customer_satisfaction / 5.0)
        reason = f"customer satisfaction {candidate.customer_satisfaction:.1f}/5"
        source = 'satisfaction'

    return StrategyScore(normalized=normalized, reason=reason, components={source: normalized})


def tie_breaker(candidate: MatchCandidate) -> float:
    if candidate.evaluation_score is not None:
        return candidate.evaluation_score
    return -1.0
