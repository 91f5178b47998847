#!/usr/bin/env python3
"""
Ranking Assembler - orders scored candidates and assigns ranks.

Sort key: match_score desc, strategy tie-breaker desc, candidate id asc.
The id makes the order total, so identical inputs always produce
identical output.
"""

from typing import Callable, Iterable, List

from core.matcher.models import MatchCandidate, MatchResult, ScoredCandidate


def _default_tie_breaker(candidate: MatchCandidate) -> float:
    return candidate.experience_years


def assemble(
    scored: Iterable[ScoredCandidate],
    max_results: int,
    tie_breaker: Callable[[MatchCandidate], float] = _default_tie_breaker,
) -> List[MatchResult]:
    ordered = sorted(
        scored,
        key=lambda s: (-s.score, -tie_breaker(s.candidate), s.candidate.id)
    )

    results = []
    for rank, item in enumerate(ordered[:max_results], start=1):
        candidate = item.candidate
        results.append(MatchResult(
            candidate_id=candidate.id,
            candidate_kind=candidate.kind,
            name=candidate.name,
            match_score=item.score,
            match_reason=item.reason,
            workload_ratio=candidate.workload_ratio,
            rank=rank,
            specialties=tuple(sorted(candidate.specialties)),
            regions=tuple(sorted(candidate.regions)),
            languages=tuple(skill.code for skill in candidate.languages),
            weekend_available=candidate.weekend_available,
            emergency_available=candidate.emergency_available,
            experience_years=candidate.experience_years,
            customer_satisfaction=candidate.customer_satisfaction,
            evaluation_grade=candidate.evaluation_grade,
            monthly_fee=candidate.monthly_fee,
            distance_km=item.distance_km,
            components=dict(item.components),
            candidate_snapshot=candidate.to_dict(),
        ))
    return results
