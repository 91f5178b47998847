#!/usr/bin/env python3
"""
Constraint Filter - hard eligibility rules applied before scoring.

Each rule is an independent predicate over (candidate, preference); a
candidate passes only when every rule passes. Facility-only rules are
skipped for coordinators.
"""

import logging
from typing import Callable, Iterable, List, Tuple

from core.matcher.models import CandidateKind, MatchCandidate, MatchingPreference, grade_rank

logger = logging.getLogger(__name__)

CONSULTATION_SPECIALTY = 'consultation'


def _language(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    if not preference.preferred_language:
        return True
    return preference.preferred_language in candidate.language_codes


def _region(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    if not preference.preferred_region:
        return True
    return preference.preferred_region in candidate.regions


def _satisfaction(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    return candidate.customer_satisfaction >= preference.min_customer_satisfaction


def _weekend(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    return not preference.needs_weekend_availability or candidate.weekend_available


def _emergency(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    return not preference.needs_emergency_availability or candidate.emergency_available


def _consultation(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    return not preference.needs_professional_consultation or CONSULTATION_SPECIALTY in candidate.specialties


def _capacity(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    return 0.0 <= candidate.workload_ratio <= 1.0


def _monthly_fee(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    if candidate.kind != CandidateKind.FACILITY or preference.max_monthly_fee is None:
        return True
    return candidate.monthly_fee is not None and candidate.monthly_fee <= preference.max_monthly_fee


def _facility_grade(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    if candidate.kind != CandidateKind.FACILITY or preference.min_facility_grade is None:
        return True
    rank = grade_rank(candidate.evaluation_grade)
    # Lower rank is better: A=0 ... E=4
    return rank is not None and rank <= grade_rank(preference.min_facility_grade)


CONSTRAINTS: Tuple[Tuple[str, Callable[[MatchCandidate, MatchingPreference], bool]], ...] = (
    ('language', _language),
    ('region', _region),
    ('min_satisfaction', _satisfaction),
    ('weekend_availability', _weekend),
    ('emergency_availability', _emergency),
    ('professional_consultation', _consultation),
    ('capacity', _capacity),
    ('monthly_fee', _monthly_fee),
    ('facility_grade', _facility_grade),
)


def explain_rejection(candidate: MatchCandidate, preference: MatchingPreference) -> List[str]:
    """Names of the constraints a candidate fails (empty when eligible)."""
    return [name for name, predicate in CONSTRAINTS if not predicate(candidate, preference)]


def is_eligible(candidate: MatchCandidate, preference: MatchingPreference) -> bool:
    return all(predicate(candidate, preference) for _, predicate in CONSTRAINTS)


def filter_candidates(
    candidates: Iterable[MatchCandidate],
    preference: MatchingPreference
) -> List[MatchCandidate]:
    """
    Keep the candidates satisfying every hard constraint, in input order.

    Never raises on an empty or fully-rejected pool.
    """
    eligible = []
    rejected = 0
    for candidate in candidates:
        if is_eligible(candidate, preference):
            eligible.append(candidate)
        else:
            rejected += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Rejected {candidate.id}: {explain_rejection(candidate, preference)}")

    logger.debug(f"Constraint filter kept {len(eligible)} candidates, rejected {rejected}")
    return eligible
