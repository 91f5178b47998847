#!/usr/bin/env python3
"""
Distance-based scoring - closer candidates rank higher.

normalized = 1 / (1 + distance_km / distance_half_score_km)

A candidate exactly at the half-score distance gets 0.5. Candidates
without coordinates score 0.
"""

import math
from typing import List

from core.exceptions import ValidationError
from core.matcher.models import MatchCandidate
from core.scorer.models import ScoringContext, StrategyScore, clamp_unit

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def validate(context: ScoringContext) -> None:
    if not context.preference.has_location:
        raise ValidationError("Distance-based matching requires a reference latitude and longitude")


def score(candidate: MatchCandidate, context: ScoringContext) -> StrategyScore:
    pref = context.preference
    if not candidate.has_location or not pref.has_location:
        return StrategyScore(normalized=0.0, reason="location unknown", components={'distance': 0.0})

    distance = haversine_km(pref.latitude, pref.longitude, candidate.latitude, candidate.longitude)
    half = context.config.distance_half_score_km
    normalized = clamp_unit(1.0 / (1.0 + distance / half)) if half > 0 else 0.0

    return StrategyScore(
        normalized=normalized,
        reason=f"{distance:.1f} km away",
        components={'distance': normalized},
        distance_km=round(distance, 3),
    )


def within_radius(scored: List, context: ScoringContext) -> List:
    """Drop scored candidates outside max_distance_km (unknown locations included)."""
    radius = context.preference.max_distance_km
    if radius is None:
        return scored
    return [s for s in scored if s.distance_km is not None and s.distance_km <= radius]


def tie_breaker(candidate: MatchCandidate) -> float:
    return candidate.experience_years
