#!/usr/bin/env python3
"""
Matcher Models - Data structures for care matching.

Value objects are frozen dataclasses. Anything that can be invalid is
validated once in __post_init__, so downstream stages never re-check.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from core.exceptions import ValidationError


GRADE_ORDER = ('A', 'B', 'C', 'D', 'E')

DISEASE_TYPES = frozenset({
    'DEMENTIA', 'PARKINSON', 'STROKE', 'DIABETES', 'HYPERTENSION', 'OTHER', 'UNKNOWN'
})


def grade_rank(grade: Optional[str]) -> Optional[int]:
    """Position of an evaluation grade, 0 for A (best) to 4 for E."""
    if grade is None:
        return None
    try:
        return GRADE_ORDER.index(grade.upper())
    except ValueError:
        return None


class CandidateKind(str, Enum):
    COORDINATOR = "COORDINATOR"
    FACILITY = "FACILITY"


class ScoringStrategy(str, Enum):
    HEALTH_BASED = "HEALTH_BASED"
    DISTANCE_BASED = "DISTANCE_BASED"
    RATING_BASED = "RATING_BASED"

    @classmethod
    def parse(cls, value: Any) -> "ScoringStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValidationError(f"Unknown scoring strategy: {value!r}")


@dataclass(frozen=True)
class CareAssessment:
    """A point-in-time health assessment of one care recipient."""
    id: str
    subject_id: str
    mobility_level: int
    eating_level: int
    toilet_level: int
    communication_level: int
    ltci_grade: Optional[int] = None
    care_target_status: int = 4
    meal_type: int = 1
    disease_types: Tuple[str, ...] = ()
    cognitive_difficulty: bool = False
    assessed_at: Optional[datetime] = None

    @property
    def adl_levels(self) -> Dict[str, int]:
        return {
            'mobility': self.mobility_level,
            'eating': self.eating_level,
            'toilet': self.toilet_level,
            'communication': self.communication_level,
        }

    def has_disease(self, code: str) -> bool:
        return code in self.disease_types


@dataclass(frozen=True)
class CareNeedSummary:
    """Normalized care need derived from a CareAssessment."""
    assessment_id: str
    adl_score: float
    ltci_component: float
    care_need_score: float
    normalized_need: float
    care_grade_level: int
    severity_label: str
    required_specialties: FrozenSet[str] = frozenset()
    dementia_indicated: bool = False
    severe: bool = False


@dataclass(frozen=True)
class LanguageSkill:
    code: str
    proficiency: str = "native"


@dataclass(frozen=True)
class MatchCandidate:
    """A care coordinator or facility that can be recommended."""
    id: str
    kind: CandidateKind
    name: str
    specialties: FrozenSet[str] = frozenset()
    regions: FrozenSet[str] = frozenset()
    languages: Tuple[LanguageSkill, ...] = ()
    weekend_available: bool = False
    emergency_available: bool = False
    current_load: int = 0
    max_load: int = 1
    experience_years: float = 0.0
    successful_cases: int = 0
    customer_satisfaction: float = 0.0
    evaluation_grade: Optional[str] = None
    evaluation_score: Optional[float] = None
    monthly_fee: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def __post_init__(self):
        if self.current_load < 0:
            raise ValidationError(f"Candidate {self.id}: current_load must be non-negative, got {self.current_load}")

    @property
    def workload_ratio(self) -> float:
        if self.max_load <= 0:
            return float('inf')
        return self.current_load / self.max_load

    @property
    def language_codes(self) -> FrozenSet[str]:
        return frozenset(skill.code for skill in self.languages)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'name': self.name,
            'specialties': sorted(self.specialties),
            'regions': sorted(self.regions),
            'languages': [{'code': s.code, 'proficiency': s.proficiency} for s in self.languages],
            'weekend_available': self.weekend_available,
            'emergency_available': self.emergency_available,
            'current_load': self.current_load,
            'max_load': self.max_load,
            'experience_years': self.experience_years,
            'successful_cases': self.successful_cases,
            'customer_satisfaction': self.customer_satisfaction,
            'evaluation_grade': self.evaluation_grade,
            'evaluation_score': self.evaluation_score,
            'monthly_fee': self.monthly_fee,
            'latitude': self.latitude,
            'longitude': self.longitude,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchCandidate":
        return cls(
            id=data['id'],
            kind=CandidateKind(data['kind']),
            name=data.get('name', ''),
            specialties=frozenset(data.get('specialties') or ()),
            regions=frozenset(data.get('regions') or ()),
            languages=tuple(
                LanguageSkill(code=s['code'], proficiency=s.get('proficiency', 'native'))
                for s in data.get('languages') or ()
            ),
            weekend_available=bool(data.get('weekend_available', False)),
            emergency_available=bool(data.get('emergency_available', False)),
            current_load=int(data.get('current_load', 0)),
            max_load=int(data.get('max_load', 1)),
            experience_years=float(data.get('experience_years', 0.0)),
            successful_cases=int(data.get('successful_cases', 0)),
            customer_satisfaction=float(data.get('customer_satisfaction', 0.0)),
            evaluation_grade=data.get('evaluation_grade'),
            evaluation_score=data.get('evaluation_score'),
            monthly_fee=data.get('monthly_fee'),
            latitude=data.get('latitude'),
            longitude=data.get('longitude'),
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class MatchingPreference:
    """
    Hard constraints and presentation options for one match request.

    Construction validates every field; an invalid preference never
    reaches the filter.
    """
    preferred_language: Optional[str] = None
    preferred_region: Optional[str] = None
    min_customer_satisfaction: float = 0.0
    needs_weekend_availability: bool = False
    needs_emergency_availability: bool = False
    needs_professional_consultation: bool = False
    max_monthly_fee: Optional[float] = None
    min_facility_grade: Optional[str] = None
    max_results: int = 10
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    max_distance_km: Optional[float] = None

    def __post_init__(self):
        if not _is_int(self.max_results) or self.max_results <= 0:
            raise ValidationError(f"max_results must be a positive integer, got {self.max_results!r}")
        for name in ('min_customer_satisfaction', 'max_monthly_fee', 'latitude', 'longitude', 'max_distance_km'):
            value = getattr(self, name)
            if value is None and name != 'min_customer_satisfaction':
                continue
            if not _is_number(value):
                raise ValidationError(f"{name} must be a number, got {value!r}")
        if not 0.0 <= self.min_customer_satisfaction <= 5.0:
            raise ValidationError(
                f"min_customer_satisfaction must be within [0, 5], got {self.min_customer_satisfaction}"
            )
        if self.max_monthly_fee is not None and self.max_monthly_fee < 0:
            raise ValidationError("max_monthly_fee must be non-negative")
        if self.min_facility_grade is not None:
            if grade_rank(self.min_facility_grade) is None:
                raise ValidationError(f"Unknown facility grade: {self.min_facility_grade!r}")
            object.__setattr__(self, 'min_facility_grade', self.min_facility_grade.upper())
        if (self.latitude is None) != (self.longitude is None):
            raise ValidationError("latitude and longitude must be given together")
        if self.latitude is not None and not -90.0 <= self.latitude <= 90.0:
            raise ValidationError(f"latitude out of range: {self.latitude}")
        if self.longitude is not None and not -180.0 <= self.longitude <= 180.0:
            raise ValidationError(f"longitude out of range: {self.longitude}")
        if self.max_distance_km is not None and self.max_distance_km <= 0:
            raise ValidationError("max_distance_km must be positive")

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def create(cls, **kwargs) -> "MatchingPreference":
        """Build a preference from loosely-typed input (CLI, JSON payloads)."""
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise ValidationError(str(e))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'preferred_language': self.preferred_language,
            'preferred_region': self.preferred_region,
            'min_customer_satisfaction': self.min_customer_satisfaction,
            'needs_weekend_availability': self.needs_weekend_availability,
            'needs_emergency_availability': self.needs_emergency_availability,
            'needs_professional_consultation': self.needs_professional_consultation,
            'max_monthly_fee': self.max_monthly_fee,
            'min_facility_grade': self.min_facility_grade,
            'max_results': self.max_results,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'max_distance_km': self.max_distance_km,
        }


@dataclass(frozen=True)
class ScoredCandidate:
    """Intermediate result between scoring and ranking."""
    candidate: MatchCandidate
    score: float
    reason: str
    components: Dict[str, float] = field(default_factory=dict)
    distance_km: Optional[float] = None


@dataclass(frozen=True)
class MatchResult:
    """One ranked recommendation returned to the caller."""
    candidate_id: str
    candidate_kind: CandidateKind
    name: str
    match_score: float
    match_reason: str
    workload_ratio: float
    rank: int
    specialties: Tuple[str, ...] = ()
    regions: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    weekend_available: bool = False
    emergency_available: bool = False
    experience_years: float = 0.0
    customer_satisfaction: float = 0.0
    evaluation_grade: Optional[str] = None
    monthly_fee: Optional[float] = None
    distance_km: Optional[float] = None
    components: Dict[str, float] = field(default_factory=dict, compare=False)
    candidate_snapshot: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'candidate_id': self.candidate_id,
            'candidate_kind': self.candidate_kind.value,
            'name': self.name,
            'match_score': self.match_score,
            'match_reason': self.match_reason,
            'workload_ratio': self.workload_ratio,
            'rank': self.rank,
            'specialties': list(self.specialties),
            'regions': list(self.regions),
            'languages': list(self.languages),
            'weekend_available': self.weekend_available,
            'emergency_available': self.emergency_available,
            'experience_years': self.experience_years,
            'customer_satisfaction': self.customer_satisfaction,
            'evaluation_grade': self.evaluation_grade,
            'monthly_fee': self.monthly_fee,
            'distance_km': self.distance_km,
        }
