#!/usr/bin/env python3
"""
Matching Simulation - runs the ranking pipeline over synthetic data.

Used to sanity-check weight changes and measure throughput without a
database. Synthetic pools are drawn from a seeded numpy RandomState, so a
given request always yields the same result (except the timing).
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging
import time

import numpy as np

from core.config_loader import MatchingConfig, SimulationConfig
from core.exceptions import ValidationError
from core.matcher.models import (
    CandidateKind, CareAssessment, LanguageSkill, MatchCandidate,
    MatchingPreference, ScoringStrategy
)
from core.matcher.normalizer import normalize
from core.matcher.pipeline import rank_pool
from core.scorer.models import ScoringContext
from core.scorer.strategies import get_strategy

logger = logging.getLogger(__name__)

SPECIALTIES = ('medical', 'dementia', 'rehabilitation', 'hospice', 'consultation', 'elderly_care')
LANGUAGES = ('ko', 'en', 'zh', 'ja')
GRADES = ('A', 'B', 'C', 'D', 'E')
DISEASES = ('DEMENTIA', 'PARKINSON', 'STROKE', 'DIABETES', 'HYPERTENSION')

# Synthetic locations are scattered around this reference point
REFERENCE_LAT = 37.5665
REFERENCE_LON = 126.9780


@dataclass(frozen=True)
class SimulationRequest:
    assessment_count: int
    candidate_count: int
    strategy: ScoringStrategy = ScoringStrategy.HEALTH_BASED
    candidate_kind: CandidateKind = CandidateKind.COORDINATOR
    seed: Optional[int] = None
    max_results: Optional[int] = None

    def __post_init__(self):
        if self.assessment_count is None or self.assessment_count <= 0:
            raise ValidationError(f"assessment_count must be positive, got {self.assessment_count}")
        if self.candidate_count is None or self.candidate_count <= 0:
            raise ValidationError(f"candidate_count must be positive, got {self.candidate_count}")
        object.__setattr__(self, 'strategy', ScoringStrategy.parse(self.strategy))


@dataclass
class SimulationResult:
    total_assessments: int
    total_candidates: int
    successful_matches: int
    average_score: float
    success_rate: float
    execution_time_ms: float
    strategy: str = ScoringStrategy.HEALTH_BASED.value
    top_scores: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'total_assessments': self.total_assessments,
            'total_candidates': self.total_candidates,
            'successful_matches': self.successful_matches,
            'average_score': self.average_score,
            'success_rate': self.success_rate,
            'execution_time_ms': self.execution_time_ms,
            'strategy': self.strategy,
        }


def generate_candidates(
    count: int,
    kind: CandidateKind = CandidateKind.COORDINATOR,
    seed: int = 42,
    regions: Optional[List[str]] = None,
) -> List[MatchCandidate]:
    """Draw a reproducible synthetic candidate pool."""
    rng = np.random.RandomState(seed)
    regions = regions or ['seoul', 'gyeonggi', 'incheon', 'busan']
    prefix = 'facility' if kind == CandidateKind.FACILITY else 'coordinator'

    candidates = []
    for i in range(count):
        max_load = int(rng.randint(4, 12)) if kind == CandidateKind.COORDINATOR else int(rng.randint(30, 150))
        current_load = int(rng.randint(0, max_load + 1))
        n_specialties = int(rng.randint(1, 4))
        specialties = frozenset(rng.choice(SPECIALTIES, size=n_specialties, replace=False).tolist())
        n_regions = int(rng.randint(1, 3))
        candidate_regions = frozenset(rng.choice(regions, size=min(n_regions, len(regions)), replace=False).tolist())
        languages = (LanguageSkill('ko', 'native'),)
        if rng.rand() < 0.3:
            languages += (LanguageSkill(str(rng.choice(LANGUAGES[1:])), 'business'),)

        facility_fields = {}
        if kind == CandidateKind.FACILITY:
            evaluation_score = round(float(rng.uniform(30, 100)), 1)
            grade_index = min(4, int((100 - evaluation_score) // 15))
            facility_fields = {
                'evaluation_score': evaluation_score,
                'evaluation_grade': GRADES[grade_index],
                'monthly_fee': float(rng.randint(80, 400)) * 10000,
            }

        candidates.append(MatchCandidate(
            id=f"{prefix}-{i:05d}",
            kind=kind,
            name=f"Synthetic {prefix} {i}",
            specialties=specialties,
            regions=candidate_regions,
            languages=languages,
            weekend_available=bool(rng.rand() < 0.5),
            emergency_available=bool(rng.rand() < 0.4),
            current_load=current_load,
            max_load=max_load,
            experience_years=round(float(rng.uniform(0, 20)), 1),
            successful_cases=int(rng.randint(0, 400)),
            customer_satisfaction=round(float(rng.uniform(2.5, 5.0)), 1),
            latitude=REFERENCE_LAT + float(rng.normal(0, 0.1)),
            longitude=REFERENCE_LON + float(rng.normal(0, 0.1)),
            **facility_fields,
        ))
    return candidates


def generate_assessments(count: int, seed: int = 42) -> List[CareAssessment]:
    """Draw a reproducible set of synthetic assessments."""
    rng = np.random.RandomState(seed + 1)
    assessments = []
    for i in range(count):
        levels = rng.randint(1, 4, size=4)
        ltci = int(rng.randint(1, 8))
        diseases = tuple(sorted(rng.choice(DISEASES, size=int(rng.randint(0, 3)), replace=False).tolist()))
        assessments.append(CareAssessment(
            id=f"assessment-{i:05d}",
            subject_id=f"subject-{i:05d}",
            mobility_level=int(levels[0]),
            eating_level=int(levels[1]),
            toilet_level=int(levels[2]),
            communication_level=int(levels[3]),
            # 7 stands for "no LTCI grade"
            ltci_grade=ltci if ltci <= 6 else None,
            care_target_status=int(rng.randint(1, 5)),
            meal_type=int(rng.randint(1, 4)),
            disease_types=diseases,
        ))
    return assessments


def run_simulation(
    request: SimulationRequest,
    config: Optional[MatchingConfig] = None,
    simulation_config: Optional[SimulationConfig] = None,
) -> SimulationResult:
    """
    Match every synthetic assessment against one synthetic pool.

    No store is read and no history is written.
    """
    config = config or MatchingConfig()
    simulation_config = simulation_config or SimulationConfig()
    seed = request.seed if request.seed is not None else simulation_config.seed
    max_results = request.max_results or simulation_config.max_results

    definition = get_strategy(request.strategy)

    pool = generate_candidates(request.candidate_count, request.candidate_kind, seed, simulation_config.regions)
    assessments = generate_assessments(request.assessment_count, seed)
    preference = MatchingPreference(
        max_results=max_results,
        latitude=REFERENCE_LAT,
        longitude=REFERENCE_LON,
    )

    start = time.perf_counter()
    top_scores = []
    for assessment in assessments:
        care_need = normalize(assessment, config.normalizer) if definition.uses_care_need else None
        context = ScoringContext(preference=preference, config=config.scorer, care_need=care_need)
        results = rank_pool(pool, context, definition, config)
        if results:
            top_scores.append(results[0].match_score)
    elapsed_ms = (time.perf_counter() - start) * 1000

    successful = len(top_scores)
    result = SimulationResult(
        total_assessments=request.assessment_count,
        total_candidates=request.candidate_count,
        successful_matches=successful,
        average_score=round(float(np.mean(top_scores)), 4) if top_scores else 0.0,
        success_rate=round(successful / request.assessment_count, 4),
        execution_time_ms=round(elapsed_ms, 3),
        strategy=request.strategy.value,
        top_scores=top_scores,
    )
    logger.info(
        f"Simulation ({result.strategy}): {result.successful_matches}/{result.total_assessments} matched, "
        f"avg top score {result.average_score}, {result.execution_time_ms:.1f}ms"
    )
    return result
