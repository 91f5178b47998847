#!/usr/bin/env python3
"""
Care Need Normalizer - turns a raw assessment into a comparable care need.

Formula:
- adl_score = mobility*w_m + eating*w_e + toilet*w_t + communication*w_c
- ltci_component = (7 - ltci_grade) * ltci_weight, or 0 without a grade
- care_need_score = adl_score + ltci_component

Higher ADL levels and LTCI grades closer to 1 mean more care is needed, so
the score is monotonic in both. The severity label is display text only.
"""

import logging
from typing import Optional, Set

from core.config_loader import NormalizerConfig
from core.exceptions import InvalidAssessmentError
from core.matcher.models import CareAssessment, CareNeedSummary

logger = logging.getLogger(__name__)

VALID_ADL_LEVELS = (1, 2, 3)
VALID_LTCI_GRADES = (1, 2, 3, 4, 5, 6)

# LTCI grade 6 is the cognitive-support grade
COGNITIVE_SUPPORT_GRADE = 6

GRADE_DESCRIPTIONS = {
    1: "most severe",
    2: "severe",
    3: "moderate",
    4: "mild",
    5: "light",
}


def _validate(assessment: CareAssessment) -> None:
    for name, level in assessment.adl_levels.items():
        if level not in VALID_ADL_LEVELS:
            raise InvalidAssessmentError(
                f"Assessment {assessment.id}: {name} level must be 1-3, got {level!r}"
            )
    if assessment.ltci_grade is not None and assessment.ltci_grade not in VALID_LTCI_GRADES:
        raise InvalidAssessmentError(
            f"Assessment {assessment.id}: LTCI grade must be 1-6 or absent, got {assessment.ltci_grade!r}"
        )


def calculate_adl_score(assessment: CareAssessment, config: NormalizerConfig) -> float:
    return (
        assessment.mobility_level * config.mobility_weight +
        assessment.eating_level * config.eating_weight +
        assessment.toilet_level * config.toilet_weight +
        assessment.communication_level * config.communication_weight
    )


def estimate_grade(adl_score: float, config: NormalizerConfig) -> int:
    """Estimate a 1-5 grade from the ADL score when no LTCI grade exists."""
    for grade, threshold in enumerate(config.grade_thresholds, start=1):
        if adl_score >= threshold:
            return grade
    return len(config.grade_thresholds) + 1


def _is_dementia_indicated(assessment: CareAssessment) -> bool:
    return (
        assessment.ltci_grade == COGNITIVE_SUPPORT_GRADE
        or assessment.communication_level == 3
        or assessment.cognitive_difficulty
        or assessment.has_disease('DEMENTIA')
    )


def _is_severe(assessment: CareAssessment) -> bool:
    # Tube feeding or full toilet assistance
    return assessment.meal_type == 3 or assessment.toilet_level == 3


def _is_hospice(assessment: CareAssessment) -> bool:
    return assessment.care_target_status is not None and assessment.care_target_status <= 2


def _required_specialties(assessment: CareAssessment, grade_level: int) -> Set[str]:
    required = set()
    if _is_hospice(assessment):
        required.add('hospice')
    if _is_dementia_indicated(assessment):
        required.add('dementia')
    if _is_severe(assessment) or grade_level <= 2:
        required.add('medical')
    if assessment.mobility_level >= 2 or assessment.has_disease('STROKE') or assessment.has_disease('PARKINSON'):
        required.add('rehabilitation')
    return required


def severity_label(assessment: CareAssessment, estimated_grade: Optional[int]) -> str:
    if _is_hospice(assessment):
        return "Hospice care"
    if assessment.ltci_grade == COGNITIVE_SUPPORT_GRADE:
        return "Cognitive support grade (dementia)"
    if assessment.ltci_grade is not None:
        return f"Grade {assessment.ltci_grade} ({GRADE_DESCRIPTIONS[assessment.ltci_grade]})"
    return f"Estimated grade {estimated_grade} ({GRADE_DESCRIPTIONS.get(estimated_grade, 'light')})"


def score_bounds(config: NormalizerConfig):
    """Lowest and highest reachable care_need_score under the given weights."""
    adl_weight_sum = (
        config.mobility_weight + config.eating_weight +
        config.toilet_weight + config.communication_weight
    )
    low = adl_weight_sum * min(VALID_ADL_LEVELS)
    high = adl_weight_sum * max(VALID_ADL_LEVELS) + (7 - min(VALID_LTCI_GRADES)) * config.ltci_weight
    return low, high


def normalize(assessment: CareAssessment, config: Optional[NormalizerConfig] = None) -> CareNeedSummary:
    """
    Normalize an assessment into a CareNeedSummary.

    Pure and deterministic: identical input always yields an identical summary.

    Raises:
        InvalidAssessmentError: if an ADL level or LTCI grade is out of range
    """
    config = config or NormalizerConfig()
    _validate(assessment)

    adl_score = calculate_adl_score(assessment, config)
    if assessment.ltci_grade is not None:
        ltci_component = (7 - assessment.ltci_grade) * config.ltci_weight
    else:
        ltci_component = 0.0
    care_need_score = adl_score + ltci_component

    if assessment.ltci_grade is not None:
        grade_level = assessment.ltci_grade
        estimated = None
    else:
        grade_level = estimate_grade(adl_score, config)
        estimated = grade_level

    low, high = score_bounds(config)
    if high > low:
        normalized_need = (care_need_score - low) / (high - low)
    else:
        normalized_need = 0.0
    normalized_need = max(0.0, min(1.0, normalized_need))

    summary = CareNeedSummary(
        assessment_id=assessment.id,
        adl_score=adl_score,
        ltci_component=ltci_component,
        care_need_score=care_need_score,
        normalized_need=normalized_need,
        care_grade_level=grade_level,
        severity_label=severity_label(assessment, estimated),
        required_specialties=frozenset(_required_specialties(assessment, grade_level)),
        dementia_indicated=_is_dementia_indicated(assessment),
        severe=_is_severe(assessment),
    )
    logger.debug(
        f"Normalized assessment {assessment.id}: score={care_need_score:.1f} "
        f"grade={grade_level} specialties={sorted(summary.required_specialties)}"
    )
    return summary
