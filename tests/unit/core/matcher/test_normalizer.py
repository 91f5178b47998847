"""
Tests for the care need normalizer.
"""
import itertools

import pytest
from pydantic import ValidationError as PydanticValidationError

from core.config_loader import NormalizerConfig
from core.exceptions import InvalidAssessmentError, ValidationError
from core.matcher.normalizer import estimate_grade, normalize, score_bounds
from tests.mocks.matcher_mocks import (
    high_need_assessment, low_need_assessment, make_assessment, moderate_assessment
)

# Least to most severe
LTCI_SEVERITY_ORDER = (None, 6, 5, 4, 3, 2, 1)


class TestNormalize:

    def test_01_moderate_assessment_without_ltci_grade(self):
        summary = normalize(moderate_assessment())

        assert summary.adl_score == 230.0
        assert summary.ltci_component == 0.0
        assert summary.care_need_score == 230.0
        assert summary.care_grade_level == 2
        assert summary.severity_label == "Estimated grade 2 (severe)"
        assert summary.normalized_need == pytest.approx(0.5)
        assert summary.required_specialties == frozenset({'medical', 'rehabilitation'})

    def test_02_high_need_assessment(self):
        summary = normalize(high_need_assessment())

        assert summary.adl_score == 300.0
        assert summary.ltci_component == 20.0
        assert summary.care_need_score == 320.0
        assert summary.care_grade_level == 5
        assert summary.severity_label == "Hospice care"
        assert summary.dementia_indicated is True
        assert summary.severe is True
        assert summary.required_specialties == frozenset({'hospice', 'dementia', 'medical', 'rehabilitation'})

    def test_03_low_need_assessment(self):
        summary = normalize(low_need_assessment())

        assert summary.care_need_score == 100.0
        assert summary.care_grade_level == 5
        assert summary.severity_label == "Estimated grade 5 (light)"
        assert summary.normalized_need == 0.0
        assert summary.required_specialties == frozenset()

    def test_04_ltci_grade_labels(self):
        graded = normalize(make_assessment(levels=(2, 2, 2, 2), ltci_grade=3))
        assert graded.care_need_score == 240.0
        assert graded.care_grade_level == 3
        assert graded.severity_label == "Grade 3 (moderate)"
        assert graded.required_specialties == frozenset({'rehabilitation'})

        cognitive = normalize(make_assessment(ltci_grade=6))
        assert cognitive.care_need_score == 110.0
        assert cognitive.severity_label == "Cognitive support grade (dementia)"
        assert 'dementia' in cognitive.required_specialties

    def test_05_hospice_label_overrides_grade(self):
        summary = normalize(make_assessment(ltci_grade=2, care_target_status=2))
        assert summary.severity_label == "Hospice care"
        assert 'hospice' in summary.required_specialties

    def test_06_disease_implies_specialties(self):
        summary = normalize(make_assessment(disease_types=('STROKE', 'DEMENTIA')))
        assert {'rehabilitation', 'dementia'} <= summary.required_specialties

    def test_07_deterministic(self):
        assessment = moderate_assessment()
        assert normalize(assessment) == normalize(assessment)

    def test_08_maximum_need_normalizes_to_one(self):
        summary = normalize(make_assessment(levels=(3, 3, 3, 3), ltci_grade=1))
        assert summary.care_need_score == 360.0
        assert summary.normalized_need == 1.0


class TestMonotonicity:

    def test_01_raising_any_adl_level_never_lowers_score(self):
        for levels in itertools.product((1, 2, 3), repeat=4):
            for ltci in LTCI_SEVERITY_ORDER:
                base = normalize(make_assessment(levels=levels, ltci_grade=ltci)).care_need_score
                for index in range(4):
                    if levels[index] == 3:
                        continue
                    raised = list(levels)
                    raised[index] += 1
                    higher = normalize(make_assessment(levels=tuple(raised), ltci_grade=ltci)).care_need_score
                    assert higher >= base, (levels, index, ltci)

    def test_02_more_severe_ltci_grade_never_lowers_score(self):
        for levels in itertools.product((1, 2, 3), repeat=4):
            scores = [
                normalize(make_assessment(levels=levels, ltci_grade=ltci)).care_need_score
                for ltci in LTCI_SEVERITY_ORDER
            ]
            assert scores == sorted(scores), levels


class TestValidation:

    @pytest.mark.parametrize("levels", [(0, 1, 1, 1), (1, 4, 1, 1), (1, 1, -1, 1), (1, 1, 1, 5)])
    def test_01_adl_level_out_of_range(self, levels):
        with pytest.raises(InvalidAssessmentError):
            normalize(make_assessment(levels=levels))

    @pytest.mark.parametrize("ltci_grade", [0, 7, -2])
    def test_02_ltci_grade_out_of_range(self, ltci_grade):
        with pytest.raises(InvalidAssessmentError):
            normalize(make_assessment(ltci_grade=ltci_grade))

    def test_03_invalid_assessment_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            normalize(make_assessment(levels=(9, 1, 1, 1)))


class TestConfiguration:

    def test_01_custom_weights(self):
        config = NormalizerConfig(
            mobility_weight=10, eating_weight=10, toilet_weight=10, communication_weight=10, ltci_weight=0
        )
        summary = normalize(make_assessment(levels=(3, 3, 3, 3), ltci_grade=1), config)
        assert summary.care_need_score == 120.0
        assert summary.normalized_need == 1.0

    def test_02_negative_weight_rejected(self):
        with pytest.raises(PydanticValidationError):
            NormalizerConfig(toilet_weight=-1)

    def test_03_score_bounds(self):
        assert score_bounds(NormalizerConfig()) == (100.0, 360.0)

    def test_04_estimate_grade_thresholds(self):
        config = NormalizerConfig()
        assert estimate_grade(300, config) == 1
        assert estimate_grade(250, config) == 1
        assert estimate_grade(220, config) == 2
        assert estimate_grade(180, config) == 3
        assert estimate_grade(140, config) == 4
        assert estimate_grade(139, config) == 5
