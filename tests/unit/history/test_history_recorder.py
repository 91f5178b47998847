"""
Tests for MatchingHistoryRecorder: shown rows, lifecycle events and outcomes.
"""
from datetime import datetime, timedelta

import pytest

from core.exceptions import AlreadyFinalizedError, NotFoundError, ValidationError
from core.matcher.models import CandidateKind, MatchingPreference, ScoringStrategy
from core.matcher.service import MatchingEngine
from history.models import FLAG_SEQUENCE, HistoryEventKind, Outcome
from history.recorder import MatchingHistoryRecorder, build_history_rows, estimate_cost
from tests.mocks.matcher_mocks import (
    InMemoryAssessmentSource, InMemoryCandidateStore, high_need_assessment,
    moderate_assessment, sample_coordinators, sample_facilities
)

pytestmark = pytest.mark.db


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start=datetime(2026, 3, 2, 9, 0)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(minutes=1)
        return current


def _match(assessment, kind=CandidateKind.COORDINATOR, strategy=ScoringStrategy.HEALTH_BASED):
    engine = MatchingEngine(
        InMemoryAssessmentSource([assessment]),
        InMemoryCandidateStore(sample_coordinators() + sample_facilities()),
    )
    preference = MatchingPreference(max_results=5)
    return engine.match(assessment.id, preference, strategy, kind), preference


@pytest.fixture
def recorder(sqlite_db):
    return MatchingHistoryRecorder(clock=StepClock())


@pytest.fixture
def shown_ids(recorder):
    assessment = moderate_assessment()
    results, preference = _match(assessment)
    return recorder.record_shown(assessment, results, preference, ScoringStrategy.HEALTH_BASED, 2)


class TestBuildHistoryRows:

    def test_01_rows_mirror_results(self):
        assessment = high_need_assessment()
        results, preference = _match(assessment, CandidateKind.FACILITY)

        rows = build_history_rows(assessment, results, preference, 'health_based', care_grade_level=1)

        assert [r['rank'] for r in rows] == [1, 2]
        assert len({r['recommendation_id'] for r in rows}) == 1
        assert rows[0]['candidate_id'] == 'facility-A'
        assert rows[0]['strategy'] == 'HEALTH_BASED'
        assert rows[0]['initial_match_score'] == results[0].match_score
        assert rows[0]['candidate_snapshot']['specialties'] == ['dementia', 'hospice', 'medical', 'rehabilitation']
        assert rows[0]['criteria_snapshot']['care_grade_level'] == 1
        assert rows[0]['criteria_snapshot']['max_results'] == 5

    def test_02_estimated_cost(self):
        assessment = high_need_assessment()
        results, _ = _match(assessment, CandidateKind.FACILITY)
        facility = results[0]

        assert estimate_cost(facility, 1) == 3_900_000.0
        assert estimate_cost(facility, 3) == 3_450_000.0
        assert estimate_cost(facility, 5) == 3_000_000.0
        assert estimate_cost(facility, None) == 3_000_000.0

        coordinators, _ = _match(assessment)
        assert estimate_cost(coordinators[0], 1) is None

    def test_03_each_call_gets_new_recommendation_id(self):
        assessment = moderate_assessment()
        results, preference = _match(assessment)
        first = build_history_rows(assessment, results, preference, ScoringStrategy.HEALTH_BASED)
        second = build_history_rows(assessment, results, preference, ScoringStrategy.HEALTH_BASED)
        assert first[0]['recommendation_id'] != second[0]['recommendation_id']


class TestRecordShown:

    def test_01_one_row_per_result(self, recorder, shown_ids):
        assert len(shown_ids) == 3
        views = [recorder.get_history(i) for i in shown_ids]

        assert [v.rank for v in views] == [1, 2, 3]
        assert views[0].candidate_id == 'coordinator-001'
        assert views[0].outcome == Outcome.PENDING
        assert not views[0].viewed
        assert views[0].criteria_snapshot['care_grade_level'] == 2
        assert views[0].estimated_cost is None

    def test_02_empty_results_write_nothing(self, recorder):
        assert recorder.record_shown(moderate_assessment(), [], MatchingPreference()) == []

    def test_03_unknown_history(self, recorder):
        with pytest.raises(NotFoundError):
            recorder.get_history(999)


class TestRecordEvent:

    def test_01_flags_set_in_order(self, recorder, shown_ids):
        history_id = shown_ids[0]
        for kind in (HistoryEventKind.VIEWED, HistoryEventKind.CONTACTED,
                     HistoryEventKind.VISITED, HistoryEventKind.SELECTED):
            assert recorder.record_event(history_id, kind) is True

        view = recorder.get_history(history_id)
        assert view.viewed and view.contacted and view.visited and view.selected
        assert view.event_times['VIEWED'] < view.event_times['SELECTED']

    def test_02_repeated_flag_is_ignored(self, recorder, shown_ids):
        assert recorder.record_event(shown_ids[0], 'VIEWED') is True
        assert recorder.record_event(shown_ids[0], 'VIEWED') is False

    def test_03_flag_without_predecessor_is_ignored(self, recorder, shown_ids):
        assert recorder.record_event(shown_ids[0], HistoryEventKind.VISITED) is False
        assert recorder.record_event(shown_ids[0], HistoryEventKind.CONTACTED) is False
        assert not recorder.get_history(shown_ids[0]).visited

    def test_04_invalid_kinds(self, recorder, shown_ids):
        with pytest.raises(ValidationError):
            recorder.record_event(shown_ids[0], 'CLICKED')
        with pytest.raises(ValidationError):
            recorder.record_event(shown_ids[0], HistoryEventKind.OUTCOME)

    def test_05_unknown_history(self, recorder):
        with pytest.raises(NotFoundError):
            recorder.record_event(12345, HistoryEventKind.VIEWED)


class TestRecordOutcome:

    def test_01_outcome_recorded_once(self, recorder, shown_ids):
        view = recorder.record_outcome(
            shown_ids[0], Outcome.SUCCESSFUL, actual_cost=1_200_000, satisfaction_score=4.5,
            feedback="Very attentive", recommendation_willingness=5,
        )

        assert view.outcome == Outcome.SUCCESSFUL
        assert view.is_final
        assert view.satisfaction_score == 4.5
        assert view.actual_cost == 1_200_000
        assert view.feedback == "Very attentive"
        assert view.outcome_at is not None

        with pytest.raises(AlreadyFinalizedError):
            recorder.record_outcome(shown_ids[0], Outcome.FAILED)
        assert recorder.get_history(shown_ids[0]).outcome == Outcome.SUCCESSFUL

    def test_02_events_after_outcome_are_ignored(self, recorder, shown_ids):
        recorder.record_outcome(shown_ids[1], 'CANCELLED')
        assert recorder.record_event(shown_ids[1], HistoryEventKind.VIEWED) is False
        assert not recorder.get_history(shown_ids[1]).viewed

    @pytest.mark.parametrize("kwargs", [
        {'outcome': Outcome.PENDING},
        {'outcome': 'LOST'},
        {'outcome': Outcome.SUCCESSFUL, 'satisfaction_score': 5.5},
        {'outcome': Outcome.SUCCESSFUL, 'recommendation_willingness': 0},
        {'outcome': Outcome.FAILED, 'actual_cost': -1},
    ])
    def test_03_invalid_outcomes(self, recorder, shown_ids, kwargs):
        with pytest.raises(ValidationError):
            recorder.record_outcome(shown_ids[0], **kwargs)
        assert recorder.get_history(shown_ids[0]).outcome == Outcome.PENDING

    def test_04_unknown_history(self, recorder):
        with pytest.raises(NotFoundError):
            recorder.record_outcome(777, Outcome.FAILED)

    def test_05_original_snapshot_kept(self, recorder, shown_ids):
        before = recorder.get_history(shown_ids[0])
        recorder.record_event(shown_ids[0], HistoryEventKind.VIEWED)
        recorder.record_outcome(shown_ids[0], Outcome.FAILED)
        after = recorder.get_history(shown_ids[0])

        assert after.initial_match_score == before.initial_match_score
        assert after.candidate_snapshot == before.candidate_snapshot
        assert after.created_at == before.created_at

    def test_06_successful_outcome_marks_row_selected(self, recorder, shown_ids):
        view = recorder.record_outcome(shown_ids[2], Outcome.SUCCESSFUL)

        assert view.selected
        assert not view.viewed
        assert HistoryEventKind.SELECTED.value in view.event_times
        assert recorder.get_history(shown_ids[2]).selected

    def test_07_other_outcomes_leave_selection_alone(self, recorder, shown_ids):
        assert not recorder.record_outcome(shown_ids[0], Outcome.FAILED).selected
        assert not recorder.record_outcome(shown_ids[1], Outcome.CANCELLED).selected

    def test_08_already_selected_row_keeps_its_selection_time(self, recorder, shown_ids):
        for kind in FLAG_SEQUENCE:
            recorder.record_event(shown_ids[0], kind)
        selected_at = recorder.get_history(shown_ids[0]).event_times[HistoryEventKind.SELECTED.value]

        view = recorder.record_outcome(shown_ids[0], Outcome.SUCCESSFUL)

        assert view.selected
        assert view.event_times[HistoryEventKind.SELECTED.value] == selected_at
