"""
Tests for HistoryDispatcher and the retried history write task.
"""
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from core.config_loader import HistoryConfig
from core.exceptions import PersistenceError
from core.matcher.models import MatchingPreference, ScoringStrategy
from core.matcher.service import MatchingEngine
from database.uow import matching_uow
from history.dispatcher import HistoryDispatcher
from history.recorder import MatchingHistoryRecorder
from history.tasks import persist_with_retry, record_shown_task
from tests.mocks.matcher_mocks import (
    InMemoryAssessmentSource, InMemoryCandidateStore, moderate_assessment, sample_coordinators
)


def _db_error():
    return OperationalError("INSERT INTO matching_history", {}, Exception("database is locked"))


def _local_config(**kwargs):
    values = dict(use_async_queue=False, worker_threads=1, retry_attempts=2, retry_wait_seconds=0)
    values.update(kwargs)
    return HistoryConfig(**values)


def _engine(history):
    return MatchingEngine(
        InMemoryAssessmentSource([moderate_assessment()]),
        InMemoryCandidateStore(sample_coordinators()),
        history=history,
    )


class TestPersistWithRetry:

    def test_01_retries_transient_failures(self):
        recorder = Mock()
        recorder.persist_rows.side_effect = [_db_error(), [1, 2]]

        assert persist_with_retry(recorder, [{'row': 1}], attempts=3, wait_seconds=0) == [1, 2]
        assert recorder.persist_rows.call_count == 2

    def test_02_gives_up_with_persistence_error(self):
        recorder = Mock()
        recorder.persist_rows.side_effect = _db_error()

        with pytest.raises(PersistenceError):
            persist_with_retry(recorder, [{'row': 1}], attempts=3, wait_seconds=0)
        assert recorder.persist_rows.call_count == 3

    def test_03_non_database_errors_are_not_retried(self):
        recorder = Mock()
        recorder.persist_rows.side_effect = KeyError('assessment_id')

        with pytest.raises(KeyError):
            persist_with_retry(recorder, [{'row': 1}], attempts=3, wait_seconds=0)
        assert recorder.persist_rows.call_count == 1

    def test_04_queued_task_retries_once_per_attempt(self):
        with patch('history.tasks.MatchingHistoryRecorder') as recorder_class:
            recorder_class.return_value.persist_rows.side_effect = _db_error()
            with pytest.raises(PersistenceError):
                record_shown_task([{'row': 1}], 2, 0)

        assert recorder_class.return_value.persist_rows.call_count == 2


class TestHistoryDispatcher:

    def test_01_queue_disabled_uses_in_process_writer(self):
        dispatcher = HistoryDispatcher(recorder=Mock(), config=_local_config())
        assert dispatcher.async_mode is False
        assert dispatcher.queue is None

    def test_02_redis_unavailable_falls_back(self):
        with patch('history.dispatcher.Redis') as mock_redis_class:
            mock_redis_class.from_url.side_effect = Exception("Connection refused")
            dispatcher = HistoryDispatcher(recorder=Mock(), config=HistoryConfig(use_async_queue=True))
        assert dispatcher.async_mode is False

    def test_03_enqueues_when_redis_available(self):
        with patch('history.dispatcher.Redis') as mock_redis_class, \
                patch('history.dispatcher.Queue') as mock_queue_class:
            mock_redis_class.from_url.return_value = Mock()
            queue = mock_queue_class.return_value
            queue.enqueue.return_value = Mock(id='job-1')

            dispatcher = HistoryDispatcher(recorder=Mock(), config=HistoryConfig(redis_url="redis://cache:6379/0"))
            _engine(dispatcher).match('assessment-moderate', MatchingPreference())

        assert dispatcher.async_mode is True
        mock_queue_class.assert_called_once()
        assert mock_queue_class.call_args[0][0] == 'matching_history'
        args, kwargs = queue.enqueue.call_args
        assert args[0] is record_shown_task
        assert len(args[1]) == 3
        assert args[2:] == (3, 0.5)
        assert 'retry' not in kwargs

    def test_04_enqueue_failure_writes_in_process(self):
        recorder = Mock()
        recorder.persist_rows.return_value = [1, 2, 3]
        with patch('history.dispatcher.Redis') as mock_redis_class, \
                patch('history.dispatcher.Queue') as mock_queue_class:
            mock_redis_class.from_url.return_value = Mock()
            mock_queue_class.return_value.enqueue.side_effect = Exception("queue down")
            dispatcher = HistoryDispatcher(recorder=recorder, config=HistoryConfig(worker_threads=1))

            _engine(dispatcher).match('assessment-moderate', MatchingPreference())
            dispatcher.wait(timeout=5)
            dispatcher.close()

        recorder.persist_rows.assert_called_once()

    def test_05_failed_write_never_reaches_caller(self):
        recorder = Mock()
        recorder.persist_rows.side_effect = _db_error()
        dispatcher = HistoryDispatcher(recorder=recorder, config=_local_config())

        results = _engine(dispatcher).match('assessment-moderate', MatchingPreference())
        dispatcher.wait(timeout=5)
        dispatcher.close()

        assert len(results) == 3
        assert recorder.persist_rows.call_count == 2

    def test_06_unbuildable_rows_are_dropped(self):
        recorder = Mock()
        dispatcher = HistoryDispatcher(recorder=recorder, config=_local_config())

        dispatcher.submit_shown(moderate_assessment(), [object()], MatchingPreference(), ScoringStrategy.HEALTH_BASED)
        dispatcher.wait(timeout=5)

        recorder.persist_rows.assert_not_called()

    @pytest.mark.db
    def test_07_in_process_write_reaches_database(self, sqlite_db):
        dispatcher = HistoryDispatcher(recorder=MatchingHistoryRecorder(), config=_local_config())

        results = _engine(dispatcher).match('assessment-moderate', MatchingPreference())
        dispatcher.wait(timeout=5)
        dispatcher.close()

        with matching_uow() as uow:
            rows = uow.history.list_for_assessment('assessment-moderate')
            assert [r.candidate_id for r in rows] == [r.candidate_id for r in results]
            assert len({r.recommendation_id for r in rows}) == 1
