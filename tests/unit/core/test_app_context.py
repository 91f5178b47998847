"""
Tests for AppContext wiring: pool writes, a stored-assessment match and
the in-process history write, all against in-memory SQLite.
"""
from unittest.mock import patch

import pytest

import core.cache
from core.app_context import AppContext
from core.cache.candidate_cache import CachedCandidateStore
from core.config_loader import AppConfig, CacheConfig, HistoryConfig
from core.matcher.models import MatchingPreference
from database.uow import matching_uow
from tests.mocks.matcher_mocks import moderate_assessment, sample_coordinators

pytestmark = pytest.mark.db


@pytest.fixture
def config():
    return AppConfig(
        cache=CacheConfig(enabled=False),
        history=HistoryConfig(use_async_queue=False, retry_wait_seconds=0.0),
    )


@pytest.fixture
def context(sqlite_db, config):
    context = AppContext.build(config)
    yield context
    context.close()


class TestAppContext:

    def test_01_build_without_cache(self, context):
        assert context.cache is None
        assert context.history is not None
        assert context.history.async_mode is False

    def test_02_build_with_unreachable_redis(self):
        config = AppConfig(history=HistoryConfig(use_async_queue=True))
        with patch('core.cache.candidate_cache.Redis') as cache_redis, \
                patch('history.dispatcher.Redis') as queue_redis:
            cache_redis.from_url.side_effect = Exception("Connection refused")
            queue_redis.from_url.side_effect = Exception("Connection refused")
            context = AppContext.build(config)

        assert context.cache is not None
        assert not context.cache.is_available
        assert context.history.async_mode is False
        context.close()

    def test_03_history_disabled(self):
        context = AppContext.build(AppConfig(cache=CacheConfig(enabled=False), history=HistoryConfig(enabled=False)))
        assert context.history is None
        context.close()

    def test_04_match_stored_assessment_records_history(self, context):
        with matching_uow() as uow:
            pool = context.candidate_pool(uow)
            for candidate in sample_coordinators():
                pool.register_candidate(candidate)
            uow.assessments.save_assessment(moderate_assessment())

        with matching_uow() as uow:
            engine = context.matching_engine(uow)
            assert isinstance(engine.candidates, CachedCandidateStore)
            results = engine.match('assessment-moderate', MatchingPreference())

        assert [r.rank for r in results] == [1, 2, 3]

        context.history.wait(timeout=5)
        with matching_uow() as uow:
            rows = uow.history.list_for_assessment('assessment-moderate')

        assert [row.candidate_id for row in rows] == [r.candidate_id for r in results]
        assert len({row.recommendation_id for row in rows}) == 1
        assert all(row.criteria_snapshot['care_grade_level'] == 2 for row in rows)

    def test_05_cache_is_owned_by_the_context(self, sqlite_db):
        config = AppConfig(history=HistoryConfig(enabled=False))
        with patch('core.cache.candidate_cache.Redis') as cache_redis:
            cache_redis.from_url.return_value.ping.return_value = True
            first = AppContext.build(config)
            second = AppContext.build(config)

        assert first.cache is not second.cache
        with matching_uow() as uow:
            assert first.matching_engine(uow).candidates.cache is first.cache
            assert first.candidate_pool(uow).cache is first.cache
        assert not hasattr(core.cache, 'get_candidate_cache')
        assert not hasattr(core.cache.candidate_cache, 'init_candidate_cache')
        first.close()
        second.close()
