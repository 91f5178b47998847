from dataclasses import dataclass
from typing import Optional

from core.analytics.service import MatchingAnalytics
from core.cache.candidate_cache import CachedCandidateStore, CandidateCacheService
from core.cache.candidate_pool import CandidatePoolService
from core.config_loader import AppConfig
from core.matcher.service import MatchingEngine
from database.uow import MatchingUnitOfWork
from history.dispatcher import HistoryDispatcher
from history.recorder import MatchingHistoryRecorder


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Long-lived services (cache, history dispatcher, analytics) are built
    once. DB-bound services are built per unit of work via
    matching_engine(uow) / candidate_pool(uow).
    """
    config: AppConfig
    recorder: MatchingHistoryRecorder
    analytics: MatchingAnalytics
    cache: Optional[CandidateCacheService] = None
    history: Optional[HistoryDispatcher] = None

    @classmethod
    def build(cls, config: AppConfig) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        cache = None
        if config.cache.enabled:
            cache = CandidateCacheService(config.cache.redis_url, ttl_seconds=config.cache.ttl_seconds)

        recorder = MatchingHistoryRecorder()

        history = None
        if config.history.enabled:
            history = HistoryDispatcher(recorder=recorder, config=config.history)

        analytics = MatchingAnalytics(config=config.analytics, scorer_config=config.matching.scorer)

        return cls(
            config=config,
            recorder=recorder,
            analytics=analytics,
            cache=cache,
            history=history,
        )

    def matching_engine(self, uow: MatchingUnitOfWork) -> MatchingEngine:
        return MatchingEngine(
            assessments=uow.assessments,
            candidates=CachedCandidateStore(uow.candidates, self.cache),
            config=self.config.matching,
            history=self.history,
        )

    def candidate_pool(self, uow: MatchingUnitOfWork) -> CandidatePoolService:
        return CandidatePoolService(uow.candidates, self.cache)

    def close(self) -> None:
        if self.history is not None:
            self.history.close()
