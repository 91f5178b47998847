"""
Candidate Pool Service - capacity and availability writes.

Every write commits first and then invalidates the cached pools for each
region the candidate serves, before returning to the caller. A reader
that starts after the call returns can never see the old values.
"""
import logging
from typing import Optional

from core.cache.candidate_cache import CandidateCacheService
from core.matcher.models import MatchCandidate
from database.repositories.candidate import CandidateRepository

logger = logging.getLogger(__name__)


class CandidatePoolService:

    def __init__(self, repo: CandidateRepository, cache: Optional[CandidateCacheService] = None):
        self.repo = repo
        self.cache = cache

    def _invalidate(self, candidate_id: str, kind, regions) -> None:
        if self.cache is None:
            return
        if not self.cache.invalidate(kind, regions):
            logger.warning(f"Cache invalidation skipped for {candidate_id} (cache unavailable)")

    def register_candidate(self, candidate: MatchCandidate) -> None:
        existing = self.repo.get_record(candidate.id)
        previous_regions = set(existing.regions) if existing is not None else set()
        self.repo.save_candidate(candidate)
        self.repo.commit()
        self._invalidate(candidate.id, candidate.kind, previous_regions | set(candidate.regions))

    def update_load(
        self,
        candidate_id: str,
        current_load: Optional[int] = None,
        max_load: Optional[int] = None
    ) -> MatchCandidate:
        regions = self.repo.update_load(candidate_id, current_load=current_load, max_load=max_load)
        self.repo.commit()
        candidate = self.repo.get_candidate(candidate_id)
        self._invalidate(candidate_id, candidate.kind, regions)
        return candidate

    def update_availability(
        self,
        candidate_id: str,
        weekend_available: Optional[bool] = None,
        emergency_available: Optional[bool] = None
    ) -> MatchCandidate:
        regions = self.repo.update_availability(
            candidate_id,
            weekend_available=weekend_available,
            emergency_available=emergency_available
        )
        self.repo.commit()
        candidate = self.repo.get_candidate(candidate_id)
        self._invalidate(candidate_id, candidate.kind, regions)
        return candidate
