import logging
from typing import List, Optional, Set

from sqlalchemy import select

from core.exceptions import NotFoundError, ValidationError
from core.matcher.interfaces import CandidateStore
from core.matcher.models import CandidateKind, MatchCandidate
from database.models import CandidateRegion, MatchCandidateRecord
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class CandidateRepository(BaseRepository, CandidateStore):
    def get_record(self, candidate_id: str) -> Optional[MatchCandidateRecord]:
        stmt = select(MatchCandidateRecord).where(MatchCandidateRecord.id == candidate_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_candidate(self, candidate_id: str) -> MatchCandidate:
        record = self.get_record(candidate_id)
        if record is None:
            raise NotFoundError(f"Candidate not found: {candidate_id}")
        return record.to_domain()

    def list_candidates_by_region(self, region: str, kind: CandidateKind) -> List[MatchCandidate]:
        stmt = (
            select(MatchCandidateRecord)
            .join(CandidateRegion, CandidateRegion.candidate_id == MatchCandidateRecord.id)
            .where(
                CandidateRegion.region == region,
                MatchCandidateRecord.kind == CandidateKind(kind).value
            )
            .order_by(MatchCandidateRecord.id)
        )
        return [r.to_domain() for r in self.db.execute(stmt).scalars().all()]

    def list_all_candidates(self, kind: CandidateKind) -> List[MatchCandidate]:
        stmt = (
            select(MatchCandidateRecord)
            .where(MatchCandidateRecord.kind == CandidateKind(kind).value)
            .order_by(MatchCandidateRecord.id)
        )
        return [r.to_domain() for r in self.db.execute(stmt).scalars().all()]

    def save_candidate(self, candidate: MatchCandidate) -> MatchCandidateRecord:
        """Insert or replace a candidate. Returns the stored record."""
        existing = self.get_record(candidate.id)
        if existing is not None:
            self.db.delete(existing)
            self.db.flush()
        record = MatchCandidateRecord.from_domain(candidate)
        self.db.add(record)
        self.db.flush()
        return record

    def update_load(
        self,
        candidate_id: str,
        current_load: Optional[int] = None,
        max_load: Optional[int] = None
    ) -> Set[str]:
        """
        Change capacity figures. Returns the regions the candidate serves.

        Raises:
            NotFoundError: if the candidate does not exist
            ValidationError: if current_load is negative
        """
        if current_load is not None and current_load < 0:
            raise ValidationError(f"current_load must be non-negative, got {current_load}")
        record = self.get_record(candidate_id)
        if record is None:
            raise NotFoundError(f"Candidate not found: {candidate_id}")
        if current_load is not None:
            record.current_load = current_load
        if max_load is not None:
            record.max_load = max_load
        self.db.flush()
        logger.info(f"Updated load for {candidate_id}: {record.current_load}/{record.max_load}")
        return set(record.regions)

    def update_availability(
        self,
        candidate_id: str,
        weekend_available: Optional[bool] = None,
        emergency_available: Optional[bool] = None
    ) -> Set[str]:
        record = self.get_record(candidate_id)
        if record is None:
            raise NotFoundError(f"Candidate not found: {candidate_id}")
        if weekend_available is not None:
            record.weekend_available = weekend_available
        if emergency_available is not None:
            record.emergency_available = emergency_available
        self.db.flush()
        logger.info(
            f"Updated availability for {candidate_id}: "
            f"weekend={record.weekend_available} emergency={record.emergency_available}"
        )
        return set(record.regions)
