import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from database.models import MatchingHistory, MatchingHistoryEvent
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class HistoryRepository(BaseRepository):
    """
    Append-only access to matching history.

    Rows are inserted once and never updated or deleted;
    lifecycle changes are new event rows.
    """

    def add_histories(self, rows: List[Dict[str, Any]]) -> List[int]:
        records = [MatchingHistory(**row) for row in rows]
        self.db.add_all(records)
        self.db.flush()
        return [r.id for r in records]

    def get(self, history_id: int) -> Optional[MatchingHistory]:
        stmt = select(MatchingHistory).where(MatchingHistory.id == history_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_event(
        self,
        history_id: int,
        kind: str,
        payload: Optional[Dict[str, Any]] = None,
        occurred_at: Optional[datetime] = None
    ) -> MatchingHistoryEvent:
        """
        Append an event row.

        Raises:
            sqlalchemy.exc.IntegrityError: if this kind is already recorded
        """
        event = MatchingHistoryEvent(history_id=history_id, kind=kind, payload=payload or {})
        if occurred_at is not None:
            event.occurred_at = occurred_at
        self.db.add(event)
        self.db.flush()
        return event

    def list_between(self, start: datetime, end: datetime) -> List[MatchingHistory]:
        """Rows with start <= created_at < end, oldest first, events loaded."""
        stmt = (
            select(MatchingHistory)
            .where(MatchingHistory.created_at >= start, MatchingHistory.created_at < end)
            .order_by(MatchingHistory.created_at.asc(), MatchingHistory.id.asc())
        )
        return self.db.execute(stmt).scalars().all()

    def list_for_recommendation(self, recommendation_id: str) -> List[MatchingHistory]:
        stmt = (
            select(MatchingHistory)
            .where(MatchingHistory.recommendation_id == recommendation_id)
            .order_by(MatchingHistory.rank.asc())
        )
        return self.db.execute(stmt).scalars().all()

    def list_for_assessment(self, assessment_id: str) -> List[MatchingHistory]:
        stmt = (
            select(MatchingHistory)
            .where(MatchingHistory.assessment_id == assessment_id)
            .order_by(MatchingHistory.created_at.asc(), MatchingHistory.rank.asc())
        )
        return self.db.execute(stmt).scalars().all()
