#!/usr/bin/env python3
"""
History Models - event kinds, outcomes and the folded read model.

A history row's current state is never stored; it is rebuilt by folding
its event rows in insertion order.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class HistoryEventKind(str, Enum):
    VIEWED = "VIEWED"
    CONTACTED = "CONTACTED"
    VISITED = "VISITED"
    SELECTED = "SELECTED"
    OUTCOME = "OUTCOME"


class Outcome(str, Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# Each flag requires the one before it
FLAG_SEQUENCE = (
    HistoryEventKind.VIEWED,
    HistoryEventKind.CONTACTED,
    HistoryEventKind.VISITED,
    HistoryEventKind.SELECTED,
)


def required_predecessor(kind: HistoryEventKind) -> Optional[HistoryEventKind]:
    index = FLAG_SEQUENCE.index(kind)
    return FLAG_SEQUENCE[index - 1] if index > 0 else None


@dataclass
class MatchingHistoryView:
    id: int
    recommendation_id: str
    assessment_id: str
    candidate_id: str
    candidate_kind: str
    strategy: str
    rank: int
    initial_match_score: float
    created_at: datetime
    match_reason: Optional[str] = None
    estimated_cost: Optional[float] = None
    candidate_snapshot: Dict[str, Any] = field(default_factory=dict)
    criteria_snapshot: Dict[str, Any] = field(default_factory=dict)

    viewed: bool = False
    contacted: bool = False
    visited: bool = False
    selected: bool = False
    event_times: Dict[str, datetime] = field(default_factory=dict)

    outcome: Outcome = Outcome.PENDING
    outcome_at: Optional[datetime] = None
    actual_cost: Optional[float] = None
    satisfaction_score: Optional[float] = None
    recommendation_willingness: Optional[int] = None
    feedback: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.outcome != Outcome.PENDING

    def has_flag(self, kind: HistoryEventKind) -> bool:
        return getattr(self, kind.value.lower())

    @classmethod
    def from_record(cls, record) -> "MatchingHistoryView":
        """Fold a MatchingHistory row and its events into the current state."""
        view = cls(
            id=record.id,
            recommendation_id=record.recommendation_id,
            assessment_id=record.assessment_id,
            candidate_id=record.candidate_id,
            candidate_kind=record.candidate_kind,
            strategy=record.strategy,
            rank=record.rank,
            initial_match_score=float(record.initial_match_score),
            created_at=record.created_at,
            match_reason=record.match_reason,
            estimated_cost=float(record.estimated_cost) if record.estimated_cost is not None else None,
            candidate_snapshot=dict(record.candidate_snapshot or {}),
            criteria_snapshot=dict(record.criteria_snapshot or {}),
        )
        for event in record.events:
            kind = HistoryEventKind(event.kind)
            view.event_times[kind.value] = event.occurred_at
            if kind == HistoryEventKind.OUTCOME:
                payload = event.payload or {}
                view.outcome = Outcome(payload.get('outcome', Outcome.PENDING.value))
                view.outcome_at = event.occurred_at
                view.actual_cost = payload.get('actual_cost')
                view.satisfaction_score = payload.get('satisfaction_score')
                view.recommendation_willingness = payload.get('recommendation_willingness')
                view.feedback = payload.get('feedback')
            else:
                setattr(view, kind.value.lower(), True)
        return view
