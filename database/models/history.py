from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Integer, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, JSONType, utcnow


class MatchingHistory(Base):
    """
    One recommendation shown to a care seeker.

    Written once when the result set is produced and never updated.
    Everything that happens afterwards is appended as a
    MatchingHistoryEvent row.
    """
    __tablename__ = 'matching_history'

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Groups the rows produced by one match call
    recommendation_id = Column(Text, nullable=False)

    assessment_id = Column(Text, nullable=False)
    subject_id = Column(Text, nullable=True)
    candidate_id = Column(Text, nullable=False)
    candidate_kind = Column(Text, nullable=False)

    strategy = Column(Text, nullable=False)
    rank = Column(Integer, nullable=False)
    initial_match_score = Column(Numeric(9, 4), nullable=False)
    match_reason = Column(Text, nullable=True)
    estimated_cost = Column(Numeric(12, 2), nullable=True)

    candidate_snapshot = Column(JSONType, default=dict)
    criteria_snapshot = Column(JSONType, default=dict)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    events = relationship(
        "MatchingHistoryEvent",
        back_populates="history",
        lazy="selectin",
        order_by="MatchingHistoryEvent.id",
    )

    __table_args__ = (
        Index('idx_matching_history_assessment', 'assessment_id'),
        Index('idx_matching_history_candidate', 'candidate_id'),
        Index('idx_matching_history_recommendation', 'recommendation_id'),
        Index('idx_matching_history_created', 'created_at'),
    )


class MatchingHistoryEvent(Base):
    """
    Append-only lifecycle event for a MatchingHistory row.

    kind is one of VIEWED, CONTACTED, VISITED, SELECTED, OUTCOME. The
    unique constraint makes each kind settable once per history row, so
    flags cannot be unset and the outcome is terminal.
    """
    __tablename__ = 'matching_history_event'

    id = Column(Integer, primary_key=True, autoincrement=True)
    history_id = Column(Integer, ForeignKey('matching_history.id', ondelete='CASCADE'), nullable=False)
    kind = Column(Text, nullable=False)
    payload = Column(JSONType, default=dict)
    occurred_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    history = relationship("MatchingHistory", back_populates="events")

    __table_args__ = (
        UniqueConstraint('history_id', 'kind', name='uq_matching_history_event_kind'),
        Index('idx_matching_history_event_history', 'history_id'),
    )
