#!/usr/bin/env python3
"""
Matching History Recorder - audit trail of shown recommendations.

Usage:
    from history.recorder import MatchingHistoryRecorder

    recorder = MatchingHistoryRecorder()
    ids = recorder.record_shown(assessment, results, preference, strategy)

    recorder.record_event(ids[0], HistoryEventKind.VIEWED)
    recorder.record_outcome(ids[0], Outcome.SUCCESSFUL, satisfaction_score=4.5)
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from core.exceptions import AlreadyFinalizedError, NotFoundError, ValidationError
from core.matcher.models import (
    CandidateKind, CareAssessment, MatchingPreference, MatchResult, ScoringStrategy
)
from database.uow import history_uow
from history.models import HistoryEventKind, MatchingHistoryView, Outcome, required_predecessor

logger = logging.getLogger(__name__)


def estimate_cost(result: MatchResult, care_grade_level: Optional[int]) -> Optional[float]:
    """
    Monthly cost estimate for a facility: fee scaled up for heavier care.

    Coordinators have no fee and get None.
    """
    if result.candidate_kind != CandidateKind.FACILITY or result.monthly_fee is None:
        return None
    multiplier = 1.0
    if care_grade_level is not None:
        if care_grade_level <= 2:
            multiplier = 1.3
        elif care_grade_level == 3:
            multiplier = 1.15
    return round(float(result.monthly_fee) * multiplier, 2)


def build_history_rows(
    assessment: CareAssessment,
    results: List[MatchResult],
    preference: MatchingPreference,
    strategy: ScoringStrategy,
    care_grade_level: Optional[int] = None,
    created_at: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Turn one result set into insertable history rows.

    Snapshots are copied here, at recommendation time, so later candidate
    edits never leak into the audit trail.
    """
    recommendation_id = str(uuid.uuid4())
    created_at = created_at or datetime.now(timezone.utc)
    criteria = preference.to_dict()
    criteria['care_grade_level'] = care_grade_level

    return [
        {
            'recommendation_id': recommendation_id,
            'assessment_id': assessment.id,
            'subject_id': assessment.subject_id,
            'candidate_id': result.candidate_id,
            'candidate_kind': result.candidate_kind.value,
            'strategy': ScoringStrategy.parse(strategy).value,
            'rank': result.rank,
            'initial_match_score': result.match_score,
            'match_reason': result.match_reason,
            'estimated_cost': estimate_cost(result, care_grade_level),
            'candidate_snapshot': dict(result.candidate_snapshot) or result.to_dict(),
            'criteria_snapshot': criteria,
            'created_at': created_at,
        }
        for result in results
    ]


class MatchingHistoryRecorder:
    """
    Writes history rows and lifecycle events.

    Each public call runs in its own transaction via the uow factory.
    """

    def __init__(self, uow_factory: Callable = history_uow, clock: Optional[Callable[[], datetime]] = None):
        self._uow = uow_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def persist_rows(self, rows: List[Dict[str, Any]]) -> List[int]:
        if not rows:
            return []
        with self._uow() as repo:
            ids = repo.add_histories(rows)
        logger.info(
            f"Recorded {len(ids)} shown recommendations for assessment {rows[0]['assessment_id']} "
            f"(recommendation {rows[0]['recommendation_id']})"
        )
        return ids

    def record_shown(
        self,
        assessment: CareAssessment,
        results: List[MatchResult],
        preference: MatchingPreference,
        strategy: ScoringStrategy = ScoringStrategy.HEALTH_BASED,
        care_grade_level: Optional[int] = None,
    ) -> List[int]:
        """Persist one history row per result. Returns the new history ids."""
        rows = build_history_rows(
            assessment, results, preference, strategy, care_grade_level, created_at=self._clock()
        )
        return self.persist_rows(rows)

    def get_history(self, history_id: int) -> MatchingHistoryView:
        with self._uow() as repo:
            record = repo.get(history_id)
            if record is None:
                raise NotFoundError(f"Matching history not found: {history_id}")
            return MatchingHistoryView.from_record(record)

    def record_event(self, history_id: int, kind) -> bool:
        """
        Set a lifecycle flag.

        Returns False (and logs) when the flag is already set, its
        predecessor is not, or the row already has an outcome.

        Raises:
            ValidationError: unknown or terminal event kind
            NotFoundError: unknown history id
        """
        try:
            kind = HistoryEventKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown history event kind: {kind!r}")
        if kind == HistoryEventKind.OUTCOME:
            raise ValidationError("Use record_outcome to record an outcome")

        with self._uow() as repo:
            record = repo.get(history_id)
            if record is None:
                raise NotFoundError(f"Matching history not found: {history_id}")
            view = MatchingHistoryView.from_record(record)

            if view.has_flag(kind):
                logger.info(f"History {history_id}: {kind.value} already recorded, ignoring")
                return False
            predecessor = required_predecessor(kind)
            if predecessor is not None and not view.has_flag(predecessor):
                logger.warning(
                    f"History {history_id}: {kind.value} before {predecessor.value}, ignoring"
                )
                return False
            if view.is_final:
                logger.warning(f"History {history_id}: {kind.value} after outcome {view.outcome.value}, ignoring")
                return False

            try:
                repo.add_event(history_id, kind.value, occurred_at=self._clock())
            except IntegrityError:
                # Concurrent writer set the same flag first
                repo.rollback()
                logger.info(f"History {history_id}: {kind.value} recorded concurrently, ignoring")
                return False

        logger.debug(f"History {history_id}: recorded {kind.value}")
        return True

    def record_outcome(
        self,
        history_id: int,
        outcome,
        actual_cost: Optional[float] = None,
        satisfaction_score: Optional[float] = None,
        feedback: Optional[str] = None,
        recommendation_willingness: Optional[int] = None,
    ) -> MatchingHistoryView:
        """
        Set the terminal outcome exactly once.

        Raises:
            ValidationError: PENDING outcome or scores out of range
            NotFoundError: unknown history id
            AlreadyFinalizedError: an outcome is already recorded
        """
        try:
            outcome = Outcome(outcome)
        except ValueError:
            raise ValidationError(f"Unknown outcome: {outcome!r}")
        if outcome == Outcome.PENDING:
            raise ValidationError("PENDING is not a terminal outcome")
        if satisfaction_score is not None and not 0.0 <= satisfaction_score <= 5.0:
            raise ValidationError(f"satisfaction_score must be within [0, 5], got {satisfaction_score}")
        if recommendation_willingness is not None and not 1 <= recommendation_willingness <= 5:
            raise ValidationError(
                f"recommendation_willingness must be within [1, 5], got {recommendation_willingness}"
            )
        if actual_cost is not None and actual_cost < 0:
            raise ValidationError("actual_cost must be non-negative")

        payload = {
            'outcome': outcome.value,
            'actual_cost': actual_cost,
            'satisfaction_score': satisfaction_score,
            'recommendation_willingness': recommendation_willingness,
            'feedback': feedback,
        }

        with self._uow() as repo:
            record = repo.get(history_id)
            if record is None:
                raise NotFoundError(f"Matching history not found: {history_id}")
            current = MatchingHistoryView.from_record(record)
            if current.is_final:
                raise AlreadyFinalizedError(f"Matching history {history_id} already has an outcome")
            occurred_at = self._clock()
            try:
                # A successful match means the candidate was selected
                if outcome == Outcome.SUCCESSFUL and not current.selected:
                    repo.add_event(history_id, HistoryEventKind.SELECTED.value, occurred_at=occurred_at)
                repo.add_event(history_id, HistoryEventKind.OUTCOME.value, payload, occurred_at=occurred_at)
            except IntegrityError:
                repo.rollback()
                record = repo.get(history_id)
                if MatchingHistoryView.from_record(record).is_final:
                    raise AlreadyFinalizedError(f"Matching history {history_id} already has an outcome")
                # SELECTED was set concurrently
                repo.add_event(history_id, HistoryEventKind.OUTCOME.value, payload, occurred_at=occurred_at)
            repo.db.expire(record, ["events"])
            view = MatchingHistoryView.from_record(record)

        logger.info(f"History {history_id}: outcome {outcome.value}")
        return view
