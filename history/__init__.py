"""
Matching history - append-only audit trail of shown recommendations.

Components:
- MatchingHistoryRecorder: synchronous writes (rows, lifecycle events, outcomes)
- HistoryDispatcher: asynchronous sink used by the matching engine
- record_shown_task: RQ entry point run by history.worker
"""

from history.models import HistoryEventKind, Outcome, MatchingHistoryView
from history.recorder import MatchingHistoryRecorder, build_history_rows, estimate_cost
from history.tasks import record_shown_task, persist_with_retry
from history.dispatcher import HistoryDispatcher

__all__ = [
    'HistoryEventKind',
    'Outcome',
    'MatchingHistoryView',
    'MatchingHistoryRecorder',
    'build_history_rows',
    'estimate_cost',
    'record_shown_task',
    'persist_with_retry',
    'HistoryDispatcher',
]
