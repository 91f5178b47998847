"""
History write task, executed by the RQ worker or the in-process thread pool.

The write is retried with tenacity; once retries are exhausted the failure
is surfaced as PersistenceError to the executor (RQ records it on the job,
the thread pool logs it).
"""
import logging
from typing import Any, Dict, List

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed, RetryError
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import PersistenceError
from history.recorder import MatchingHistoryRecorder

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_WAIT_SECONDS = 0.5


def persist_with_retry(
    recorder: MatchingHistoryRecorder,
    rows: List[Dict[str, Any]],
    attempts: int = DEFAULT_ATTEMPTS,
    wait_seconds: float = DEFAULT_WAIT_SECONDS,
) -> List[int]:
    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(SQLAlchemyError),
    )
    def _persist():
        try:
            return recorder.persist_rows(rows)
        except SQLAlchemyError as e:
            logger.warning(f"History write failed, will retry: {e}")
            raise

    try:
        return _persist()
    except RetryError as e:
        raise PersistenceError(
            f"History write failed after {attempts} attempts: {e.last_attempt.exception()}"
        ) from e


def record_shown_task(
    rows: List[Dict[str, Any]],
    attempts: int = DEFAULT_ATTEMPTS,
    wait_seconds: float = DEFAULT_WAIT_SECONDS,
) -> List[int]:
    """RQ entry point: persist one shown result set."""
    return persist_with_retry(MatchingHistoryRecorder(), rows, attempts, wait_seconds)
