#!/usr/bin/env python3
"""
History Dispatcher - moves history writes off the request path.

The matching engine calls submit_shown() after its results are computed.
Rows are built synchronously (cheap, pure) and written either:
- through the RQ 'matching_history' queue when Redis is reachable, or
- by a small in-process thread pool otherwise.

submit_shown() never raises. Each write is retried by the task itself, so
a failed write is logged after the match call has already returned.
"""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from threading import Lock
from typing import List, Optional

from redis import Redis
from rq import Queue

from core.config_loader import HistoryConfig
from core.matcher.interfaces import HistorySink
from core.matcher.models import CareAssessment, MatchingPreference, MatchResult, ScoringStrategy
from history.recorder import MatchingHistoryRecorder, build_history_rows
from history.tasks import persist_with_retry, record_shown_task

logger = logging.getLogger(__name__)


class HistoryDispatcher(HistorySink):

    def __init__(
        self,
        recorder: Optional[MatchingHistoryRecorder] = None,
        config: Optional[HistoryConfig] = None,
    ):
        """
        Args:
            recorder: Recorder used by the in-process fallback
            config: HistoryConfig (queue, retry and thread settings)
        """
        self.config = config or HistoryConfig()
        self.recorder = recorder or MatchingHistoryRecorder()
        self.redis_url = self.config.redis_url or os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: List[Future] = []
        self._lock = Lock()

        if not self.config.use_async_queue:
            logger.info("History queue disabled via config. Using in-process writer.")
            self.queue = None
            self.async_mode = False
        else:
            try:
                self.redis_conn = Redis.from_url(self.redis_url)
                self.redis_conn.ping()
                self.queue = Queue(self.config.queue_name, connection=self.redis_conn)
                self.async_mode = True
                logger.info("History dispatcher connected to Redis")
            except Exception as e:
                logger.warning(f"Redis connection failed: {e}. Using in-process writer.")
                self.queue = None
                self.async_mode = False

    def submit_shown(
        self,
        assessment: CareAssessment,
        results: List[MatchResult],
        preference: MatchingPreference,
        strategy: ScoringStrategy,
        care_grade_level: Optional[int] = None,
    ) -> None:
        try:
            rows = build_history_rows(assessment, results, preference, strategy, care_grade_level)
        except Exception as e:
            logger.error(f"Could not build history rows for assessment {assessment.id}: {e}")
            return

        if self.async_mode:
            try:
                # Retries happen inside the task; a job that exhausts them stays failed
                job = self.queue.enqueue(
                    record_shown_task,
                    rows,
                    self.config.retry_attempts,
                    self.config.retry_wait_seconds,
                    job_timeout='1m',
                    result_ttl=3600,
                )
                logger.debug(f"Queued history write as job {job.id}")
                return
            except Exception as e:
                logger.error(f"Failed to enqueue history write: {e}. Writing in-process.")

        self._submit_local(rows)

    def _submit_local(self, rows) -> None:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.worker_threads,
                    thread_name_prefix="history-writer"
                )
            future = self._executor.submit(
                persist_with_retry,
                self.recorder,
                rows,
                self.config.retry_attempts,
                self.config.retry_wait_seconds,
            )
            future.add_done_callback(self._log_failure)
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)

    @staticmethod
    def _log_failure(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"History write failed: {error}")

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until in-process writes submitted so far finish."""
        with self._lock:
            pending = list(self._futures)
        wait_futures(pending, timeout=timeout)

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
