"""
Batch ingestion — atomic, deadlock-resistant persistence of readings.

Lock order
----------

Two transactions that upsert an overlapping set of keys in different
orders can each hold a row lock the other is waiting for.  Every batch is
therefore sorted by the dedup key columns ``(metric_type, recorded_at,
source)`` before it is written, so overlapping batches always approach
shared rows in the same order and cannot form a cycle.

A single-row write running concurrently with a batch can still interleave
badly, so the database's deadlock signal is treated as transient: the
transaction is rolled back and replayed from the start with exponential
backoff (50 ms, 100 ms, ...), up to ``DEADLOCK_MAX_ATTEMPTS`` attempts.
Any other error rolls the whole batch back and propagates.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence, TypeVar

from sqlmodel import Session
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from app.core.config import settings
from app.core.exceptions import is_deadlock
from app.db.repositories.health_metric import HealthMetricRepository
from app.models.health_metric import HealthMetric
from app.schemas.health import BatchSyncResult, HealthMetricIn

logger = logging.getLogger(__name__)

T = TypeVar("T")


def sort_for_lock_order(metrics: Sequence[HealthMetricIn]) -> list[HealthMetricIn]:
    """Order readings by the dedup key: type and source as strings, instant numerically."""
    return sorted(metrics, key=lambda m: m.sort_key)


def _log_retry(retry_state) -> None:
    logger.warning(
        "Deadlock detected, retrying transaction (attempt %d, waiting %.0f ms)",
        retry_state.attempt_number,
        retry_state.next_action.sleep * 1000 if retry_state.next_action else 0,
    )


class BatchIngestor:
    """Writes readings for one user inside a single retried transaction.

    The session must have no transaction in progress; each attempt opens
    its own with ``session.begin()`` and the pooled connection is given back
    when that transaction ends, whichever way it ends.
    """

    def __init__(
        self,
        session: Session,
        repository: Optional[HealthMetricRepository] = None,
        max_attempts: int = settings.DEADLOCK_MAX_ATTEMPTS,
        backoff_base_ms: int = settings.DEADLOCK_BACKOFF_BASE_MS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session
        self.repository = repository or HealthMetricRepository(session)
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base_ms / 1000.0
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest_one(self, user_id: str, metric: HealthMetricIn) -> HealthMetric:
        """Upsert a single reading in its own transaction."""
        row, inserted = self._run_in_transaction(lambda: self.repository.upsert(user_id, metric))
        logger.info("Health metric %s: user=%s type=%s recorded_at=%s",
                    "inserted" if inserted else "updated", user_id, metric.metric_type.value,
                    metric.recorded_at.isoformat())
        return row

    def ingest_batch(self, user_id: str, metrics: Sequence[HealthMetricIn]) -> BatchSyncResult:
        """Upsert all readings atomically, in canonical lock order."""
        ordered = sort_for_lock_order(metrics)
        result = self._run_in_transaction(lambda: self._write_all(user_id, ordered))
        result.total = len(metrics)

        logger.info("Health batch sync completed: user=%s inserted=%d updated=%d total=%d",
                    user_id, result.inserted, result.updated, result.total)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _write_all(self, user_id: str, ordered: list[HealthMetricIn]) -> BatchSyncResult:
        # Counts are rebuilt on every attempt; a rolled-back attempt leaves nothing behind
        result = BatchSyncResult()
        for metric in ordered:
            _, inserted = self.repository.upsert(user_id, metric)
            if inserted:
                result.inserted += 1
            else:
                result.updated += 1
        return result

    def _run_in_transaction(self, work: Callable[[], T]) -> T:
        """Run ``work`` in one transaction, replaying it on deadlock."""
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base, min=self.backoff_base),
            retry=retry_if_exception(is_deadlock),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                # begin() commits on success and rolls back on any exception
                with self.session.begin():
                    outcome = work()
        return outcome
