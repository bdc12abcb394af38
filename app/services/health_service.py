"""
Health data service.

Business logic for health metric ingestion and daily summaries. Lucid's
morning/evening health check loops consume ``daily_summary`` through
``format_for_prompt``; the iOS HealthKit sync feeds ``ingest_batch``.
"""

import datetime
import logging
from typing import Optional, Sequence

from sqlmodel import Session

from app.core.config import settings
from app.db.repositories.health_metric import HealthMetricRepository
from app.health import aggregation, day_window
from app.health.formatting import format_summary
from app.health.ingest import BatchIngestor
from app.models.health_metric import HealthMetric
from app.schemas.health import (
    BatchSyncResult,
    DailyHealthSummary,
    HealthMetricIn,
    HealthMetricResponse,
    MetricPage,
    MetricQuery,
)

logger = logging.getLogger(__name__)


class HealthService:
    """Service for health metric business logic."""

    def __init__(
        self,
        session: Session,
        repository: Optional[HealthMetricRepository] = None,
        ingestor: Optional[BatchIngestor] = None,
        timezone: str = settings.HEALTH_TIMEZONE,
        daily_total_timezone: str = settings.HEALTH_DAILY_TOTAL_TIMEZONE,
    ):
        self.repository = repository or HealthMetricRepository(session)
        self.ingestor = ingestor or BatchIngestor(session, repository=self.repository)
        self.zone = day_window.get_zone(timezone)
        self.anchor_zone = day_window.get_zone(daily_total_timezone)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest_one(self, user_id: str, metric: HealthMetricIn) -> HealthMetric:
        return self.ingestor.ingest_one(user_id, metric)

    def ingest_batch(self, user_id: str, metrics: Sequence[HealthMetricIn]) -> BatchSyncResult:
        return self.ingestor.ingest_batch(user_id, metrics)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query_metrics(self, user_id: str, filters: MetricQuery) -> MetricPage:
        rows, total = self.repository.query(user_id, filters)
        return MetricPage(
            metrics=[HealthMetricResponse.model_validate(row) for row in rows],
            total=total,
            limit=filters.limit,
            offset=filters.offset,
        )

    def latest_metrics(self, user_id: str) -> list[HealthMetricResponse]:
        """Latest reading of each metric type (iOS dashboard)."""
        return [HealthMetricResponse.model_validate(row) for row in self.repository.latest_per_type(user_id)]

    def has_recent_data(self, user_id: str, hours: int = settings.RECENT_DATA_HOURS) -> bool:
        """Whether any reading was recorded in the last ``hours`` (gates the health loops)."""
        since = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(hours=hours)
        return self.repository.exists_since(user_id, since)

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def daily_summary(self, user_id: str, date: str | datetime.date) -> DailyHealthSummary:
        """Aggregate one civil day's readings into a summary.

        Daily totals of cumulative metrics are stamped at midnight of the
        anchor zone, which can fall outside the civil window; those rows are
        fetched separately and merged (duplicates dropped by the aggregator).
        """
        day = day_window.parse_day(date)
        start, end = day_window.day_bounds(day, self.zone)

        rows = self.repository.list_in_range(user_id, start, end)
        rows += self.repository.list_at_instants(
            user_id,
            sorted(aggregation.CUMULATIVE_METRICS),
            {day_window.local_midnight(day, self.anchor_zone)},
        )

        readings = [aggregation.Reading.from_row(row) for row in rows]
        return aggregation.summarize(day, readings, self.zone, self.anchor_zone)

    def multi_day_summaries(
        self, user_id: str, days: int, end_date: Optional[str | datetime.date] = None,
    ) -> list[DailyHealthSummary]:
        """Summaries for ``days`` civil days ending at ``end_date`` (default today), newest first."""
        end = day_window.parse_day(end_date) if end_date else day_window.today(self.zone)
        return [self.daily_summary(user_id, day) for day in day_window.multi_day(end, days)]

    def format_for_prompt(self, summary: DailyHealthSummary) -> str:
        return format_summary(summary, self.zone)
