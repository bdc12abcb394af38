"""
Health metric repository.

Handles database operations for the HealthMetric model. Writes go through a
single dedup upsert; the repository never commits, the caller owns the
transaction.
"""

import datetime
from typing import Iterable

from sqlalchemy import func, literal_column
from sqlalchemy.dialects.postgresql import insert
from sqlmodel import Session, select

from app.models.health_metric import DEDUP_KEY, HealthMetric
from app.schemas.health import HealthMetricIn, MetricQuery


def build_upsert(user_id: str, metric: HealthMetricIn):
    """INSERT ... ON CONFLICT (dedup key) DO UPDATE, returning the row and an insert flag.

    ``xmax = 0`` holds only for a tuple created by this statement, so the
    flag tells a fresh insert from an overwrite without a second query.
    """
    stmt = insert(HealthMetric).values(
        user_id=user_id,
        metric_type=metric.metric_type.value,
        value=metric.value,
        unit=metric.unit,
        recorded_at=metric.recorded_at,
        source=metric.source.value,
        source_device=metric.source_device,
        metric_metadata=metric.metadata or {},
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=list(DEDUP_KEY),
        set_={
            "value": stmt.excluded.value,
            "unit": stmt.excluded.unit,
            "source_device": stmt.excluded.source_device,
            "metric_metadata": stmt.excluded.metric_metadata,
            "updated_at": func.now(),
        },
    )
    return stmt.returning(HealthMetric, literal_column("(xmax = 0)").label("inserted"))


class HealthMetricRepository:
    """Repository for HealthMetric database operations."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, user_id: str, metric: HealthMetricIn) -> tuple[HealthMetric, bool]:
        """Insert or overwrite one reading. Returns (row, inserted)."""
        stmt = build_upsert(user_id, metric).execution_options(populate_existing=True)
        row, inserted = self.session.execute(stmt).one()
        return row, bool(inserted)

    def query(self, user_id: str, filters: MetricQuery) -> tuple[list[HealthMetric], int]:
        """Filtered page of readings (newest first) plus the unpaginated count."""
        conditions = [HealthMetric.user_id == user_id]
        if filters.metric_type:
            conditions.append(HealthMetric.metric_type == filters.metric_type.value)
        if filters.source:
            conditions.append(HealthMetric.source == filters.source.value)
        if filters.start_date:
            conditions.append(HealthMetric.recorded_at >= filters.start_date)
        if filters.end_date:
            conditions.append(HealthMetric.recorded_at <= filters.end_date)

        total = self.session.exec(select(func.count()).select_from(HealthMetric).where(*conditions)).one()
        statement = (
            select(HealthMetric)
            .where(*conditions)
            .order_by(HealthMetric.recorded_at.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return list(self.session.exec(statement).all()), int(total)

    def list_in_range(
        self, user_id: str, start: datetime.datetime, end: datetime.datetime,
    ) -> list[HealthMetric]:
        """Readings with ``start <= recorded_at < end``, newest first."""
        statement = (
            select(HealthMetric)
            .where(
                HealthMetric.user_id == user_id,
                HealthMetric.recorded_at >= start,
                HealthMetric.recorded_at < end,
            )
            .order_by(HealthMetric.recorded_at.desc())
        )
        return list(self.session.exec(statement).all())

    def list_at_instants(
        self, user_id: str, metric_types: Iterable[str], instants: Iterable[datetime.datetime],
    ) -> list[HealthMetric]:
        """Readings of the given types stamped exactly at one of ``instants``."""
        metric_types, instants = list(metric_types), list(instants)
        if not metric_types or not instants:
            return []
        statement = (
            select(HealthMetric)
            .where(
                HealthMetric.user_id == user_id,
                HealthMetric.metric_type.in_(metric_types),
                HealthMetric.recorded_at.in_(instants),
            )
            .order_by(HealthMetric.recorded_at.desc())
        )
        return list(self.session.exec(statement).all())

    def latest_per_type(self, user_id: str) -> list[HealthMetric]:
        """The most recent reading of each metric type."""
        statement = (
            select(HealthMetric)
            .where(HealthMetric.user_id == user_id)
            .order_by(HealthMetric.metric_type, HealthMetric.recorded_at.desc())
            .distinct(HealthMetric.metric_type)
        )
        return list(self.session.exec(statement).all())

    def exists_since(self, user_id: str, since: datetime.datetime) -> bool:
        statement = (
            select(HealthMetric.id)
            .where(HealthMetric.user_id == user_id, HealthMetric.recorded_at > since)
            .limit(1)
        )
        return self.session.exec(statement).first() is not None
