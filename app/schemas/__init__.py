"""Pydantic schemas for request/response validation."""

from app.schemas.health import (
    ActivitySample,
    BatchSyncResult,
    CumulativeSummary,
    DailyHealthSummary,
    Granularity,
    HealthMetricBatch,
    HealthMetricCreate,
    HealthMetricIn,
    HealthMetricResponse,
    HealthMetricSource,
    HealthMetricType,
    MetricPage,
    MetricQuery,
)

__all__ = [
    "ActivitySample",
    "BatchSyncResult",
    "CumulativeSummary",
    "DailyHealthSummary",
    "Granularity",
    "HealthMetricBatch",
    "HealthMetricCreate",
    "HealthMetricIn",
    "HealthMetricResponse",
    "HealthMetricSource",
    "HealthMetricType",
    "MetricPage",
    "MetricQuery",
]
