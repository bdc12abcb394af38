"""
Health metric API schemas.

Pydantic models for metric ingestion (single and batch sync), raw metric
queries and the derived daily health summary.
"""

import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class HealthMetricType(str, Enum):
    """Metric types (map to HealthKit quantity / category types)."""

    BLOOD_PRESSURE_SYSTOLIC = "blood_pressure_systolic"
    BLOOD_PRESSURE_DIASTOLIC = "blood_pressure_diastolic"
    WEIGHT = "weight"
    STEPS = "steps"
    HEART_RATE = "heart_rate"
    RESTING_HEART_RATE = "resting_heart_rate"
    BLOOD_OXYGEN = "blood_oxygen"
    RESPIRATORY_RATE = "respiratory_rate"
    BODY_TEMPERATURE = "body_temperature"
    SLEEP_DURATION = "sleep_duration"
    ACTIVE_ENERGY = "active_energy"
    EXERCISE_MINUTES = "exercise_minutes"


class HealthMetricSource(str, Enum):
    """Origin system of a reading."""

    APPLE_HEALTH = "apple_health"
    OURA_RING = "oura_ring"
    MANUAL = "manual"
    WITHINGS = "withings"


class Granularity(str, Enum):
    """Value of the ``granularity`` metadata tag."""

    DAILY_TOTAL = "daily_total"
    SAMPLE = "sample"


# ---------------------------------------------------------------------------
# Ingestion schemas
# ---------------------------------------------------------------------------

class HealthMetricIn(BaseModel):
    """A single reading as sent by the device (owner given separately)."""

    metric_type: HealthMetricType
    value: float = Field(..., description="Numeric magnitude of the reading")
    unit: str = Field(..., min_length=1, max_length=50, description="Unit (steps, kcal, bpm, mmHg, lbs, hours...)")
    recorded_at: datetime.datetime = Field(..., description="Instant the reading pertains to")
    source: HealthMetricSource = HealthMetricSource.APPLE_HEALTH
    source_device: Optional[str] = Field(None, max_length=200)
    metadata: dict[str, Any] = Field(default_factory=dict,
                                     description="Free-form bag; may carry 'granularity' (daily_total | sample)")

    @field_validator("recorded_at")
    @classmethod
    def _assume_utc(cls, value: datetime.datetime) -> datetime.datetime:
        """Naive timestamps are taken as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value

    @property
    def sort_key(self) -> tuple[str, float, str]:
        """Canonical lock order: type and source as strings, instant as epoch seconds."""
        return self.metric_type.value, self.recorded_at.timestamp(), self.source.value


class HealthMetricCreate(HealthMetricIn):
    """Schema for storing a single reading."""

    user_id: str = Field(..., min_length=1, max_length=64)


class HealthMetricBatch(BaseModel):
    """Schema for a batch sync from the iOS app."""

    user_id: str = Field(..., min_length=1, max_length=64)
    metrics: list[HealthMetricIn] = Field(..., min_length=1, max_length=1000)


class BatchSyncResult(BaseModel):
    """Outcome of a batch sync."""

    inserted: int = 0
    updated: int = 0
    total: int = 0


# ---------------------------------------------------------------------------
# Query schemas
# ---------------------------------------------------------------------------

class HealthMetricResponse(BaseModel):
    """Raw reading in API responses."""

    id: int
    user_id: str
    metric_type: str
    value: float
    unit: str
    recorded_at: datetime.datetime
    source: str
    source_device: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metric_metadata")
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class MetricQuery(BaseModel):
    """Filters for raw metric listing."""

    metric_type: Optional[HealthMetricType] = None
    source: Optional[HealthMetricSource] = None
    start_date: Optional[datetime.datetime] = None
    end_date: Optional[datetime.datetime] = None
    limit: int = Field(100, ge=1, le=1000)
    offset: int = Field(0, ge=0)


class MetricPage(BaseModel):
    """A page of raw readings plus the unpaginated total."""

    metrics: list[HealthMetricResponse]
    total: int
    limit: int
    offset: int


# ---------------------------------------------------------------------------
# Daily summary schemas
# ---------------------------------------------------------------------------

class ActivitySample(BaseModel):
    """A single point reading of a cumulative metric."""

    value: float
    recorded_at: datetime.datetime


class BloodPressureSummary(BaseModel):
    systolic: float
    diastolic: float
    recorded_at: datetime.datetime


class LatestReading(BaseModel):
    """Latest reading of an instantaneous metric."""

    value: float
    unit: Optional[str] = None
    recorded_at: datetime.datetime


class HeartRateSummary(BaseModel):
    avg: int
    min: float
    max: float


class SleepSummary(BaseModel):
    hours: float
    recorded_at: datetime.datetime


class CumulativeSummary(BaseModel):
    """Daily total of a cumulative metric (steps, active energy, exercise minutes).

    ``value`` is always the authoritative total; ``samples`` carries the point
    readings that accompany it, for time-of-day patterns only.
    """

    value: float
    unit: Optional[str] = None
    recorded_at: Optional[datetime.datetime] = None
    samples: Optional[list[ActivitySample]] = None


class DailyHealthSummary(BaseModel):
    """A civil day's snapshot assembled from raw readings (never persisted)."""

    date: datetime.date
    blood_pressure: Optional[BloodPressureSummary] = None
    weight: Optional[LatestReading] = None
    steps: Optional[CumulativeSummary] = None
    heart_rate: Optional[HeartRateSummary] = None
    resting_heart_rate: Optional[LatestReading] = None
    sleep_duration: Optional[SleepSummary] = None
    active_energy: Optional[CumulativeSummary] = None
    exercise_minutes: Optional[CumulativeSummary] = None
    blood_oxygen: Optional[LatestReading] = None
    respiratory_rate: Optional[LatestReading] = None
    body_temperature: Optional[LatestReading] = None

    def is_empty(self) -> bool:
        return not any(value is not None for name, value in self if name != "date")


class SummaryText(BaseModel):
    date: datetime.date
    text: str
