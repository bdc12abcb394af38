"""
Health metric database model.

Defines the health_metrics table: one row per raw reading synced from a
device (Apple HealthKit, Oura Ring, Withings) or entered manually.
"""

import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, Index, Numeric, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# Columns of the dedup key, in the order batches are sorted by before writing
DEDUP_KEY = ("user_id", "metric_type", "recorded_at", "source")


class HealthMetric(SQLModel, table=True):
    """
    A single raw health reading.

    Rows are only ever written through the dedup upsert: re-syncing the same
    (user, type, instant, source) updates the row in place.
    """
    __tablename__ = "health_metrics"
    __table_args__ = (
        Index("uq_health_metrics_dedup", *DEDUP_KEY, unique=True),
        Index("ix_health_metrics_user_type_date", "user_id", "metric_type", "recorded_at"),
        Index("ix_health_metrics_user_date", "user_id", "recorded_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=64, nullable=False)

    metric_type: str = Field(max_length=100, nullable=False)
    value: float = Field(sa_column=Column(Numeric(asdecimal=False), nullable=False))
    unit: str = Field(max_length=50, nullable=False)

    # Instant the reading pertains to, not insertion time
    recorded_at: datetime.datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))

    source: str = Field(default="apple_health", max_length=50, nullable=False)
    source_device: Optional[str] = Field(default=None, max_length=200)

    # ``metadata`` is reserved on declarative classes, hence the attribute name
    metric_metadata: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("metadata", JSON().with_variant(JSONB(), "postgresql"), key="metric_metadata",
                         nullable=False, server_default="{}"),
    )

    # Timestamps
    created_at: Optional[datetime.datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()))
    updated_at: Optional[datetime.datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()))

    @property
    def granularity(self) -> Optional[str]:
        """The ``granularity`` tag (``daily_total`` / ``sample``) if present."""
        return (self.metric_metadata or {}).get("granularity")
