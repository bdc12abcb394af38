"""
Daily aggregation — reduces a civil day's raw readings to a summary.

Each metric type has its own reduction policy:

- blood pressure:      latest systolic paired with latest diastolic
- weight, resting HR,
  SpO2, resp. rate,
  body temperature:    latest reading
- heart rate:          avg / min / max
- sleep duration:      sum of segments (hours)
- steps, active energy,
  exercise minutes:    cumulative-daily rule table (below)

Cumulative-daily rules
----------------------

Two generations of upstream data coexist for cumulative metrics:

1. **Tagged**: the device sends one pre-aggregated row per day with
   ``metadata.granularity == "daily_total"`` plus individual point readings
   tagged ``"sample"``.  The daily total is authoritative; samples only
   describe *when* the activity happened and are never added to it.
2. **Untagged legacy**: either one consolidated row stamped at local
   midnight, or a bag of fragments with no canonical total.

The rules are an ordered table of ``(predicate, reducer)`` pairs; the first
predicate that matches decides.  A new data format is supported by
inserting a rule, without re-deriving the existing fallbacks.
"""

from __future__ import annotations

import datetime
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, NamedTuple, Optional

from app.health.day_window import local_midnight, to_local
from app.schemas.health import (
    ActivitySample,
    BloodPressureSummary,
    CumulativeSummary,
    DailyHealthSummary,
    Granularity,
    HealthMetricType,
    HeartRateSummary,
    LatestReading,
    SleepSummary,
)

CUMULATIVE_METRICS: frozenset[str] = frozenset({
    HealthMetricType.STEPS.value,
    HealthMetricType.ACTIVE_ENERGY.value,
    HealthMetricType.EXERCISE_MINUTES.value,
})

# Summary field <- metric type, for types reduced to their latest reading
_LATEST_READING_FIELDS: dict[str, str] = {
    HealthMetricType.WEIGHT.value: "weight",
    HealthMetricType.RESTING_HEART_RATE.value: "resting_heart_rate",
    HealthMetricType.BLOOD_OXYGEN.value: "blood_oxygen",
    HealthMetricType.RESPIRATORY_RATE.value: "respiratory_rate",
    HealthMetricType.BODY_TEMPERATURE.value: "body_temperature",
}

# Cumulative totals reported as whole numbers
_ROUNDED_CUMULATIVE: frozenset[str] = frozenset({
    HealthMetricType.ACTIVE_ENERGY.value,
    HealthMetricType.EXERCISE_MINUTES.value,
})


# ======================================================================
# Readings
# ======================================================================

@dataclass(frozen=True)
class Reading:
    """A raw reading as seen by the aggregator."""

    metric_type: str
    value: float
    unit: str
    recorded_at: datetime.datetime
    source: str = "apple_health"
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def granularity(self) -> Optional[str]:
        return (self.metadata or {}).get("granularity")

    @property
    def key(self) -> tuple[str, datetime.datetime, str]:
        """Per-user dedup key."""
        return self.metric_type, self.recorded_at, self.source

    @classmethod
    def from_row(cls, row: Any) -> "Reading":
        recorded_at = row.recorded_at
        if recorded_at.tzinfo is None:
            recorded_at = recorded_at.replace(tzinfo=datetime.timezone.utc)
        return cls(
            metric_type=row.metric_type,
            value=float(row.value),
            unit=row.unit,
            recorded_at=recorded_at,
            source=row.source,
            metadata=dict(row.metric_metadata or {}),
        )


def dedupe(readings: Iterable[Reading]) -> list[Reading]:
    """Drop repeated keys (a row may come back from more than one query), newest first."""
    unique: dict[tuple, Reading] = {}
    for reading in readings:
        unique.setdefault(reading.key, reading)
    return sorted(unique.values(), key=lambda r: r.recorded_at, reverse=True)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ======================================================================
# Cumulative-daily rule table
# ======================================================================

class CumulativeContext(NamedTuple):
    """What the cumulative rules need to know about the day."""

    midnights: frozenset[datetime.datetime]


class CumulativeRule(NamedTuple):
    name: str
    applies: Callable[[list[Reading], CumulativeContext], bool]
    reduce: Callable[[list[Reading], CumulativeContext], CumulativeSummary]


def _daily_totals(readings: list[Reading]) -> list[Reading]:
    return [r for r in readings if r.granularity == Granularity.DAILY_TOTAL.value]


def _midnight_rows(readings: list[Reading], ctx: CumulativeContext) -> list[Reading]:
    return [r for r in readings if r.recorded_at in ctx.midnights]


def _use_daily_total(readings: list[Reading], ctx: CumulativeContext) -> CumulativeSummary:
    total = _daily_totals(readings)[0]
    samples = sorted(
        (r for r in readings if r.granularity == Granularity.SAMPLE.value),
        key=lambda r: r.recorded_at,
    )
    return CumulativeSummary(
        value=total.value,
        unit=total.unit,
        recorded_at=total.recorded_at,
        samples=[ActivitySample(value=r.value, recorded_at=r.recorded_at) for r in samples] or None,
    )


def _use_midnight_row(readings: list[Reading], ctx: CumulativeContext) -> CumulativeSummary:
    row = _midnight_rows(readings, ctx)[0]
    return CumulativeSummary(value=row.value, unit=row.unit, recorded_at=row.recorded_at)


def _sum_all(readings: list[Reading], ctx: CumulativeContext) -> CumulativeSummary:
    return CumulativeSummary(
        value=sum(r.value for r in readings),
        unit=readings[0].unit,
        recorded_at=readings[0].recorded_at,
    )


CUMULATIVE_RULES: list[CumulativeRule] = [
    # Tagged format: explicit daily total, samples for the time-of-day breakdown
    CumulativeRule("tagged_daily_total", lambda rs, ctx: bool(_daily_totals(rs)), _use_daily_total),
    # Legacy consolidated row stamped at midnight
    CumulativeRule("legacy_midnight_total", lambda rs, ctx: len(_midnight_rows(rs, ctx)) == 1, _use_midnight_row),
    # Legacy fragments without a canonical total
    CumulativeRule("legacy_sum", lambda rs, ctx: True, _sum_all),
]


def reduce_cumulative(
    readings: list[Reading], ctx: CumulativeContext, rules: list[CumulativeRule] = CUMULATIVE_RULES,
) -> CumulativeSummary:
    """Apply the first matching rule to one cumulative metric's readings."""
    for rule in rules:
        if rule.applies(readings, ctx):
            return rule.reduce(readings, ctx)
    raise ValueError("No cumulative rule matched")  # unreachable with a catch-all rule


# ======================================================================
# Summary
# ======================================================================

def _total_of_another_day(reading: Reading, day: datetime.date, anchor_zone: datetime.tzinfo) -> bool:
    """A daily total belongs to the anchor-zone date it is stamped on.

    The next day's total (00:00 in the anchor zone) can fall inside this
    civil day's window when the civil zone lags the anchor zone.  Untagged
    rows stamped at an anchor midnight are consolidated legacy totals and
    follow the same rule.
    """
    if reading.metric_type not in CUMULATIVE_METRICS:
        return False
    anchor_day = to_local(reading.recorded_at, anchor_zone).date()
    if anchor_day == day:
        return False
    if reading.granularity == Granularity.DAILY_TOTAL.value:
        return True
    return reading.granularity is None and reading.recorded_at == local_midnight(anchor_day, anchor_zone)


def summarize(
    day: datetime.date,
    readings: Iterable[Reading],
    zone: datetime.tzinfo,
    anchor_zone: datetime.tzinfo = datetime.timezone.utc,
) -> DailyHealthSummary:
    """Build the daily summary for ``day`` from its raw readings.

    ``zone`` is the civil timezone of the day; ``anchor_zone`` is the zone
    whose midnight the device stamps on daily totals.  A metric type with no
    readings is simply absent from the summary.
    """
    by_type: dict[str, list[Reading]] = defaultdict(list)
    for reading in dedupe(readings):
        if _total_of_another_day(reading, day, anchor_zone):
            continue
        by_type[reading.metric_type].append(reading)

    summary = DailyHealthSummary(date=day)

    systolic = by_type.get(HealthMetricType.BLOOD_PRESSURE_SYSTOLIC.value)
    diastolic = by_type.get(HealthMetricType.BLOOD_PRESSURE_DIASTOLIC.value)
    if systolic and diastolic:
        summary.blood_pressure = BloodPressureSummary(
            systolic=systolic[0].value, diastolic=diastolic[0].value, recorded_at=systolic[0].recorded_at,
        )

    for metric_type, attr in _LATEST_READING_FIELDS.items():
        entries = by_type.get(metric_type)
        if entries:
            latest = entries[0]
            setattr(summary, attr, LatestReading(value=latest.value, unit=latest.unit,
                                                 recorded_at=latest.recorded_at))

    heart_rate = by_type.get(HealthMetricType.HEART_RATE.value)
    if heart_rate:
        values = [r.value for r in heart_rate]
        summary.heart_rate = HeartRateSummary(
            avg=round_half_up(sum(values) / len(values)), min=min(values), max=max(values),
        )

    sleep = by_type.get(HealthMetricType.SLEEP_DURATION.value)
    if sleep:
        summary.sleep_duration = SleepSummary(hours=sum(r.value for r in sleep), recorded_at=sleep[0].recorded_at)

    ctx = CumulativeContext(midnights=frozenset({local_midnight(day, zone), local_midnight(day, anchor_zone)}))
    for metric_type in sorted(CUMULATIVE_METRICS):
        entries = by_type.get(metric_type)
        if not entries:
            continue
        total = reduce_cumulative(entries, ctx)
        if metric_type in _ROUNDED_CUMULATIVE:
            total.value = round_half_up(total.value)
        setattr(summary, metric_type, total)

    return summary
