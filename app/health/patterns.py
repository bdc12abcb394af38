"""Time-of-day activity patterns for cumulative metrics."""

from __future__ import annotations

import datetime
from collections import defaultdict
from typing import Iterable

from app.health.day_window import to_local
from app.schemas.health import ActivitySample

BUCKET_HOURS = 3
BUCKET_SEPARATOR = " | "

# A single reading carries no pattern
MIN_SAMPLES = 2


def format_quantity(value: float) -> str:
    """Whole, thousands-grouped number (``1,200``)."""
    return f"{int(round(value)):,}"


def bucket_samples(samples: Iterable[ActivitySample], zone: datetime.tzinfo) -> str:
    """Sum samples into 3-hour local windows and render the non-empty ones.

    Example: ``"06-09h: 1,200 | 12-15h: 2,300 | 15-18h: 2,400"``.
    Returns an empty string for fewer than two samples.
    """
    samples = list(samples or [])
    if len(samples) < MIN_SAMPLES:
        return ""

    buckets: dict[int, float] = defaultdict(float)
    for sample in samples:
        hour = to_local(sample.recorded_at, zone).hour
        buckets[hour - hour % BUCKET_HOURS] += sample.value

    return BUCKET_SEPARATOR.join(
        f"{start:02d}-{start + BUCKET_HOURS:02d}h: {format_quantity(total)}"
        for start, total in sorted(buckets.items())
    )
