"""What would the health loop see for 2026-02-17?

Builds a day of mixed-generation readings in memory (tagged daily totals
with samples, a legacy midnight row, heart-rate and sleep segments) and
prints the summary text exactly as the prompt builder receives it.
No database needed.

Usage:
    python scripts/simulate_summary.py
"""

import datetime
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.health.aggregation import Reading, summarize
from app.health.day_window import day_bounds, get_zone
from app.health.formatting import format_summary

DAY = datetime.date(2026, 2, 17)
ZONE = get_zone("America/Chicago")


def _at(hhmm: str) -> datetime.datetime:
    """UTC instant for a UTC wall-clock time on DAY (next day if before 06:00)."""
    hour, minute = (int(part) for part in hhmm.split(":"))
    day = DAY + datetime.timedelta(days=1) if hour < 6 else DAY
    return datetime.datetime(day.year, day.month, day.day, hour, minute, tzinfo=datetime.timezone.utc)


RAW_DATA = [
    # (metric_type, value, unit, recorded_at UTC, granularity)
    ("steps", 5900, "steps", datetime.datetime(2026, 2, 17, tzinfo=datetime.timezone.utc), "daily_total"),
    ("steps", 1200, "steps", _at("14:15"), "sample"),
    ("steps", 2300, "steps", _at("18:30"), "sample"),
    ("steps", 2400, "steps", _at("22:45"), "sample"),
    ("active_energy", 420, "kcal", datetime.datetime(2026, 2, 17, tzinfo=datetime.timezone.utc), "daily_total"),
    ("active_energy", 150, "kcal", _at("13:00"), "sample"),
    ("active_energy", 270, "kcal", _at("23:30"), "sample"),
    ("exercise_minutes", 45, "minutes", _at("06:00"), None),
    ("heart_rate", 64, "bpm", _at("07:10"), None),
    ("heart_rate", 118, "bpm", _at("18:40"), None),
    ("heart_rate", 71, "bpm", _at("02:05"), None),
    ("resting_heart_rate", 58, "bpm", _at("12:00"), None),
    ("sleep_duration", 5.5, "hours", _at("12:30"), None),
    ("sleep_duration", 1.75, "hours", _at("13:10"), None),
    ("weight", 181.4, "lbs", _at("13:45"), None),
    ("blood_pressure_systolic", 122, "mmHg", _at("13:50"), None),
    ("blood_pressure_diastolic", 79, "mmHg", _at("13:50"), None),
]


if __name__ == "__main__":
    start, end = day_bounds(DAY, ZONE)
    print("=" * 60)
    print(f"Civil day {DAY} in {ZONE.key}: [{start.isoformat()}, {end.isoformat()})")
    print("=" * 60)

    readings = [
        Reading(metric_type=metric_type, value=value, unit=unit, recorded_at=recorded_at,
                metadata={"granularity": granularity} if granularity else {})
        for metric_type, value, unit, recorded_at, granularity in RAW_DATA
    ]
    summary = summarize(DAY, readings, ZONE)

    print()
    print(format_summary(summary, ZONE))
