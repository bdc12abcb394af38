"""
Prompt formatting for daily health summaries.

Renders a ``DailyHealthSummary`` as the plain-text block the prompt builder
embeds verbatim, one indented line per metric present.
"""

from __future__ import annotations

import datetime

from app.health.patterns import bucket_samples, format_quantity
from app.schemas.health import CumulativeSummary, DailyHealthSummary

NO_DATA_LINE = "  (No health data recorded for this day)"


def _number(value: float) -> str:
    """``72`` for whole values, ``180.4`` otherwise."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _pattern_line(metric: CumulativeSummary, zone: datetime.tzinfo) -> list[str]:
    pattern = bucket_samples(metric.samples or [], zone)
    return [f"    By time: {pattern}"] if pattern else []


def format_summary(summary: DailyHealthSummary, zone: datetime.tzinfo) -> str:
    """Render ``summary``; time-of-day patterns use ``zone``'s wall clock."""
    lines = [f"📅 Health Data for {summary.date.isoformat()}:"]

    if summary.blood_pressure:
        bp = summary.blood_pressure
        lines.append(f"  Blood Pressure: {_number(bp.systolic)}/{_number(bp.diastolic)} mmHg")
    if summary.weight:
        lines.append(f"  Weight: {_number(summary.weight.value)} {summary.weight.unit}")
    if summary.steps:
        lines.append(f"  Steps: {format_quantity(summary.steps.value)}")
        lines.extend(_pattern_line(summary.steps, zone))
    if summary.heart_rate:
        hr = summary.heart_rate
        lines.append(f"  Heart Rate: avg {hr.avg} bpm ({_number(hr.min)}-{_number(hr.max)})")
    if summary.resting_heart_rate:
        lines.append(f"  Resting HR: {_number(summary.resting_heart_rate.value)} bpm")
    if summary.sleep_duration:
        lines.append(f"  Sleep: {summary.sleep_duration.hours:.1f} hours")
    if summary.active_energy:
        energy = summary.active_energy
        lines.append(f"  Active Energy: {_number(energy.value)} {energy.unit or 'kcal'}")
        lines.extend(_pattern_line(energy, zone))
    if summary.exercise_minutes:
        lines.append(f"  Exercise: {_number(summary.exercise_minutes.value)} minutes")
        lines.extend(_pattern_line(summary.exercise_minutes, zone))
    if summary.blood_oxygen:
        lines.append(f"  Blood Oxygen: {_number(summary.blood_oxygen.value)}%")
    if summary.respiratory_rate:
        lines.append(f"  Respiratory Rate: {_number(summary.respiratory_rate.value)} breaths/min")
    if summary.body_temperature:
        temp = summary.body_temperature
        lines.append(f"  Body Temperature: {_number(temp.value)} {temp.unit or ''}".rstrip())

    if len(lines) == 1:
        lines.append(NO_DATA_LINE)

    return "\n".join(lines)
