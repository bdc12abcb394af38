"""Tests for daily aggregation and the cumulative-daily rule table.

Pure unit tests: readings are built in memory, no repository involved.
"""

import datetime

import pytest

from app.health.aggregation import (
    CUMULATIVE_RULES,
    CumulativeContext,
    CumulativeRule,
    Reading,
    dedupe,
    reduce_cumulative,
    round_half_up,
    summarize,
)
from app.health.day_window import get_zone
from app.schemas.health import CumulativeSummary

UTC = datetime.timezone.utc
CHICAGO = get_zone("America/Chicago")
DAY = datetime.date(2026, 2, 17)
UTC_MIDNIGHT = datetime.datetime(2026, 2, 17, 0, 0, tzinfo=UTC)
LOCAL_MIDNIGHT = datetime.datetime(2026, 2, 17, 6, 0, tzinfo=UTC)  # 00:00 CST


# ======================================================================
# Helpers
# ======================================================================


def _at(hour: int, minute: int = 0) -> datetime.datetime:
    return datetime.datetime(2026, 2, 17, hour, minute, tzinfo=UTC)


def _reading(metric_type, value, recorded_at, granularity=None, unit="steps", source="apple_health"):
    return Reading(
        metric_type=metric_type,
        value=value,
        unit=unit,
        recorded_at=recorded_at,
        source=source,
        metadata={"granularity": granularity} if granularity else {},
    )


def _summarize(*readings):
    return summarize(DAY, list(readings), CHICAGO)


# ======================================================================
# Cumulative-daily policy
# ======================================================================


class TestTaggedDailyTotal:
    def test_daily_total_wins_and_samples_are_attached(self):
        summary = _summarize(
            _reading("steps", 1200, _at(8, 15), "sample"),
            _reading("steps", 2300, _at(12, 30), "sample"),
            _reading("steps", 2400, _at(16, 45), "sample"),
            _reading("steps", 5900, UTC_MIDNIGHT, "daily_total"),
        )

        assert summary.steps.value == 5900
        assert [s.value for s in summary.steps.samples] == [1200, 2300, 2400]

    def test_samples_are_chronological(self):
        summary = _summarize(
            _reading("steps", 2400, _at(16, 45), "sample"),
            _reading("steps", 5900, UTC_MIDNIGHT, "daily_total"),
            _reading("steps", 1200, _at(8, 15), "sample"),
        )
        times = [s.recorded_at for s in summary.steps.samples]
        assert times == sorted(times)

    def test_daily_total_without_samples(self):
        summary = _summarize(_reading("steps", 3200, UTC_MIDNIGHT, "daily_total"))
        assert summary.steps.value == 3200
        assert summary.steps.samples is None

    def test_untagged_rows_are_neither_summed_nor_attached(self):
        summary = _summarize(
            _reading("steps", 5900, UTC_MIDNIGHT, "daily_total"),
            _reading("steps", 300, _at(9)),
        )
        assert summary.steps.value == 5900
        assert summary.steps.samples is None

    def test_duplicate_daily_total_counted_once(self):
        total = _reading("steps", 5900, UTC_MIDNIGHT, "daily_total")
        summary = _summarize(total, _reading("steps", 1200, _at(8, 15), "sample"), total)

        assert summary.steps.value == 5900
        assert len(summary.steps.samples) == 1

    def test_next_days_total_is_ignored(self):
        # 00:00Z on the 18th falls at 18:00 CST on the 17th
        next_total = _reading("steps", 8100, datetime.datetime(2026, 2, 18, tzinfo=UTC), "daily_total")
        summary = _summarize(next_total, _reading("steps", 5900, UTC_MIDNIGHT, "daily_total"))
        assert summary.steps.value == 5900

    def test_next_days_untagged_midnight_total_is_not_summed(self):
        summary = _summarize(
            _reading("steps", 300, _at(15)),
            _reading("steps", 450, _at(20, 30)),
            _reading("steps", 8000, datetime.datetime(2026, 2, 18, tzinfo=UTC)),
        )
        assert summary.steps.value == 750

    def test_active_energy_and_exercise_minutes(self):
        summary = _summarize(
            _reading("active_energy", 150, _at(7), "sample", unit="kcal"),
            _reading("active_energy", 270, _at(17, 30), "sample", unit="kcal"),
            _reading("active_energy", 420, UTC_MIDNIGHT, "daily_total", unit="kcal"),
            _reading("exercise_minutes", 45, UTC_MIDNIGHT, "daily_total", unit="minutes"),
        )

        assert summary.active_energy.value == 420
        assert summary.active_energy.unit == "kcal"
        assert len(summary.active_energy.samples) == 2
        assert summary.exercise_minutes.value == 45
        assert summary.exercise_minutes.samples is None


class TestLegacyFallbacks:
    def test_midnight_row_wins_over_fragment(self):
        summary = _summarize(
            _reading("steps", 7500, LOCAL_MIDNIGHT),
            _reading("steps", 200, _at(14)),
        )
        assert summary.steps.value == 7500
        assert summary.steps.samples is None

    def test_anchor_midnight_row_counts_as_legacy_total(self):
        summary = _summarize(
            _reading("steps", 7500, UTC_MIDNIGHT),
            _reading("steps", 200, _at(14)),
        )
        assert summary.steps.value == 7500

    def test_sum_when_no_midnight_row(self):
        summary = _summarize(
            _reading("steps", 300, _at(9)),
            _reading("steps", 450, _at(14, 30)),
        )
        assert summary.steps.value == 750
        assert summary.steps.samples is None

    def test_single_row_used_as_is(self):
        assert _summarize(_reading("steps", 4321, _at(11))).steps.value == 4321

    def test_two_midnight_rows_fall_through_to_sum(self):
        summary = _summarize(
            _reading("steps", 7000, LOCAL_MIDNIGHT),
            _reading("steps", 500, UTC_MIDNIGHT),
            _reading("steps", 100, _at(14)),
        )
        assert summary.steps.value == 7600

    def test_energy_total_is_rounded(self):
        summary = _summarize(
            _reading("active_energy", 120.25, _at(9), unit="kcal"),
            _reading("active_energy", 80.3, _at(15), unit="kcal"),
        )
        assert summary.active_energy.value == 201


class TestRuleTable:
    def test_rule_order(self):
        assert [rule.name for rule in CUMULATIVE_RULES] == [
            "tagged_daily_total",
            "legacy_midnight_total",
            "legacy_sum",
        ]

    def test_new_rule_can_be_inserted_ahead(self):
        manual_first = CumulativeRule(
            "manual_override",
            lambda rs, ctx: any(r.source == "manual" for r in rs),
            lambda rs, ctx: CumulativeSummary(value=next(r.value for r in rs if r.source == "manual")),
        )
        readings = [
            _reading("steps", 5900, UTC_MIDNIGHT, "daily_total"),
            _reading("steps", 8000, _at(20), source="manual"),
        ]
        ctx = CumulativeContext(midnights=frozenset({UTC_MIDNIGHT}))

        assert reduce_cumulative(readings, ctx).value == 5900
        assert reduce_cumulative(readings, ctx, [manual_first, *CUMULATIVE_RULES]).value == 8000


# ======================================================================
# Other metric policies
# ======================================================================


class TestInstantaneousMetrics:
    def test_blood_pressure_pairs_latest_readings(self):
        summary = _summarize(
            _reading("blood_pressure_systolic", 130, _at(8), unit="mmHg"),
            _reading("blood_pressure_systolic", 121, _at(19), unit="mmHg"),
            _reading("blood_pressure_diastolic", 85, _at(8), unit="mmHg"),
            _reading("blood_pressure_diastolic", 78, _at(19), unit="mmHg"),
        )
        assert (summary.blood_pressure.systolic, summary.blood_pressure.diastolic) == (121, 78)
        assert summary.blood_pressure.recorded_at == _at(19)

    def test_blood_pressure_needs_both_sides(self):
        summary = _summarize(_reading("blood_pressure_systolic", 121, _at(19), unit="mmHg"))
        assert summary.blood_pressure is None

    def test_weight_is_latest(self):
        summary = _summarize(
            _reading("weight", 182.0, _at(8), unit="lbs"),
            _reading("weight", 181.4, _at(20), unit="lbs"),
        )
        assert summary.weight.value == 181.4
        assert summary.weight.unit == "lbs"

    def test_resting_heart_rate_is_latest(self):
        summary = _summarize(
            _reading("resting_heart_rate", 61, _at(8), unit="bpm"),
            _reading("resting_heart_rate", 58, _at(12), unit="bpm"),
        )
        assert summary.resting_heart_rate.value == 58

    def test_heart_rate_avg_min_max(self):
        summary = _summarize(
            _reading("heart_rate", 60, _at(8), unit="bpm"),
            _reading("heart_rate", 75, _at(12), unit="bpm"),
            _reading("heart_rate", 120, _at(18), unit="bpm"),
        )
        assert summary.heart_rate.model_dump() == {"avg": 85, "min": 60, "max": 120}

    def test_heart_rate_average_rounds_half_up(self):
        summary = _summarize(
            _reading("heart_rate", 60, _at(8), unit="bpm"),
            _reading("heart_rate", 61, _at(9), unit="bpm"),
        )
        assert summary.heart_rate.avg == 61

    def test_sleep_segments_are_summed(self):
        summary = _summarize(
            _reading("sleep_duration", 5.5, _at(12), unit="hours"),
            _reading("sleep_duration", 1.75, _at(13), unit="hours"),
        )
        assert summary.sleep_duration.hours == pytest.approx(7.25)

    def test_missing_types_are_omitted(self):
        summary = _summarize(_reading("weight", 181.4, _at(20), unit="lbs"))
        assert summary.steps is None
        assert summary.heart_rate is None
        assert summary.sleep_duration is None
        assert not summary.is_empty()

    def test_no_readings_gives_empty_summary(self):
        summary = _summarize()
        assert summary.date == DAY
        assert summary.is_empty()


# ======================================================================
# Helpers
# ======================================================================


class TestHelpers:
    def test_dedupe_keeps_one_per_key_newest_first(self):
        a = _reading("steps", 1, _at(8))
        b = _reading("steps", 2, _at(9))
        assert dedupe([a, b, a]) == [b, a]

    def test_same_instant_different_source_is_distinct(self):
        a = _reading("steps", 1, _at(8))
        b = _reading("steps", 2, _at(8), source="manual")
        assert len(dedupe([a, b])) == 2

    @pytest.mark.parametrize("value, expected", [(0.5, 1), (1.49, 1), (2.5, 3), (84.99, 85)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected
