"""Tests for the daily history builder, signal snapshots and input records."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import END, build_diary, calm_weather, history_of, make_event
from hdi.domains.headache.domain_logic.history import build_daily_history
from hdi.domains.headache.domain_logic.models import (
    DailyDataPoint,
    DailyObservation,
    HeadacheEvent,
    factor_label,
    in_hormonal_window,
    normalize_cycle_day,
)
from hdi.domains.headache.domain_logic.signals import (
    advance_cycle_day,
    snapshot_from_history,
    summarize_samples,
)


class TestHeadacheEvent:
    def test_intensity_range_enforced(self):
        with pytest.raises(ValueError, match="between 1 and 10"):
            make_event(END, intensity=0)
        with pytest.raises(ValueError):
            make_event(END, intensity=11)

    def test_end_before_start_rejected(self):
        start = datetime(2026, 3, 1, 10, 0)
        with pytest.raises(ValueError, match="precede"):
            HeadacheEvent(start=start, intensity=5, end=start - timedelta(minutes=1))

    def test_ongoing_and_duration(self):
        event = make_event(END, hour=8)
        assert event.is_ongoing
        assert event.duration is None
        event.end_at(datetime.combine(END, datetime.min.time()).replace(hour=11))
        assert not event.is_ongoing
        assert event.duration == timedelta(hours=3)

    def test_auto_end_only_for_earlier_days(self):
        event = make_event(END - timedelta(days=1))
        assert event.should_auto_end(END)
        assert not make_event(END).should_auto_end(END)
        assert event.auto_end_time() == datetime(2026, 3, 30, 23, 59, 59)

    def test_all_triggers_merges_custom(self):
        event = make_event(END, triggers={"stress"}, custom_triggers={"perfume"})
        assert event.all_triggers == {"stress", "perfume"}


class TestDailyHistory:
    def test_one_point_per_day_sorted(self):
        events, observations = build_diary(days=10)
        history = history_of(events, observations)
        assert len(history) == 10
        assert [p.day for p in history] == sorted(p.day for p in history)

    def test_max_intensity_per_day(self):
        events = [make_event(END, 4, hour=8), make_event(END, 9, hour=15)]
        history = build_daily_history(events, [])
        assert len(history) == 1
        assert history[0].intensity == 9
        assert history[0].had_headache
        assert history[0].record_exists
        assert not history[0].has_signal_data

    def test_window_and_end_filter(self):
        events, observations = build_diary(days=30)
        history = build_daily_history(
            events, observations, end=END - timedelta(days=5), window_days=10
        )
        assert len(history) == 10
        assert history[-1].day == END - timedelta(days=5)
        assert history[0].day == END - timedelta(days=14)

    def test_cycle_day_alone_is_signal(self):
        history = build_daily_history([], [DailyObservation(day=END, cycle_day=3)])
        assert history[0].has_signal_data

    def test_long_cycle_day_reads_as_final_day(self):
        history = build_daily_history([], [DailyObservation(day=END, cycle_day=35)])
        assert history[0].cycle_day == 28


class TestSignals:
    def test_summarize_samples(self):
        sample = summarize_samples([50.0, 50.0, 60.0, 60.0])
        assert sample.value == 55.0
        assert sample.trend == pytest.approx(0.2)
        assert sample.variability == 5.0

    def test_summarize_single_reading_has_no_trend(self):
        sample = summarize_samples([42.0])
        assert sample.trend is None
        assert summarize_samples([]) is None

    def test_snapshot_from_history(self):
        observations = [
            DailyObservation(
                day=END - timedelta(days=3 - i),
                weather=calm_weather(temperature=10.0 + i),
                health={"heart_rate_variability": 40.0 + 10 * i},
                cycle_day=26 if i == 0 else None,
            )
            for i in range(4)
        ]
        snapshot = snapshot_from_history(build_daily_history([], observations))
        assert snapshot.weather.temperature == 13.0
        assert snapshot.health["heart_rate_variability"].value == 55.0
        # Day 26 three days before the newest day projects to day 1.
        assert snapshot.cycle_day == 1

    def test_snapshot_none_without_signals(self):
        assert snapshot_from_history([DailyDataPoint(day=END)]) is None

    @pytest.mark.parametrize(("day", "days", "expected"), [(1, 0, 1), (27, 1, 28), (28, 1, 1), (20, 30, 22), (35, 0, 28), (35, 1, 1)])
    def test_advance_cycle_day_wraps(self, day, days, expected):
        assert advance_cycle_day(day, days) == expected

    def test_hormonal_window(self):
        window = [d for d in range(1, 29) if in_hormonal_window(d)]
        assert window == [1, 2, 3, 4, 5, 25, 26, 27, 28]

    @pytest.mark.parametrize(("day", "expected"), [(1, 1), (28, 28), (35, 28), (0, 1)])
    def test_normalize_cycle_day(self, day, expected):
        assert normalize_cycle_day(day) == expected
        assert in_hormonal_window(normalize_cycle_day(day)) == in_hormonal_window(
            advance_cycle_day(day, 0)
        )


class TestFactorLabel:
    def test_camel_case_is_split(self):
        assert factor_label("PressureChange") == "pressure change"

    def test_overrides(self):
        assert factor_label("UVIndex") == "UV index"
