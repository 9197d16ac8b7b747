"""Tests for personal threshold learning."""

from __future__ import annotations

from datetime import timedelta

from conftest import END, build_diary, history_of, storm_weather
from hdi.domains.headache.domain_logic.models import DailyDataPoint, PersonalThresholds
from hdi.domains.headache.domain_logic.threshold_learner import PersonalThresholdLearner


def _points(count: int, headache_weather) -> list[DailyDataPoint]:
    points = []
    for i in range(count):
        weather = headache_weather(i)
        points.append(DailyDataPoint(
            day=END - timedelta(days=count - 1 - i),
            had_headache=weather is not None,
            intensity=6 if weather is not None else None,
            has_signal_data=weather is not None,
            record_exists=True,
            weather=weather,
        ))
    return points


class TestPersonalThresholdLearner:
    def test_short_history_returns_defaults(self):
        events, observations = build_diary(days=29, headache_every=2)
        thresholds = PersonalThresholdLearner().learn(history_of(events, observations))
        assert thresholds == PersonalThresholds.defaults()
        assert not thresholds.learned

    def test_too_few_headache_days_returns_defaults(self):
        events, observations = build_diary(days=40)  # 8 headache days
        thresholds = PersonalThresholdLearner().learn(history_of(events, observations))
        assert not thresholds.learned

    def test_learns_from_headache_days(self):
        events, observations = build_diary(days=60, headache_every=3)
        thresholds = PersonalThresholdLearner().learn(history_of(events, observations))

        assert thresholds.learned
        assert thresholds.pressure_change == 6.0
        assert thresholds.temperature_change == 5.0  # 4.0 raised to the floor
        assert thresholds.humidity == 85.0
        assert thresholds.low_pressure == 1000.0

    def test_percentiles(self):
        def weather(i):
            if i % 3:
                return None
            k = i // 3  # 0..9
            return storm_weather(
                pressure_change_24h=-(3.0 + k),
                temperature_change_24h=5.0 + k,
                humidity=70.0 + k,
                pressure=1000.0 + k,
            )

        thresholds = PersonalThresholdLearner().learn(_points(30, weather))
        # 75th percentile index floor(9 * 0.75) = 6; inverted 25th index 9 - 2 = 7.
        assert thresholds.pressure_change == 9.0
        assert thresholds.temperature_change == 11.0
        assert thresholds.humidity == 76.0
        assert thresholds.low_pressure == 1007.0

    def test_values_are_clamped(self):
        def weather(i):
            if i % 2:
                return None
            return storm_weather(
                pressure_change_24h=0.5,
                temperature_change_24h=1.0,
                humidity=99.0,
                pressure=960.0,
            )

        thresholds = PersonalThresholdLearner().learn(_points(30, weather))
        assert thresholds.pressure_change == 2.0
        assert thresholds.temperature_change == 5.0
        assert thresholds.humidity == 90.0
        assert thresholds.low_pressure == 990.0
