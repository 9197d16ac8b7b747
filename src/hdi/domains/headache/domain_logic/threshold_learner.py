"""Learns personal weather trigger thresholds from headache days."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hdi.domains.headache.domain_logic.models import DailyDataPoint, PersonalThresholds
from hdi.domains.headache.domain_logic.statistics_primitives import percentile

logger = logging.getLogger(__name__)

MIN_HISTORY_POINTS = 30
MIN_HEADACHE_DAYS = 10

# Floors keep sparse data from producing a near-zero threshold.
MIN_PRESSURE_CHANGE = 2.0
MIN_TEMPERATURE_CHANGE = 5.0
HUMIDITY_RANGE = (60.0, 90.0)
MIN_LOW_PRESSURE = 990.0


class PersonalThresholdLearner:
    """Derives thresholds from percentiles of headache-day weather."""

    def learn(self, history: Sequence[DailyDataPoint]) -> PersonalThresholds:
        """Return learned thresholds, or the defaults when data is too thin."""
        if len(history) < MIN_HISTORY_POINTS:
            logger.debug("Threshold learning skipped: %d history points", len(history))
            return PersonalThresholds.defaults()

        headache_days = [p.weather for p in history if p.had_headache and p.weather is not None]
        if len(headache_days) < MIN_HEADACHE_DAYS:
            logger.debug("Threshold learning skipped: %d headache days", len(headache_days))
            return PersonalThresholds.defaults()

        pressure_change = percentile([abs(w.pressure_change_24h) for w in headache_days], 0.75)
        temperature_change = percentile(
            [abs(w.temperature_change_24h) for w in headache_days], 0.75
        )
        humidity = percentile([w.humidity for w in headache_days], 0.75)
        low_pressure = percentile(
            [w.pressure for w in headache_days], 0.25, invert_direction=True
        )

        low, high = HUMIDITY_RANGE
        thresholds = PersonalThresholds(
            pressure_change=max(pressure_change, MIN_PRESSURE_CHANGE),
            temperature_change=max(temperature_change, MIN_TEMPERATURE_CHANGE),
            humidity=min(max(humidity, low), high),
            low_pressure=max(low_pressure, MIN_LOW_PRESSURE),
            learned=True,
        )
        logger.info("Learned personal thresholds from %d headache days", len(headache_days))
        return thresholds
