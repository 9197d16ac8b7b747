"""Mines co-occurring trigger factors from the event history."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from hdi.domains.headache.domain_logic.correlation_analyzer import active_weather_conditions
from hdi.domains.headache.domain_logic.models import (
    CYCLE_FACTOR,
    CorrelationResult,
    DailyDataPoint,
    HEALTH_METRICS,
    HeadacheEvent,
    PersonalThresholds,
    TriggerCombination,
    WeatherConditionStat,
    in_hormonal_window,
)
from hdi.domains.headache.domain_logic.statistics_primitives import mean

logger = logging.getLogger(__name__)

KEY_DELIMITER = " + "
MIN_HEALTH_CORRELATION = 0.5
MIN_CONDITION_HEADACHE_RATE = 0.5
# Occurrences at which the frequency score saturates.
FREQUENCY_SATURATION = 10

_METRIC_BY_FACTOR = {factor: metric for metric, factor in HEALTH_METRICS.items()}


def combination_key(factors: Iterable[str]) -> str:
    """Order-independent key: sorted, de-duplicated names joined by " + "."""
    return KEY_DELIMITER.join(sorted({f for f in factors if f}))


def combination_risk_score(occurrences: int, total_intensity: float) -> float:
    frequency_score = min(occurrences / FREQUENCY_SATURATION, 1.0)
    intensity_score = (total_intensity / occurrences) / 10.0
    return (frequency_score + intensity_score) / 2.0


@dataclass
class _Accumulator:
    occurrences: int = 0
    total_intensity: float = 0.0
    dates: list[date] = field(default_factory=list)


class TriggerCombinationMiner:
    """Groups events by the exact set of factors active when they happened.

    Usage::

        miner = TriggerCombinationMiner()
        combos = miner.mine(events, history, correlations, conditions, thresholds)
    """

    def mine(
        self,
        events: Sequence[HeadacheEvent],
        history: Sequence[DailyDataPoint],
        correlations: Sequence[CorrelationResult],
        conditions: Sequence[WeatherConditionStat],
        thresholds: PersonalThresholds,
    ) -> list[TriggerCombination]:
        """Build per-event factor sets from the day's signals and aggregate them.

        A physiological factor counts when its correlation is significant and
        above 0.5 and the event day's reading is above the metric's mean. A
        weather condition counts when its headache rate is above 0.5 and it
        was present on the event day.
        """
        by_day = {p.day: p for p in history}
        strong_metrics = [
            c.factor
            for c in correlations
            if c.kind in ("health", "cyclic")
            and c.is_significant
            and c.correlation > MIN_HEALTH_CORRELATION
        ]
        risky_conditions = {
            c.condition for c in conditions if c.headache_rate > MIN_CONDITION_HEADACHE_RATE
        }
        metric_means = {
            metric: mean([p.health[metric] for p in history if metric in p.health])
            for metric in (_METRIC_BY_FACTOR.get(f) for f in strong_metrics)
            if metric is not None
        }

        occurrences = []
        for event in events:
            point = by_day.get(event.day)
            if point is None:
                continue
            factors = self.active_factors(
                point, strong_metrics, risky_conditions, thresholds, metric_means
            )
            occurrences.append((factors, event.intensity, event.day))
        return self.aggregate(occurrences)

    def active_factors(
        self,
        point: DailyDataPoint,
        strong_metrics: Sequence[str],
        risky_conditions: set[str],
        thresholds: PersonalThresholds,
        metric_means: dict[str, float],
    ) -> set[str]:
        factors: set[str] = set()
        for factor in strong_metrics:
            if factor == CYCLE_FACTOR:
                if point.cycle_day is not None and in_hormonal_window(point.cycle_day):
                    factors.add(factor)
                continue
            metric = _METRIC_BY_FACTOR.get(factor)
            if metric in point.health and point.health[metric] > metric_means.get(metric, 0.0):
                factors.add(factor)
        if point.weather is not None:
            for condition in active_weather_conditions(point.weather, thresholds):
                if condition in risky_conditions:
                    factors.add(condition)
        return factors

    def aggregate(
        self,
        occurrences: Iterable[tuple[Iterable[str], int, date]],
    ) -> list[TriggerCombination]:
        """Aggregate (factors, intensity, day) occurrences per combination key.

        Occurrences with no active factor are skipped. Sorted by descending
        risk score.
        """
        accumulators: dict[str, _Accumulator] = {}
        for factors, intensity, day in occurrences:
            key = combination_key(factors)
            if not key:
                continue
            acc = accumulators.setdefault(key, _Accumulator())
            acc.occurrences += 1
            acc.total_intensity += intensity
            acc.dates.append(day)

        combinations = [
            TriggerCombination(
                key=key,
                factors=key.split(KEY_DELIMITER),
                frequency=acc.occurrences,
                average_intensity=acc.total_intensity / acc.occurrences,
                risk_score=combination_risk_score(acc.occurrences, acc.total_intensity),
                last_occurrence=max(acc.dates),
            )
            for key, acc in accumulators.items()
        ]
        combinations.sort(key=lambda c: (-c.risk_score, c.key))
        logger.debug("Mined %d trigger combination(s)", len(combinations))
        return combinations
