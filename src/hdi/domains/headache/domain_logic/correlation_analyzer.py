"""Per-factor correlation analysis against daily headache intensity.

Every physiological metric and weather variable present in the history is
correlated with the intensity series (0 on recorded headache-free days).
The menstrual cycle enters as a hormonal-window indicator. Weather
conditions are also summarised as headache rates, which feed the
combination miner and the combined weather/health correlations.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from hdi.core.catalog.registry import CatalogRegistry
from hdi.domains.headache.domain_logic.models import (
    CYCLE_FACTOR,
    CombinedCorrelation,
    CorrelationResult,
    DailyDataPoint,
    HEALTH_METRICS,
    PersonalThresholds,
    SignalSnapshot,
    WEATHER_VARIABLES,
    WeatherConditionStat,
    WeatherFeatures,
    factor_label,
    in_hormonal_window,
)
from hdi.domains.headache.domain_logic.statistics_primitives import (
    approximate_p_value,
    is_significant,
    pearson_correlation,
)

logger = logging.getLogger(__name__)

MIN_EVENTS = 3
MIN_PAIRED_DAYS = 3

# Canonical |r| breakpoints: <0.3 low, <0.5 moderate, <0.7 high, else very high.
CORRELATION_TIERS = ((0.3, "low"), (0.5, "moderate"), (0.7, "high"))

HIGH_WIND_SPEED = 25.0
# A condition must be seen on this many recorded days before its rate counts.
MIN_CONDITION_DAYS = 3

INSUFFICIENT_DATA_FACTOR = "InsufficientData"
NO_DATA_SOURCE_FACTOR = "NoDataSource"


def correlation_risk_tier(correlation: float) -> str:
    magnitude = abs(correlation)
    for upper, tier in CORRELATION_TIERS:
        if magnitude < upper:
            return tier
    return "very_high"


# ---------------------------------------------------------------------------
# Weather conditions
# ---------------------------------------------------------------------------

def sky_condition_factor(condition: str) -> str:
    """Factor name for a free-text sky condition, e.g. "light rain" becomes LightRain."""
    return "".join(part.capitalize() for part in re.split(r"[\s_\-]+", condition.strip()) if part)


def active_weather_conditions(
    weather: WeatherFeatures,
    thresholds: PersonalThresholds,
) -> list[str]:
    """Weather conditions present on a day, judged against personal thresholds."""
    conditions = []
    if abs(weather.pressure_change_24h) > thresholds.pressure_change:
        conditions.append("PressureChange")
    if abs(weather.temperature_change_24h) > thresholds.temperature_change:
        conditions.append("TemperatureChange")
    if weather.humidity > thresholds.humidity:
        conditions.append("Humidity")
    if weather.pressure < thresholds.low_pressure:
        conditions.append("LowPressure")
    if weather.wind_speed >= HIGH_WIND_SPEED:
        conditions.append("HighWind")
    if weather.condition:
        conditions.append(sky_condition_factor(weather.condition))
    return conditions


def weather_condition_stats(
    history: Sequence[DailyDataPoint],
    thresholds: PersonalThresholds,
) -> list[WeatherConditionStat]:
    """Headache rate per weather condition, highest rate first."""
    active: dict[str, int] = {}
    with_headache: dict[str, int] = {}
    for point in history:
        if point.weather is None or not point.record_exists:
            continue
        for condition in active_weather_conditions(point.weather, thresholds):
            active[condition] = active.get(condition, 0) + 1
            if point.had_headache:
                with_headache[condition] = with_headache.get(condition, 0) + 1

    stats = [
        WeatherConditionStat(
            condition=condition,
            active_days=days,
            headache_days=with_headache.get(condition, 0),
            headache_rate=with_headache.get(condition, 0) / days,
        )
        for condition, days in active.items()
        if days >= MIN_CONDITION_DAYS
    ]
    stats.sort(key=lambda s: (-s.headache_rate, s.condition))
    return stats


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class FactorCorrelationAnalyzer:
    """Correlates every available factor with headache intensity.

    Usage::

        analyzer = FactorCorrelationAnalyzer(catalog)
        results = analyzer.analyze(history, event_count=len(events))
    """

    def __init__(self, catalog: CatalogRegistry) -> None:
        self._text = catalog.require("correlation_description")

    def analyze(
        self,
        history: Sequence[DailyDataPoint],
        event_count: int,
        snapshot: SignalSnapshot | None = None,
    ) -> list[CorrelationResult]:
        """Return correlations sorted by descending |r|.

        Never returns an empty list: with too few events or no signals a
        single placeholder result explains what is missing.
        """
        if event_count < MIN_EVENTS:
            return [self.insufficient_placeholder(MIN_EVENTS - event_count)]

        recorded = [p for p in history if p.record_exists]
        if not any(p.has_signal_data for p in recorded):
            return [self.no_data_source_placeholder()]

        results: list[CorrelationResult] = []
        for metric, factor in HEALTH_METRICS.items():
            pairs = [(p.health[metric], _intensity(p)) for p in recorded if metric in p.health]
            trend = None
            if snapshot is not None and metric in snapshot.health:
                trend = snapshot.health[metric].trend
            result = self._correlate(factor, pairs, "health", trend=trend)
            if result is not None:
                results.append(result)

        for factor, attr in WEATHER_VARIABLES.items():
            pairs = [
                (getattr(p.weather, attr), _intensity(p))
                for p in recorded
                if p.weather is not None
            ]
            result = self._correlate(factor, pairs, "weather")
            if result is not None:
                results.append(result)

        cycle_pairs = [
            (1.0 if in_hormonal_window(p.cycle_day) else 0.0, _intensity(p))
            for p in recorded
            if p.cycle_day is not None
        ]
        result = self._correlate(CYCLE_FACTOR, cycle_pairs, "cyclic")
        if result is not None:
            results.append(result)

        if not results:
            return [self.insufficient_placeholder(MIN_PAIRED_DAYS)]

        results.sort(key=lambda r: abs(r.correlation), reverse=True)
        logger.info(
            "Correlated %d factor(s); %d significant",
            len(results),
            sum(1 for r in results if r.is_significant),
        )
        return results

    def combine(
        self,
        conditions: Sequence[WeatherConditionStat],
        correlations: Sequence[CorrelationResult],
    ) -> list[CombinedCorrelation]:
        """Pair each weather condition with each physiological correlation.

        combined = (condition headache rate + health correlation) / 2,
        strongest first.
        """
        combined = []
        for condition in conditions:
            for corr in correlations:
                if corr.kind not in ("health", "cyclic"):
                    continue
                value = (condition.headache_rate + corr.correlation) / 2
                combined.append(
                    CombinedCorrelation(
                        weather_condition=condition.condition,
                        health_factor=corr.factor,
                        weather_rate=condition.headache_rate,
                        health_correlation=corr.correlation,
                        combined_value=value,
                        description=self._text.phrase(
                            "combined",
                            weather_label=factor_label(condition.condition),
                            health_label=factor_label(corr.factor),
                            combined=value,
                        ),
                    )
                )
        combined.sort(key=lambda c: c.combined_value, reverse=True)
        return combined

    def insufficient_placeholder(self, needed: int) -> CorrelationResult:
        return self._placeholder(
            INSUFFICIENT_DATA_FACTOR, self._text.phrase("insufficient_data", needed=needed)
        )

    def no_data_source_placeholder(self) -> CorrelationResult:
        return self._placeholder(NO_DATA_SOURCE_FACTOR, self._text.phrase("no_data_source"))

    def _placeholder(self, factor: str, description: str) -> CorrelationResult:
        return CorrelationResult(
            factor=factor,
            correlation=0.0,
            p_value=1.0,
            sample_size=0,
            is_significant=False,
            risk_tier="low",
            description=description,
            kind="placeholder",
        )

    def _correlate(
        self,
        factor: str,
        pairs: list[tuple[float, float]],
        kind: str,
        trend: float | None = None,
    ) -> CorrelationResult | None:
        if len(pairs) < MIN_PAIRED_DAYS:
            return None
        xs = [x for x, _ in pairs]
        ys = [y for _, y in pairs]
        r = pearson_correlation(xs, ys)
        n = len(pairs)
        p_value = approximate_p_value(r, n)
        return CorrelationResult(
            factor=factor,
            correlation=r,
            p_value=p_value,
            sample_size=n,
            is_significant=is_significant(p_value, n),
            risk_tier=correlation_risk_tier(r),
            description=self._describe(factor, r, kind, trend),
            kind=kind,
        )

    def _describe(self, factor: str, r: float, kind: str, trend: float | None) -> str:
        label = factor_label(factor)
        if kind == "cyclic":
            return self._text.phrase("cyclic", correlation=r)
        if abs(r) < CORRELATION_TIERS[0][0]:
            text = self._text.phrase("weak", factor_label=label, correlation=r)
        elif r > 0:
            text = self._text.phrase("positive", factor_label=label, correlation=r)
        else:
            text = self._text.phrase("negative", factor_label=label, correlation=r)
        if trend:
            direction = "rising" if trend > 0 else "falling"
            text = f"{text} {self._text.phrase(direction, factor_label=label)}"
        return text


def _intensity(point: DailyDataPoint) -> float:
    return float(point.intensity or 0) if point.had_headache else 0.0
