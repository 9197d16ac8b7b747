"""Ensemble headache risk prediction.

Four independent sub-models each return a tier, a confidence and the factors
behind it:

- statistical: headache rate on historical days with similar weather
- pattern: what followed past 7-day weather patterns resembling the last week
- threshold: personal threshold rules on today's weather
- time series: recent headache frequency, trend and season

The ensemble averages the tiers weighted by model weight times model
confidence. Predictions are gated on data quality first.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import date, timedelta
from functools import partial
from typing import Literal

from hdi.core.catalog.registry import CatalogRegistry
from hdi.domains.headache.domain_logic.data_quality import DataQualityAssessor
from hdi.domains.headache.domain_logic.models import (
    HORMONAL_WINDOW_FACTOR,
    RISK_TIER_VALUES,
    RISK_TIERS_BY_VALUE,
    DailyDataPoint,
    DataQualityMetrics,
    EnsemblePrediction,
    ModelPrediction,
    PersonalFactors,
    PersonalThresholds,
    RiskFactor,
    RiskForecastDay,
    RiskPrediction,
    WeatherFeatures,
    in_hormonal_window,
)
from hdi.domains.headache.domain_logic.signals import advance_cycle_day
from hdi.domains.headache.domain_logic.statistics_primitives import (
    linear_trend_slope,
    mean,
    moving_average,
)

logger = logging.getLogger(__name__)

ConfidenceMode = Literal["model_weight", "confidence_weight"]

# ---------------------------------------------------------------------------
# Model constants
# ---------------------------------------------------------------------------

MODEL_WEIGHTS = (
    ("statistical", 0.30),
    ("pattern", 0.25),
    ("threshold", 0.25),
    ("time_series", 0.20),
)

# temperature, humidity, pressure, wind, UV, and the three 24h deltas
SIMILARITY_FEATURE_WEIGHTS = (0.15, 0.10, 0.20, 0.05, 0.05, 0.15, 0.20, 0.10)
SIMILAR_DAY_THRESHOLD = 0.8
MIN_SIMILAR_DAYS = 5
SIMILAR_DAYS_FOR_FULL_CONFIDENCE = 20

PATTERN_DAYS = 7
PATTERN_MIN_SIMILARITY = 0.7
MIN_PATTERN_MATCHES = 3
PATTERN_MATCHES_FOR_FULL_CONFIDENCE = 10
PATTERN_CONFIDENCE_PENALTY = 0.9
DEFAULT_PATTERN_TEMPERATURE = 20.0
DEFAULT_PATTERN_PRESSURE = 1013.0

MIN_TIME_SERIES_POINTS = 30
TIME_SERIES_WINDOW = 7
TIME_SERIES_MAX_CONFIDENCE = 0.9

# Upper bounds for low / moderate / high; anything above is very high.
STATISTICAL_TIERS = (0.2, 0.4, 0.6)
PATTERN_TIERS = (0.25, 0.5, 0.75)
SCORE_TIERS = (0.3, 0.5, 0.7)

# Contribution of each personal-threshold rule when it fires.
THRESHOLD_CONTRIBUTIONS = {
    "PressureChange": 0.30,
    "TemperatureChange": 0.25,
    "Humidity": 0.20,
    "LowPressure": 0.25,
}

SEASONAL_FACTORS = {
    12: 0.1, 1: 0.1, 2: 0.1,
    3: 0.2, 4: 0.2, 5: 0.2,
    6: -0.1, 7: -0.1, 8: -0.1,
    9: 0.15, 10: 0.15, 11: 0.15,
}

MAX_ENSEMBLE_FACTORS = 5
RECOMMENDED_FACTORS = 3
RECENT_HEADACHE_DAYS = 3
HIGH_HUMIDITY = 80.0
# Added to a forecast day's score inside the hormonal window, scaled by the
# strength of the cycle correlation.
HORMONAL_WINDOW_BOOST = 0.4


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def tier_for_value(value: float, breakpoints: Sequence[float]) -> str:
    """Map a rate or score onto low/moderate/high/very_high. Negative is low."""
    for upper, tier in zip(breakpoints, ("low", "moderate", "high")):
        if value < upper:
            return tier
    return "very_high"


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def weather_similarity(a: WeatherFeatures, b: WeatherFeatures) -> float:
    """exp(-sqrt(weighted squared distance)) over the continuous features."""
    distance = sum(
        w * (x - y) ** 2
        for w, x, y in zip(SIMILARITY_FEATURE_WEIGHTS, a.as_vector(), b.as_vector())
    )
    return math.exp(-math.sqrt(distance))


def seasonal_factor(month: int) -> float:
    return SEASONAL_FACTORS.get(month, 0.0)


@dataclass
class WeatherPattern:
    """Summary of a run of days: mean levels and their linear trends."""

    average_temperature: float
    average_pressure: float
    temperature_trend: float
    pressure_trend: float


def extract_weather_pattern(points: Sequence[DailyDataPoint]) -> WeatherPattern:
    temperatures = [p.weather.temperature for p in points if p.weather is not None]
    pressures = [p.weather.pressure for p in points if p.weather is not None]
    return WeatherPattern(
        average_temperature=mean(temperatures) if temperatures else DEFAULT_PATTERN_TEMPERATURE,
        average_pressure=mean(pressures) if pressures else DEFAULT_PATTERN_PRESSURE,
        temperature_trend=linear_trend_slope(temperatures),
        pressure_trend=linear_trend_slope(pressures),
    )


def pattern_similarity(a: WeatherPattern, b: WeatherPattern) -> float:
    difference = (
        abs(a.average_temperature - b.average_temperature) / 20.0
        + abs(a.average_pressure - b.average_pressure) / 20.0
        + abs(a.temperature_trend - b.temperature_trend) / 5.0
        + abs(a.pressure_trend - b.pressure_trend) / 5.0
    )
    return max(0.0, 1.0 - difference / 4.0)


def aggregate_factors(factors: Sequence[RiskFactor]) -> list[RiskFactor]:
    """Sum contributions and average values per factor, strongest first."""
    totals: dict[str, list[float]] = {}
    for f in factors:
        entry = totals.setdefault(f.factor, [0.0, 0.0, 0])
        entry[0] += f.contribution
        entry[1] += f.value
        entry[2] += 1
    aggregated = [
        RiskFactor(factor=name, value=value / count, contribution=contribution)
        for name, (contribution, value, count) in totals.items()
    ]
    aggregated.sort(key=lambda f: f.contribution, reverse=True)
    return aggregated[:MAX_ENSEMBLE_FACTORS]


# ---------------------------------------------------------------------------
# Predictor
# ---------------------------------------------------------------------------

class EnsembleRiskPredictor:
    """Gated four-model ensemble producing a risk tier and recommendation.

    Usage::

        predictor = EnsembleRiskPredictor(catalog)
        prediction = predictor.predict(features, history, personal_factors, as_of=today)

    When an executor is supplied the sub-models run on it; their outputs are
    always combined in the fixed model order.
    """

    def __init__(
        self,
        catalog: CatalogRegistry,
        *,
        confidence_threshold: float = 0.7,
        confidence_mode: ConfidenceMode = "model_weight",
        executor: Executor | None = None,
    ) -> None:
        if confidence_mode not in ("model_weight", "confidence_weight"):
            raise ValueError(f"Unknown confidence mode: {confidence_mode!r}")
        self._text = catalog.require("prediction_recommendation")
        self._quality = DataQualityAssessor(catalog)
        self._confidence_threshold = confidence_threshold
        self._confidence_mode = confidence_mode
        self._executor = executor

    # -- public API ---------------------------------------------------------

    def predict(
        self,
        features: WeatherFeatures | None,
        history: Sequence[DailyDataPoint],
        personal_factors: PersonalFactors,
        *,
        as_of: date,
        quality: DataQualityMetrics | None = None,
    ) -> RiskPrediction:
        """Predict the risk for ``as_of``.

        A failed quality gate returns an unknown tier with zero confidence and
        the "more data needed" message as the recommendation.
        """
        quality = quality or self._quality.assess(history)
        if not quality.is_acceptable:
            logger.info("Prediction gated: %s", quality.message)
            return RiskPrediction(
                risk_tier="unknown",
                confidence=0.0,
                factors=[],
                recommendation=quality.message,
            )

        thresholds = personal_factors.thresholds or PersonalThresholds.defaults()
        predictions = self.run_models(features, history, thresholds, as_of)
        ensemble = self.combine(predictions)
        return RiskPrediction(
            risk_tier=ensemble.risk_tier,
            confidence=ensemble.confidence,
            factors=ensemble.factors,
            recommendation=self.recommend(ensemble, personal_factors, as_of),
            model_predictions=predictions,
            average_tier=ensemble.average_tier,
        )

    def forecast(
        self,
        history: Sequence[DailyDataPoint],
        personal_factors: PersonalFactors,
        *,
        as_of: date,
        horizon_days: int = 7,
        current_weather: WeatherFeatures | None = None,
        forecast_weather: Sequence[WeatherFeatures] = (),
        cycle_day: int | None = None,
        cycle_weight: float = 0.0,
        quality: DataQualityMetrics | None = None,
    ) -> list[RiskForecastDay]:
        """One RiskForecastDay per horizon day, starting with ``as_of``.

        Day i uses ``forecast_weather[i]`` when supplied, otherwise the current
        weather. The score is the ensemble's average tier scaled to [0, 1],
        raised inside the projected hormonal window and clamped.
        """
        quality = quality or self._quality.assess(history)
        if not quality.is_acceptable:
            return []

        thresholds = personal_factors.thresholds or PersonalThresholds.defaults()
        days = []
        for offset in range(horizon_days):
            day = as_of + timedelta(days=offset)
            features = forecast_weather[offset] if offset < len(forecast_weather) else current_weather
            ensemble = self.combine(self.run_models(features, history, thresholds, day))

            score = ensemble.average_tier / RISK_TIER_VALUES["very_high"]
            triggers = [f.factor for f in ensemble.factors]
            if cycle_day is not None and in_hormonal_window(advance_cycle_day(cycle_day, offset)):
                score += HORMONAL_WINDOW_BOOST * max(cycle_weight, 0.0)
                triggers.append(HORMONAL_WINDOW_FACTOR)

            days.append(
                RiskForecastDay(
                    day=day,
                    risk_score=min(max(score, 0.0), 1.0),
                    predicted_triggers=triggers,
                    confidence=ensemble.confidence,
                    risk_tier=ensemble.risk_tier,
                )
            )
        return days

    def run_models(
        self,
        features: WeatherFeatures | None,
        history: Sequence[DailyDataPoint],
        thresholds: PersonalThresholds,
        as_of: date,
    ) -> list[ModelPrediction]:
        """Run the four sub-models, returned in MODEL_WEIGHTS order."""
        jobs: list[Callable[[], ModelPrediction]] = [
            partial(self.statistical_model, features, history),
            partial(self.pattern_model, history),
            partial(self.threshold_model, features, thresholds),
            partial(self.time_series_model, history, as_of),
        ]
        if self._executor is None:
            return [job() for job in jobs]
        futures = [self._executor.submit(job) for job in jobs]
        return [future.result() for future in futures]

    # -- sub-models ---------------------------------------------------------

    def statistical_model(
        self,
        features: WeatherFeatures | None,
        history: Sequence[DailyDataPoint],
    ) -> ModelPrediction:
        if features is None:
            return ModelPrediction("statistical", "unknown", 0.0)
        similar = [
            p
            for p in history
            if p.weather is not None
            and weather_similarity(features, p.weather) >= SIMILAR_DAY_THRESHOLD
        ]
        if len(similar) < MIN_SIMILAR_DAYS:
            return ModelPrediction("statistical", "unknown", 0.0)

        rate = sum(1 for p in similar if p.had_headache) / len(similar)
        confidence = min(len(similar) / SIMILAR_DAYS_FOR_FULL_CONFIDENCE, 1.0)
        return ModelPrediction(
            "statistical",
            tier_for_value(rate, STATISTICAL_TIERS),
            confidence,
            self._similar_day_factors(similar, features),
        )

    def pattern_model(self, history: Sequence[DailyDataPoint]) -> ModelPrediction:
        recent = extract_weather_pattern(history[-PATTERN_DAYS:])
        matches = 0
        followed_by_headache = 0
        for i in range(len(history) - PATTERN_DAYS):
            window = extract_weather_pattern(history[i:i + PATTERN_DAYS])
            if pattern_similarity(recent, window) >= PATTERN_MIN_SIMILARITY:
                matches += 1
                if history[i + PATTERN_DAYS].had_headache:
                    followed_by_headache += 1

        if matches < MIN_PATTERN_MATCHES:
            return ModelPrediction("pattern", "unknown", 0.0)

        rate = followed_by_headache / matches
        confidence = min(matches / PATTERN_MATCHES_FOR_FULL_CONFIDENCE, 1.0)
        return ModelPrediction(
            "pattern",
            tier_for_value(rate, PATTERN_TIERS),
            confidence * PATTERN_CONFIDENCE_PENALTY,
        )

    def threshold_model(
        self,
        features: WeatherFeatures | None,
        thresholds: PersonalThresholds,
    ) -> ModelPrediction:
        if features is None:
            return ModelPrediction("threshold", "unknown", 0.0)

        checks = (
            ("PressureChange", features.pressure_change_24h,
             abs(features.pressure_change_24h) > thresholds.pressure_change),
            ("TemperatureChange", features.temperature_change_24h,
             abs(features.temperature_change_24h) > thresholds.temperature_change),
            ("Humidity", features.humidity, features.humidity > thresholds.humidity),
            ("LowPressure", features.pressure, features.pressure < thresholds.low_pressure),
        )
        factors = [
            RiskFactor(factor=name, value=value, contribution=THRESHOLD_CONTRIBUTIONS[name])
            for name, value, fired in checks
            if fired
        ]
        score = sum(f.contribution for f in factors)
        confidence = min(score + 0.3, 1.0) if factors else 0.5
        return ModelPrediction("threshold", tier_for_value(score, SCORE_TIERS), confidence, factors)

    def time_series_model(
        self,
        history: Sequence[DailyDataPoint],
        as_of: date,
    ) -> ModelPrediction:
        if len(history) < MIN_TIME_SERIES_POINTS:
            return ModelPrediction("time_series", "unknown", 0.0)

        series = [1.0 if p.had_headache else 0.0 for p in history]
        averages = moving_average(series, TIME_SERIES_WINDOW)
        level = averages[-1] if averages else 0.5
        value = (
            level
            + 0.1 * linear_trend_slope(series)
            + 0.2 * seasonal_factor(as_of.month)
        )
        confidence = min(0.6 + len(history) / 100.0 * 0.3, TIME_SERIES_MAX_CONFIDENCE)
        return ModelPrediction("time_series", tier_for_value(value, SCORE_TIERS), confidence)

    # -- combination --------------------------------------------------------

    def combine(self, predictions: Sequence[ModelPrediction]) -> EnsemblePrediction:
        """Confidence-weighted tier average over models with confidence > 0."""
        weighted_tier = 0.0
        total_weight = 0.0
        squared_weight = 0.0
        factors: list[RiskFactor] = []
        for prediction, (_, weight) in zip(predictions, MODEL_WEIGHTS):
            if prediction.confidence <= 0:
                continue
            w = weight * prediction.confidence
            weighted_tier += RISK_TIER_VALUES[prediction.risk_tier] * w
            total_weight += w
            squared_weight += w * prediction.confidence
            factors.extend(prediction.factors)

        if total_weight <= 0:
            return EnsemblePrediction(risk_tier="unknown", confidence=0.0)

        average_tier = weighted_tier / total_weight
        if self._confidence_mode == "model_weight":
            confidence = total_weight / sum(w for _, w in MODEL_WEIGHTS)
        else:
            confidence = squared_weight / total_weight
        return EnsemblePrediction(
            risk_tier=RISK_TIERS_BY_VALUE.get(round_half_up(average_tier), "unknown"),
            confidence=confidence,
            factors=aggregate_factors(factors),
            average_tier=average_tier,
        )

    def recommend(
        self,
        ensemble: EnsemblePrediction,
        personal_factors: PersonalFactors,
        as_of: date,
    ) -> str:
        if ensemble.confidence <= self._confidence_threshold:
            return self._text.phrase("low_confidence")

        parts = []
        if ensemble.risk_tier != "unknown":
            parts.append(self._text.phrase(f"tier_{ensemble.risk_tier}"))

        for factor in ensemble.factors[:RECOMMENDED_FACTORS]:
            if factor.factor == "PressureChange":
                parts.append(self._text.phrase(
                    "pressure_rising" if factor.value > 0 else "pressure_falling"
                ))
            elif factor.factor == "TemperatureChange":
                parts.append(self._text.phrase("temperature_change"))
            elif factor.factor == "Humidity" and factor.value > HIGH_HUMIDITY:
                parts.append(self._text.phrase("humidity_high"))

        last = personal_factors.last_headache_date
        if last is not None and (as_of - last).days < RECENT_HEADACHE_DAYS:
            parts.append(self._text.phrase("recent_headache"))
        return " ".join(parts)

    def _similar_day_factors(
        self,
        similar: Sequence[DailyDataPoint],
        features: WeatherFeatures,
    ) -> list[RiskFactor]:
        headache = [p.weather for p in similar if p.had_headache]
        calm = [p.weather for p in similar if not p.had_headache]
        if not headache or not calm:
            return []

        factors = []
        temperature_gap = abs(
            mean([w.temperature for w in headache]) - mean([w.temperature for w in calm])
        )
        if temperature_gap > 2:
            factors.append(RiskFactor(
                factor="Temperature",
                value=features.temperature,
                contribution=min(temperature_gap / 10, 0.3),
            ))

        pressure_change = mean([w.pressure_change_24h for w in headache])
        if abs(pressure_change) > 2:
            factors.append(RiskFactor(
                factor="PressureChange",
                value=features.pressure_change_24h,
                contribution=min(abs(pressure_change) / 10, 0.4),
            ))
        factors.sort(key=lambda f: f.contribution, reverse=True)
        return factors
