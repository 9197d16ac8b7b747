"""Headache domain models and constants shared by the analysis pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Literal

# ---------------------------------------------------------------------------
# Categorical values
# ---------------------------------------------------------------------------

RiskTier = Literal["unknown", "low", "moderate", "high", "very_high"]
QualityTier = Literal["insufficient", "minimal", "acceptable", "good", "excellent"]
InsightCategory = Literal["cyclic", "environmental", "combined_triggers", "lifestyle"]
InsightPriority = Literal["low", "medium", "high"]
AlertLevel = Literal["low", "medium", "high", "critical"]
AnalysisStatus = Literal["ok", "insufficient_data", "no_data_source"]
CorrelationKind = Literal["health", "weather", "cyclic", "placeholder"]

# Integer scale used when averaging tiers across models.
RISK_TIER_VALUES: dict[str, int] = {
    "unknown": 0,
    "low": 1,
    "moderate": 2,
    "high": 3,
    "very_high": 4,
}
RISK_TIERS_BY_VALUE: dict[int, str] = {v: k for k, v in RISK_TIER_VALUES.items()}

PRIORITY_ORDER: dict[str, int] = {"low": 1, "medium": 2, "high": 3}

# ---------------------------------------------------------------------------
# Signal vocabulary
# ---------------------------------------------------------------------------

# Physiological metric keys accepted in snapshots and daily observations,
# mapped to the factor names used in correlations and combination keys.
HEALTH_METRICS: dict[str, str] = {
    "heart_rate_variability": "HeartRateVariability",
    "resting_heart_rate": "RestingHeartRate",
    "sleep_duration": "SleepDuration",
    "deep_sleep_pct": "DeepSleep",
    "basal_body_temperature": "BasalBodyTemperature",
    "body_weight": "BodyWeight",
    "steps": "Steps",
    "active_energy": "ActiveEnergy",
    "mindful_minutes": "MindfulMinutes",
    "blood_oxygen": "BloodOxygen",
    "respiratory_rate": "RespiratoryRate",
}

# Metrics where a strong negative correlation reads as a protective habit.
LIFESTYLE_METRICS = ("sleep_duration", "deep_sleep_pct", "steps", "mindful_minutes")

# Continuous weather variables, in the order used by the similarity weights.
WEATHER_VARIABLES: dict[str, str] = {
    "Temperature": "temperature",
    "Humidity": "humidity",
    "Pressure": "pressure",
    "WindSpeed": "wind_speed",
    "UVIndex": "uv_index",
    "TemperatureChange": "temperature_change_24h",
    "PressureChange": "pressure_change_24h",
    "HumidityChange": "humidity_change_24h",
}

CYCLE_FACTOR = "MenstrualCycle"
HORMONAL_WINDOW_FACTOR = "HormonalWindow"
CYCLE_LENGTH_DAYS = 28


def in_hormonal_window(cycle_day: int) -> bool:
    """Late luteal phase through menstruation (days 25-28 and 1-5)."""
    return cycle_day >= 25 or cycle_day <= 5


def normalize_cycle_day(cycle_day: int) -> int:
    """Clamp a reported cycle day into 1..CYCLE_LENGTH_DAYS.

    A day past the cycle length belongs to a long or late cycle and reads as
    its final day, so the next cycle is always still ahead.
    """
    return min(max(cycle_day, 1), CYCLE_LENGTH_DAYS)


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------

@dataclass
class MedicationEntry:
    """A single dose taken during a headache episode."""

    time: datetime
    substance: str
    dose_mg: float = 0.0
    relief_achieved: bool = False
    relief_time: datetime | None = None


@dataclass
class HeadacheEvent:
    """One logged headache episode. ``end`` of None means still ongoing."""

    start: datetime
    intensity: int
    end: datetime | None = None
    note: str = ""
    triggers: set[str] = field(default_factory=set)
    custom_triggers: set[str] = field(default_factory=set)
    medications: list[MedicationEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 1 <= self.intensity <= 10:
            raise ValueError(f"Intensity must be between 1 and 10, got {self.intensity}")
        if self.end is not None and self.end < self.start:
            raise ValueError("Headache end must not precede its start")

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def is_ongoing(self) -> bool:
        return self.end is None

    @property
    def duration(self) -> timedelta | None:
        if self.end is None:
            return None
        return self.end - self.start

    @property
    def all_triggers(self) -> set[str]:
        return self.triggers | self.custom_triggers

    def end_at(self, when: datetime) -> None:
        """Close an ongoing episode."""
        if when < self.start:
            raise ValueError("Headache end must not precede its start")
        self.end = when

    def should_auto_end(self, today: date) -> bool:
        """An episode left open past the day it started is closed automatically."""
        return self.is_ongoing and self.start.date() < today

    def auto_end_time(self) -> datetime:
        """Last second of the start day, keeping the start's tzinfo."""
        return datetime.combine(self.start.date(), time(23, 59, 59), tzinfo=self.start.tzinfo)


@dataclass(frozen=True)
class SignalSample:
    """One measured value with an optional trend and population std-dev."""

    value: float
    trend: float | None = None
    variability: float | None = None


@dataclass
class WeatherFeatures:
    """Weather conditions for one day (current, historical or forecast)."""

    temperature: float
    humidity: float
    pressure: float
    wind_speed: float = 0.0
    uv_index: float = 0.0
    temperature_change_24h: float = 0.0
    pressure_change_24h: float = 0.0
    humidity_change_24h: float = 0.0
    precipitation_chance: float = 0.0
    condition: str | None = None

    def as_vector(self) -> list[float]:
        """Return the continuous variables in WEATHER_VARIABLES order."""
        return [getattr(self, attr) for attr in WEATHER_VARIABLES.values()]


@dataclass
class SignalSnapshot:
    """Latest known signals. Every metric is optional; absent means unavailable."""

    health: dict[str, SignalSample] = field(default_factory=dict)
    cycle_day: int | None = None
    weather: WeatherFeatures | None = None
    captured_at: datetime | None = None

    def is_empty(self) -> bool:
        return not self.health and self.cycle_day is None and self.weather is None


@dataclass
class DailyObservation:
    """Externally supplied measurements for one calendar day.

    ``record_exists`` marks that the diary was kept that day, which separates
    a headache-free day from a day nobody logged anything.
    """

    day: date
    weather: WeatherFeatures | None = None
    health: dict[str, float] = field(default_factory=dict)
    cycle_day: int | None = None
    record_exists: bool = True


@dataclass
class PersonalThresholds:
    """Personal trigger thresholds, either learned or the population defaults."""

    pressure_change: float = 3.0
    temperature_change: float = 8.0
    humidity: float = 80.0
    low_pressure: float = 1005.0
    learned: bool = False

    @classmethod
    def defaults(cls) -> PersonalThresholds:
        return cls()


@dataclass
class PersonalFactors:
    """Per-person context that adjusts predictions and recommendations."""

    age: int | None = None
    gender: str | None = None
    medication_history: list[MedicationEntry] = field(default_factory=list)
    last_headache_date: date | None = None
    thresholds: PersonalThresholds | None = None


# ---------------------------------------------------------------------------
# Derived structures
# ---------------------------------------------------------------------------

@dataclass
class DailyDataPoint:
    """One calendar day of the merged event and signal history."""

    day: date
    had_headache: bool = False
    intensity: int | None = None
    has_signal_data: bool = False
    record_exists: bool = False
    weather: WeatherFeatures | None = None
    health: dict[str, float] = field(default_factory=dict)
    cycle_day: int | None = None

    @property
    def has_weather(self) -> bool:
        return self.weather is not None


@dataclass
class DataQualityMetrics:
    """Coverage statistics over the history and the resulting tier."""

    total_days: int
    signal_days: int
    headache_days: int
    overlapping_days: int
    coverage: float
    consistency: float
    tier: QualityTier
    is_acceptable: bool
    days_until_acceptable: int
    days_until_next_tier: int
    message: str = ""


@dataclass
class CorrelationResult:
    """Correlation of one candidate factor with headache intensity."""

    factor: str
    correlation: float
    p_value: float
    sample_size: int
    is_significant: bool
    risk_tier: RiskTier
    description: str
    kind: CorrelationKind = "health"


@dataclass
class WeatherConditionStat:
    """How often a weather condition coincided with a headache day."""

    condition: str
    active_days: int
    headache_days: int
    headache_rate: float


@dataclass
class CombinedCorrelation:
    """A weather condition paired with a physiological correlation."""

    weather_condition: str
    health_factor: str
    weather_rate: float
    health_correlation: float
    combined_value: float
    description: str


@dataclass
class TriggerCombination:
    """Aggregated statistics for one exact set of co-active factors."""

    key: str
    factors: list[str]
    frequency: int
    average_intensity: float
    risk_score: float
    last_occurrence: date


@dataclass
class RiskFactor:
    """A factor that contributed to a model's risk assessment."""

    factor: str
    value: float
    contribution: float


@dataclass
class ModelPrediction:
    """Output of one ensemble sub-model."""

    model: str
    risk_tier: RiskTier
    confidence: float
    factors: list[RiskFactor] = field(default_factory=list)


@dataclass
class EnsemblePrediction:
    """Confidence-weighted combination of the sub-model outputs."""

    risk_tier: RiskTier
    confidence: float
    factors: list[RiskFactor] = field(default_factory=list)
    average_tier: float = 0.0


@dataclass
class RiskPrediction:
    """Risk for a single day plus a plain-language recommendation."""

    risk_tier: RiskTier
    confidence: float
    factors: list[RiskFactor]
    recommendation: str
    model_predictions: list[ModelPrediction] = field(default_factory=list)
    average_tier: float = 0.0


@dataclass
class RiskForecastDay:
    """Forecast risk for one day of the horizon."""

    day: date
    risk_score: float
    predicted_triggers: list[str]
    confidence: float
    risk_tier: RiskTier = "unknown"


@dataclass
class Insight:
    """A prioritised, human-readable finding."""

    category: InsightCategory
    priority: InsightPriority
    title: str
    description: str
    recommendations: list[str] = field(default_factory=list)


@dataclass
class PredictiveAlert:
    """An upcoming day whose forecast risk warrants attention."""

    day: date
    level: AlertLevel
    risk_score: float
    primary_triggers: list[str]
    message: str
    recommendations: list[str] = field(default_factory=list)


@dataclass
class InsufficientData:
    """Why an analysis could not run in full and how much more data it needs."""

    reason: Literal["events", "quality", "no_data_source"]
    message: str
    needed: int = 0


@dataclass
class AnalysisResult:
    """Everything one analysis pass produces."""

    status: AnalysisStatus
    as_of: date
    quality: DataQualityMetrics
    thresholds: PersonalThresholds
    correlations: list[CorrelationResult] = field(default_factory=list)
    weather_conditions: list[WeatherConditionStat] = field(default_factory=list)
    combined_correlations: list[CombinedCorrelation] = field(default_factory=list)
    combinations: list[TriggerCombination] = field(default_factory=list)
    prediction: RiskPrediction | None = None
    forecast: list[RiskForecastDay] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)
    alerts: list[PredictiveAlert] = field(default_factory=list)
    insufficient: InsufficientData | None = None


def factor_label(factor: str) -> str:
    """Readable label for a CamelCase factor name ("PressureChange" -> "pressure change")."""
    if factor in _FACTOR_LABELS:
        return _FACTOR_LABELS[factor]
    return re.sub(r"(?<!^)(?=[A-Z])", " ", factor).lower()


_FACTOR_LABELS = {
    "HeartRateVariability": "heart rate variability",
    "UVIndex": "UV index",
    "DeepSleep": "deep sleep share",
}
