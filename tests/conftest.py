"""Shared test fixtures for Headache Diary Insights tests."""

from __future__ import annotations

import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_PATH", "")
    monkeypatch.setenv("FORECAST_HORIZON_DAYS", "7")
    monkeypatch.setenv("CONFIDENCE_THRESHOLD", "0.7")
    monkeypatch.setenv("ENSEMBLE_CONFIDENCE_MODE", "model_weight")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from hdi.core.catalog.loader import load_catalog_directory  # noqa: E402
from hdi.core.catalog.registry import CatalogRegistry  # noqa: E402
from hdi.domains.headache.domain_logic.history import build_daily_history  # noqa: E402
from hdi.domains.headache.domain_logic.models import (  # noqa: E402
    DailyObservation,
    HeadacheEvent,
    WeatherFeatures,
)

CATALOG_DIR = _SRC_DIR / "hdi" / "domains" / "headache" / "catalog"

# Last day of every synthetic diary unless a test says otherwise.
END = date(2026, 3, 31)


# ---------------------------------------------------------------------------
# Synthetic diaries (deterministic)
# ---------------------------------------------------------------------------

def calm_weather(**overrides) -> WeatherFeatures:
    values = dict(
        temperature=18.0,
        humidity=55.0,
        pressure=1015.0,
        wind_speed=8.0,
        uv_index=3.0,
        temperature_change_24h=1.0,
        pressure_change_24h=0.5,
        humidity_change_24h=2.0,
    )
    values.update(overrides)
    return WeatherFeatures(**values)


def storm_weather(**overrides) -> WeatherFeatures:
    """Falling pressure, humid, low: every default threshold rule but temperature fires."""
    values = dict(
        temperature=14.0,
        humidity=85.0,
        pressure=1000.0,
        wind_speed=15.0,
        uv_index=1.0,
        temperature_change_24h=-4.0,
        pressure_change_24h=-6.0,
        humidity_change_24h=20.0,
    )
    values.update(overrides)
    return WeatherFeatures(**values)


def day_of(index: int, days: int, end: date = END) -> date:
    return end - timedelta(days=days - 1 - index)


def make_event(day: date, intensity: int = 7, hour: int = 9, **kwargs) -> HeadacheEvent:
    return HeadacheEvent(start=datetime.combine(day, time(hour, 0)), intensity=intensity, **kwargs)


def build_diary(
    days: int = 40,
    *,
    end: date = END,
    headache_every: int = 5,
    intensity: int = 7,
) -> tuple[list[HeadacheEvent], list[DailyObservation]]:
    """A diary where every ``headache_every``-th day is stormy and brings a headache.

    Headache days also carry a raised resting heart rate and short sleep, so
    those metrics correlate perfectly with intensity.
    """
    events: list[HeadacheEvent] = []
    observations: list[DailyObservation] = []
    for i in range(days):
        day = day_of(i, days, end)
        headache = i % headache_every == 0
        weather = storm_weather() if headache else calm_weather(temperature=18.0 + i % 4)
        health = {
            "resting_heart_rate": 72.0 if headache else 60.0,
            "sleep_duration": 5.5 if headache else 7.5,
        }
        observations.append(DailyObservation(day=day, weather=weather, health=health))
        if headache:
            events.append(make_event(day, intensity))
    return events, observations


def build_cycle_diary(
    days: int = 56,
    *,
    end: date = END,
) -> tuple[list[HeadacheEvent], list[DailyObservation]]:
    """Headaches only inside the hormonal window; weather stays calm throughout."""
    from hdi.domains.headache.domain_logic.models import in_hormonal_window

    events: list[HeadacheEvent] = []
    observations: list[DailyObservation] = []
    for i in range(days):
        day = day_of(i, days, end)
        cycle_day = i % 28 + 1
        observations.append(
            DailyObservation(day=day, weather=calm_weather(), cycle_day=cycle_day)
        )
        if in_hormonal_window(cycle_day):
            events.append(make_event(day, 6))
    return events, observations


def history_of(events, observations, end: date = END):
    return build_daily_history(events, observations, end=end)


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog() -> CatalogRegistry:
    """Registry loaded with the bundled message templates."""
    registry = CatalogRegistry()
    load_catalog_directory(CATALOG_DIR, registry)
    return registry
