"""Headache data connectors — abstraction layer for diary and signal retrieval."""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from hdi.domains.headache.domain_logic.models import (
    DailyObservation,
    HeadacheEvent,
    PersonalFactors,
    SignalSnapshot,
    WeatherFeatures,
)


@runtime_checkable
class HeadacheDataProvider(Protocol):
    """Abstract interface for headache diary and signal retrieval.

    Tools call these methods without knowing whether data comes from a
    wearable export, a weather service, or entries made through the tools.
    """

    async def get_events(self, limit: int = 500) -> list[HeadacheEvent]:
        """Most recent headache events, newest first."""
        ...

    async def get_daily_observations(self, since: date | None = None) -> list[DailyObservation]:
        """Per-day weather and physiological observations, oldest first."""
        ...

    async def get_signal_snapshot(self) -> SignalSnapshot | None:
        """Latest signal snapshot, or None when no source has reported."""
        ...

    async def get_weather_forecast(self, days: int = 7) -> list[WeatherFeatures]:
        """Forecast weather for the coming days, starting today."""
        ...

    async def get_personal_factors(self) -> PersonalFactors | None:
        """Age, medication history and explicit thresholds, when known."""
        ...

    def is_connected(self) -> bool:
        """Whether the provider currently holds any data."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source, e.g. 'manual'."""
        ...

    def get_provenance(self) -> dict[str, str]:
        """Return provenance metadata suitable for merging into tool responses."""
        ...
