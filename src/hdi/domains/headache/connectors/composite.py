"""Composite headache data provider — merges multiple sources with priority.

Each provider method queries sources in priority order, returning the first
non-empty result. This lets an imported wearable or weather feed take
precedence over manual entries.
"""

from __future__ import annotations

import logging
from datetime import date

from hdi.domains.headache.connectors import HeadacheDataProvider
from hdi.domains.headache.domain_logic.models import (
    DailyObservation,
    HeadacheEvent,
    PersonalFactors,
    SignalSnapshot,
    WeatherFeatures,
)

logger = logging.getLogger(__name__)


class CompositeHeadacheProvider:
    """Merges multiple HeadacheDataProviders with priority ordering.

    Usage::

        composite = CompositeHeadacheProvider([
            wearable_provider,  # Highest priority
            manual_provider,    # Fallback
        ])
        events = await composite.get_events()
    """

    def __init__(self, providers: list[HeadacheDataProvider]) -> None:
        """Initialize with providers in priority order (highest first).

        Args:
            providers: Ordered list of HeadacheDataProviders. First provider
                with data wins for each method call.
        """
        if not providers:
            raise ValueError("At least one provider is required")
        self._providers = providers

    async def get_events(self, limit: int = 500) -> list[HeadacheEvent]:
        for provider in self._providers:
            result = await provider.get_events(limit)
            if result:
                return result
        return []

    async def get_daily_observations(self, since: date | None = None) -> list[DailyObservation]:
        for provider in self._providers:
            result = await provider.get_daily_observations(since)
            if result:
                return result
        return []

    async def get_signal_snapshot(self) -> SignalSnapshot | None:
        for provider in self._providers:
            result = await provider.get_signal_snapshot()
            if result is not None and not result.is_empty():
                return result
        return None

    async def get_weather_forecast(self, days: int = 7) -> list[WeatherFeatures]:
        for provider in self._providers:
            result = await provider.get_weather_forecast(days)
            if result:
                return result
        return []

    async def get_personal_factors(self) -> PersonalFactors | None:
        for provider in self._providers:
            result = await provider.get_personal_factors()
            if result is not None:
                return result
        return None

    def is_connected(self) -> bool:
        """True if any provider is connected."""
        return any(p.is_connected() for p in self._providers)

    @property
    def data_source(self) -> str:
        """Return the data source of the first connected provider."""
        for provider in self._providers:
            if provider.is_connected():
                return provider.data_source
        return self._providers[-1].data_source

    def get_provenance(self) -> dict[str, str]:
        """Return provenance info including all active sources."""
        active = [p.data_source for p in self._providers if p.is_connected()]
        return {
            "data_source": self.data_source,
            "active_sources": ", ".join(active) if active else "none",
            "data_source_note": (
                f"Composite provider with {len(active)} active source(s). "
                f"Priority: {' > '.join(p.data_source for p in self._providers)}."
            ),
        }
