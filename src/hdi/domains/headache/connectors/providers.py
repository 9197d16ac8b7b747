"""Concrete HeadacheDataProvider implementations."""

from __future__ import annotations

import logging
from datetime import date, datetime

from hdi.domains.headache.domain_logic.models import (
    DailyObservation,
    HeadacheEvent,
    PersonalFactors,
    SignalSnapshot,
    WeatherFeatures,
)

logger = logging.getLogger(__name__)


class InMemoryHeadacheProvider:
    """Holds data handed to it by the host (manual entry tools, importers).

    Nothing is persisted; storage is the host's concern.
    """

    def __init__(self) -> None:
        self._events: list[HeadacheEvent] = []
        self._observations: dict[date, DailyObservation] = {}
        self._snapshot: SignalSnapshot | None = None
        self._forecast: list[WeatherFeatures] = []
        self._personal_factors: PersonalFactors | None = None

    # -- mutation -----------------------------------------------------------

    def add_event(self, event: HeadacheEvent) -> int:
        """Store an event and return how many events are held."""
        self._events.append(event)
        return len(self._events)

    def ongoing_event(self) -> HeadacheEvent | None:
        """The most recently started event that has not ended."""
        ongoing = [e for e in self._events if e.is_ongoing]
        return max(ongoing, key=lambda e: e.start) if ongoing else None

    def auto_end_events(self, today: date) -> int:
        """Close episodes left open since an earlier day. Returns the count closed."""
        closed = 0
        for event in self._events:
            if event.should_auto_end(today):
                event.end_at(event.auto_end_time())
                closed += 1
        if closed:
            logger.info("Auto-ended %d open headache event(s)", closed)
        return closed

    def add_observation(self, observation: DailyObservation) -> None:
        """Store a day's observation, merging with what is already known for that day."""
        existing = self._observations.get(observation.day)
        if existing is None:
            self._observations[observation.day] = observation
            return
        if observation.weather is not None:
            existing.weather = observation.weather
        existing.health.update(observation.health)
        if observation.cycle_day is not None:
            existing.cycle_day = observation.cycle_day
        existing.record_exists = existing.record_exists or observation.record_exists

    def set_snapshot(self, snapshot: SignalSnapshot | None) -> None:
        self._snapshot = snapshot

    def set_forecast(self, forecast: list[WeatherFeatures]) -> None:
        self._forecast = list(forecast)

    def set_personal_factors(self, factors: PersonalFactors | None) -> None:
        self._personal_factors = factors

    # -- HeadacheDataProvider -----------------------------------------------

    async def get_events(self, limit: int = 500) -> list[HeadacheEvent]:
        newest_first = sorted(self._events, key=lambda e: e.start, reverse=True)
        return newest_first[:limit]

    async def get_daily_observations(self, since: date | None = None) -> list[DailyObservation]:
        return [
            self._observations[d]
            for d in sorted(self._observations)
            if since is None or d >= since
        ]

    async def get_signal_snapshot(self) -> SignalSnapshot | None:
        return self._snapshot

    async def get_weather_forecast(self, days: int = 7) -> list[WeatherFeatures]:
        return self._forecast[:days]

    async def get_personal_factors(self) -> PersonalFactors | None:
        return self._personal_factors

    def is_connected(self) -> bool:
        return bool(self._events or self._observations or self._snapshot)

    @property
    def data_source(self) -> str:
        return "manual"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                f"{len(self._events)} headache event(s) and "
                f"{len(self._observations)} daily observation(s) entered manually."
            ),
            "last_updated": datetime.now().isoformat(timespec="seconds"),
        }
