"""Tests for the in-memory headache data provider."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from conftest import END, calm_weather, make_event
from hdi.domains.headache.connectors import HeadacheDataProvider
from hdi.domains.headache.connectors.providers import InMemoryHeadacheProvider
from hdi.domains.headache.domain_logic.models import (
    DailyObservation,
    PersonalFactors,
    SignalSnapshot,
)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestInMemoryHeadacheProvider:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryHeadacheProvider(), HeadacheDataProvider)

    def test_starts_disconnected(self):
        provider = InMemoryHeadacheProvider()
        assert not provider.is_connected()
        assert _run(provider.get_events()) == []
        assert _run(provider.get_signal_snapshot()) is None
        assert _run(provider.get_personal_factors()) is None

    def test_events_newest_first_and_limited(self):
        provider = InMemoryHeadacheProvider()
        for i in range(5):
            provider.add_event(make_event(END - timedelta(days=i)))
        events = _run(provider.get_events(limit=3))
        assert [e.day for e in events] == [END, END - timedelta(days=1), END - timedelta(days=2)]
        assert provider.is_connected()

    def test_observations_merge_per_day(self):
        provider = InMemoryHeadacheProvider()
        provider.add_observation(DailyObservation(day=END, health={"steps": 4000.0}))
        provider.add_observation(DailyObservation(day=END, weather=calm_weather(), cycle_day=12))
        provider.add_observation(DailyObservation(day=END - timedelta(days=1), health={"steps": 9000.0}))

        observations = _run(provider.get_daily_observations())
        assert [o.day for o in observations] == [END - timedelta(days=1), END]
        merged = observations[-1]
        assert merged.health == {"steps": 4000.0}
        assert merged.weather is not None
        assert merged.cycle_day == 12

        recent = _run(provider.get_daily_observations(since=END))
        assert [o.day for o in recent] == [END]

    def test_ongoing_event_and_auto_end(self):
        provider = InMemoryHeadacheProvider()
        old = make_event(END - timedelta(days=2))
        current = make_event(END, hour=7)
        provider.add_event(old)
        provider.add_event(current)

        assert provider.ongoing_event() is current
        assert provider.auto_end_events(END) == 1
        assert old.end == datetime(2026, 3, 29, 23, 59, 59)
        assert current.is_ongoing

    def test_forecast_snapshot_and_factors(self):
        provider = InMemoryHeadacheProvider()
        provider.set_forecast([calm_weather(), calm_weather(), calm_weather()])
        provider.set_snapshot(SignalSnapshot(cycle_day=3))
        provider.set_personal_factors(PersonalFactors(age=34))

        assert len(_run(provider.get_weather_forecast(days=2))) == 2
        assert _run(provider.get_signal_snapshot()).cycle_day == 3
        assert _run(provider.get_personal_factors()).age == 34

    def test_provenance(self):
        provider = InMemoryHeadacheProvider()
        provider.add_event(make_event(END))
        provenance = provider.get_provenance()
        assert provenance["data_source"] == "manual"
        assert "1 headache event(s)" in provenance["data_source_note"]
