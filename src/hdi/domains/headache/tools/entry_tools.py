"""MCP tools for logging headaches and daily observations.

Entries go to the in-memory provider that backs the server; persisting them
is the host's concern.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from hdi.domains.headache.connectors.providers import InMemoryHeadacheProvider

from hdi.domains.headache.domain_logic.models import DailyObservation, HeadacheEvent
from hdi.domains.headache.domain_logic.serialization import (
    parse_date,
    parse_datetime,
    parse_health,
    parse_medication,
    parse_weather,
)

logger = logging.getLogger(__name__)


def register_entry_tools(mcp: FastMCP, store: InMemoryHeadacheProvider) -> None:
    """Register headache diary entry tools on the MCP server."""

    @mcp.tool
    async def log_headache(
        ctx: Context,
        start: str,
        intensity: int,
        end: str = "",
        note: str = "",
        triggers: list[str] | None = None,
        custom_triggers: list[str] | None = None,
        medications: list[dict[str, Any]] | None = None,
    ) -> str:
        """Record a headache episode. Leave ``end`` empty while it is still going.

        Args:
            start: When the headache started (ISO 8601, e.g., '2026-03-01T14:30:00').
            intensity: Pain intensity from 1 (mild) to 10 (worst).
            end: When it ended (ISO 8601). Empty for an ongoing headache.
            note: Free-text note.
            triggers: Suspected triggers from the usual list (e.g., 'stress', 'alcohol').
            custom_triggers: Any other suspected triggers, in your own words.
            medications: Doses taken, each with 'time', 'substance' and optionally
                'dose_mg', 'relief_achieved', 'relief_time'.
        """
        try:
            event = HeadacheEvent(
                start=parse_datetime(start),
                intensity=intensity,
                end=parse_datetime(end) if end else None,
                note=note,
                triggers=set(triggers or ()),
                custom_triggers=set(custom_triggers or ()),
                medications=[parse_medication(m) for m in medications or ()],
            )
        except (TypeError, ValueError) as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        auto_ended = store.auto_end_events(date.today())
        count = store.add_event(event)
        logger.info("Headache logged: intensity %d on %s", event.intensity, event.day)
        return json.dumps({
            "status": "saved",
            "start": event.start.isoformat(),
            "ongoing": event.is_ongoing,
            "event_count": count,
            "auto_ended": auto_ended,
        })

    @mcp.tool
    async def end_headache(ctx: Context, end: str = "") -> str:
        """Mark the ongoing headache as finished.

        Args:
            end: When it ended (ISO 8601). Defaults to now.
        """
        event = store.ongoing_event()
        if event is None:
            return json.dumps({"status": "error", "message": "No ongoing headache to end"})
        try:
            when = parse_datetime(end) if end else datetime.now(tz=event.start.tzinfo)
            event.end_at(when)
        except (TypeError, ValueError) as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        logger.info("Headache from %s ended", event.start.isoformat())
        return json.dumps({
            "status": "saved",
            "start": event.start.isoformat(),
            "end": event.end.isoformat(),
            "duration_minutes": round(event.duration.total_seconds() / 60),
        })

    @mcp.tool
    async def log_daily_observation(
        ctx: Context,
        day: str,
        weather: dict[str, Any] | None = None,
        health: dict[str, float] | None = None,
        cycle_day: int | None = None,
    ) -> str:
        """Record one day's weather, body signals and menstrual cycle day.

        Args:
            day: The date observed (ISO 8601, e.g., '2026-03-01').
            weather: 'temperature' (C), 'humidity' (%), 'pressure' (hPa) and
                optionally 'wind_speed', 'uv_index', the 24h changes
                ('temperature_change_24h', 'pressure_change_24h',
                'humidity_change_24h'), 'precipitation_chance' and 'condition'.
            health: Daily values keyed by metric, e.g. 'sleep_duration' (hours),
                'heart_rate_variability' (ms), 'steps'.
            cycle_day: Day of the menstrual cycle, starting at 1. Days past 28
                (a long or late cycle) count as the final day of the cycle.
        """
        try:
            if cycle_day is not None and cycle_day < 1:
                raise ValueError(f"cycle_day must be 1 or greater, got {cycle_day}")
            observation = DailyObservation(
                day=parse_date(day),
                weather=parse_weather(weather) if weather else None,
                health=parse_health(health or {}),
                cycle_day=cycle_day,
            )
        except (TypeError, ValueError) as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        store.add_observation(observation)
        logger.info("Daily observation saved for %s", observation.day)
        return json.dumps({
            "status": "saved",
            "day": observation.day.isoformat(),
            "has_weather": observation.weather is not None,
            "health_metrics": sorted(observation.health),
            "cycle_day": observation.cycle_day,
        })
