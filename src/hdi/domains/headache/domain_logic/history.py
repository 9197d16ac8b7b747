"""Merge headache events and daily observations into a per-day history."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from hdi.domains.headache.domain_logic.models import (
    DailyDataPoint,
    DailyObservation,
    HeadacheEvent,
    normalize_cycle_day,
)

logger = logging.getLogger(__name__)


def build_daily_history(
    events: Iterable[HeadacheEvent],
    observations: Iterable[DailyObservation],
    *,
    end: date | None = None,
    window_days: int | None = None,
) -> list[DailyDataPoint]:
    """Return one DailyDataPoint per calendar day seen, oldest first.

    Days later than ``end`` are ignored. With ``window_days`` only the last
    ``window_days`` days up to ``end`` are kept. A day with an event always
    counts as recorded; intensity is the day's maximum.
    """
    start = None
    if end is not None and window_days is not None:
        start = end - timedelta(days=window_days - 1)

    def _in_range(day: date) -> bool:
        if end is not None and day > end:
            return False
        return start is None or day >= start

    points: dict[date, DailyDataPoint] = {}

    for obs in observations:
        if not _in_range(obs.day):
            continue
        point = points.setdefault(obs.day, DailyDataPoint(day=obs.day))
        if obs.weather is not None:
            point.weather = obs.weather
        point.health.update(obs.health)
        if obs.cycle_day is not None:
            point.cycle_day = normalize_cycle_day(obs.cycle_day)
        point.record_exists = point.record_exists or obs.record_exists

    for event in events:
        day = event.day
        if not _in_range(day):
            continue
        point = points.setdefault(day, DailyDataPoint(day=day))
        point.had_headache = True
        point.record_exists = True
        point.intensity = max(point.intensity or 0, event.intensity)

    for point in points.values():
        point.has_signal_data = (
            point.weather is not None or bool(point.health) or point.cycle_day is not None
        )

    history = [points[d] for d in sorted(points)]
    logger.debug("Built daily history with %d days", len(history))
    return history
