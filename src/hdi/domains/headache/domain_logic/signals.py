"""Signal summaries built from raw readings."""

from __future__ import annotations

from collections.abc import Sequence

from hdi.domains.headache.domain_logic.models import (
    CYCLE_LENGTH_DAYS,
    DailyDataPoint,
    HEALTH_METRICS,
    SignalSample,
    SignalSnapshot,
)
from hdi.domains.headache.domain_logic.statistics_primitives import mean, population_std_dev

# Days of history summarised into a snapshot when the caller supplies none.
SNAPSHOT_WINDOW_DAYS = 7


def summarize_samples(values: Sequence[float]) -> SignalSample | None:
    """Collapse a sampling window into one SignalSample.

    The trend is the relative change of the second half's mean over the first
    half's mean; it stays None with fewer than two readings or a zero baseline.
    """
    if not values:
        return None
    trend: float | None = None
    if len(values) >= 2:
        mid = len(values) // 2
        first = mean(values[:mid])
        second = mean(values[mid:])
        if first != 0:
            trend = (second - first) / abs(first)
    return SignalSample(
        value=mean(values),
        trend=trend,
        variability=population_std_dev(values),
    )


def snapshot_from_history(
    history: Sequence[DailyDataPoint],
    window_days: int = SNAPSHOT_WINDOW_DAYS,
) -> SignalSnapshot | None:
    """Build a snapshot from the most recent days of the history.

    Returns None when none of the recent days carries any signal.
    """
    recent = [p for p in history if p.has_signal_data][-window_days:]
    if not recent:
        return None

    health: dict[str, SignalSample] = {}
    for metric in HEALTH_METRICS:
        readings = [p.health[metric] for p in recent if metric in p.health]
        sample = summarize_samples(readings)
        if sample is not None:
            health[metric] = sample

    weather = next((p.weather for p in reversed(recent) if p.weather is not None), None)
    latest_cycle = next((p for p in reversed(recent) if p.cycle_day is not None), None)
    cycle_day = None
    if latest_cycle is not None:
        # Advance the last known cycle day to the newest day in the window.
        offset = (recent[-1].day - latest_cycle.day).days
        cycle_day = advance_cycle_day(latest_cycle.cycle_day, offset)

    snapshot = SignalSnapshot(health=health, cycle_day=cycle_day, weather=weather)
    return None if snapshot.is_empty() else snapshot


def advance_cycle_day(cycle_day: int, days: int, cycle_length: int = CYCLE_LENGTH_DAYS) -> int:
    """Project a 1-based cycle day forward, wrapping at the cycle length."""
    cycle_day = min(max(cycle_day, 1), cycle_length)
    return (cycle_day - 1 + days) % cycle_length + 1
