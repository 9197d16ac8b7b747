"""Data-quality gate for the daily history.

Coverage and tier decide whether predictions can be trusted; when the gate
fails the caller gets a "more data needed" result, never an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hdi.core.catalog.registry import CatalogRegistry
from hdi.domains.headache.domain_logic.models import DailyDataPoint, DataQualityMetrics

logger = logging.getLogger(__name__)

# (exclusive upper bound on overlapping days, tier)
QUALITY_TIERS = (
    (14, "insufficient"),
    (30, "minimal"),
    (60, "acceptable"),
    (90, "good"),
)
TOP_TIER = "excellent"

MINIMUM_DAYS_REQUIRED = {
    "insufficient": 14,
    "minimal": 30,
    "acceptable": 60,
    "good": 90,
    "excellent": 120,
}

MIN_OVERLAPPING_DAYS = 30
MIN_COVERAGE = 0.7
# Gaps longer than this many days drive consistency to zero.
CONSISTENCY_GAP_SCALE = 7.0


def quality_tier(overlapping_days: int) -> str:
    for upper, tier in QUALITY_TIERS:
        if overlapping_days < upper:
            return tier
    return TOP_TIER


def is_quality_acceptable(overlapping_days: int, coverage: float) -> bool:
    return overlapping_days >= MIN_OVERLAPPING_DAYS and coverage >= MIN_COVERAGE


def data_consistency(history: Sequence[DailyDataPoint]) -> float:
    """Score in [0, 1] penalising missing stretches between recorded days."""
    if len(history) <= 7:
        return 0.5
    days = sorted(p.day for p in history)
    gaps = [
        (later - earlier).days - 1
        for earlier, later in zip(days, days[1:])
        if (later - earlier).days > 1
    ]
    if not gaps:
        return 1.0
    average_gap = sum(gaps) / len(gaps)
    return max(0.0, 1.0 - average_gap / CONSISTENCY_GAP_SCALE)


class DataQualityAssessor:
    """Computes coverage statistics and the quality tier for a history."""

    def __init__(self, catalog: CatalogRegistry) -> None:
        self._messages = catalog.require("data_quality")

    def assess(self, history: Sequence[DailyDataPoint]) -> DataQualityMetrics:
        total_days = len({p.day for p in history})
        signal_days = sum(1 for p in history if p.has_signal_data)
        headache_days = sum(1 for p in history if p.had_headache)
        overlapping = sum(1 for p in history if p.has_signal_data and p.record_exists)
        coverage = overlapping / total_days if total_days > 0 else 0.0

        tier = quality_tier(overlapping)
        acceptable = is_quality_acceptable(overlapping, coverage)
        days_until_acceptable = max(0, MIN_OVERLAPPING_DAYS - overlapping)
        days_until_next_tier = (
            0 if tier == TOP_TIER else max(0, MINIMUM_DAYS_REQUIRED[tier] - overlapping)
        )

        metrics = DataQualityMetrics(
            total_days=total_days,
            signal_days=signal_days,
            headache_days=headache_days,
            overlapping_days=overlapping,
            coverage=coverage,
            consistency=data_consistency(history),
            tier=tier,
            is_acceptable=acceptable,
            days_until_acceptable=days_until_acceptable,
            days_until_next_tier=days_until_next_tier,
        )
        metrics.message = self._message(metrics)
        logger.debug(
            "Data quality: %d overlapping of %d days (coverage %.2f, tier %s)",
            overlapping,
            total_days,
            coverage,
            tier,
        )
        return metrics

    def _message(self, metrics: DataQualityMetrics) -> str:
        if metrics.days_until_acceptable > 0:
            return self._messages.phrase(
                "gate_not_met",
                overlapping=metrics.overlapping_days,
                needed=metrics.days_until_acceptable,
            )
        if not metrics.is_acceptable:
            return self._messages.phrase("coverage_low", coverage=metrics.coverage)
        if metrics.tier == TOP_TIER:
            return self._messages.phrase("top_tier")
        next_tier = _next_tier(metrics.tier)
        return self._messages.phrase(
            "next_tier", needed=metrics.days_until_next_tier, tier=next_tier
        )


def _next_tier(tier: str) -> str:
    order = [t for _, t in QUALITY_TIERS] + [TOP_TIER]
    return order[min(order.index(tier) + 1, len(order) - 1)]
