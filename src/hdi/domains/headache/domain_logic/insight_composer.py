"""Turns analysis outputs into prioritised insights and predictive alerts."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta

from hdi.core.catalog.registry import CatalogRegistry
from hdi.domains.headache.domain_logic.medication import MedicationUsage
from hdi.domains.headache.domain_logic.models import (
    CYCLE_FACTOR,
    CYCLE_LENGTH_DAYS,
    HEALTH_METRICS,
    LIFESTYLE_METRICS,
    PRIORITY_ORDER,
    CombinedCorrelation,
    CorrelationResult,
    Insight,
    PredictiveAlert,
    RiskForecastDay,
    TriggerCombination,
    factor_label,
    normalize_cycle_day,
)

logger = logging.getLogger(__name__)

CYCLIC_MIN_CORRELATION = 0.6
PREVENTION_LEAD_DAYS = 2

ENVIRONMENTAL_TOP = 2
ENVIRONMENTAL_MIN_COMBINED = 0.5
ENVIRONMENTAL_HIGH_COMBINED = 0.7

COMBINATION_TOP = 3
COMBINATION_MIN_RISK = 0.7

LIFESTYLE_MAX_CORRELATION = -0.5

HIGH_ALERT_SCORE = 0.7
MEDIUM_ALERT_SCORE = 0.5

_METRIC_BY_FACTOR = {factor: metric for metric, factor in HEALTH_METRICS.items()}


def _unique(items: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(items))


class InsightComposer:
    """Rule-based selection and templating of insights.

    Usage::

        composer = InsightComposer(catalog)
        insights = composer.compose(correlations, combined, combinations, as_of=today)
        alerts = composer.alerts(forecast)
    """

    def __init__(self, catalog: CatalogRegistry) -> None:
        self._cyclic = catalog.require("insight_cyclic")
        self._environmental = catalog.require("insight_environmental")
        self._combined = catalog.require("insight_combined_triggers")
        self._medication = catalog.require("insight_medication_overuse")
        self._lifestyle = catalog.require("insight_lifestyle")
        self._alert = catalog.require("predictive_alert")

    def compose(
        self,
        correlations: Sequence[CorrelationResult],
        combined: Sequence[CombinedCorrelation],
        combinations: Sequence[TriggerCombination],
        *,
        as_of: date,
        cycle_day: int | None = None,
        medication: MedicationUsage | None = None,
    ) -> list[Insight]:
        """Return de-duplicated insights, highest priority first."""
        insights: list[Insight] = []

        cyclic = next((c for c in correlations if c.factor == CYCLE_FACTOR), None)
        if cyclic is not None and cyclic.correlation > CYCLIC_MIN_CORRELATION:
            insights.append(self._cyclic_insight(cyclic, as_of, cycle_day))

        for item in combined[:ENVIRONMENTAL_TOP]:
            if item.combined_value > ENVIRONMENTAL_MIN_COMBINED:
                insights.append(self._environmental_insight(item))

        for combination in combinations[:COMBINATION_TOP]:
            if combination.risk_score > COMBINATION_MIN_RISK:
                insights.append(Insight(
                    category="combined_triggers",
                    priority="high",
                    title=self._combined.render_title(combination=combination.key),
                    description=self._combined.render_body(
                        combination=combination.key,
                        risk_score=combination.risk_score,
                        frequency=combination.frequency,
                    ),
                    recommendations=self._combined.render_recommendations(),
                ))

        if medication is not None and medication.overuse_level is not None:
            insights.append(self._medication_insight(medication))

        for corr in correlations:
            metric = _METRIC_BY_FACTOR.get(corr.factor)
            if (
                metric in LIFESTYLE_METRICS
                and corr.is_significant
                and corr.correlation <= LIFESTYLE_MAX_CORRELATION
            ):
                insights.append(self._lifestyle_insight(corr, metric))

        unique: dict[tuple[str, str], Insight] = {}
        for insight in insights:
            unique.setdefault((insight.category, insight.title), insight)
        ranked = sorted(unique.values(), key=lambda i: PRIORITY_ORDER[i.priority], reverse=True)
        logger.debug("Composed %d insight(s)", len(ranked))
        return ranked

    def alerts(self, forecast: Sequence[RiskForecastDay]) -> list[PredictiveAlert]:
        """High alerts above 0.7, medium alerts above 0.5."""
        alerts = []
        for day in forecast:
            if day.risk_score > HIGH_ALERT_SCORE:
                level = "high"
            elif day.risk_score > MEDIUM_ALERT_SCORE:
                level = "medium"
            else:
                continue
            triggers = ", ".join(factor_label(t) for t in day.predicted_triggers)
            if not triggers:
                triggers = self._alert.phrase("unspecified_triggers")
            alerts.append(PredictiveAlert(
                day=day.day,
                level=level,
                risk_score=day.risk_score,
                primary_triggers=list(day.predicted_triggers),
                message=self._alert.phrase(level, triggers=triggers),
                recommendations=self._alert_recommendations(day.predicted_triggers),
            ))
        return alerts

    # -- builders -----------------------------------------------------------

    def _cyclic_insight(
        self,
        correlation: CorrelationResult,
        as_of: date,
        cycle_day: int | None,
    ) -> Insight:
        if cycle_day is not None:
            next_start = as_of + timedelta(
                days=CYCLE_LENGTH_DAYS - normalize_cycle_day(cycle_day) + 1
            )
            first = next_start - timedelta(days=PREVENTION_LEAD_DAYS)
            if first > as_of:
                window = self._cyclic.phrase(
                    "dated_window",
                    first=first.isoformat(),
                    second=(next_start - timedelta(days=1)).isoformat(),
                )
            else:
                # The lead days have started; act now for the cycle due next.
                window = self._cyclic.phrase("imminent_window", start=next_start.isoformat())
        else:
            window = self._cyclic.phrase("undated_window")
        return Insight(
            category="cyclic",
            priority="high",
            title=self._cyclic.render_title(),
            description=self._cyclic.render_body(correlation=correlation.correlation),
            recommendations=self._cyclic.render_recommendations(prevention_window=window),
        )

    def _environmental_insight(self, item: CombinedCorrelation) -> Insight:
        labels = {
            "weather_label": factor_label(item.weather_condition),
            "health_label": factor_label(item.health_factor),
        }
        recommendations = self._environmental.render_recommendations(**labels)
        for key in (item.weather_condition, item.health_factor):
            recommendations += self._environmental.render_recommendations(key, **labels)
        priority = "high" if item.combined_value > ENVIRONMENTAL_HIGH_COMBINED else "medium"
        return Insight(
            category="environmental",
            priority=priority,
            title=self._environmental.render_title(**labels),
            description=self._environmental.phrase(
                "raises", combined=item.combined_value, **labels
            ),
            recommendations=_unique(recommendations),
        )

    def _medication_insight(self, usage: MedicationUsage) -> Insight:
        level = usage.overuse_level
        count = usage.last_7_days if level == "moderate" else usage.last_30_days
        description = self._medication.phrase(f"body_{level}", count=count)
        if usage.high_dose:
            description = (
                f"{description} {self._medication.phrase('high_dose', dose_mg=usage.dose_mg_30_days)}"
            )
        return Insight(
            category="lifestyle",
            priority={"severe": "high", "moderate": "medium", "mild": "low"}[level],
            title=self._medication.phrase(f"title_{level}"),
            description=description,
            recommendations=self._medication.render_recommendations(level),
        )

    def _lifestyle_insight(self, correlation: CorrelationResult, metric: str) -> Insight:
        label = factor_label(correlation.factor)
        recommendations = self._lifestyle.render_recommendations(factor_label=label)
        recommendations += self._lifestyle.render_recommendations(metric, factor_label=label)
        return Insight(
            category="lifestyle",
            priority="medium",
            title=self._lifestyle.render_title(factor_label=label),
            description=self._lifestyle.render_body(
                factor_label=label, correlation=correlation.correlation
            ),
            recommendations=recommendations,
        )

    def _alert_recommendations(self, triggers: Sequence[str]) -> list[str]:
        recommendations: list[str] = []
        for trigger in triggers:
            recommendations += self._alert.render_recommendations(trigger)
        if not recommendations:
            recommendations = self._alert.render_recommendations("default")
        return _unique(recommendations)
