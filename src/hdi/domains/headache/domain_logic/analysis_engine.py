"""One full analysis pass over a person's headache diary.

The engine is a plain service object built once at the composition root.
It holds no per-person state: every call to ``analyze`` receives the data,
runs the pipeline to completion and returns a fresh AnalysisResult.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Executor
from dataclasses import replace
from datetime import date

from hdi.core.catalog.registry import CatalogRegistry
from hdi.domains.headache.domain_logic.combination_miner import TriggerCombinationMiner
from hdi.domains.headache.domain_logic.correlation_analyzer import (
    MIN_EVENTS,
    FactorCorrelationAnalyzer,
    weather_condition_stats,
)
from hdi.domains.headache.domain_logic.data_quality import DataQualityAssessor
from hdi.domains.headache.domain_logic.ensemble_predictor import (
    ConfidenceMode,
    EnsembleRiskPredictor,
)
from hdi.domains.headache.domain_logic.history import build_daily_history
from hdi.domains.headache.domain_logic.insight_composer import InsightComposer
from hdi.domains.headache.domain_logic.medication import medication_usage
from hdi.domains.headache.domain_logic.models import (
    CYCLE_FACTOR,
    AnalysisResult,
    DailyObservation,
    HeadacheEvent,
    InsufficientData,
    PersonalFactors,
    PersonalThresholds,
    SignalSnapshot,
    WeatherFeatures,
)
from hdi.domains.headache.domain_logic.signals import snapshot_from_history
from hdi.domains.headache.domain_logic.threshold_learner import PersonalThresholdLearner

logger = logging.getLogger(__name__)


class HeadacheAnalysisEngine:
    """Runs the full pipeline: quality gate, correlations, combinations,
    thresholds, ensemble prediction and forecast, insights and alerts.

    Usage::

        engine = HeadacheAnalysisEngine(catalog)
        result = engine.analyze(events, observations, as_of=date.today())
    """

    def __init__(
        self,
        catalog: CatalogRegistry,
        *,
        forecast_horizon_days: int = 7,
        confidence_threshold: float = 0.7,
        confidence_mode: ConfidenceMode = "model_weight",
        observation_window_days: int | None = None,
        executor: Executor | None = None,
    ) -> None:
        self._status_text = catalog.require("analysis_status")
        self._quality = DataQualityAssessor(catalog)
        self._correlations = FactorCorrelationAnalyzer(catalog)
        self._miner = TriggerCombinationMiner()
        self._learner = PersonalThresholdLearner()
        self._predictor = EnsembleRiskPredictor(
            catalog,
            confidence_threshold=confidence_threshold,
            confidence_mode=confidence_mode,
            executor=executor,
        )
        self._composer = InsightComposer(catalog)
        self._horizon = forecast_horizon_days
        self._window_days = observation_window_days

    @property
    def predictor(self) -> EnsembleRiskPredictor:
        return self._predictor

    def analyze(
        self,
        events: Sequence[HeadacheEvent],
        observations: Sequence[DailyObservation],
        *,
        as_of: date,
        snapshot: SignalSnapshot | None = None,
        personal_factors: PersonalFactors | None = None,
        forecast_weather: Sequence[WeatherFeatures] = (),
    ) -> AnalysisResult:
        """Analyse the diary as of ``as_of``.

        Status is ``insufficient_data`` with fewer than three events or a
        failed quality gate, ``no_data_source`` when no signal of any kind is
        available, and ``ok`` otherwise. Partial results are filled in
        wherever the data allows.
        """
        events = [e for e in events if e.day <= as_of]
        history = build_daily_history(
            events, observations, end=as_of, window_days=self._window_days
        )
        quality = self._quality.assess(history)
        factors = personal_factors or PersonalFactors()
        if factors.last_headache_date is None and events:
            factors = replace(factors, last_headache_date=max(e.day for e in events))
        usage = medication_usage(events, as_of, factors.medication_history)

        logger.info(
            "Analysis pass: %d event(s), %d day(s) of history, quality %s",
            len(events),
            len(history),
            quality.tier,
        )

        if len(events) < MIN_EVENTS:
            needed = MIN_EVENTS - len(events)
            return AnalysisResult(
                status="insufficient_data",
                as_of=as_of,
                quality=quality,
                thresholds=factors.thresholds or PersonalThresholds.defaults(),
                correlations=[self._correlations.insufficient_placeholder(needed)],
                insights=self._composer.compose([], [], [], as_of=as_of, medication=usage),
                insufficient=InsufficientData(
                    reason="events",
                    message=self._status_text.phrase(
                        "insufficient_events", needed=needed, minimum=MIN_EVENTS
                    ),
                    needed=needed,
                ),
            )

        if snapshot is None or snapshot.is_empty():
            snapshot = snapshot_from_history(history)
        if snapshot is None and not any(p.has_signal_data for p in history):
            logger.info("Analysis pass: no signal source available")
            return AnalysisResult(
                status="no_data_source",
                as_of=as_of,
                quality=quality,
                thresholds=factors.thresholds or PersonalThresholds.defaults(),
                correlations=[self._correlations.no_data_source_placeholder()],
                insights=self._composer.compose([], [], [], as_of=as_of, medication=usage),
                insufficient=InsufficientData(
                    reason="no_data_source",
                    message=self._status_text.phrase("no_data_source"),
                ),
            )

        thresholds = factors.thresholds or self._learner.learn(history)
        factors = replace(factors, thresholds=thresholds)

        correlations = self._correlations.analyze(history, len(events), snapshot)
        conditions = weather_condition_stats(history, thresholds)
        combined = self._correlations.combine(conditions, correlations)
        combinations = self._miner.mine(events, history, correlations, conditions, thresholds)

        current_weather = snapshot.weather if snapshot is not None else None
        cycle_day = snapshot.cycle_day if snapshot is not None else None
        prediction = self._predictor.predict(
            current_weather, history, factors, as_of=as_of, quality=quality
        )
        cyclic = next((c for c in correlations if c.factor == CYCLE_FACTOR), None)
        forecast = self._predictor.forecast(
            history,
            factors,
            as_of=as_of,
            horizon_days=self._horizon,
            current_weather=current_weather,
            forecast_weather=forecast_weather,
            cycle_day=cycle_day,
            cycle_weight=cyclic.correlation if cyclic is not None else 0.0,
            quality=quality,
        )

        insights = self._composer.compose(
            correlations,
            combined,
            combinations,
            as_of=as_of,
            cycle_day=cycle_day,
            medication=usage,
        )
        alerts = self._composer.alerts(forecast)

        insufficient = None
        status = "ok"
        if not quality.is_acceptable:
            status = "insufficient_data"
            insufficient = InsufficientData(
                reason="quality",
                message=quality.message,
                needed=quality.days_until_acceptable,
            )

        logger.info(
            "Analysis pass complete: status=%s risk=%s confidence=%.2f insights=%d alerts=%d",
            status,
            prediction.risk_tier,
            prediction.confidence,
            len(insights),
            len(alerts),
        )
        return AnalysisResult(
            status=status,
            as_of=as_of,
            quality=quality,
            thresholds=thresholds,
            correlations=correlations,
            weather_conditions=conditions,
            combined_correlations=combined,
            combinations=combinations,
            prediction=prediction,
            forecast=forecast,
            insights=insights,
            alerts=alerts,
            insufficient=insufficient,
        )
