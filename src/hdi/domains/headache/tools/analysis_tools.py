"""MCP tools that run a headache analysis pass and report on it.

Every tool here is an explicit recompute: it pulls the current diary from the
data provider, runs the engine through the coalescer and returns JSON.
Concurrent calls for the same data source and date share a single pass.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from functools import partial
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from hdi.core.config.settings import Settings
    from hdi.core.scheduling.coalescer import AnalysisCoalescer
    from hdi.domains.headache.connectors import HeadacheDataProvider
    from hdi.domains.headache.domain_logic.analysis_engine import HeadacheAnalysisEngine

from hdi.domains.headache.domain_logic.models import AnalysisResult
from hdi.domains.headache.domain_logic.serialization import parse_date, to_jsonable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _resolve_as_of(value: str) -> date:
    return parse_date(value) if value else date.today()


def _status_block(result: AnalysisResult) -> dict[str, Any]:
    block: dict[str, Any] = {"status": result.status, "as_of": result.as_of.isoformat()}
    if result.insufficient is not None:
        block["insufficient"] = to_jsonable(result.insufficient)
    return block


def register_analysis_tools(
    mcp: FastMCP,
    engine: HeadacheAnalysisEngine,
    provider: HeadacheDataProvider,
    coalescer: AnalysisCoalescer[AnalysisResult],
    settings: Settings,
) -> None:
    """Register headache analysis tools on the MCP server."""

    async def _analyze(as_of: date) -> AnalysisResult:
        events = await provider.get_events(settings.event_history_limit)
        observations = await provider.get_daily_observations(
            as_of - timedelta(days=settings.observation_window_days)
        )
        snapshot = await provider.get_signal_snapshot()
        personal_factors = await provider.get_personal_factors()
        forecast_weather = await provider.get_weather_forecast(settings.forecast_horizon_days)
        compute = partial(
            engine.analyze,
            events,
            observations,
            as_of=as_of,
            snapshot=snapshot,
            personal_factors=personal_factors,
            forecast_weather=forecast_weather,
        )
        # Only identical queries may share a pass.
        subject = f"{provider.data_source}:{as_of.isoformat()}"
        return await coalescer.run(subject, compute)

    @mcp.tool
    async def headache_analysis(ctx: Context, as_of: str = "") -> str:
        """Run a full headache analysis: data quality, factor correlations,
        trigger combinations, today's risk, the forecast, insights and alerts.

        Args:
            as_of: Analysis date (ISO 8601, e.g., '2026-03-01'). Defaults to today.
        """
        try:
            day = _resolve_as_of(as_of)
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        logger.info("headache_analysis requested for %s", day)
        result = await _analyze(day)
        payload = to_jsonable(result)
        payload.update(provider.get_provenance())
        return json.dumps(payload)

    @mcp.tool
    async def headache_risk_forecast(ctx: Context, as_of: str = "") -> str:
        """Today's headache risk plus the risk forecast and alerts for the coming days.

        Args:
            as_of: Forecast start date (ISO 8601). Defaults to today.
        """
        try:
            day = _resolve_as_of(as_of)
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        result = await _analyze(day)
        payload = _status_block(result)
        payload.update({
            "prediction": to_jsonable(result.prediction),
            "forecast": to_jsonable(result.forecast),
            "alerts": to_jsonable(result.alerts),
            "horizon_days": settings.forecast_horizon_days,
        })
        return json.dumps(payload)

    @mcp.tool
    async def data_quality_report(ctx: Context, as_of: str = "") -> str:
        """How complete the diary is, which quality tier it has reached and
        how many more days are needed before predictions are trusted.

        Args:
            as_of: Report date (ISO 8601). Defaults to today.
        """
        try:
            day = _resolve_as_of(as_of)
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        result = await _analyze(day)
        payload = _status_block(result)
        payload["quality"] = to_jsonable(result.quality)
        return json.dumps(payload)

    @mcp.tool
    async def personal_thresholds(ctx: Context, as_of: str = "") -> str:
        """The weather thresholds currently applied to you, learned from your
        headache days once there is enough history.

        Args:
            as_of: Analysis date (ISO 8601). Defaults to today.
        """
        try:
            day = _resolve_as_of(as_of)
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        result = await _analyze(day)
        payload = _status_block(result)
        payload["thresholds"] = to_jsonable(result.thresholds)
        payload["weather_conditions"] = to_jsonable(result.weather_conditions)
        return json.dumps(payload)
