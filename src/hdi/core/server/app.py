"""Headache Diary Insights MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from pathlib import Path

from fastmcp import FastMCP

from hdi.core.catalog.loader import load_catalog_directory
from hdi.core.catalog.registry import CatalogRegistry
from hdi.core.config.settings import get_settings
from hdi.core.scheduling.coalescer import AnalysisCoalescer
from hdi.domains.headache.connectors import HeadacheDataProvider
from hdi.domains.headache.connectors.composite import CompositeHeadacheProvider
from hdi.domains.headache.connectors.providers import InMemoryHeadacheProvider
from hdi.domains.headache.domain_logic.analysis_engine import HeadacheAnalysisEngine
from hdi.domains.headache.domain_logic.models import AnalysisResult
from hdi.domains.headache.prompts.headache_prompts import register_headache_prompts
from hdi.domains.headache.resources.catalog import register_catalog_resources
from hdi.domains.headache.tools.analysis_tools import register_analysis_tools

logger = logging.getLogger(__name__)

# Catalog YAML definitions live under src/hdi/domains/headache/catalog/
_CATALOG_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "headache" / "catalog"


def create_app(
    *,
    provider_override: HeadacheDataProvider | None = None,
    catalog_override: CatalogRegistry | None = None,
    executor_override: Executor | None = None,
    feed_providers: list[HeadacheDataProvider] | None = None,
) -> FastMCP:
    """Create and configure the Headache Diary Insights MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the recommendation catalog
    3. Builds the analysis engine and the coalescer in front of it
    4. Initializes the headache data provider (in-memory unless overridden),
       placing any feed providers ahead of it in a composite
    5. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Headache Diary Insights",
        instructions=(
            "Headache diary analysis server. Correlates headaches with weather, "
            "body signals and the menstrual cycle, finds risky trigger combinations, "
            "forecasts headache risk for the coming days and explains what to do "
            "about it in plain language."
        ),
    )

    # --- Recommendation catalog ---
    if catalog_override is not None:
        registry = catalog_override
    else:
        catalog_dir = Path(settings.catalog_path) if settings.catalog_path else _CATALOG_DIR
        registry = CatalogRegistry()
        template_count = load_catalog_directory(catalog_dir, registry)
        logger.info("Loaded %d message templates from %s", template_count, catalog_dir)

    # --- Analysis engine ---
    engine = HeadacheAnalysisEngine(
        registry,
        forecast_horizon_days=settings.forecast_horizon_days,
        confidence_threshold=settings.confidence_threshold,
        confidence_mode=settings.ensemble_confidence_mode,
        observation_window_days=settings.observation_window_days,
        executor=executor_override,
    )
    coalescer: AnalysisCoalescer[AnalysisResult] = AnalysisCoalescer()

    # --- Headache data provider ---
    provider: HeadacheDataProvider
    if provider_override is not None:
        provider = provider_override
    else:
        provider = InMemoryHeadacheProvider()
        logger.info("Using in-memory headache data provider")
    # Manual entries always land in the diary, even behind a composite.
    diary = provider if isinstance(provider, InMemoryHeadacheProvider) else None

    if feed_providers:
        provider = CompositeHeadacheProvider([*feed_providers, provider])
        logger.info("Using %d feed provider(s) ahead of the diary", len(feed_providers))

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        stats = coalescer.stats
        return {
            "status": "ok",
            "server": "Headache Diary Insights",
            "version": "0.1.0",
            "templates_loaded": len(registry),
            "data_source": provider.data_source,
            "data_connected": provider.is_connected(),
            "analysis_passes": stats.passes,
            "analysis_requests_coalesced": stats.coalesced,
        }

    register_analysis_tools(server, engine, provider, coalescer, settings)
    logger.info("Headache analysis tools registered")

    # --- Register entry tools (requires a writable in-memory provider) ---
    if diary is not None:
        from hdi.domains.headache.tools.entry_tools import register_entry_tools

        register_entry_tools(server, diary)
        logger.info("Headache entry tools registered")

    # --- Register resources ---
    register_catalog_resources(server, registry)

    # --- Register prompts ---
    register_headache_prompts(server)

    return server


# Module-level instance for FastMCP discovery ("server": "...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
