"""MCP Resources for recommendation catalog discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from hdi.core.catalog.registry import CatalogRegistry


def register_catalog_resources(mcp: FastMCP, registry: CatalogRegistry) -> None:
    """Register recommendation catalog resources on the MCP server."""

    @mcp.resource("catalog://headache/recommendations")
    def headache_recommendation_catalog_resource() -> str:
        """Discover the message templates behind insights, alerts and recommendations."""
        templates = [t for t in registry.all() if t.domain == "headache"]
        return json.dumps(
            {
                "domain": "headache",
                "template_count": len(templates),
                "templates": [
                    {
                        "id": t.id,
                        "version": t.version,
                        "category": t.category,
                        "title": t.title,
                        "phrases": sorted(t.phrases),
                        "recommendation_sets": sorted(t.recommendation_sets),
                        "tags": t.tags,
                    }
                    for t in templates
                ],
            },
            indent=2,
        )
