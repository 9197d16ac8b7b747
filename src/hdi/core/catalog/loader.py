"""Catalog loader — reads YAML message templates from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from hdi.core.catalog.models import CatalogError, MessageTemplate
from hdi.core.catalog.registry import CatalogRegistry

logger = logging.getLogger(__name__)


def load_catalog_directory(directory: str | Path, registry: CatalogRegistry) -> int:
    """Load all YAML templates from a directory (recursively).

    Returns the number of templates loaded.
    Skips files starting with underscore.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Catalog directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            template = load_template_file(path)
            registry.register(template)
            count += 1
            logger.debug("Loaded template: %s (v%s)", template.id, template.version)
        except (CatalogError, ValueError, OSError, yaml.YAMLError):
            logger.exception("Failed to load template from %s", path)
    return count


def load_template_file(path: Path) -> MessageTemplate:
    """Parse a YAML file into a MessageTemplate instance."""
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise CatalogError(f"{path}: top level must be a mapping")
    try:
        template_id = data["id"]
        version = str(data["version"])
        domain = data["domain"]
        category = data["category"]
    except KeyError as exc:
        raise CatalogError(f"{path}: missing required key {exc}") from None

    return MessageTemplate(
        id=template_id,
        version=version,
        domain=domain,
        category=category,
        title=data.get("title", "").strip(),
        body=data.get("body", "").strip(),
        recommendations=list(data.get("recommendations", [])),
        phrases={k: str(v) for k, v in data.get("phrases", {}).items()},
        recommendation_sets={
            k: list(v) for k, v in data.get("recommendation_sets", {}).items()
        },
        tags=data.get("tags", []),
    )
