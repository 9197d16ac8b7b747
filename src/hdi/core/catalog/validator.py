"""Catalog YAML validator — ensures template definitions are well-formed."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from hdi.core.catalog.loader import load_template_file
from hdi.core.catalog.models import CatalogError, MessageTemplate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["id", "version", "domain", "category"]


def validate_template_file(path: Path) -> tuple[MessageTemplate | None, list[str]]:
    """Validate a single template YAML file.

    Returns: (template_or_none, errors)
    """
    try:
        template = load_template_file(path)
    except (CatalogError, OSError, yaml.YAMLError) as exc:
        return None, [f"{path}: Failed to load: {exc}"]

    errors: list[str] = []
    for field_name in REQUIRED_FIELDS:
        if not getattr(template, field_name, None):
            errors.append(f"{path}: Missing or empty required field '{field_name}'")

    if not (template.title or template.body or template.phrases):
        errors.append(f"{path}: Template defines no title, body or phrases")

    if template.version and not all(c.isdigit() or c == "." for c in template.version):
        errors.append(
            f"{path}: Version '{template.version}' doesn't look like a version number"
        )

    if path.stem != template.id:
        errors.append(f"{path}: Filename should match template id '{template.id}'")

    return template, errors


def validate_catalog_directory(directory: str | Path) -> tuple[int, list[str]]:
    """Validate all template YAML files in a directory (recursively).

    Returns: (template_count, errors)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0, [f"Catalog directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.rglob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return 0, [f"No template YAML files found in {directory}"]

    errors: list[str] = []
    seen_ids: dict[str, Path] = {}
    loaded = 0
    for path in yaml_files:
        template, file_errors = validate_template_file(path)
        if file_errors:
            errors.extend(file_errors)
            continue
        assert template is not None  # for type checkers
        loaded += 1
        if template.id in seen_ids:
            errors.append(
                f"{path}: Duplicate ID '{template.id}' already defined in {seen_ids[template.id]}"
            )
        else:
            seen_ids[template.id] = path

    for err in errors:
        logger.error("%s", err)
    return loaded, errors
