"""Catalog registry — in-memory index for loaded message templates."""

from __future__ import annotations

import logging

from hdi.core.catalog.models import CatalogError, MessageTemplate

logger = logging.getLogger(__name__)


class CatalogRegistry:
    """In-memory registry of all loaded message templates."""

    def __init__(self) -> None:
        self._templates: dict[str, MessageTemplate] = {}
        self._by_category: dict[str, list[str]] = {}
        self._by_tag: dict[str, list[str]] = {}

    def register(self, template: MessageTemplate) -> None:
        """Add a template to all indexes."""
        if template.id in self._templates:
            raise ValueError(f"Duplicate template id registered: {template.id!r}")
        self._templates[template.id] = template
        self._by_category.setdefault(template.category, []).append(template.id)

        for tag in template.tags:
            ids = self._by_tag.setdefault(tag, [])
            if template.id not in ids:
                ids.append(template.id)

    def get(self, template_id: str) -> MessageTemplate | None:
        """Look up a template by ID."""
        return self._templates.get(template_id)

    def require(self, template_id: str) -> MessageTemplate:
        """Look up a template by ID, raising CatalogError when it is not loaded."""
        template = self._templates.get(template_id)
        if template is None:
            raise CatalogError(f"Template not loaded: {template_id!r}")
        return template

    def find_by_category(self, category: str) -> list[MessageTemplate]:
        ids = self._by_category.get(category, [])
        return [self._templates[tid] for tid in ids]

    def find_by_tag(self, tag: str) -> list[MessageTemplate]:
        ids = self._by_tag.get(tag, [])
        return [self._templates[tid] for tid in ids]

    def all(self) -> list[MessageTemplate]:
        """Return all registered templates."""
        return list(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)
