"""Data models for the message catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class CatalogError(Exception):
    """Raised when a catalog entry is missing, malformed, or cannot be rendered."""


@dataclass
class MessageTemplate:
    """A templated block of user-facing text.

    Text fields use ``str.format`` placeholders. ``phrases`` holds short keyed
    variants; ``recommendation_sets`` holds keyed lists of action items.
    """

    id: str
    version: str
    domain: str
    category: str
    title: str = ""
    body: str = ""
    recommendations: list[str] = field(default_factory=list)
    phrases: dict[str, str] = field(default_factory=dict)
    recommendation_sets: dict[str, list[str]] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)

    def render_title(self, **values: Any) -> str:
        return self._format(self.title, values)

    def render_body(self, **values: Any) -> str:
        return self._format(self.body, values)

    def render_recommendations(self, key: str | None = None, **values: Any) -> list[str]:
        """Render the default recommendations, or the named set when ``key`` is given."""
        if key is None:
            items = self.recommendations
        else:
            items = self.recommendation_sets.get(key, [])
        return [self._format(item, values) for item in items]

    def has_phrase(self, key: str) -> bool:
        return key in self.phrases

    def phrase(self, key: str, **values: Any) -> str:
        try:
            text = self.phrases[key]
        except KeyError:
            raise CatalogError(f"Template {self.id!r} has no phrase {key!r}") from None
        return self._format(text, values)

    def _format(self, text: str, values: dict[str, Any]) -> str:
        try:
            return text.format(**values).strip()
        except (KeyError, IndexError, ValueError) as exc:
            raise CatalogError(f"Cannot render template {self.id!r}: {exc}") from exc
