"""Tests for the message catalog: loading, registry lookups, rendering, validation."""

from __future__ import annotations

import pytest

from conftest import CATALOG_DIR
from hdi.core.catalog.loader import load_catalog_directory, load_template_file
from hdi.core.catalog.models import CatalogError, MessageTemplate
from hdi.core.catalog.registry import CatalogRegistry
from hdi.core.catalog.validator import validate_catalog_directory, validate_template_file

REQUIRED_TEMPLATES = [
    "analysis_status",
    "correlation_description",
    "data_quality",
    "prediction_recommendation",
    "insight_cyclic",
    "insight_environmental",
    "insight_combined_triggers",
    "insight_medication_overuse",
    "insight_lifestyle",
    "predictive_alert",
]


def _template(**overrides) -> MessageTemplate:
    values = dict(id="sample", version="1.0.0", domain="headache", category="test")
    values.update(overrides)
    return MessageTemplate(**values)


class TestBundledCatalog:
    def test_all_templates_load(self, catalog):
        for template_id in REQUIRED_TEMPLATES:
            assert catalog.get(template_id) is not None, f"Missing template: {template_id}"

    def test_bundled_catalog_validates(self):
        count, errors = validate_catalog_directory(CATALOG_DIR)
        assert errors == []
        assert count == len(REQUIRED_TEMPLATES)

    def test_find_by_category_and_tag(self, catalog):
        assert {t.id for t in catalog.find_by_category("lifestyle")} == {
            "insight_medication_overuse",
            "insight_lifestyle",
        }
        assert "insight_cyclic" in {t.id for t in catalog.find_by_tag("insight")}


class TestRegistry:
    def test_duplicate_ids_rejected(self):
        registry = CatalogRegistry()
        registry.register(_template())
        with pytest.raises(ValueError, match="Duplicate"):
            registry.register(_template())

    def test_require_missing_raises(self):
        with pytest.raises(CatalogError, match="not loaded"):
            CatalogRegistry().require("nope")

    def test_len(self, catalog):
        assert len(catalog) == len(REQUIRED_TEMPLATES)


class TestRendering:
    def test_phrase_formatting(self):
        template = _template(phrases={"greet": "Hello {name}, r={r:.2f}"})
        assert template.phrase("greet", name="Ana", r=0.456) == "Hello Ana, r=0.46"

    def test_missing_phrase_raises(self):
        with pytest.raises(CatalogError, match="no phrase"):
            _template().phrase("missing")

    def test_missing_placeholder_value_raises(self):
        template = _template(title="Hi {name}")
        with pytest.raises(CatalogError, match="Cannot render"):
            template.render_title()

    def test_recommendation_sets(self):
        template = _template(
            recommendations=["Base {x}"],
            recommendation_sets={"extra": ["More {x}"]},
        )
        assert template.render_recommendations(x=1) == ["Base 1"]
        assert template.render_recommendations("extra", x=2) == ["More 2"]
        assert template.render_recommendations("absent") == []


class TestLoaderAndValidator:
    def test_missing_required_key(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("id: broken\nversion: '1.0.0'\ndomain: headache\n")
        with pytest.raises(CatalogError, match="category"):
            load_template_file(path)

    def test_loader_skips_bad_and_underscore_files(self, tmp_path):
        (tmp_path / "good.yaml").write_text(
            "id: good\nversion: '1.0.0'\ndomain: headache\ncategory: test\ntitle: Hi\n"
        )
        (tmp_path / "bad.yaml").write_text("- just\n- a list\n")
        (tmp_path / "_draft.yaml").write_text(
            "id: draft\nversion: '1.0.0'\ndomain: headache\ncategory: test\ntitle: Hi\n"
        )
        registry = CatalogRegistry()
        assert load_catalog_directory(tmp_path, registry) == 1
        assert registry.get("good") is not None

    def test_missing_directory_loads_nothing(self, tmp_path):
        assert load_catalog_directory(tmp_path / "absent", CatalogRegistry()) == 0

    def test_validator_flags_problems(self, tmp_path):
        path = tmp_path / "named_wrong.yaml"
        path.write_text("id: other\nversion: 'v1'\ndomain: headache\ncategory: test\n")
        template, errors = validate_template_file(path)
        assert template is not None
        assert any("no title, body or phrases" in e for e in errors)
        assert any("doesn't look like a version" in e for e in errors)
        assert any("Filename should match" in e for e in errors)

    def test_validator_detects_duplicate_ids(self, tmp_path):
        text = "id: same\nversion: '1.0.0'\ndomain: headache\ncategory: test\ntitle: Hi\n"
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        (tmp_path / "a" / "same.yaml").write_text(text)
        (tmp_path / "b" / "same.yaml").write_text(text)
        count, errors = validate_catalog_directory(tmp_path)
        assert count == 2
        assert any("Duplicate ID 'same'" in e for e in errors)
