"""
Tests for static content loading.
"""

import shutil

import pytest

from assessment_engine.core.content import (
    PACKAGED_CONTENT_DIR,
    ContentLoader,
    FairnessActionTable,
    load_assessment_definition,
    load_item_catalog,
)
from assessment_engine.core.errors import ContentConfigError
from libs.domain_types import ItemType, ScoreLevel, StandardType


@pytest.fixture
def content_copy(tmp_path):
    """A writable copy of the packaged content directory."""
    target = tmp_path / "content"
    shutil.copytree(PACKAGED_CONTENT_DIR, target)
    return target


class TestPackagedContent:
    """Tests for the content files shipped with the package."""

    def test_loads_every_file(self, packaged_content):
        """Test that the packaged content validates."""
        assert set(packaged_content.interpretation.assessments) >= {
            "cair_plus",
            "burnout_prevention",
        }
        assert [c.standard_type for c in packaged_content.compliance.standards] == list(
            StandardType
        )

    def test_assessment_type_injected_from_key(self, packaged_content):
        """Test that each table carries the assessment type it is keyed by."""
        for key, tables in packaged_content.interpretation.assessments.items():
            assert tables.assessment_type == key

    def test_burnout_tables(self, packaged_content):
        """Test that burnout tables declare risk dimensions and custom bands."""
        tables = packaged_content.tables_for("burnout_prevention")
        assert tables.risk is not None
        assert "coping" in tables.risk.dimensions
        assert set(tables.level_bands) == set(ScoreLevel)

    def test_unknown_assessment_type(self, packaged_content):
        """Test that a type without tables is a content error."""
        with pytest.raises(ContentConfigError, match="No interpretation tables"):
            packaged_content.tables_for("not_an_assessment")

    def test_checklist_for(self, packaged_content):
        """Test checklist lookup by standard."""
        checklist = packaged_content.checklist_for(StandardType.GDPR)
        assert checklist.standard_type == StandardType.GDPR
        assert len(checklist.requirements) == 9


class TestContentLoader:
    """Tests for ContentLoader behavior."""

    def test_access_before_load(self, tmp_path):
        """Test that reading content before load() is an error."""
        loader = ContentLoader(tmp_path)
        with pytest.raises(RuntimeError, match="Call load\\(\\) first"):
            _ = loader.interpretation

    def test_missing_directory(self, tmp_path):
        """Test that a missing content file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ContentLoader(tmp_path / "missing").load()

    def test_invalid_yaml(self, content_copy):
        """Test that unparsable YAML is a content error."""
        (content_copy / "interpretation.yaml").write_text("assessments: [unclosed\n")
        with pytest.raises(ContentConfigError, match="not valid YAML"):
            ContentLoader(content_copy).load()

    def test_schema_violation(self, content_copy):
        """Test that a file failing validation is a content error."""
        (content_copy / "compliance_standards.yaml").write_text(
            'version: "1.0"\nstandards: []\n'
        )
        with pytest.raises(ContentConfigError, match="ComplianceContent"):
            ContentLoader(content_copy).load()

    def test_non_mapping_file(self, content_copy):
        """Test that a file must hold a mapping."""
        (content_copy / "fairness_actions.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ContentConfigError, match="mapping"):
            ContentLoader(content_copy).load()

    def test_load_returns_loader(self, content_copy):
        loader = ContentLoader(content_copy)
        assert loader.load() is loader


class TestFairnessActionTable:
    """Tests for action selection."""

    @pytest.fixture
    def table(self):
        return FairnessActionTable(
            version="1",
            order=["first", "second", "third"],
            actions={
                "first": ["Shared action", "First only"],
                "second": ["Shared action"],
                "third": ["Look at {dimensions}"],
            },
        )

    def test_table_order_not_request_order(self, table):
        """Test that actions follow the table order and drop duplicates."""
        assert table.actions_for(["second", "first"]) == ["Shared action", "First only"]

    def test_placeholders(self, table):
        """Test that placeholders are filled in."""
        assert table.actions_for(["third"], dimensions="a, b") == ["Look at a, b"]

    def test_ordered_key_without_actions(self):
        """Test that every ordered key must have actions."""
        with pytest.raises(ValueError, match="without actions"):
            FairnessActionTable(version="1", order=["a"], actions={})


class TestCatalogFiles:
    """Tests for loading item catalogs and assessment definitions from YAML."""

    def test_load_item_catalog(self, tmp_path):
        """Test loading a list of items."""
        path = tmp_path / "items.yaml"
        path.write_text(
            "items:\n"
            "  - id: q1\n"
            "    dimension: focus\n"
            "    item_type: likert\n"
            "  - id: q2\n"
            "    dimension: focus\n"
            "    item_type: likert\n"
            "    reverse_scored: true\n"
        )
        items = load_item_catalog(path)
        assert [item.id for item in items] == ["q1", "q2"]
        assert items[1].reverse_scored is True
        assert items[0].item_type == ItemType.LIKERT

    def test_catalog_without_items_key(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("questions: []\n")
        with pytest.raises(ContentConfigError, match="'items' list"):
            load_item_catalog(path)

    def test_catalog_with_invalid_item(self, tmp_path):
        """Test that a malformed item is reported as a content error."""
        path = tmp_path / "items.yaml"
        path.write_text("items:\n  - id: q1\n    item_type: likert\n")
        with pytest.raises(ContentConfigError, match="invalid item"):
            load_item_catalog(path)

    def test_load_assessment_definition(self, tmp_path):
        """Test loading a definition with validity overrides."""
        path = tmp_path / "definition.yaml"
        path.write_text(
            "assessment_type: focus_check\n"
            "dimensions: [focus]\n"
            "items:\n"
            "  - id: q1\n"
            "    dimension: focus\n"
            "    item_type: likert\n"
            "validity:\n"
            "  straight_line_window: 8\n"
        )
        definition = load_assessment_definition(path)
        assert definition.assessment_type == "focus_check"
        assert definition.validity.straight_line_window == 8
