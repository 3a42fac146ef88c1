"""Static content loading.

This module loads the engine's external content from YAML files:
interpretation tables per assessment type, the fairness action lookup and
the professional-standards checklists. Item catalogs and assessment
definitions can be loaded from YAML the same way. Content is data; the
scoring logic never hard-codes any of it.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from assessment_engine.core.config import settings
from assessment_engine.core.errors import ContentConfigError
from assessment_engine.schemas.compliance import StandardChecklist
from assessment_engine.schemas.content import AssessmentDefinition, InterpretationTables
from assessment_engine.schemas.items import Item
from libs.domain_types import StandardType

logger = logging.getLogger(__name__)

PACKAGED_CONTENT_DIR = Path(__file__).resolve().parent.parent / "content"

INTERPRETATION_FILE = "interpretation.yaml"
FAIRNESS_ACTIONS_FILE = "fairness_actions.yaml"
COMPLIANCE_FILE = "compliance_standards.yaml"


class InterpretationContent(BaseModel):
    """Interpretation tables for every assessment type.

    Attributes:
        version: Content version
        assessments: Mapping of assessment type to its tables
    """

    version: str
    assessments: Dict[str, InterpretationTables]

    @model_validator(mode="before")
    @classmethod
    def inject_assessment_types(cls, data: Any) -> Any:
        """Fill each table's assessment_type from its mapping key."""
        if isinstance(data, dict) and isinstance(data.get("assessments"), dict):
            data = dict(data)
            data["assessments"] = {
                key: {"assessment_type": key, **(body or {})}
                for key, body in data["assessments"].items()
            }
        return data


class FairnessActionTable(BaseModel):
    """Recommended fairness actions keyed by failed check.

    Attributes:
        version: Content version
        order: Order in which keys contribute actions
        actions: Mapping of check key to actions
    """

    version: str
    order: List[str] = Field(..., min_length=1)
    actions: Dict[str, List[str]]

    @model_validator(mode="after")
    def validate_order_keys(self) -> "FairnessActionTable":
        """Validate every ordered key has actions."""
        missing = [key for key in self.order if key not in self.actions]
        if missing:
            raise ValueError(f"Fairness action keys without actions: {missing}")
        return self

    def actions_for(self, keys: List[str], **placeholders: str) -> List[str]:
        """Actions for the given keys, in table order, without duplicates."""
        selected: List[str] = []
        for key in self.order:
            if key not in keys:
                continue
            for action in self.actions[key]:
                text = action.format(**placeholders) if placeholders else action
                if text not in selected:
                    selected.append(text)
        return selected


class ComplianceContent(BaseModel):
    """Requirement checklists for every tracked standard.

    Attributes:
        version: Content version
        standards: One checklist per standard
    """

    version: str
    standards: List[StandardChecklist]

    @field_validator("standards")
    @classmethod
    def validate_standards(cls, v: List[StandardChecklist]) -> List[StandardChecklist]:
        """Validate every standard appears exactly once."""
        types = [checklist.standard_type for checklist in v]
        missing = set(StandardType) - set(types)
        if missing:
            raise ValueError(f"Missing checklists for standards: {sorted(s.value for s in missing)}")
        if len(types) != len(set(types)):
            raise ValueError("Each standard may only have one checklist")
        return v


def load_yaml(path: Path) -> Any:
    """Read a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ContentConfigError: If the YAML cannot be parsed
    """
    if not path.exists():
        raise FileNotFoundError(f"Content file not found: {path}")

    logger.info(f"Loading content from {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML content {path}: {e}")
        raise ContentConfigError(
            "Content file is not valid YAML", original_error=e, context=str(path)
        ) from e


def _parse(model: type, raw: Any, path: Path) -> Any:
    if not isinstance(raw, dict):
        raise ContentConfigError("Content file must contain a mapping", context=str(path))
    try:
        return model(**raw)
    except ValidationError as e:
        logger.error(f"Invalid content in {path}: {e}")
        raise ContentConfigError(
            f"Content file does not match the {model.__name__} schema",
            original_error=e,
            context=str(path),
        ) from e


class ContentLoader:
    """Loader for the engine's static content files.

    This class handles loading, parsing, and validating the interpretation,
    fairness-action and compliance YAML files from one content directory.
    """

    def __init__(self, content_dir: Optional[str | Path] = None):
        """Initialize the content loader.

        Args:
            content_dir: Directory holding the content files. Defaults to
                settings.CONTENT_DIR, or the files shipped with the package.
        """
        directory = content_dir or settings.CONTENT_DIR or PACKAGED_CONTENT_DIR
        self.content_dir = Path(directory)
        self._interpretation: Optional[InterpretationContent] = None
        self._fairness_actions: Optional[FairnessActionTable] = None
        self._compliance: Optional[ComplianceContent] = None

    def load(self) -> "ContentLoader":
        """Load and validate every content file.

        Returns:
            The loader itself, for chaining

        Raises:
            FileNotFoundError: If a content file doesn't exist
            ContentConfigError: If a file is not valid YAML or fails validation
        """
        interpretation_path = self.content_dir / INTERPRETATION_FILE
        self._interpretation = _parse(
            InterpretationContent, load_yaml(interpretation_path), interpretation_path
        )
        actions_path = self.content_dir / FAIRNESS_ACTIONS_FILE
        self._fairness_actions = _parse(
            FairnessActionTable, load_yaml(actions_path), actions_path
        )
        compliance_path = self.content_dir / COMPLIANCE_FILE
        self._compliance = _parse(ComplianceContent, load_yaml(compliance_path), compliance_path)

        logger.info(
            f"Loaded content from {self.content_dir}: "
            f"{len(self._interpretation.assessments)} assessment types, "
            f"{len(self._compliance.standards)} standards"
        )
        return self

    def _require_loaded(self) -> None:
        if self._interpretation is None:
            raise RuntimeError("Content not loaded. Call load() first.")

    @property
    def interpretation(self) -> InterpretationContent:
        self._require_loaded()
        return self._interpretation

    @property
    def fairness_actions(self) -> FairnessActionTable:
        self._require_loaded()
        return self._fairness_actions

    @property
    def compliance(self) -> ComplianceContent:
        self._require_loaded()
        return self._compliance

    def tables_for(self, assessment_type: str) -> InterpretationTables:
        """Interpretation tables for one assessment type.

        Raises:
            RuntimeError: If content hasn't been loaded
            ContentConfigError: If the assessment type has no tables
        """
        tables = self.interpretation.assessments.get(assessment_type)
        if tables is None:
            raise ContentConfigError(
                f"No interpretation tables for assessment type '{assessment_type}'",
                context=f"known types: {sorted(self.interpretation.assessments)}",
            )
        return tables

    def checklist_for(self, standard_type: StandardType) -> StandardChecklist:
        """Requirement checklist for one standard."""
        for checklist in self.compliance.standards:
            if checklist.standard_type == standard_type:
                return checklist
        # ComplianceContent validation guarantees every standard is present
        raise ContentConfigError(f"No checklist for standard '{standard_type.value}'")


@lru_cache(maxsize=1)
def get_content() -> ContentLoader:
    """Content loaded once from the configured directory and shared read-only."""
    return ContentLoader().load()


def load_item_catalog(path: str | Path) -> List[Item]:
    """Load an item list from a YAML file with a top-level ``items`` key.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ContentConfigError: If the file is malformed or an item is invalid
    """
    path = Path(path)
    raw = load_yaml(path)
    if not isinstance(raw, dict) or not isinstance(raw.get("items"), list):
        raise ContentConfigError("Item catalog must contain an 'items' list", context=str(path))
    try:
        items = [Item(**entry) for entry in raw["items"]]
    except (TypeError, ValidationError) as e:
        raise ContentConfigError(
            "Item catalog contains an invalid item", original_error=e, context=str(path)
        ) from e
    logger.info(f"Loaded {len(items)} items from {path}")
    return items


def load_assessment_definition(path: str | Path) -> AssessmentDefinition:
    """Load an assessment definition (type, dimensions, items, validity overrides)."""
    path = Path(path)
    definition = _parse(AssessmentDefinition, load_yaml(path), path)
    logger.info(
        f"Loaded assessment definition '{definition.assessment_type}' "
        f"({len(definition.dimensions)} dimensions, {len(definition.items)} items)"
    )
    return definition
