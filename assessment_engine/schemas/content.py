"""
Pydantic schemas for static interpretation content and assessment definitions.

These tables are external data loaded at startup (see
``assessment_engine.core.content``). They say what a number means; the
engine only selects keys from them and never hard-codes their values.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assessment_engine.core.config import settings
from assessment_engine.schemas.items import Item
from assessment_engine.schemas.validity import ValidityConfig
from libs.domain_types import RiskLevel, ScoreLevel


class ProfileBand(BaseModel):
    """Minimum overall score at which a profile label applies."""

    model_config = ConfigDict(frozen=True)

    min_score: float = Field(..., ge=0.0, le=100.0)
    label: str = Field(..., min_length=1)


class RiskConfig(BaseModel):
    """Risk-level configuration for wellness-oriented assessments."""

    model_config = ConfigDict(frozen=True)

    dimensions: List[str] = Field(
        ..., min_length=1, description="Dimensions whose lowest score drives the risk level"
    )
    bands: Dict[RiskLevel, float] = Field(
        default_factory=lambda: {
            RiskLevel(level): cut for level, cut in settings.DEFAULT_RISK_BANDS.items()
        },
        description="Minimum lowest-dimension percentage for each risk level",
    )

    @field_validator("bands")
    @classmethod
    def validate_bands(cls, v: Dict[RiskLevel, float]) -> Dict[RiskLevel, float]:
        """Validate every risk level has a cut point, lower risk needing higher scores."""
        if set(v.keys()) != set(RiskLevel):
            raise ValueError(f"Risk bands must cover {[r.value for r in RiskLevel]}")
        if not v[RiskLevel.LOW] > v[RiskLevel.MEDIUM] > v[RiskLevel.HIGH]:
            raise ValueError(
                "Risk bands must satisfy low > medium > high, "
                f"got {[v[r] for r in RiskLevel]}"
            )
        return v


class InterpretationTables(BaseModel):
    """Interpretive thresholds and recommendation keys for one assessment type."""

    model_config = ConfigDict(frozen=True)

    assessment_type: str = Field(..., min_length=1)
    level_bands: Dict[ScoreLevel, float] = Field(
        default_factory=lambda: {
            ScoreLevel(level): cut for level, cut in settings.DEFAULT_LEVEL_BANDS.items()
        }
    )
    top_n: int = Field(default_factory=lambda: settings.DEFAULT_TOP_N, ge=1)
    max_recommendations: int = Field(
        default_factory=lambda: settings.MAX_RECOMMENDATIONS, ge=1
    )
    dimension_weights: Dict[str, float] = Field(
        default_factory=dict,
        description="Weights for the overall score; missing dimensions weigh 1.0",
    )
    profile_bands: List[ProfileBand] = Field(default_factory=list)
    # dimension -> level -> recommendation keys
    recommendations: Dict[str, Dict[ScoreLevel, List[str]]] = Field(default_factory=dict)
    risk: Optional[RiskConfig] = None

    @field_validator("level_bands")
    @classmethod
    def validate_level_bands(cls, v: Dict[ScoreLevel, float]) -> Dict[ScoreLevel, float]:
        """Validate every level has a cut point and higher levels need higher scores."""
        if set(v.keys()) != set(ScoreLevel):
            raise ValueError(f"Level bands must cover {[level.value for level in ScoreLevel]}")
        cut_points = [v[level] for level in ScoreLevel]
        if any(lower >= upper for lower, upper in zip(cut_points, cut_points[1:])):
            raise ValueError(f"Level cut points must increase from low to exceptional, got {cut_points}")
        return v

    @field_validator("dimension_weights")
    @classmethod
    def validate_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Validate dimension weights are positive."""
        non_positive = [k for k, w in v.items() if w <= 0]
        if non_positive:
            raise ValueError(f"Dimension weights must be positive, got non-positive: {non_positive}")
        return v

    @field_validator("profile_bands")
    @classmethod
    def sort_profile_bands(cls, v: List[ProfileBand]) -> List[ProfileBand]:
        """Order profile bands highest first."""
        return sorted(v, key=lambda band: band.min_score, reverse=True)


class AssessmentDefinition(BaseModel):
    """
    Catalog slice and scoring configuration for one assessment type.

    The engine is parameterized by this definition alone: a set of
    dimensions, the items measuring them and the validity thresholds.
    """

    model_config = ConfigDict(frozen=True)

    assessment_type: str = Field(..., min_length=1)
    dimensions: List[str] = Field(..., min_length=1)
    items: List[Item]
    validity: ValidityConfig = Field(default_factory=ValidityConfig)

    @model_validator(mode="after")
    def validate_dimensions_unique(self) -> "AssessmentDefinition":
        """Validate dimension names are declared once."""
        duplicates = sorted({d for d in self.dimensions if self.dimensions.count(d) > 1})
        if duplicates:
            raise ValueError(f"Dimensions declared more than once: {duplicates}")
        return self
