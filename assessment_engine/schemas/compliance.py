"""
Pydantic schemas for professional-standards compliance tracking.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assessment_engine.schemas.fairness import BiasAnalysisResult
from libs.domain_types import ComplianceStatus, StandardType


class EvidenceSource(str, Enum):
    """Computed evidence that can satisfy a requirement without documentation."""

    RELIABILITY = "reliability"  # Cronbach's alpha at or above the threshold
    BIAS_ANALYSIS = "bias_analysis"  # Complete, EEO-passing bias analysis


class Requirement(BaseModel):
    """One checklist requirement of a standard."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    critical: bool = Field(
        False, description="Flagged separately when missing, whatever the overall score"
    )
    evidence: Optional[EvidenceSource] = None


class StandardChecklist(BaseModel):
    """Static requirement checklist for one standard."""

    model_config = ConfigDict(frozen=True)

    standard_type: StandardType
    name: str
    requirements: List[Requirement] = Field(..., min_length=1)
    remediation_plan: List[str] = Field(default_factory=list)

    @field_validator("requirements")
    @classmethod
    def validate_unique_keys(cls, v: List[Requirement]) -> List[Requirement]:
        """Validate requirement keys are unique within the checklist."""
        keys = [requirement.key for requirement in v]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate requirement keys: {duplicates}")
        return v


class ComplianceEvidence(BaseModel):
    """
    Evidence available for one assessment type.

    ``documented`` lists requirement keys backed by documentation. The
    reliability coefficient and bias analysis satisfy their requirements
    only when they meet the configured thresholds.
    """

    model_config = ConfigDict(frozen=True)

    documented: List[str] = Field(default_factory=list)
    reliability_alpha: Optional[float] = Field(None, ge=0.0, le=1.0)
    bias_analysis: Optional[BiasAnalysisResult] = None


class ComplianceStandard(BaseModel):
    """Compliance record for one (standard, assessment type) pair."""

    model_config = ConfigDict(frozen=True)

    standard_type: StandardType
    assessment_type: str
    requirements_met: List[str] = Field(default_factory=list)
    requirements_missing: List[str] = Field(default_factory=list)
    compliance_score: float = Field(..., ge=0.0, le=100.0)
    status: ComplianceStatus
    critical_issues: List[str] = Field(default_factory=list)
    remediation_plan: List[str] = Field(default_factory=list)


class ComplianceSummary(BaseModel):
    """Dashboard roll-up of compliance records."""

    model_config = ConfigDict(frozen=True)

    standard_scores: Dict[StandardType, float] = Field(default_factory=dict)
    overall_score: Optional[float] = None
    critical_issue_count: int = 0
    non_compliant: List[str] = Field(
        default_factory=list, description="'<standard>:<assessment type>' pairs"
    )
