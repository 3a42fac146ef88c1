"""
Pydantic schemas for population-level bias and fairness analysis.

A BiasAnalysisResult is an ephemeral view-model: it is recomputed for every
(assessment type, timeframe) request from already-materialized results and
demographic labels, and never maintained incrementally.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from assessment_engine.core.config import settings
from assessment_engine.schemas.results import AssessmentResult
from libs.domain_types import AnalysisStatus, BiasSeverity


class Timeframe(BaseModel):
    """Half-open analysis window ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_order(self) -> "Timeframe":
        """Validate the window is not empty."""
        if self.start >= self.end:
            raise ValueError(f"Timeframe start {self.start} must be before end {self.end}")
        return self

    @classmethod
    def last_days(cls, days: int, as_of: datetime) -> "Timeframe":
        """Window covering the ``days`` days up to ``as_of``."""
        if days <= 0:
            raise ValueError(f"days must be positive, got {days}")
        return cls(start=as_of - timedelta(days=days), end=as_of)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    @property
    def days(self) -> float:
        return (self.end - self.start).total_seconds() / 86400


class PassCriterion(BaseModel):
    """
    Rule deciding whether one result counts as a pass (selection).

    By default a result passes when its overall score reaches the cutoff;
    with ``dimension`` set, that dimension's percentage is used instead.
    """

    model_config = ConfigDict(frozen=True)

    cutoff: float = Field(
        default_factory=lambda: settings.DEFAULT_PASS_SCORE, ge=0.0, le=100.0
    )
    dimension: Optional[str] = None


class FairnessConfig(BaseModel):
    """Thresholds for a fairness analysis; defaults come from engine settings."""

    model_config = ConfigDict(frozen=True)

    min_group_size: int = Field(
        default_factory=lambda: settings.FAIRNESS_MIN_GROUP_SIZE, ge=1
    )
    four_fifths_threshold: float = Field(
        default_factory=lambda: settings.FOUR_FIFTHS_THRESHOLD, gt=0.0, le=100.0
    )
    severity_bands: Dict[BiasSeverity, float] = Field(
        default_factory=lambda: {
            BiasSeverity(k): v for k, v in settings.BIAS_SEVERITY_BANDS.items()
        },
        description="Minimum adverse impact ratio for each severity",
    )
    fairness_scores: Dict[BiasSeverity, float] = Field(
        default_factory=lambda: {
            BiasSeverity(k): v for k, v in settings.FAIRNESS_SCORE_BY_SEVERITY.items()
        },
        description="Fairness score reported for each severity",
    )
    parity_max_difference: float = Field(
        default_factory=lambda: settings.STATISTICAL_PARITY_MAX_DIFFERENCE, ge=0.0, le=1.0
    )
    disparity_flag_points: float = Field(
        default_factory=lambda: settings.SCORE_DISPARITY_FLAG_POINTS, ge=0.0, le=100.0
    )
    significance_alpha: float = Field(
        default_factory=lambda: settings.SIGNIFICANCE_ALPHA, gt=0.0, lt=1.0
    )
    disability_attribute: str = Field(default_factory=lambda: settings.DISABILITY_ATTRIBUTE)
    attributes: Optional[List[str]] = Field(
        None,
        description="Demographic attributes to analyze; None means every attribute present",
    )
    pass_criterion: PassCriterion = Field(default_factory=PassCriterion)

    @model_validator(mode="after")
    def validate_severity_tables(self) -> "FairnessConfig":
        """Validate the severity cut points and the per-severity fairness scores."""
        if set(self.severity_bands.keys()) != set(BiasSeverity):
            raise ValueError(
                f"severity_bands must cover {[s.value for s in BiasSeverity]}"
            )
        cut_points = [self.severity_bands[s] for s in BiasSeverity]
        if any(upper <= lower for upper, lower in zip(cut_points, cut_points[1:])):
            raise ValueError(
                f"severity_bands must descend from low to critical, got {cut_points}"
            )
        if set(self.fairness_scores.keys()) != set(BiasSeverity):
            raise ValueError(
                f"fairness_scores must cover {[s.value for s in BiasSeverity]}"
            )
        out_of_range = [s.value for s, v in self.fairness_scores.items() if not 0 <= v <= 100]
        if out_of_range:
            raise ValueError(f"fairness_scores must be within 0-100, got: {out_of_range}")
        return self


class FairnessRecord(BaseModel):
    """One persisted result with the candidate's demographic labels."""

    model_config = ConfigDict(frozen=True)

    result: AssessmentResult
    demographics: Dict[str, str] = Field(default_factory=dict)
    completed_at: datetime


class GroupStatistics(BaseModel):
    """Pass statistics for one demographic group."""

    model_config = ConfigDict(frozen=True)

    group: str
    respondents: int = Field(..., ge=0)
    passes: int = Field(..., ge=0)
    pass_rate: float = Field(..., ge=0.0, le=1.0)
    mean_score: Optional[float] = None


class AttributeAnalysis(BaseModel):
    """Adverse-impact analysis for one demographic attribute."""

    model_config = ConfigDict(frozen=True)

    attribute: str
    status: AnalysisStatus
    groups: List[GroupStatistics] = Field(default_factory=list)
    undersized_groups: List[str] = Field(default_factory=list)
    adverse_impact_ratio: Optional[float] = Field(None, ge=0.0, le=100.0)
    four_fifths_pass: Optional[bool] = None
    lowest_group: Optional[str] = None
    highest_group: Optional[str] = None
    parity_difference: Optional[float] = Field(
        None, description="Highest minus lowest pass rate (0.0-1.0)"
    )
    p_value: Optional[float] = Field(
        None, description="Two-proportion z-test between lowest and highest groups"
    )
    comparable: bool = Field(
        True, description="False when the attribute has fewer than two groups"
    )


class DimensionDisparity(BaseModel):
    """Largest gap in mean dimension score between groups of one attribute."""

    model_config = ConfigDict(frozen=True)

    dimension: str
    attribute: str
    disparity: float = Field(..., ge=0.0, description="Percentage points between group means")
    favored_group: str
    disfavored_group: str
    flagged: bool


class BiasIndicators(BaseModel):
    """Supporting statistics behind the headline ratio."""

    model_config = ConfigDict(frozen=True)

    adverse_impact_ratio: Optional[float] = None
    statistical_parity_difference: Optional[float] = None
    disparity_p_value: Optional[float] = None
    dimension_disparities: List[DimensionDisparity] = Field(default_factory=list)


class ComplianceChecks(BaseModel):
    """
    Independent legal-compliance checks over the same rate data.

    None means the check could not be evaluated (insufficient sample, or
    the attribute it needs was not collected).
    """

    model_config = ConfigDict(frozen=True)

    eeo: Optional[bool] = None
    ada: Optional[bool] = None
    statistical_parity: Optional[bool] = None


class BiasAnalysisResult(BaseModel):
    """Fairness analysis for one (assessment type, timeframe) pair."""

    model_config = ConfigDict(frozen=True)

    assessment_type: str
    timeframe: Timeframe
    status: AnalysisStatus
    sample_size: int = Field(..., ge=0)
    adverse_impact_ratio: Optional[float] = Field(
        None,
        ge=0.0,
        le=100.0,
        description="Lowest attribute ratio; never reported for insufficient samples",
    )
    four_fifths_pass: Optional[bool] = None
    bias_severity: Optional[BiasSeverity] = None
    attribute_analyses: List[AttributeAnalysis] = Field(default_factory=list)
    bias_indicators: BiasIndicators = Field(default_factory=BiasIndicators)
    flagged_dimensions: List[str] = Field(default_factory=list)
    compliance_status: ComplianceChecks = Field(default_factory=ComplianceChecks)
    recommended_actions: List[str] = Field(default_factory=list)
    fairness_score: Optional[float] = Field(None, ge=0.0, le=100.0)
    details: str = ""


class BiasAnalysisRequest(BaseModel):
    """Input for one analysis in a multi-assessment fan-out."""

    model_config = ConfigDict(frozen=True)

    assessment_type: str
    records: List[FairnessRecord]
    timeframe: Timeframe
    config: Optional[FairnessConfig] = None


class BiasMonitoringSummary(BaseModel):
    """Dashboard roll-up across assessment types."""

    model_config = ConfigDict(frozen=True)

    overall_fairness_score: Optional[float] = Field(
        None, description="Mean fairness score over rated assessment types"
    )
    assessment_fairness: Dict[str, float] = Field(default_factory=dict)
    severity_counts: Dict[BiasSeverity, int] = Field(default_factory=dict)
    insufficient_sample: List[str] = Field(default_factory=list)
    no_data: List[str] = Field(default_factory=list)
    compliance_alerts: List[str] = Field(default_factory=list)
