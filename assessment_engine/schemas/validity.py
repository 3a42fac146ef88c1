"""
Pydantic schemas for response-validity analysis.

ValidityMetrics carries the distortion indices, the hard flags and an
explainable verdict: every rule that fired is listed in ``triggers`` and
every check that could not run is listed in ``unevaluated_checks``.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from assessment_engine.core.config import settings
from libs.domain_types import ValidityLevel


class ValidityCheck(str, Enum):
    """Individual checks run by the validity analyzer."""

    FAKE_GOOD = "fake_good"
    FAKE_BAD = "fake_bad"
    INCONSISTENCY = "inconsistency"
    RANDOM_CHECK = "random_check"
    STRAIGHT_LINING = "straight_lining"
    SPEED = "speed"


# Checks driven by embedded distortion items (as opposed to response patterns)
DISTORTION_ITEM_CHECKS = (
    ValidityCheck.FAKE_GOOD,
    ValidityCheck.FAKE_BAD,
    ValidityCheck.INCONSISTENCY,
    ValidityCheck.RANDOM_CHECK,
)


class ValidityConfig(BaseModel):
    """
    Thresholds for one assessment type's validity analysis.

    Defaults come from engine settings; assessment definitions override
    individual values.
    """

    model_config = ConfigDict(frozen=True)

    fake_good_increment: float = Field(
        default_factory=lambda: settings.VALIDITY_FAKE_GOOD_INCREMENT, gt=0.0, le=100.0
    )
    fake_bad_increment: float = Field(
        default_factory=lambda: settings.VALIDITY_FAKE_BAD_INCREMENT, gt=0.0, le=100.0
    )
    moderate_distortion: float = Field(
        default_factory=lambda: settings.VALIDITY_MODERATE_DISTORTION, ge=0.0, le=100.0
    )
    high_distortion: float = Field(
        default_factory=lambda: settings.VALIDITY_HIGH_DISTORTION, ge=0.0, le=100.0
    )
    consistency_tolerance: int = Field(
        default_factory=lambda: settings.VALIDITY_CONSISTENCY_TOLERANCE, ge=0
    )
    moderate_consistency: float = Field(
        default_factory=lambda: settings.VALIDITY_MODERATE_CONSISTENCY, ge=0.0, le=100.0
    )
    low_consistency: float = Field(
        default_factory=lambda: settings.VALIDITY_LOW_CONSISTENCY, ge=0.0, le=100.0
    )
    straight_line_window: int = Field(
        default_factory=lambda: settings.VALIDITY_STRAIGHT_LINE_WINDOW, ge=2
    )
    straight_line_min_variance: float = Field(
        default_factory=lambda: settings.VALIDITY_STRAIGHT_LINE_MIN_VARIANCE, ge=0.0
    )
    min_median_item_time_ms: float = Field(
        default_factory=lambda: settings.VALIDITY_MIN_MEDIAN_ITEM_TIME_MS, ge=0.0
    )
    min_time_per_item_ms: float = Field(
        default_factory=lambda: settings.VALIDITY_MIN_TIME_PER_ITEM_MS, ge=0.0
    )
    rapid_response_ms: float = Field(
        default_factory=lambda: settings.VALIDITY_RAPID_RESPONSE_MS, ge=0.0
    )
    min_timed_share: float = Field(
        default_factory=lambda: settings.VALIDITY_MIN_TIMED_SHARE, gt=0.0, le=1.0
    )

    @model_validator(mode="after")
    def validate_ordering(self) -> "ValidityConfig":
        """Validate moderate thresholds sit below their high counterparts."""
        if self.moderate_distortion >= self.high_distortion:
            raise ValueError(
                f"moderate_distortion ({self.moderate_distortion}) must be below "
                f"high_distortion ({self.high_distortion})"
            )
        if self.low_consistency >= self.moderate_consistency:
            raise ValueError(
                f"low_consistency ({self.low_consistency}) must be below "
                f"moderate_consistency ({self.moderate_consistency})"
            )
        return self


class ValidityTrigger(BaseModel):
    """A rule of the verdict table that fired."""

    model_config = ConfigDict(frozen=True)

    rule: str = Field(..., description="Rule identifier, e.g. 'random_check_failed'")
    verdict: ValidityLevel = Field(..., description="Verdict this rule caps the attempt at")
    details: str


class TimingStatistics(BaseModel):
    """Response-time statistics used by the speed check."""

    model_config = ConfigDict(frozen=True)

    timed_responses: int = Field(..., ge=0)
    total_time_ms: float = Field(..., ge=0.0)
    median_item_time_ms: float = Field(..., ge=0.0)
    mean_item_time_ms: float = Field(..., ge=0.0)
    rapid_response_count: int = Field(..., ge=0)


class ValidityMetrics(BaseModel):
    """Response-validity indices and verdict for one attempt."""

    model_config = ConfigDict(frozen=True)

    response_authenticity: float = Field(..., ge=0.0, le=100.0)
    social_desirability_bias: float = Field(..., ge=0.0, le=100.0)
    impression_management: float = Field(..., ge=0.0, le=100.0)
    response_consistency: Optional[float] = Field(
        None,
        ge=0.0,
        le=100.0,
        description="Share of consistent item pairs; None when no pair could be evaluated",
    )
    random_responding: bool = False
    straight_lining: bool = False
    speed_warning: bool = False
    overall_validity: ValidityLevel
    triggers: List[ValidityTrigger] = Field(default_factory=list)
    evaluated_checks: List[ValidityCheck] = Field(default_factory=list)
    unevaluated_checks: List[ValidityCheck] = Field(default_factory=list)
    fake_good_endorsed: int = 0
    fake_bad_endorsed: int = 0
    inconsistent_pairs: int = 0
    random_check_failures: int = 0
    timing: Optional[TimingStatistics] = None
