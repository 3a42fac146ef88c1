"""
Engine configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, Literal, Self

from libs.domain_types import BiasSeverity, ComplianceStatus, RiskLevel, ScoreLevel


def _check_descending_bands(name: str, bands: Dict[str, float], order: list) -> None:
    """Validate a cut-point table whose keys must appear in ``order``, highest first."""
    if set(bands.keys()) != set(order):
        raise ValueError(f"{name} keys must be {sorted(order)}, got {sorted(bands.keys())}")
    out_of_range = [k for k, v in bands.items() if not 0 <= v <= 100]
    if out_of_range:
        raise ValueError(f"{name} cut points must be within 0-100, got: {out_of_range}")
    cut_points = [bands[key] for key in order]
    if any(upper <= lower for upper, lower in zip(cut_points, cut_points[1:])):
        raise ValueError(
            f"{name} cut points must be strictly descending in order {order}, "
            f"got {cut_points}"
        )


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Assessment Engine"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Static content (interpretation tables, compliance checklists).
    # Empty means the YAML files shipped inside the package.
    CONTENT_DIR: str = ""

    # Dimension Scorer
    # Minimum percentage for each level. Assessment types may override this
    # table with their own cut points in the interpretation content.
    DEFAULT_LEVEL_BANDS: Dict[str, float] = {
        "exceptional": 85.0,
        "high": 70.0,
        "moderate": 55.0,
        "low": 0.0,
    }
    LIKERT_SCALE_MIN: int = 1
    LIKERT_SCALE_MAX: int = 5

    # Validity Analyzer
    VALIDITY_FAKE_GOOD_INCREMENT: float = Field(
        default=25.0,
        gt=0.0,
        le=100.0,
        description="Points added to social desirability bias per endorsed fake-good item",
    )
    VALIDITY_FAKE_BAD_INCREMENT: float = Field(
        default=25.0,
        gt=0.0,
        le=100.0,
        description="Points added to impression management per endorsed fake-bad item",
    )
    VALIDITY_MODERATE_DISTORTION: float = Field(default=50.0, ge=0.0, le=100.0)
    VALIDITY_HIGH_DISTORTION: float = Field(default=75.0, ge=0.0, le=100.0)
    VALIDITY_CONSISTENCY_TOLERANCE: int = Field(
        default=1,
        ge=0,
        description="Scale points a Likert pair may deviate from the mirrored answer",
    )
    VALIDITY_MODERATE_CONSISTENCY: float = Field(default=75.0, ge=0.0, le=100.0)
    VALIDITY_LOW_CONSISTENCY: float = Field(default=50.0, ge=0.0, le=100.0)
    VALIDITY_STRAIGHT_LINE_WINDOW: int = Field(
        default=12,
        ge=2,
        description="Consecutive answered items inspected by the straight-lining check",
    )
    VALIDITY_STRAIGHT_LINE_MIN_VARIANCE: float = Field(default=0.1, ge=0.0)
    VALIDITY_MIN_MEDIAN_ITEM_TIME_MS: float = Field(default=2000.0, ge=0.0)
    VALIDITY_MIN_TIME_PER_ITEM_MS: float = Field(default=1500.0, ge=0.0)
    VALIDITY_RAPID_RESPONSE_MS: float = Field(default=1000.0, ge=0.0)
    VALIDITY_MIN_TIMED_SHARE: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="Share of responses that must carry timing for the speed check to run",
    )

    # Result Assembler
    DEFAULT_TOP_N: int = Field(default=3, ge=1)
    MAX_RECOMMENDATIONS: int = Field(default=5, ge=1)
    # Minimum percentage of the lowest risk-relevant dimension for each risk level
    DEFAULT_RISK_BANDS: Dict[str, float] = {"low": 65.0, "medium": 45.0, "high": 0.0}

    # Bias & Fairness Analyzer
    FAIRNESS_MIN_GROUP_SIZE: int = Field(
        default=30,
        ge=1,
        description="Minimum respondents per demographic group before a ratio is reported",
    )
    FOUR_FIFTHS_THRESHOLD: float = Field(default=80.0, gt=0.0, le=100.0)
    # Minimum adverse impact ratio for each severity; anything lower is critical
    BIAS_SEVERITY_BANDS: Dict[str, float] = {
        "low": 90.0,
        "medium": 80.0,
        "high": 50.0,
        "critical": 0.0,
    }
    STATISTICAL_PARITY_MAX_DIFFERENCE: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Largest tolerated pass-rate difference between groups (0.0-1.0)",
    )
    SCORE_DISPARITY_FLAG_POINTS: float = Field(default=10.0, ge=0.0, le=100.0)
    SIGNIFICANCE_ALPHA: float = Field(default=0.05, gt=0.0, lt=1.0)
    DEFAULT_PASS_SCORE: float = Field(default=60.0, ge=0.0, le=100.0)
    DISABILITY_ATTRIBUTE: str = "disability_status"
    FAIRNESS_MAX_WORKERS: int = Field(default=4, ge=1)
    FAIRNESS_SCORE_BY_SEVERITY: Dict[str, float] = {
        "low": 90.0,
        "medium": 70.0,
        "high": 40.0,
        "critical": 20.0,
    }

    # Compliance Aggregator
    COMPLIANCE_STATUS_BANDS: Dict[str, float] = {
        "compliant": 80.0,
        "partial": 50.0,
        "non_compliant": 0.0,
    }
    RELIABILITY_ALPHA_THRESHOLD: float = Field(default=0.70, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_band_tables(self) -> Self:
        """Validate every cut-point table is complete and strictly descending."""
        _check_descending_bands(
            "DEFAULT_LEVEL_BANDS",
            self.DEFAULT_LEVEL_BANDS,
            [level.value for level in reversed(list(ScoreLevel))],
        )
        _check_descending_bands(
            "DEFAULT_RISK_BANDS",
            self.DEFAULT_RISK_BANDS,
            [level.value for level in RiskLevel],
        )
        _check_descending_bands(
            "BIAS_SEVERITY_BANDS",
            self.BIAS_SEVERITY_BANDS,
            [severity.value for severity in BiasSeverity],
        )
        _check_descending_bands(
            "COMPLIANCE_STATUS_BANDS",
            self.COMPLIANCE_STATUS_BANDS,
            [status.value for status in ComplianceStatus],
        )
        return self

    @model_validator(mode="after")
    def validate_validity_thresholds(self) -> Self:
        """Validate moderate thresholds sit below their high counterparts."""
        if self.VALIDITY_MODERATE_DISTORTION >= self.VALIDITY_HIGH_DISTORTION:
            raise ValueError(
                "VALIDITY_MODERATE_DISTORTION must be below VALIDITY_HIGH_DISTORTION, "
                f"got {self.VALIDITY_MODERATE_DISTORTION} >= {self.VALIDITY_HIGH_DISTORTION}"
            )
        if self.VALIDITY_LOW_CONSISTENCY >= self.VALIDITY_MODERATE_CONSISTENCY:
            raise ValueError(
                "VALIDITY_LOW_CONSISTENCY must be below VALIDITY_MODERATE_CONSISTENCY, "
                f"got {self.VALIDITY_LOW_CONSISTENCY} >= {self.VALIDITY_MODERATE_CONSISTENCY}"
            )
        if self.LIKERT_SCALE_MIN >= self.LIKERT_SCALE_MAX:
            raise ValueError(
                f"LIKERT_SCALE_MIN must be below LIKERT_SCALE_MAX, "
                f"got {self.LIKERT_SCALE_MIN} >= {self.LIKERT_SCALE_MAX}"
            )
        return self

    @model_validator(mode="after")
    def validate_fairness_scores(self) -> Self:
        """Validate FAIRNESS_SCORE_BY_SEVERITY covers every severity within 0-100."""
        expected = {severity.value for severity in BiasSeverity}
        if set(self.FAIRNESS_SCORE_BY_SEVERITY.keys()) != expected:
            raise ValueError(
                f"FAIRNESS_SCORE_BY_SEVERITY keys must be {sorted(expected)}, "
                f"got {sorted(self.FAIRNESS_SCORE_BY_SEVERITY.keys())}"
            )
        out_of_range = [
            k for k, v in self.FAIRNESS_SCORE_BY_SEVERITY.items() if not 0 <= v <= 100
        ]
        if out_of_range:
            raise ValueError(
                f"FAIRNESS_SCORE_BY_SEVERITY values must be within 0-100, got: {out_of_range}"
            )
        return self


settings = Settings()
