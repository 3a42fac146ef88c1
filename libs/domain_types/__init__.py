"""Shared domain types for the assessment engine.

This package is the single source of truth for domain enums used across
the scoring, validity, fairness and compliance modules, and by any
downstream reader of their results (report renderer, dashboards).

Usage:
    from libs.domain_types import ItemType, ValidityLevel
"""

import enum


class ItemType(str, enum.Enum):
    """Types of assessment items."""

    LIKERT = "likert"
    FORCED_CHOICE = "forced_choice"
    DISTORTION = "distortion"


class DistortionType(str, enum.Enum):
    """Sub-types of distortion (validity) items."""

    FAKE_GOOD = "fake_good"
    FAKE_BAD = "fake_bad"
    INCONSISTENCY = "inconsistency"
    RANDOM_CHECK = "random_check"


class ScoreStatus(str, enum.Enum):
    """Whether a dimension could be scored."""

    SCORED = "scored"
    INSUFFICIENT_DATA = "insufficient_data"


class ScoreLevel(str, enum.Enum):
    """Interpretive band for a dimension percentage."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXCEPTIONAL = "exceptional"


class ValidityLevel(str, enum.Enum):
    """Overall validity verdict for one attempt."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, enum.Enum):
    """Risk level for wellness-oriented assessments."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BiasSeverity(str, enum.Enum):
    """Severity of adverse impact found by a fairness analysis."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AnalysisStatus(str, enum.Enum):
    """Outcome status of a population-level fairness analysis."""

    COMPLETE = "complete"
    INSUFFICIENT_SAMPLE = "insufficient_sample"
    NO_DATA = "no_data"


class StandardType(str, enum.Enum):
    """Professional standards tracked by the compliance aggregator."""

    APA = "APA"
    ITC = "ITC"
    AERA = "AERA"
    ISO = "ISO"
    GDPR = "GDPR"


class ComplianceStatus(str, enum.Enum):
    """Compliance banding for a standard."""

    COMPLIANT = "compliant"
    PARTIAL = "partial"
    NON_COMPLIANT = "non_compliant"


__all__ = [
    "ItemType",
    "DistortionType",
    "ScoreStatus",
    "ScoreLevel",
    "ValidityLevel",
    "RiskLevel",
    "BiasSeverity",
    "AnalysisStatus",
    "StandardType",
    "ComplianceStatus",
]
