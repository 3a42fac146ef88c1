"""
Shared constants for bias and fairness analysis.

Thresholds (group-size floor, four-fifths cut point, severity bands) are
engine settings and arrive through FairnessConfig; this module only holds
the fixed keys and texts the analyzer and monitoring roll-up share.
"""

from typing import TypedDict


# =============================================================================
# TYPE DEFINITIONS
# =============================================================================


class ScoredRecord(TypedDict):
    """
    One in-scope record reduced to what the rate calculations need.

    ``score`` is the overall score, or the criterion dimension's percentage
    when the pass criterion names one.
    """

    demographics: dict
    score: float
    passed: bool
    dimension_percentages: dict


class GroupTally(TypedDict):
    """Running counts for one demographic group."""

    respondents: int
    passes: int
    score_sum: float


# =============================================================================
# RECOMMENDED ACTION KEYS
# =============================================================================
# Keys into the fairness action table (content/fairness_actions.yaml).

ACTION_INSUFFICIENT_SAMPLE = "insufficient_sample"
ACTION_SEVERITY_CRITICAL = "severity_critical"
ACTION_SEVERITY_HIGH = "severity_high"
ACTION_EEO_FAIL = "eeo_fail"
ACTION_ADA_FAIL = "ada_fail"
ACTION_STATISTICAL_PARITY_FAIL = "statistical_parity_fail"
ACTION_FLAGGED_DIMENSIONS = "flagged_dimensions"
ACTION_MONITORING = "monitoring"


# =============================================================================
# MONITORING ALERTS
# =============================================================================

ALERT_CRITICAL_BIAS = "Critical bias detected - immediate action required"
ALERT_MULTIPLE_HIGH_BIAS = "Multiple high-severity bias issues require attention"

# More than this many high-severity assessment types raises an alert
HIGH_SEVERITY_ALERT_COUNT = 2

# Rounding applied to reported ratios and disparities
RATIO_DECIMALS = 2
RATE_DECIMALS = 4
