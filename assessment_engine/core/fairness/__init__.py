"""
Bias and fairness analysis across completed assessments.

Computes adverse-impact statistics per demographic attribute, applies the
four-fifths rule and independent EEO, ADA and statistical-parity checks, and
rolls analyses of several assessment types into a monitoring summary.

Usage Example
-------------
Analyze the last 30 days of one assessment type:

    from datetime import datetime, timezone

    from assessment_engine.core.fairness import analyze_assessment_bias
    from assessment_engine.schemas import Timeframe

    timeframe = Timeframe.last_days(30, as_of=datetime.now(timezone.utc))
    result = analyze_assessment_bias("cair_plus", records, timeframe)

    if result.status != "complete":
        print(f"Not rated: {result.details}")
    else:
        print(f"Adverse impact ratio: {result.adverse_impact_ratio:.2f}%")
        print(f"Severity: {result.bias_severity}")
        print(f"EEO: {result.compliance_status.eeo}")
        for action in result.recommended_actions:
            print(f"  - {action}")

Monitor several assessment types at once:

    from assessment_engine.core.fairness import analyze_many, summarize_bias_monitoring

    results = analyze_many(requests, max_workers=4)
    summary = summarize_bias_monitoring(results)
    print(f"Overall fairness: {summary.overall_fairness_score}")
    for alert in summary.compliance_alerts:
        print(f"ALERT: {alert}")
"""

# =============================================================================
# Public API exports
# =============================================================================

from ._constants import (
    ALERT_CRITICAL_BIAS,
    ALERT_MULTIPLE_HIGH_BIAS,
    HIGH_SEVERITY_ALERT_COUNT,
)
from .adverse_impact import (
    calculate_adverse_impact_ratio,
    calculate_dimension_disparities,
    determine_bias_severity,
    passes_four_fifths,
    tally_groups,
    two_proportion_p_value,
)
from .analyzer import (
    analyze_assessment_bias,
    analyze_attribute,
    criterion_score,
)
from .monitoring import (
    analyze_many,
    summarize_bias_monitoring,
)

__all__ = [
    # Alerts
    "ALERT_CRITICAL_BIAS",
    "ALERT_MULTIPLE_HIGH_BIAS",
    "HIGH_SEVERITY_ALERT_COUNT",
    # Adverse impact statistics
    "calculate_adverse_impact_ratio",
    "calculate_dimension_disparities",
    "determine_bias_severity",
    "passes_four_fifths",
    "tally_groups",
    "two_proportion_p_value",
    # Analysis
    "analyze_assessment_bias",
    "analyze_attribute",
    "criterion_score",
    # Monitoring
    "analyze_many",
    "summarize_bias_monitoring",
]
