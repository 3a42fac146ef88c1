"""
Multi-assessment bias monitoring.

Rolls individual BiasAnalysisResults up into the dashboard summary and fans
independent analyses out to a thread pool. Analyses share no mutable state,
so they can run concurrently without locking.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from assessment_engine.core.config import settings
from assessment_engine.core.content import FairnessActionTable, get_content
from assessment_engine.core.fairness._constants import (
    ALERT_CRITICAL_BIAS,
    ALERT_MULTIPLE_HIGH_BIAS,
    HIGH_SEVERITY_ALERT_COUNT,
)
from assessment_engine.core.fairness.analyzer import analyze_assessment_bias
from assessment_engine.core.logging_config import analysis_context
from assessment_engine.schemas.fairness import (
    BiasAnalysisRequest,
    BiasAnalysisResult,
    BiasMonitoringSummary,
)
from libs.domain_types import AnalysisStatus, BiasSeverity

logger = logging.getLogger(__name__)


def summarize_bias_monitoring(results: Sequence[BiasAnalysisResult]) -> BiasMonitoringSummary:
    """
    Dashboard roll-up of bias analyses across assessment types.

    Only rated analyses (those with a fairness score) count toward the
    overall fairness score and severity counts. Types with too small a
    sample, or no data, are listed separately instead of being averaged in.

    Args:
        results: One analysis per assessment type

    Returns:
        BiasMonitoringSummary with the overall score, per-type scores,
        severity counts and compliance alerts
    """
    assessment_fairness: Dict[str, float] = {}
    severity_counts: Dict[BiasSeverity, int] = {severity: 0 for severity in BiasSeverity}
    insufficient: List[str] = []
    no_data: List[str] = []

    for result in results:
        if result.status == AnalysisStatus.INSUFFICIENT_SAMPLE:
            insufficient.append(result.assessment_type)
            continue
        if result.status == AnalysisStatus.NO_DATA:
            no_data.append(result.assessment_type)
            continue
        if result.fairness_score is not None:
            assessment_fairness[result.assessment_type] = result.fairness_score
        if result.bias_severity is not None:
            severity_counts[result.bias_severity] += 1

    overall: Optional[float] = None
    if assessment_fairness:
        overall = round(sum(assessment_fairness.values()) / len(assessment_fairness), 1)

    alerts: List[str] = []
    if severity_counts[BiasSeverity.CRITICAL] > 0:
        alerts.append(ALERT_CRITICAL_BIAS)
    if severity_counts[BiasSeverity.HIGH] > HIGH_SEVERITY_ALERT_COUNT:
        alerts.append(ALERT_MULTIPLE_HIGH_BIAS)

    if alerts:
        logger.warning(f"Bias monitoring alerts: {alerts}")
    logger.info(
        f"Bias monitoring summary: overall={overall}, rated={len(assessment_fairness)}, "
        f"insufficient_sample={insufficient}, no_data={no_data}"
    )

    return BiasMonitoringSummary(
        overall_fairness_score=overall,
        assessment_fairness=assessment_fairness,
        severity_counts=severity_counts,
        insufficient_sample=insufficient,
        no_data=no_data,
        compliance_alerts=alerts,
    )


def _run_request(
    request: BiasAnalysisRequest, actions: FairnessActionTable
) -> BiasAnalysisResult:
    with analysis_context(f"bias:{request.assessment_type}"):
        return analyze_assessment_bias(
            request.assessment_type,
            request.records,
            request.timeframe,
            config=request.config,
            actions=actions,
        )


def analyze_many(
    requests: Sequence[BiasAnalysisRequest],
    max_workers: Optional[int] = None,
    actions: Optional[FairnessActionTable] = None,
) -> List[BiasAnalysisResult]:
    """
    Run independent bias analyses concurrently.

    Args:
        requests: One request per (assessment type, timeframe)
        max_workers: Thread pool size (defaults to settings.FAIRNESS_MAX_WORKERS)
        actions: Recommended-action table (defaults to the loaded content)

    Returns:
        Results in request order. An exception in any analysis propagates.
    """
    if not requests:
        return []

    # Resolve shared content once so worker threads only read it
    actions = actions if actions is not None else get_content().fairness_actions
    workers = max_workers or settings.FAIRNESS_MAX_WORKERS

    logger.info(f"Running {len(requests)} bias analyses on {workers} workers")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda request: _run_request(request, actions), requests))
