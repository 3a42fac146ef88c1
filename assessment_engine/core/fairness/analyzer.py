"""
Bias and fairness analysis for one assessment type over one timeframe.

The analysis is recomputed from already-materialized results on every
request. Records are filtered to the assessment type and timeframe before
any statistic is computed, which bounds the cost for large populations.

Decision order:
1. No record with a usable score: status ``no_data``.
2. Any group of any analyzed attribute below the size floor, or no attribute
   with two or more groups: status ``insufficient_sample``. No ratio,
   severity or compliance verdict is reported; small groups make the ratio
   meaningless, so it is withheld rather than guessed.
3. Otherwise the headline ratio is the lowest attribute ratio, and severity,
   compliance checks and fairness score follow from it.
"""

import logging
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Optional, Tuple

from assessment_engine.core.content import FairnessActionTable, get_content
from assessment_engine.core.fairness._constants import (
    ACTION_ADA_FAIL,
    ACTION_EEO_FAIL,
    ACTION_FLAGGED_DIMENSIONS,
    ACTION_INSUFFICIENT_SAMPLE,
    ACTION_MONITORING,
    ACTION_SEVERITY_CRITICAL,
    ACTION_SEVERITY_HIGH,
    ACTION_STATISTICAL_PARITY_FAIL,
    RATE_DECIMALS,
    RATIO_DECIMALS,
    ScoredRecord,
)
from assessment_engine.core.fairness.adverse_impact import (
    calculate_adverse_impact_ratio,
    calculate_dimension_disparities,
    determine_bias_severity,
    exact,
    passes_four_fifths,
    tally_groups,
    two_proportion_p_value,
)
from assessment_engine.schemas.fairness import (
    AttributeAnalysis,
    BiasAnalysisResult,
    BiasIndicators,
    ComplianceChecks,
    FairnessConfig,
    FairnessRecord,
    PassCriterion,
    Timeframe,
)
from assessment_engine.schemas.results import AssessmentResult
from libs.domain_types import AnalysisStatus, BiasSeverity

logger = logging.getLogger(__name__)


def criterion_score(result: AssessmentResult, criterion: PassCriterion) -> Optional[float]:
    """
    Score a result is judged on: the overall score, or a named dimension's percentage.

    Returns:
        None when the result has no usable score on the criterion
    """
    if criterion.dimension is None:
        return result.overall_score
    score = result.score_for(criterion.dimension)
    if score is None or not score.is_scored:
        return None
    return float(score.percentage)


def _in_scope(
    records: Iterable[FairnessRecord], assessment_type: str, timeframe: Timeframe
) -> List[FairnessRecord]:
    return [
        record
        for record in records
        if record.result.assessment_type == assessment_type
        and timeframe.contains(record.completed_at)
    ]


def _score_records(
    records: Iterable[FairnessRecord], criterion: PassCriterion
) -> List[ScoredRecord]:
    scored: List[ScoredRecord] = []
    for record in records:
        score = criterion_score(record.result, criterion)
        if score is None:
            continue
        scored.append(
            {
                "demographics": dict(record.demographics),
                "score": score,
                "passed": score >= criterion.cutoff,
                "dimension_percentages": {
                    s.dimension: s.percentage
                    for s in record.result.dimension_scores
                    if s.is_scored
                },
            }
        )
    return scored


def _dimension_order(records: Iterable[FairnessRecord]) -> List[str]:
    order: List[str] = []
    for record in records:
        for score in record.result.dimension_scores:
            if score.dimension not in order:
                order.append(score.dimension)
    return order


def analyze_attribute(
    records: List[ScoredRecord], attribute: str, config: FairnessConfig
) -> Tuple[AttributeAnalysis, Optional[Dict[str, Any]]]:
    """
    Group statistics and adverse impact ratio for one attribute.

    Returns:
        (analysis, ratio_info). ``ratio_info`` holds the exact ratio and
        parity difference from calculate_adverse_impact_ratio(), and is None
        when the attribute cannot be rated (undersized or single group).
    """
    groups = tally_groups(records, attribute)
    undersized = [g.group for g in groups if g.respondents < config.min_group_size]
    comparable = len(groups) >= 2

    if not groups:
        return (
            AttributeAnalysis(
                attribute=attribute, status=AnalysisStatus.NO_DATA, comparable=False
            ),
            None,
        )
    if undersized or not comparable:
        status = AnalysisStatus.INSUFFICIENT_SAMPLE if undersized else AnalysisStatus.COMPLETE
        return (
            AttributeAnalysis(
                attribute=attribute,
                status=status,
                groups=groups,
                undersized_groups=undersized,
                comparable=comparable,
            ),
            None,
        )

    ratio_info = calculate_adverse_impact_ratio(groups)
    by_name = {g.group: g for g in groups}
    ratio: Fraction = ratio_info["ratio"]
    analysis = AttributeAnalysis(
        attribute=attribute,
        status=AnalysisStatus.COMPLETE,
        groups=groups,
        adverse_impact_ratio=round(float(ratio), RATIO_DECIMALS),
        four_fifths_pass=passes_four_fifths(ratio, config.four_fifths_threshold),
        lowest_group=ratio_info["lowest_group"],
        highest_group=ratio_info["highest_group"],
        parity_difference=round(float(ratio_info["parity_difference"]), RATE_DECIMALS),
        p_value=two_proportion_p_value(
            by_name[ratio_info["lowest_group"]], by_name[ratio_info["highest_group"]]
        ),
    )
    return analysis, ratio_info


def _actions_table(actions: Optional[FairnessActionTable]) -> FairnessActionTable:
    return actions if actions is not None else get_content().fairness_actions


def analyze_assessment_bias(
    assessment_type: str,
    records: Iterable[FairnessRecord],
    timeframe: Timeframe,
    config: Optional[FairnessConfig] = None,
    actions: Optional[FairnessActionTable] = None,
) -> BiasAnalysisResult:
    """
    Adverse-impact and fairness analysis for one assessment type.

    Args:
        assessment_type: Assessment type to analyze
        records: Persisted results with demographic labels (any type, any date)
        timeframe: Half-open window on ``completed_at``
        config: Thresholds (defaults to engine settings)
        actions: Recommended-action table (defaults to the loaded content)

    Returns:
        BiasAnalysisResult with status complete, insufficient_sample or no_data
    """
    config = config or FairnessConfig()
    actions = _actions_table(actions)

    in_scope = _in_scope(records, assessment_type, timeframe)
    scored = _score_records(in_scope, config.pass_criterion)

    if not scored:
        logger.warning(
            f"Bias analysis for {assessment_type}: no scored results in "
            f"{timeframe.start.isoformat()} - {timeframe.end.isoformat()}"
        )
        return BiasAnalysisResult(
            assessment_type=assessment_type,
            timeframe=timeframe,
            status=AnalysisStatus.NO_DATA,
            sample_size=0,
            recommended_actions=actions.actions_for(
                [ACTION_INSUFFICIENT_SAMPLE, ACTION_MONITORING], dimensions=""
            ),
            details="No completed assessments with a usable score in the timeframe",
        )

    if config.attributes is not None:
        attributes = list(config.attributes)
    else:
        attributes = sorted({key for record in scored for key in record["demographics"]})

    analyses: List[AttributeAnalysis] = []
    rated: Dict[str, Dict[str, Any]] = {}
    for attribute in attributes:
        analysis, ratio_info = analyze_attribute(scored, attribute, config)
        analyses.append(analysis)
        if ratio_info is not None:
            rated[attribute] = ratio_info

    undersized = {
        a.attribute: a.undersized_groups
        for a in analyses
        if a.status == AnalysisStatus.INSUFFICIENT_SAMPLE
    }
    if undersized or not rated:
        if undersized:
            details = (
                f"Groups below the minimum of {config.min_group_size} respondents: "
                + "; ".join(f"{attr}={groups}" for attr, groups in undersized.items())
            )
        else:
            details = "No demographic attribute has two or more groups to compare"
        logger.warning(f"Bias analysis for {assessment_type}: insufficient sample. {details}")
        return BiasAnalysisResult(
            assessment_type=assessment_type,
            timeframe=timeframe,
            status=AnalysisStatus.INSUFFICIENT_SAMPLE,
            sample_size=len(scored),
            attribute_analyses=analyses,
            recommended_actions=actions.actions_for(
                [ACTION_INSUFFICIENT_SAMPLE, ACTION_MONITORING], dimensions=""
            ),
            details=details,
        )

    by_attribute = {a.attribute: a for a in analyses}
    headline_attribute = min(rated, key=lambda attr: (rated[attr]["ratio"], attr))
    headline: Fraction = rated[headline_attribute]["ratio"]
    severity = determine_bias_severity(headline, config.severity_bands)

    max_parity = max(info["parity_difference"] for info in rated.values())
    disability = by_attribute.get(config.disability_attribute)
    checks = ComplianceChecks(
        eeo=all(by_attribute[attr].four_fifths_pass for attr in rated),
        ada=(
            disability.four_fifths_pass
            if disability is not None and disability.attribute in rated
            else None
        ),
        statistical_parity=max_parity <= exact(config.parity_max_difference),
    )

    dimensions = _dimension_order(in_scope)
    disparities = [
        disparity
        for attribute in rated
        for disparity in calculate_dimension_disparities(
            scored, attribute, dimensions, config.disparity_flag_points
        )
    ]
    flagged: List[str] = []
    for disparity in disparities:
        if disparity.flagged and disparity.dimension not in flagged:
            flagged.append(disparity.dimension)

    action_keys = []
    if severity == BiasSeverity.CRITICAL:
        action_keys.append(ACTION_SEVERITY_CRITICAL)
    elif severity == BiasSeverity.HIGH:
        action_keys.append(ACTION_SEVERITY_HIGH)
    if checks.eeo is False:
        action_keys.append(ACTION_EEO_FAIL)
    if checks.ada is False:
        action_keys.append(ACTION_ADA_FAIL)
    if checks.statistical_parity is False:
        action_keys.append(ACTION_STATISTICAL_PARITY_FAIL)
    if flagged:
        action_keys.append(ACTION_FLAGGED_DIMENSIONS)
    action_keys.append(ACTION_MONITORING)

    headline_value = round(float(headline), RATIO_DECIMALS)
    p_value = by_attribute[headline_attribute].p_value
    details = (
        f"Lowest adverse impact ratio {headline_value:.2f}% on '{headline_attribute}' "
        f"({by_attribute[headline_attribute].lowest_group} vs "
        f"{by_attribute[headline_attribute].highest_group})"
    )
    if p_value is not None and p_value < config.significance_alpha:
        details += f"; difference significant (p={p_value:.4f})"

    result = BiasAnalysisResult(
        assessment_type=assessment_type,
        timeframe=timeframe,
        status=AnalysisStatus.COMPLETE,
        sample_size=len(scored),
        adverse_impact_ratio=headline_value,
        four_fifths_pass=passes_four_fifths(headline, config.four_fifths_threshold),
        bias_severity=severity,
        attribute_analyses=analyses,
        bias_indicators=BiasIndicators(
            adverse_impact_ratio=headline_value,
            statistical_parity_difference=round(float(max_parity), RATE_DECIMALS),
            disparity_p_value=p_value,
            dimension_disparities=disparities,
        ),
        flagged_dimensions=flagged,
        compliance_status=checks,
        recommended_actions=actions.actions_for(action_keys, dimensions=", ".join(flagged)),
        fairness_score=config.fairness_scores[severity],
        details=details,
    )

    logger.info(
        f"Bias analysis for {assessment_type}: n={len(scored)}, "
        f"ratio={headline_value}, severity={severity.value}, "
        f"eeo={checks.eeo}, ada={checks.ada}, parity={checks.statistical_parity}, "
        f"flagged={flagged}",
        extra={
            "assessment_type": assessment_type,
            "sample_size": len(scored),
            "bias_severity": severity.value,
        },
    )
    return result
