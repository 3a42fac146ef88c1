"""
Result Assembler.

Merges dimension scores, the validity verdict and static interpretation
tables into an immutable, candidate-facing AssessmentResult. Assembly is a
pure function: it selects keys from the tables and never generates prose,
reads the clock, or alters a score because of validity.
"""

import logging
from typing import Dict, List, Optional, Sequence

from assessment_engine.core.scoring import calculate_overall_score
from assessment_engine.schemas.content import InterpretationTables, ProfileBand, RiskConfig
from assessment_engine.schemas.items import ResponseSet
from assessment_engine.schemas.results import AssessmentResult
from assessment_engine.schemas.scoring import DimensionScore, SubdimensionScore
from assessment_engine.schemas.validity import ValidityMetrics
from libs.domain_types import RiskLevel, ValidityLevel

logger = logging.getLogger(__name__)


def _ranked(
    scores: Sequence[DimensionScore], dimension_order: Sequence[str], descending: bool
) -> List[DimensionScore]:
    """Scored dimensions sorted by percentage, ties in declaration order."""
    position = {dimension: i for i, dimension in enumerate(dimension_order)}
    scored = [s for s in scores if s.is_scored]
    return sorted(
        scored,
        key=lambda s: (
            -s.percentage if descending else s.percentage,
            position.get(s.dimension, len(position)),
        ),
    )


def select_strengths_and_challenges(
    scores: Sequence[DimensionScore], dimension_order: Sequence[str], top_n: int
) -> Dict[str, List[str]]:
    """
    Pick the top-N and bottom-N dimensions.

    Args:
        scores: Dimension scores (insufficient_data entries are ignored)
        dimension_order: Declaration order used to break ties
        top_n: Number of strengths and of challenges to select

    Returns:
        ``{"strengths": [...], "challenges": [...]}``. Strengths are listed
        highest first, challenges lowest first. A dimension selected as a
        strength is never also a challenge.
    """
    strengths = [s.dimension for s in _ranked(scores, dimension_order, descending=True)[:top_n]]
    challenges = [
        s.dimension
        for s in _ranked(scores, dimension_order, descending=False)
        if s.dimension not in strengths
    ][:top_n]
    return {"strengths": strengths, "challenges": challenges}


def select_recommendations(
    scores: Sequence[DimensionScore],
    dimension_order: Sequence[str],
    tables: InterpretationTables,
) -> List[str]:
    """
    Look up recommendation keys for each scored dimension's level.

    Dimensions are visited from the lowest percentage up so the most
    pressing keys come first; duplicates are dropped and the list is capped
    at ``tables.max_recommendations``.
    """
    selected: List[str] = []
    for score in _ranked(scores, dimension_order, descending=False):
        keys = tables.recommendations.get(score.dimension, {}).get(score.level, [])
        for key in keys:
            if key not in selected:
                selected.append(key)
    return selected[: tables.max_recommendations]


def determine_profile_label(
    overall_score: Optional[float], profile_bands: Sequence[ProfileBand]
) -> Optional[str]:
    """Profile label of the highest band the overall score reaches."""
    if overall_score is None or not profile_bands:
        return None
    ordered = sorted(profile_bands, key=lambda band: band.min_score, reverse=True)
    for band in ordered:
        if overall_score >= band.min_score:
            return band.label
    return ordered[-1].label


def determine_risk_level(
    scores: Sequence[DimensionScore], risk: Optional[RiskConfig]
) -> Optional[RiskLevel]:
    """
    Risk level from the lowest risk-relevant dimension.

    A monotonic step function: lowering any risk-relevant percentage can
    only keep or raise the risk. Validity plays no part.

    Returns:
        None when the assessment declares no risk dimensions or none of
        them could be scored
    """
    if risk is None:
        return None
    relevant = [s.percentage for s in scores if s.is_scored and s.dimension in risk.dimensions]
    if not relevant:
        return None

    lowest = min(relevant)
    if lowest >= risk.bands[RiskLevel.LOW]:
        return RiskLevel.LOW
    if lowest >= risk.bands[RiskLevel.MEDIUM]:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def assemble_result(
    response_set: ResponseSet,
    dimension_scores: Sequence[DimensionScore],
    validity: ValidityMetrics,
    tables: InterpretationTables,
    dimension_order: Optional[Sequence[str]] = None,
    subdimension_scores: Optional[Sequence[SubdimensionScore]] = None,
) -> AssessmentResult:
    """
    Assemble the candidate-facing result for one attempt.

    Args:
        response_set: The attempt (supplies session, candidate and type)
        dimension_scores: Output of score_dimensions()
        validity: Output of analyze_validity()
        tables: Interpretation tables for the assessment type
        dimension_order: Declaration order for tie-breaking (defaults to the
            order of ``dimension_scores``)
        subdimension_scores: Optional output of score_subdimensions()

    Returns:
        Immutable AssessmentResult
    """
    order = list(dimension_order) if dimension_order is not None else [
        s.dimension for s in dimension_scores
    ]
    picks = select_strengths_and_challenges(dimension_scores, order, tables.top_n)
    overall_score = calculate_overall_score(dimension_scores, tables.dimension_weights)

    result = AssessmentResult(
        session_id=response_set.session_id,
        candidate_id=response_set.candidate_id,
        assessment_type=response_set.assessment_type,
        dimension_scores=list(dimension_scores),
        subdimension_scores=list(subdimension_scores or []),
        overall_score=overall_score,
        profile_label=determine_profile_label(overall_score, tables.profile_bands),
        validity=validity,
        strengths=picks["strengths"],
        challenges=picks["challenges"],
        recommendations=select_recommendations(dimension_scores, order, tables),
        risk_level=determine_risk_level(dimension_scores, tables.risk),
        interpretation_caution=validity.overall_validity != ValidityLevel.HIGH,
    )

    logger.info(
        f"Assembled result for session {response_set.session_id}: "
        f"overall={overall_score}, profile={result.profile_label}, "
        f"risk={result.risk_level.value if result.risk_level else None}, "
        f"validity={validity.overall_validity.value}"
    )
    return result
