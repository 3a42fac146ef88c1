"""
Engine facade: score one assessment attempt end to end.

Runs catalog validation, the dimension scorer, the validity analyzer and the
result assembler for a single ResponseSet. Each stage is also importable on
its own; this module only wires them together for the common case.

Usage:
    from assessment_engine.core.content import get_content
    from assessment_engine.core.engine import score_assessment

    tables = get_content().tables_for(definition.assessment_type)
    result = score_assessment(definition, response_set, tables)
"""

import logging
import time

from assessment_engine.core.catalog import build_item_index, index_responses
from assessment_engine.core.errors import AssessmentTypeMismatchError, ContentConfigError
from assessment_engine.core.logging_config import analysis_context
from assessment_engine.core.result_assembly import assemble_result
from assessment_engine.core.scoring import (
    level_bands_from_mapping,
    score_dimensions,
    score_subdimensions,
)
from assessment_engine.core.validity_analysis import analyze_validity
from assessment_engine.schemas.content import AssessmentDefinition, InterpretationTables
from assessment_engine.schemas.items import ResponseSet
from assessment_engine.schemas.results import AssessmentResult

logger = logging.getLogger(__name__)


def score_assessment(
    definition: AssessmentDefinition,
    response_set: ResponseSet,
    tables: InterpretationTables,
) -> AssessmentResult:
    """
    Score one attempt and assemble its result.

    Args:
        definition: Dimensions, items and validity thresholds of the assessment
        response_set: The candidate's answers
        tables: Interpretation tables for the same assessment type

    Returns:
        Immutable AssessmentResult. Identical inputs give identical results.

    Raises:
        AssessmentTypeMismatchError: If the response set belongs to another
            assessment type
        ContentConfigError: If the tables belong to another assessment type
        InputContractError: On duplicate responses, unknown items, unknown
            dimensions or out-of-range values
    """
    if response_set.assessment_type != definition.assessment_type:
        raise AssessmentTypeMismatchError(
            "Response set does not belong to this assessment",
            context=(
                f"expected={definition.assessment_type}, "
                f"got={response_set.assessment_type}, session={response_set.session_id}"
            ),
        )
    if tables.assessment_type != definition.assessment_type:
        raise ContentConfigError(
            "Interpretation tables do not belong to this assessment",
            context=f"expected={definition.assessment_type}, got={tables.assessment_type}",
        )

    start = time.perf_counter()
    with analysis_context(response_set.session_id):
        # Validate the whole slice once up front so every stage sees the same
        # contract errors in the same order
        item_index = build_item_index(definition.items, definition.dimensions)
        index_responses(response_set, item_index)

        level_bands = level_bands_from_mapping(tables.level_bands)
        dimension_scores = score_dimensions(
            definition.items, response_set, definition.dimensions, level_bands
        )
        subdimension_scores = score_subdimensions(
            definition.items, response_set, definition.dimensions, level_bands
        )
        validity = analyze_validity(definition.items, response_set, definition.validity)

        result = assemble_result(
            response_set,
            dimension_scores,
            validity,
            tables,
            dimension_order=definition.dimensions,
            subdimension_scores=subdimension_scores,
        )

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Scored {definition.assessment_type} attempt: "
            f"overall={result.overall_score}, validity={validity.overall_validity.value}",
            extra={
                "assessment_type": definition.assessment_type,
                "session_id": response_set.session_id,
                "duration_ms": round(duration_ms, 2),
                "overall_validity": validity.overall_validity.value,
            },
        )
    return result
