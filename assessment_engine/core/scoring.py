"""
Dimension Scorer.

Aggregates raw item responses into normalized 0-100 dimension scores.

Scoring Rules
=============
**Likert items:** the answered scale point is used directly. Reverse-scored
items are mirrored first, ``(scale_min + scale_max) - value``, which is
``6 - value`` on the default 1-5 scale. Each answered item adds
``scale_max`` to the dimension's maximum.

**Forced-choice items:** every option carries an explicit weight map. The
selected option's weights are added to each dimension they name, so one
answer can move several dimensions at once. The item adds, per touched
dimension, the largest weight any of its options gives that dimension.

**Percentage:** ``round(raw_total / max_possible * 100)`` with halves
rounded up, clamped to [0, 100], then mapped to a level through a
threshold table supplied by the caller (each assessment type uses its own
cut points).

**Missing responses** are excluded from numerator and denominator alike.
A dimension with no answered items is reported as ``insufficient_data``
with no percentage, never as 0%.

Distortion items never contribute to dimension scores; they are read by
the validity analyzer.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from assessment_engine.core.catalog import (
    build_item_index,
    content_dimensions,
    index_responses,
)
from assessment_engine.core.config import settings
from assessment_engine.schemas.items import Item, Response, ResponseSet
from assessment_engine.schemas.scoring import (
    DimensionScore,
    LevelBand,
    SubdimensionScore,
)
from libs.domain_types import ItemType, ScoreLevel, ScoreStatus

logger = logging.getLogger(__name__)


@dataclass
class _Accumulator:
    """Running totals for one dimension (or subdimension)."""

    raw_total: float = 0.0
    max_possible: float = 0.0
    answered_items: int = 0
    total_items: int = 0


def level_bands_from_mapping(mapping: Mapping) -> List[LevelBand]:
    """
    Build a level threshold table from a ``{level: min_percentage}`` mapping.

    Returns:
        Bands ordered highest cut point first
    """
    bands = [
        LevelBand(level=ScoreLevel(level), min_percentage=cut)
        for level, cut in mapping.items()
    ]
    return sorted(bands, key=lambda band: band.min_percentage, reverse=True)


def default_level_bands() -> List[LevelBand]:
    """Level table from settings: <55 low, 55-69 moderate, 70-84 high, >=85 exceptional."""
    return level_bands_from_mapping(settings.DEFAULT_LEVEL_BANDS)


def get_level(percentage: float, level_bands: Sequence[LevelBand]) -> ScoreLevel:
    """
    Map a percentage to its level.

    Args:
        percentage: Dimension percentage (0-100)
        level_bands: Threshold table; order does not matter

    Returns:
        Level of the highest band whose cut point the percentage reaches.
        Percentages below every cut point get the lowest band's level.
    """
    ordered = sorted(level_bands, key=lambda band: band.min_percentage, reverse=True)
    for band in ordered:
        if percentage >= band.min_percentage:
            return band.level
    return ordered[-1].level


def to_percentage(raw_total: float, max_possible: float) -> int:
    """Normalize a raw total to an integer percentage, halves rounded up, clamped."""
    percentage = math.floor(raw_total / max_possible * 100 + 0.5)
    return max(0, min(100, percentage))


def item_dimensions(item: Item) -> List[str]:
    """Dimensions an item contributes to (its own plus any weighted by options)."""
    dimensions = [item.dimension]
    for option in item.options:
        for dimension in option.weights:
            if dimension not in dimensions:
                dimensions.append(dimension)
    return dimensions


def item_contributions(item: Item, response: Response) -> Dict[str, Tuple[float, float]]:
    """
    Points an answered item adds to each dimension.

    Args:
        item: A Likert or forced-choice item
        response: The validated answer to that item

    Returns:
        Mapping of dimension to ``(points, maximum)``
    """
    if item.item_type == ItemType.LIKERT:
        value = response.value
        points = item.mirror(value) if item.reverse_scored else value
        return {item.dimension: (float(points), float(item.scale_max))}

    selected = item.option(response.value)
    contributions: Dict[str, Tuple[float, float]] = {}
    for dimension in item_dimensions(item):
        maximum = max(option.weights.get(dimension, 0.0) for option in item.options)
        points = selected.weights.get(dimension, 0.0)
        contributions[dimension] = (points, maximum)
    return contributions


def _build_score(dimension: str, acc: _Accumulator, level_bands: Sequence[LevelBand]) -> dict:
    completion_rate = (
        round(acc.answered_items / acc.total_items, 3) if acc.total_items else 0.0
    )
    fields = {
        "dimension": dimension,
        "raw_total": round(acc.raw_total, 4),
        "max_possible": round(acc.max_possible, 4),
        "answered_items": acc.answered_items,
        "total_items": acc.total_items,
        "completion_rate": completion_rate,
    }
    if acc.answered_items == 0 or acc.max_possible <= 0:
        fields["status"] = ScoreStatus.INSUFFICIENT_DATA
        return fields

    percentage = to_percentage(acc.raw_total, acc.max_possible)
    fields["status"] = ScoreStatus.SCORED
    fields["percentage"] = percentage
    fields["level"] = get_level(percentage, level_bands)
    return fields


def _accumulate(
    items: Iterable[Item], responses: Dict[str, Response], by_subdimension: bool
) -> Dict[Tuple[str, Optional[str]], _Accumulator]:
    accumulators: Dict[Tuple[str, Optional[str]], _Accumulator] = {}
    for item in items:
        if item.item_type == ItemType.DISTORTION:
            continue
        if by_subdimension and item.subdimension is None:
            continue

        response = responses.get(item.id)
        contributions = (
            item_contributions(item, response) if response is not None else {}
        )
        dimensions = [item.dimension] if by_subdimension else item_dimensions(item)

        for dimension in dimensions:
            key = (dimension, item.subdimension if by_subdimension else None)
            acc = accumulators.setdefault(key, _Accumulator())
            acc.total_items += 1
            if dimension in contributions:
                points, maximum = contributions[dimension]
                acc.raw_total += points
                acc.max_possible += maximum
                acc.answered_items += 1
    return accumulators


def score_dimensions(
    items: Iterable[Item],
    response_set: ResponseSet,
    dimensions: Optional[List[str]] = None,
    level_bands: Optional[Sequence[LevelBand]] = None,
) -> List[DimensionScore]:
    """
    Score every dimension of a catalog slice.

    Args:
        items: Catalog slice for the assessment
        response_set: The candidate's answers
        dimensions: Declared dimensions, in reporting order. When None, the
            distinct dimensions of the content items are used.
        level_bands: Level threshold table (defaults to settings)

    Returns:
        One DimensionScore per dimension, in declaration order. Dimensions
        with no answered items have status ``insufficient_data``.

    Raises:
        InputContractError: On duplicate responses, unknown items, unknown
            dimensions or out-of-range values
    """
    items = list(items)
    declared = list(dimensions) if dimensions is not None else content_dimensions(items)
    bands = list(level_bands) if level_bands else default_level_bands()

    item_index = build_item_index(items, declared)
    responses = index_responses(response_set, item_index)
    accumulators = _accumulate(item_index.values(), responses, by_subdimension=False)

    scores = [
        DimensionScore(
            **_build_score(dimension, accumulators.get((dimension, None), _Accumulator()), bands)
        )
        for dimension in declared
    ]

    insufficient = [s.dimension for s in scores if not s.is_scored]
    logger.info(
        f"Scored {len(scores)} dimensions for session {response_set.session_id}: "
        f"{len(responses)} responses, insufficient_data={insufficient}"
    )
    return scores


def score_subdimensions(
    items: Iterable[Item],
    response_set: ResponseSet,
    dimensions: Optional[List[str]] = None,
    level_bands: Optional[Sequence[LevelBand]] = None,
) -> List[SubdimensionScore]:
    """
    Score (dimension, subdimension) pairs for items that declare a subdimension.

    Aggregation follows score_dimensions(); a forced-choice item only counts
    toward its own dimension's subdimension. Pairs are returned in catalog
    order of first appearance.
    """
    items = list(items)
    declared = list(dimensions) if dimensions is not None else content_dimensions(items)
    bands = list(level_bands) if level_bands else default_level_bands()

    item_index = build_item_index(items, declared)
    responses = index_responses(response_set, item_index)
    accumulators = _accumulate(item_index.values(), responses, by_subdimension=True)

    return [
        SubdimensionScore(subdimension=subdimension, **_build_score(dimension, acc, bands))
        for (dimension, subdimension), acc in accumulators.items()
    ]


def calculate_overall_score(
    scores: Iterable[DimensionScore], weights: Optional[Mapping[str, float]] = None
) -> Optional[float]:
    """
    Weighted mean of scored dimension percentages.

    Args:
        scores: Dimension scores; insufficient_data entries are ignored
        weights: Optional per-dimension weights; missing dimensions weigh 1.0.
            Weights are normalized over the dimensions actually scored.

    Returns:
        Overall score rounded to 1 decimal, or None if nothing was scored
    """
    weights = weights or {}
    weighted_sum = 0.0
    total_weight = 0.0
    for score in scores:
        if not score.is_scored:
            continue
        weight = weights.get(score.dimension, 1.0)
        weighted_sum += weight * score.percentage
        total_weight += weight

    if total_weight == 0:
        return None
    return round(weighted_sum / total_weight, 1)
