"""
Adverse-impact statistics over demographic groups.

Adverse Impact Ratio (AIR)
--------------------------
For one demographic attribute, each group's pass rate is passes divided by
respondents. The ratio compares the least- and most-selected groups:

    AIR = lowest_rate / highest_rate * 100

Under the four-fifths rule an AIR below 80 is evidence of adverse impact.
Ratios are computed with ``fractions.Fraction`` so boundary cases are exact:
pass rates of 40% and 50% give exactly 80.0 and pass the rule. When no group
passes at all there is no differential selection and the ratio is 100.

Supporting statistics
---------------------
- Statistical parity difference: highest rate minus lowest rate (0.0-1.0)
- Two-proportion z-test p-value between the lowest and highest groups
- Per-dimension score disparity: largest gap between group means
"""

import logging
import math
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
from scipy.stats import norm

from assessment_engine.core.fairness._constants import (
    RATE_DECIMALS,
    RATIO_DECIMALS,
    GroupTally,
    ScoredRecord,
)
from assessment_engine.schemas.fairness import DimensionDisparity, GroupStatistics
from libs.domain_types import BiasSeverity

logger = logging.getLogger(__name__)


def exact(value: float) -> Fraction:
    """Decimal value of a configured threshold as an exact fraction."""
    return Fraction(str(value))


def pass_rate(group: GroupStatistics) -> Fraction:
    return Fraction(group.passes, group.respondents)


def tally_groups(records: Sequence[ScoredRecord], attribute: str) -> List[GroupStatistics]:
    """
    Count respondents and passes per group of one attribute.

    Records without a value for the attribute are left out of its groups.

    Returns:
        One GroupStatistics per group, ordered by group name
    """
    tallies: Dict[str, GroupTally] = {}
    for record in records:
        group = record["demographics"].get(attribute)
        if group is None:
            continue
        tally = tallies.setdefault(group, {"respondents": 0, "passes": 0, "score_sum": 0.0})
        tally["respondents"] += 1
        tally["passes"] += int(record["passed"])
        tally["score_sum"] += record["score"]

    return [
        GroupStatistics(
            group=group,
            respondents=tally["respondents"],
            passes=tally["passes"],
            pass_rate=round(tally["passes"] / tally["respondents"], RATE_DECIMALS),
            mean_score=round(tally["score_sum"] / tally["respondents"], 2),
        )
        for group, tally in sorted(tallies.items())
    ]


def calculate_adverse_impact_ratio(groups: Sequence[GroupStatistics]) -> Dict[str, Any]:
    """
    Compare the least- and most-selected groups of one attribute.

    Args:
        groups: Group statistics for the attribute (each with respondents > 0)

    Returns:
        Dictionary with:
        - ratio: Exact AIR as a Fraction (0-100), None with fewer than two groups
        - lowest_group / highest_group: Group names (ties broken by name)
        - parity_difference: Exact highest minus lowest rate
    """
    if len(groups) < 2:
        return {
            "ratio": None,
            "lowest_group": None,
            "highest_group": None,
            "parity_difference": None,
        }

    lowest = min(groups, key=lambda g: (pass_rate(g), g.group))
    highest = min(groups, key=lambda g: (-pass_rate(g), g.group))
    highest_rate = pass_rate(highest)
    lowest_rate = pass_rate(lowest)

    if highest_rate == 0:
        ratio = Fraction(100)
    else:
        ratio = lowest_rate / highest_rate * 100

    return {
        "ratio": ratio,
        "lowest_group": lowest.group,
        "highest_group": highest.group,
        "parity_difference": highest_rate - lowest_rate,
    }


def passes_four_fifths(ratio: Fraction, threshold: float) -> bool:
    """Four-fifths rule, boundary inclusive."""
    return ratio >= exact(threshold)


def determine_bias_severity(
    ratio: Fraction, severity_bands: Mapping[BiasSeverity, float]
) -> BiasSeverity:
    """
    Map an adverse impact ratio to a severity.

    Bands are minimum ratios checked from the mildest severity down, so with
    the default table: >=90 low, >=80 medium, >=50 high, otherwise critical.
    """
    for severity in BiasSeverity:
        if ratio >= exact(severity_bands[severity]):
            return severity
    return BiasSeverity.CRITICAL


def two_proportion_p_value(
    low: GroupStatistics, high: GroupStatistics
) -> Optional[float]:
    """
    Two-sided p-value of a pooled two-proportion z-test.

    Returns:
        p-value in [0, 1]; 1.0 when both groups have the same all-or-nothing
        rate (zero variance); None if either group is empty
    """
    if low.respondents == 0 or high.respondents == 0:
        return None

    pooled = (low.passes + high.passes) / (low.respondents + high.respondents)
    variance = pooled * (1 - pooled) * (1 / low.respondents + 1 / high.respondents)
    if variance == 0:
        return 1.0

    z = (high.passes / high.respondents - low.passes / low.respondents) / math.sqrt(variance)
    return float(2 * norm.sf(abs(z)))


def calculate_dimension_disparities(
    records: Sequence[ScoredRecord],
    attribute: str,
    dimensions: Sequence[str],
    flag_points: float,
) -> List[DimensionDisparity]:
    """
    Largest gap between group mean percentages, per dimension.

    Only scored dimensions count toward a group's mean. A dimension needs at
    least two groups with data to be compared.

    Args:
        records: In-scope records
        attribute: Demographic attribute defining the groups
        dimensions: Dimensions to compare, in reporting order
        flag_points: Gap (percentage points) at or above which a dimension is flagged

    Returns:
        One DimensionDisparity per comparable dimension
    """
    disparities: List[DimensionDisparity] = []
    for dimension in dimensions:
        by_group: Dict[str, List[float]] = {}
        for record in records:
            group = record["demographics"].get(attribute)
            percentage = record["dimension_percentages"].get(dimension)
            if group is None or percentage is None:
                continue
            by_group.setdefault(group, []).append(percentage)

        if len(by_group) < 2:
            continue

        means = {group: float(np.mean(values)) for group, values in by_group.items()}
        favored = min(means, key=lambda g: (-means[g], g))
        disfavored = min(means, key=lambda g: (means[g], g))
        disparity = round(means[favored] - means[disfavored], RATIO_DECIMALS)

        disparities.append(
            DimensionDisparity(
                dimension=dimension,
                attribute=attribute,
                disparity=disparity,
                favored_group=favored,
                disfavored_group=disfavored,
                flagged=disparity >= flag_points,
            )
        )
        logger.debug(
            f"Dimension {dimension} by {attribute}: disparity={disparity} "
            f"({favored} > {disfavored})"
        )
    return disparities
