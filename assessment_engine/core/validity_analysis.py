"""
Response-validity analysis for a single assessment attempt.

This module detects response distortion using embedded distortion items and
response metadata:

- Fake-good items: implausibly absolute positive claims ("I have never made
  a mistake"). Endorsements raise social desirability bias.
- Fake-bad items: implausibly negative self-claims. Endorsements raise
  impression management.
- Inconsistency pairs: items with logically opposite phrasing of the same
  trait; answers should be complementary.
- Random-check items: statements with an objectively correct answer; any
  miss flags inattentive or random responding.
- Straight-lining: near-zero answer variance across consecutive content items.
- Speed: implausibly short median item time or total completion time.

The composite verdict is an ordered rule table, not a weighted sum, so every
verdict can be explained by the triggers that fired.

Ethical Considerations:
- Flags are indicators, not proof of faking
- Validity changes the confidence attached to a result, never its scores
- Missing distortion items or timing never block scoring; the checks that
  could not run are reported instead
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Any

import numpy as np

from assessment_engine.core.catalog import build_item_index, index_responses
from assessment_engine.schemas.items import Item, Response, ResponseSet
from assessment_engine.schemas.validity import (
    DISTORTION_ITEM_CHECKS,
    TimingStatistics,
    ValidityCheck,
    ValidityConfig,
    ValidityMetrics,
    ValidityTrigger,
)
from libs.domain_types import DistortionType, ItemType, ValidityLevel

logger = logging.getLogger(__name__)


# =============================================================================
# VERDICT RULES
# =============================================================================
#
# Rules that cap the verdict at LOW are hard flags (random-check failure,
# straight-lining, speed) plus distortion indices at or above the high
# threshold. Rules that cap it at MEDIUM are moderate distortion and the
# absence of any evaluable distortion item. Thresholds live in
# ValidityConfig so each assessment type can tune them.

RULE_RANDOM_CHECK_FAILED = "random_check_failed"
RULE_STRAIGHT_LINING = "straight_lining"
RULE_SPEED_WARNING = "speed_warning"
RULE_HIGH_SOCIAL_DESIRABILITY = "high_social_desirability"
RULE_HIGH_IMPRESSION_MANAGEMENT = "high_impression_management"
RULE_LOW_CONSISTENCY = "low_consistency"
RULE_MODERATE_SOCIAL_DESIRABILITY = "moderate_social_desirability"
RULE_MODERATE_IMPRESSION_MANAGEMENT = "moderate_impression_management"
RULE_REDUCED_CONSISTENCY = "reduced_consistency"
RULE_NO_DISTORTION_ITEMS = "no_distortion_items"

# Authenticity is scaled by this factor when random responding is flagged
RANDOM_RESPONDING_AUTHENTICITY_FACTOR = 0.5


def _distortion_items(
    items: Iterable[Item], distortion_type: DistortionType
) -> List[Item]:
    return [
        item
        for item in items
        if item.item_type == ItemType.DISTORTION and item.distortion_type == distortion_type
    ]


# =============================================================================
# FAKE-GOOD / FAKE-BAD DETECTION
# =============================================================================


def _score_endorsements(
    items: List[Item],
    responses: Dict[str, Response],
    increment: float,
    index_name: str,
) -> Dict[str, Any]:
    answered = [item for item in items if item.id in responses]
    if not answered:
        return {
            "evaluated": False,
            "items_answered": 0,
            "endorsed": 0,
            "endorsed_items": [],
            index_name: 0.0,
            "details": "No answered items of this type; check not evaluated.",
        }

    endorsed_items = [
        item.id for item in answered if item.matches_key(responses[item.id].value)
    ]
    index_value = min(100.0, len(endorsed_items) * increment)
    return {
        "evaluated": True,
        "items_answered": len(answered),
        "endorsed": len(endorsed_items),
        "endorsed_items": endorsed_items,
        index_name: round(index_value, 1),
        "details": (
            f"{len(endorsed_items)} of {len(answered)} implausible statements endorsed "
            f"({increment:g} points each, capped at 100)."
        ),
    }


def detect_fake_good(
    items: Iterable[Item], responses: Dict[str, Response], config: ValidityConfig
) -> Dict[str, Any]:
    """
    Score endorsement of implausibly positive self-claims.

    Args:
        items: Catalog slice (only fake-good distortion items are read)
        responses: Validated responses keyed by item id
        config: Validity thresholds

    Returns:
        Dictionary containing:
        {
            "evaluated": bool,               # False when no fake-good item was answered
            "items_answered": int,
            "endorsed": int,
            "endorsed_items": List[str],
            "social_desirability_bias": float,  # 0-100
            "details": str
        }
    """
    return _score_endorsements(
        _distortion_items(items, DistortionType.FAKE_GOOD),
        responses,
        config.fake_good_increment,
        "social_desirability_bias",
    )


def detect_fake_bad(
    items: Iterable[Item], responses: Dict[str, Response], config: ValidityConfig
) -> Dict[str, Any]:
    """
    Score endorsement of implausibly negative self-claims.

    Suspiciously self-deprecating answers are distortion too, not only
    faking good. Same return shape as detect_fake_good() with
    ``impression_management`` as the index.
    """
    return _score_endorsements(
        _distortion_items(items, DistortionType.FAKE_BAD),
        responses,
        config.fake_bad_increment,
        "impression_management",
    )


# =============================================================================
# INCONSISTENCY DETECTION
# =============================================================================


def _is_consistent_pair(
    first: Item, first_value: Any, second: Item, second_value: Any, tolerance: int
) -> bool:
    if first.is_numeric and second.is_numeric:
        return abs(first_value - second.mirror(second_value)) <= tolerance
    # Opposite phrasing: binary answers should differ
    return first_value != second_value


def check_inconsistency(
    item_index: Dict[str, Item], responses: Dict[str, Response], config: ValidityConfig
) -> Dict[str, Any]:
    """
    Compare answers to item pairs with logically opposite phrasing.

    A pair is declared by ``paired_item_id`` on either item and is evaluated
    once, only when both items were answered. Binary pairs are consistent
    when the answers differ; Likert pairs are consistent when one answer is
    within ``consistency_tolerance`` points of the other's mirror image.

    Returns:
        Dictionary containing:
        {
            "evaluated": bool,
            "pairs_declared": int,
            "pairs_evaluated": int,
            "consistent_pairs": int,
            "inconsistent_pairs": List[Tuple[str, str]],
            "response_consistency": Optional[float],  # 0-100, None if not evaluated
            "details": str
        }
    """
    pairs: List[Tuple[str, str]] = []
    seen = set()
    for item in item_index.values():
        partner_id = item.paired_item_id
        if partner_id is None or partner_id not in item_index:
            continue
        key = tuple(sorted((item.id, partner_id)))
        if key in seen:
            continue
        seen.add(key)
        pairs.append((item.id, partner_id))

    consistent = 0
    inconsistent_pairs: List[Tuple[str, str]] = []
    evaluated_pairs = 0
    for first_id, second_id in pairs:
        if first_id not in responses or second_id not in responses:
            continue
        evaluated_pairs += 1
        if _is_consistent_pair(
            item_index[first_id],
            responses[first_id].value,
            item_index[second_id],
            responses[second_id].value,
            config.consistency_tolerance,
        ):
            consistent += 1
        else:
            inconsistent_pairs.append((first_id, second_id))

    if evaluated_pairs == 0:
        return {
            "evaluated": False,
            "pairs_declared": len(pairs),
            "pairs_evaluated": 0,
            "consistent_pairs": 0,
            "inconsistent_pairs": [],
            "response_consistency": None,
            "details": (
                f"{len(pairs)} item pair(s) declared, none fully answered; "
                "check not evaluated."
            ),
        }

    consistency = round(consistent / evaluated_pairs * 100, 1)
    return {
        "evaluated": True,
        "pairs_declared": len(pairs),
        "pairs_evaluated": evaluated_pairs,
        "consistent_pairs": consistent,
        "inconsistent_pairs": inconsistent_pairs,
        "response_consistency": consistency,
        "details": (
            f"{consistent} of {evaluated_pairs} opposite-phrased pairs answered "
            f"consistently ({consistency:.1f}%)."
        ),
    }


# =============================================================================
# RANDOM-RESPONSE DETECTION
# =============================================================================


def check_random_responses(
    items: Iterable[Item], responses: Dict[str, Response]
) -> Dict[str, Any]:
    """
    Check items with an objectively correct answer.

    Any incorrect answer is strong evidence of inattentive or random
    responding and sets a flag; there is no graded score.

    Returns:
        Dictionary containing:
        {
            "evaluated": bool,
            "items_answered": int,
            "failed_items": List[str],
            "random_responding": bool,
            "details": str
        }
    """
    answered = [
        item
        for item in _distortion_items(items, DistortionType.RANDOM_CHECK)
        if item.id in responses
    ]
    if not answered:
        return {
            "evaluated": False,
            "items_answered": 0,
            "failed_items": [],
            "random_responding": False,
            "details": "No random-check items answered; check not evaluated.",
        }

    failed = [item.id for item in answered if not item.matches_key(responses[item.id].value)]
    if failed:
        details = (
            f"{len(failed)} of {len(answered)} factual check item(s) answered "
            f"incorrectly ({', '.join(failed)}), suggesting inattentive responding."
        )
    else:
        details = f"All {len(answered)} factual check items answered correctly."
    return {
        "evaluated": True,
        "items_answered": len(answered),
        "failed_items": failed,
        "random_responding": bool(failed),
        "details": details,
    }


# =============================================================================
# STRAIGHT-LINING DETECTION
# =============================================================================


def content_response_runs(
    response_set: ResponseSet, item_index: Dict[str, Item]
) -> List[List[float]]:
    """
    Split the answer sequence into runs of consecutive content answers.

    Answers are placed on a numeric line (scale point, or 1-based option
    position). Distortion items end a run: answering them requires reading
    the statement, so a uniform streak is only measured between them.
    """
    runs: List[List[float]] = [[]]
    for response in response_set.responses:
        item = item_index[response.item_id]
        if item.item_type == ItemType.DISTORTION:
            runs.append([])
            continue
        if item.is_numeric:
            runs[-1].append(float(response.value))
        else:
            runs[-1].append(float(item.option_position(response.value)))
    return [run for run in runs if run]


def detect_straight_lining(runs: List[List[float]], config: ValidityConfig) -> Dict[str, Any]:
    """
    Look for a sliding window of answers with near-zero variance.

    Args:
        runs: Output of content_response_runs()
        config: Validity thresholds (window size and minimum variance)

    Returns:
        Dictionary containing:
        {
            "evaluated": bool,          # False when no run fills a window
            "straight_lining": bool,
            "windows_checked": int,
            "min_window_variance": Optional[float],
            "details": str
        }
    """
    window = config.straight_line_window
    variances: List[float] = []
    for run in runs:
        if len(run) < window:
            continue
        windows = np.lib.stride_tricks.sliding_window_view(np.asarray(run), window)
        variances.extend(windows.var(axis=1).tolist())

    if not variances:
        longest = max((len(run) for run in runs), default=0)
        return {
            "evaluated": False,
            "straight_lining": False,
            "windows_checked": 0,
            "min_window_variance": None,
            "details": (
                f"Longest run of consecutive content answers ({longest}) is shorter "
                f"than the {window}-item window; check not evaluated."
            ),
        }

    min_variance = float(min(variances))
    flagged = min_variance < config.straight_line_min_variance
    if flagged:
        details = (
            f"A window of {window} consecutive answers has variance {min_variance:.3f}, "
            f"below the minimum of {config.straight_line_min_variance}."
        )
    else:
        details = f"All {len(variances)} answer windows show normal variation."
    return {
        "evaluated": True,
        "straight_lining": flagged,
        "windows_checked": len(variances),
        "min_window_variance": round(min_variance, 4),
        "details": details,
    }


# =============================================================================
# RESPONSE SPEED CHECK
# =============================================================================


def check_response_speed(response_set: ResponseSet, config: ValidityConfig) -> Dict[str, Any]:
    """
    Flag implausibly fast completion.

    Uses only the supplied timing, never the wall clock. The median check
    runs when enough responses carry valid (non-negative) timing; the total
    check also runs when the attempt's ``total_time_ms`` is supplied.

    Returns:
        Dictionary containing:
        {
            "evaluated": bool,
            "speed_warning": bool,
            "statistics": Optional[TimingStatistics],
            "missing_time_count": int,
            "details": str
        }
    """
    answered = len(response_set.responses)
    times = [
        r.response_time_ms
        for r in response_set.responses
        if r.response_time_ms is not None and r.response_time_ms >= 0
    ]
    missing_time_count = answered - len(times)
    has_item_timing = answered > 0 and len(times) / answered >= config.min_timed_share
    has_total = response_set.total_time_ms is not None and answered > 0

    if not has_item_timing and not has_total:
        return {
            "evaluated": False,
            "speed_warning": False,
            "statistics": None,
            "missing_time_count": missing_time_count,
            "details": (
                f"Insufficient timing data ({len(times)} of {answered} responses timed); "
                "check not evaluated."
            ),
        }

    # Without an attempt total, the summed item times only cover timed answers
    if response_set.total_time_ms is not None:
        total_time = response_set.total_time_ms
        counted = answered
    else:
        total_time = float(sum(times))
        counted = len(times)
    median_time = float(np.median(times)) if times else 0.0
    mean_time = float(np.mean(times)) if times else 0.0
    rapid_count = sum(1 for t in times if t < config.rapid_response_ms)

    reasons: List[str] = []
    if has_item_timing and median_time < config.min_median_item_time_ms:
        reasons.append(
            f"median item time {median_time:.0f} ms is below {config.min_median_item_time_ms:.0f} ms"
        )
    minimum_total = counted * config.min_time_per_item_ms
    if total_time < minimum_total:
        reasons.append(
            f"total time {total_time:.0f} ms is below {minimum_total:.0f} ms "
            f"for {counted} answers"
        )

    statistics = TimingStatistics(
        timed_responses=len(times),
        total_time_ms=round(total_time, 1),
        median_item_time_ms=round(median_time, 1),
        mean_item_time_ms=round(mean_time, 1),
        rapid_response_count=rapid_count,
    )
    details = (
        "Completion speed implausible: " + "; ".join(reasons) + "."
        if reasons
        else f"Completion speed plausible ({rapid_count} rapid response(s))."
    )
    return {
        "evaluated": True,
        "speed_warning": bool(reasons),
        "statistics": statistics,
        "missing_time_count": missing_time_count,
        "details": details,
    }


# =============================================================================
# COMPOSITE VERDICT
# =============================================================================


def calculate_response_authenticity(
    social_desirability_bias: Optional[float],
    impression_management: Optional[float],
    response_consistency: Optional[float],
    random_responding: bool,
) -> float:
    """
    Overall authenticity index (0-100).

    ``100 - worst evaluated distortion component``, where the consistency
    component is ``100 - response_consistency``. Halved when random
    responding is flagged. Components passed as None were not evaluated.
    """
    components = [
        value for value in (social_desirability_bias, impression_management) if value is not None
    ]
    if response_consistency is not None:
        components.append(100.0 - response_consistency)

    authenticity = 100.0 - max(components, default=0.0)
    if random_responding:
        authenticity *= RANDOM_RESPONDING_AUTHENTICITY_FACTOR
    return round(max(0.0, min(100.0, authenticity)), 1)


def determine_overall_validity(
    social_desirability_bias: float,
    impression_management: float,
    response_consistency: Optional[float],
    random_responding: bool,
    straight_lining: bool,
    speed_warning: bool,
    unevaluated_checks: List[ValidityCheck],
    config: ValidityConfig,
) -> Tuple[ValidityLevel, List[ValidityTrigger]]:
    """
    Apply the verdict rule table.

    Rules (every firing rule is returned as a trigger):
        LOW if random-check failure, straight-lining, speed warning, a
            distortion index >= high_distortion, or consistency below
            low_consistency
        MEDIUM if a distortion index >= moderate_distortion, consistency
            below moderate_consistency, or no distortion item check could
            be evaluated
        HIGH otherwise

    Returns:
        Tuple of (verdict, triggers)
    """
    triggers: List[ValidityTrigger] = []

    def fire(rule: str, verdict: ValidityLevel, details: str) -> None:
        triggers.append(ValidityTrigger(rule=rule, verdict=verdict, details=details))

    if random_responding:
        fire(
            RULE_RANDOM_CHECK_FAILED,
            ValidityLevel.LOW,
            "At least one factual check item was answered incorrectly.",
        )
    if straight_lining:
        fire(
            RULE_STRAIGHT_LINING,
            ValidityLevel.LOW,
            "Consecutive answers show near-zero variation.",
        )
    if speed_warning:
        fire(RULE_SPEED_WARNING, ValidityLevel.LOW, "Completion time is implausibly short.")

    for value, high_rule, moderate_rule, label in (
        (
            social_desirability_bias,
            RULE_HIGH_SOCIAL_DESIRABILITY,
            RULE_MODERATE_SOCIAL_DESIRABILITY,
            "Social desirability bias",
        ),
        (
            impression_management,
            RULE_HIGH_IMPRESSION_MANAGEMENT,
            RULE_MODERATE_IMPRESSION_MANAGEMENT,
            "Impression management",
        ),
    ):
        if value >= config.high_distortion:
            fire(
                high_rule,
                ValidityLevel.LOW,
                f"{label} {value:.1f} reaches the high threshold {config.high_distortion:g}.",
            )
        elif value >= config.moderate_distortion:
            fire(
                moderate_rule,
                ValidityLevel.MEDIUM,
                f"{label} {value:.1f} reaches the moderate threshold "
                f"{config.moderate_distortion:g}.",
            )

    if response_consistency is not None:
        if response_consistency < config.low_consistency:
            fire(
                RULE_LOW_CONSISTENCY,
                ValidityLevel.LOW,
                f"Response consistency {response_consistency:.1f}% is below "
                f"{config.low_consistency:g}%.",
            )
        elif response_consistency < config.moderate_consistency:
            fire(
                RULE_REDUCED_CONSISTENCY,
                ValidityLevel.MEDIUM,
                f"Response consistency {response_consistency:.1f}% is below "
                f"{config.moderate_consistency:g}%.",
            )

    if all(check in unevaluated_checks for check in DISTORTION_ITEM_CHECKS):
        fire(
            RULE_NO_DISTORTION_ITEMS,
            ValidityLevel.MEDIUM,
            "No distortion item was answered; validity could not be verified.",
        )

    if any(t.verdict == ValidityLevel.LOW for t in triggers):
        verdict = ValidityLevel.LOW
    elif triggers:
        verdict = ValidityLevel.MEDIUM
    else:
        verdict = ValidityLevel.HIGH
    return verdict, triggers


def analyze_validity(
    items: Iterable[Item],
    response_set: ResponseSet,
    config: Optional[ValidityConfig] = None,
) -> ValidityMetrics:
    """
    Run every validity check and the composite verdict for one attempt.

    Args:
        items: Catalog slice for the assessment (content and distortion items)
        response_set: The candidate's answers, in presentation order
        config: Validity thresholds (defaults to engine settings)

    Returns:
        ValidityMetrics with indices, flags, verdict, triggers and the list
        of checks that could and could not be evaluated

    Raises:
        InputContractError: On duplicate responses, unknown items or
            out-of-range values. Missing distortion items never raise.
    """
    config = config or ValidityConfig()
    items = list(items)
    item_index = build_item_index(items, dimensions=None)
    responses = index_responses(response_set, item_index)

    fake_good = detect_fake_good(items, responses, config)
    fake_bad = detect_fake_bad(items, responses, config)
    consistency = check_inconsistency(item_index, responses, config)
    random_check = check_random_responses(items, responses)
    straight = detect_straight_lining(content_response_runs(response_set, item_index), config)
    speed = check_response_speed(response_set, config)

    check_results = {
        ValidityCheck.FAKE_GOOD: fake_good,
        ValidityCheck.FAKE_BAD: fake_bad,
        ValidityCheck.INCONSISTENCY: consistency,
        ValidityCheck.RANDOM_CHECK: random_check,
        ValidityCheck.STRAIGHT_LINING: straight,
        ValidityCheck.SPEED: speed,
    }
    evaluated = [check for check, result in check_results.items() if result["evaluated"]]
    unevaluated = [check for check, result in check_results.items() if not result["evaluated"]]

    sdb = fake_good["social_desirability_bias"]
    im = fake_bad["impression_management"]
    verdict, triggers = determine_overall_validity(
        social_desirability_bias=sdb,
        impression_management=im,
        response_consistency=consistency["response_consistency"],
        random_responding=random_check["random_responding"],
        straight_lining=straight["straight_lining"],
        speed_warning=speed["speed_warning"],
        unevaluated_checks=unevaluated,
        config=config,
    )
    authenticity = calculate_response_authenticity(
        sdb if fake_good["evaluated"] else None,
        im if fake_bad["evaluated"] else None,
        consistency["response_consistency"],
        random_check["random_responding"],
    )

    for check, result in check_results.items():
        logger.debug(f"Validity check {check.value}: {result['details']}")
    logger.info(
        f"Validity analysis for session {response_set.session_id}: "
        f"verdict={verdict.value}, triggers={[t.rule for t in triggers]}, "
        f"unevaluated={[c.value for c in unevaluated]}"
    )

    return ValidityMetrics(
        response_authenticity=authenticity,
        social_desirability_bias=sdb,
        impression_management=im,
        response_consistency=consistency["response_consistency"],
        random_responding=random_check["random_responding"],
        straight_lining=straight["straight_lining"],
        speed_warning=speed["speed_warning"],
        overall_validity=verdict,
        triggers=triggers,
        evaluated_checks=evaluated,
        unevaluated_checks=unevaluated,
        fake_good_endorsed=fake_good["endorsed"],
        fake_bad_endorsed=fake_bad["endorsed"],
        inconsistent_pairs=len(consistency["inconsistent_pairs"]),
        random_check_failures=len(random_check["failed_items"]),
        timing=speed["statistics"],
    )
