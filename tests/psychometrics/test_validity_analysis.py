"""
Tests for response-validity analysis.

This module contains unit tests for:
- Fake-good and fake-bad endorsement indices
- Inconsistency pairs (Likert and binary)
- Random-check items
- Straight-lining windows
- Speed checks
- The composite verdict and its triggers
"""

import pytest

from assessment_engine.core.catalog import build_item_index, index_responses
from assessment_engine.core.validity_analysis import (
    RULE_HIGH_SOCIAL_DESIRABILITY,
    RULE_LOW_CONSISTENCY,
    RULE_MODERATE_SOCIAL_DESIRABILITY,
    RULE_NO_DISTORTION_ITEMS,
    RULE_RANDOM_CHECK_FAILED,
    RULE_REDUCED_CONSISTENCY,
    RULE_SPEED_WARNING,
    RULE_STRAIGHT_LINING,
    analyze_validity,
    calculate_response_authenticity,
    check_inconsistency,
    check_response_speed,
    content_response_runs,
    detect_fake_bad,
    detect_straight_lining,
)
from assessment_engine.schemas import (
    Item,
    ItemOption,
    Response,
    ResponseSet,
    ValidityCheck,
    ValidityConfig,
)
from libs.domain_types import DistortionType, ItemType, ValidityLevel


def likert(item_id, **kwargs):
    return Item(id=item_id, dimension="focus", item_type=ItemType.LIKERT, **kwargs)


def binary_distortion(item_id, distortion_type, keyed="A", **kwargs):
    return Item(
        id=item_id,
        dimension="validity",
        item_type=ItemType.DISTORTION,
        distortion_type=distortion_type,
        options=[ItemOption(key="A", label="True"), ItemOption(key="B", label="False")],
        keyed_response=keyed if distortion_type != DistortionType.INCONSISTENCY else None,
        **kwargs,
    )


def response_set(pairs, time_ms=4000.0, total_time_ms=None):
    return ResponseSet(
        session_id="s",
        assessment_type="t",
        responses=[
            Response(item_id=item_id, value=value, response_time_ms=time_ms)
            for item_id, value in pairs
        ],
        total_time_ms=total_time_ms,
    )


def varied_likert(n):
    """n Likert items answered 1-5 in rotation (never a flat streak)."""
    items = [likert(f"q{i}") for i in range(n)]
    return items, [(f"q{i}", i % 5 + 1) for i in range(n)]


class TestCairScenario:
    """40 content items with four interspersed fake-good items."""

    def test_plausible_mid_scale_answers_are_high_validity(self, cair_items, make_response_set):
        """Test that mid-scale content with plausible distortion answers is valid."""
        metrics = analyze_validity(cair_items, make_response_set(cair_items, likert_value=3))

        assert metrics.overall_validity == ValidityLevel.HIGH
        assert metrics.social_desirability_bias == pytest.approx(0.0)
        assert metrics.fake_good_endorsed == 0
        assert metrics.triggers == []
        assert metrics.straight_lining is False
        assert ValidityCheck.FAKE_GOOD in metrics.evaluated_checks
        assert ValidityCheck.SPEED in metrics.evaluated_checks
        assert ValidityCheck.FAKE_BAD in metrics.unevaluated_checks

    def test_all_fake_good_endorsed(self, cair_items, make_response_set):
        """Test that endorsing every fake-good item caps validity at medium or below."""
        metrics = analyze_validity(
            cair_items, make_response_set(cair_items, likert_value=3, option_value="A")
        )

        assert metrics.social_desirability_bias == pytest.approx(100.0)
        assert metrics.fake_good_endorsed == 4
        assert metrics.overall_validity != ValidityLevel.HIGH
        assert metrics.overall_validity == ValidityLevel.LOW
        assert RULE_HIGH_SOCIAL_DESIRABILITY in [t.rule for t in metrics.triggers]
        assert metrics.response_authenticity == pytest.approx(0.0)

    def test_two_fake_good_endorsed_is_moderate(self, cair_items, make_response_set):
        """Test that 50 points of social desirability gives a medium verdict."""
        metrics = analyze_validity(
            cair_items, make_response_set(cair_items, overrides={"fg1": "A", "fg2": "A"})
        )

        assert metrics.social_desirability_bias == pytest.approx(50.0)
        assert metrics.overall_validity == ValidityLevel.MEDIUM
        assert [t.rule for t in metrics.triggers] == [RULE_MODERATE_SOCIAL_DESIRABILITY]
        assert metrics.response_authenticity == pytest.approx(50.0)

    def test_validity_never_changes_inputs(self, cair_items, make_response_set):
        """Test that the analysis is deterministic for identical input."""
        rs = make_response_set(cair_items, option_value="A")
        assert analyze_validity(cair_items, rs) == analyze_validity(cair_items, rs)


class TestFakeBad:
    """Tests for fake-bad detection."""

    def test_likert_keyed_item_matches_beyond_key(self):
        """Test that a Likert fake-bad key of 4 is endorsed by a 5."""
        items = [
            Item(
                id="fb1",
                dimension="validity",
                item_type=ItemType.DISTORTION,
                distortion_type=DistortionType.FAKE_BAD,
                keyed_response=4,
            ),
            Item(
                id="fb2",
                dimension="validity",
                item_type=ItemType.DISTORTION,
                distortion_type=DistortionType.FAKE_BAD,
                keyed_response=4,
            ),
        ]
        index = build_item_index(items)
        responses = index_responses(response_set([("fb1", 5), ("fb2", 3)]), index)

        result = detect_fake_bad(items, responses, ValidityConfig())

        assert result["evaluated"] is True
        assert result["endorsed_items"] == ["fb1"]
        assert result["impression_management"] == pytest.approx(25.0)

    def test_increment_is_configurable(self):
        """Test that the per-item increment comes from the config."""
        items = [binary_distortion("fb1", DistortionType.FAKE_BAD)]
        index = build_item_index(items)
        responses = index_responses(response_set([("fb1", "A")]), index)

        result = detect_fake_bad(items, responses, ValidityConfig(fake_bad_increment=40))
        assert result["impression_management"] == pytest.approx(40.0)


class TestInconsistency:
    """Tests for opposite-phrased item pairs."""

    def _check(self, items, pairs):
        index = build_item_index(items)
        responses = index_responses(response_set(pairs), index)
        return check_inconsistency(index, responses, ValidityConfig())

    def test_likert_pair_consistent_when_mirrored(self):
        """Test that 5 and 1 on an opposite pair are consistent."""
        items = [likert("q1", paired_item_id="q2"), likert("q2")]
        result = self._check(items, [("q1", 5), ("q2", 1)])
        assert result["response_consistency"] == pytest.approx(100.0)

    def test_likert_pair_within_tolerance(self):
        """Test that one scale point off the mirror is still consistent."""
        items = [likert("q1", paired_item_id="q2"), likert("q2")]
        result = self._check(items, [("q1", 4), ("q2", 1)])
        assert result["consistent_pairs"] == 1

    def test_likert_pair_agreeing_with_both_is_inconsistent(self):
        """Test that strong agreement with opposite statements is inconsistent."""
        items = [likert("q1", paired_item_id="q2"), likert("q2")]
        result = self._check(items, [("q1", 5), ("q2", 5)])
        assert result["response_consistency"] == pytest.approx(0.0)
        assert result["inconsistent_pairs"] == [("q1", "q2")]

    def test_binary_pair_must_differ(self):
        """Test that binary opposite pairs are consistent only when answers differ."""
        items = [
            binary_distortion("i1", DistortionType.INCONSISTENCY, paired_item_id="i2"),
            binary_distortion("i2", DistortionType.INCONSISTENCY),
            binary_distortion("i3", DistortionType.INCONSISTENCY, paired_item_id="i4"),
            binary_distortion("i4", DistortionType.INCONSISTENCY),
        ]
        result = self._check(items, [("i1", "A"), ("i2", "B"), ("i3", "A"), ("i4", "A")])
        assert result["pairs_evaluated"] == 2
        assert result["response_consistency"] == pytest.approx(50.0)

    def test_pairs_declared_on_both_sides_counted_once(self):
        """Test that a pair declared from both items is deduplicated."""
        items = [likert("q1", paired_item_id="q2"), likert("q2", paired_item_id="q1")]
        result = self._check(items, [("q1", 5), ("q2", 1)])
        assert result["pairs_declared"] == 1
        assert result["pairs_evaluated"] == 1

    def test_half_answered_pair_not_evaluated(self):
        """Test that a pair needs both answers."""
        items = [likert("q1", paired_item_id="q2"), likert("q2")]
        result = self._check(items, [("q1", 5)])
        assert result["evaluated"] is False
        assert result["response_consistency"] is None

    def test_reduced_consistency_is_medium(self):
        """Test that 50% consistency (below 75, not below 50) gives medium."""
        items = [
            likert("q1", paired_item_id="q2"),
            likert("q2"),
            likert("q3", paired_item_id="q4"),
            likert("q4"),
        ]
        metrics = analyze_validity(
            items, response_set([("q1", 5), ("q2", 1), ("q3", 5), ("q4", 5)])
        )
        assert metrics.response_consistency == pytest.approx(50.0)
        assert metrics.overall_validity == ValidityLevel.MEDIUM
        assert RULE_REDUCED_CONSISTENCY in [t.rule for t in metrics.triggers]

    def test_low_consistency_is_low(self):
        """Test that consistency below 50% gives low."""
        items = [likert("q1", paired_item_id="q2"), likert("q2")]
        metrics = analyze_validity(items, response_set([("q1", 5), ("q2", 5)]))
        assert metrics.overall_validity == ValidityLevel.LOW
        assert RULE_LOW_CONSISTENCY in [t.rule for t in metrics.triggers]


class TestRandomCheck:
    """Tests for random-check items."""

    @pytest.fixture
    def items(self):
        content, _ = varied_likert(8)
        checks = [binary_distortion(f"rc{n}", DistortionType.RANDOM_CHECK) for n in range(4)]
        return content + checks

    def test_four_correct_answers_do_not_lower_validity(self, items):
        """Test that passing every random check alone gives a high verdict."""
        _, content_answers = varied_likert(8)
        pairs = content_answers + [(f"rc{n}", "A") for n in range(4)]

        metrics = analyze_validity(items, response_set(pairs))

        assert metrics.random_responding is False
        assert metrics.overall_validity == ValidityLevel.HIGH
        assert RULE_NO_DISTORTION_ITEMS not in [t.rule for t in metrics.triggers]

    def test_one_incorrect_answer_forces_at_most_medium(self, items):
        """Test that a single failed random check is a hard flag."""
        _, content_answers = varied_likert(8)
        pairs = content_answers + [("rc0", "B")] + [(f"rc{n}", "A") for n in range(1, 4)]

        metrics = analyze_validity(items, response_set(pairs))

        assert metrics.random_responding is True
        assert metrics.random_check_failures == 1
        assert metrics.overall_validity in (ValidityLevel.MEDIUM, ValidityLevel.LOW)
        assert RULE_RANDOM_CHECK_FAILED in [t.rule for t in metrics.triggers]
        assert metrics.response_authenticity == pytest.approx(50.0)


class TestStraightLining:
    """Tests for the sliding-window variance check."""

    def test_flat_window_flags(self):
        """Test that twelve identical consecutive answers flag straight-lining."""
        items = [likert(f"q{i}") for i in range(12)]
        metrics = analyze_validity(items, response_set([(f"q{i}", 4) for i in range(12)]))

        assert metrics.straight_lining is True
        assert metrics.overall_validity == ValidityLevel.LOW
        assert RULE_STRAIGHT_LINING in [t.rule for t in metrics.triggers]

    def test_varied_answers_do_not_flag(self):
        """Test that alternating answers have enough variance."""
        result = detect_straight_lining([[2.0, 4.0] * 6], ValidityConfig())
        assert result["evaluated"] is True
        assert result["straight_lining"] is False
        assert result["min_window_variance"] == pytest.approx(1.0)

    def test_short_run_not_evaluated(self):
        """Test that fewer answers than the window leave the check unevaluated."""
        result = detect_straight_lining([[3.0] * 11], ValidityConfig())
        assert result["evaluated"] is False
        assert result["straight_lining"] is False

    def test_window_is_configurable(self):
        """Test that a smaller window evaluates shorter runs."""
        result = detect_straight_lining([[3.0] * 5], ValidityConfig(straight_line_window=5))
        assert result["straight_lining"] is True
        assert result["windows_checked"] == 1

    def test_distortion_items_split_runs(self, cair_items, make_response_set):
        """Test that check items break the content answer sequence into runs."""
        rs = make_response_set(cair_items, likert_value=3)
        runs = content_response_runs(rs, build_item_index(cair_items))
        assert [len(run) for run in runs] == [10, 10, 10, 10]

    def test_option_answers_use_position(self):
        """Test that option keys are placed on the line by 1-based position."""
        item = Item(
            id="fc",
            dimension="focus",
            item_type=ItemType.FORCED_CHOICE,
            options=[
                ItemOption(key="x", weights={"focus": 1}),
                ItemOption(key="y", weights={"focus": 2}),
            ],
        )
        runs = content_response_runs(response_set([("fc", "y")]), build_item_index([item]))
        assert runs == [[2.0]]


class TestResponseSpeed:
    """Tests for the completion-speed check."""

    def test_fast_median_flags(self):
        """Test that a median below 2000 ms raises a speed warning."""
        result = check_response_speed(
            response_set([(f"q{i}", 3) for i in range(10)], time_ms=500.0), ValidityConfig()
        )
        assert result["evaluated"] is True
        assert result["speed_warning"] is True
        assert result["statistics"].median_item_time_ms == pytest.approx(500.0)
        assert result["statistics"].rapid_response_count == 10

    def test_fast_total_time_flags(self):
        """Test that a supplied total below answered x 1500 ms raises a warning."""
        rs = response_set([(f"q{i}", 3) for i in range(20)], time_ms=None, total_time_ms=10000.0)
        result = check_response_speed(rs, ValidityConfig())
        assert result["evaluated"] is True
        assert result["speed_warning"] is True
        assert result["statistics"].total_time_ms == pytest.approx(10000.0)

    def test_plausible_timing(self):
        """Test that ordinary timing passes."""
        result = check_response_speed(
            response_set([(f"q{i}", 3) for i in range(10)], time_ms=5000.0), ValidityConfig()
        )
        assert result["speed_warning"] is False
        assert result["statistics"].total_time_ms == pytest.approx(50000.0)

    def test_missing_timing_not_evaluated(self):
        """Test that absent timing is reported, not treated as fast."""
        result = check_response_speed(
            response_set([(f"q{i}", 3) for i in range(10)], time_ms=None), ValidityConfig()
        )
        assert result["evaluated"] is False
        assert result["speed_warning"] is False
        assert result["statistics"] is None

    def test_negative_times_ignored(self):
        """Test that invalid negative latencies do not count as timed."""
        result = check_response_speed(
            response_set([(f"q{i}", 3) for i in range(10)], time_ms=-1.0), ValidityConfig()
        )
        assert result["evaluated"] is False
        assert result["missing_time_count"] == 10

    def test_partial_timing_totals_only_timed_answers(self):
        """Test that untimed answers do not count toward the minimum summed time."""
        responses = [
            Response(item_id=f"q{i}", value=3, response_time_ms=2400.0 if i < 6 else None)
            for i in range(10)
        ]
        rs = ResponseSet(session_id="s", assessment_type="t", responses=responses)
        result = check_response_speed(rs, ValidityConfig())

        assert result["evaluated"] is True
        assert result["speed_warning"] is False
        assert result["missing_time_count"] == 4
        assert result["statistics"].total_time_ms == pytest.approx(14400.0)

    def test_partial_timing_still_flags_fast_total(self):
        """Test that fast timed answers are flagged when summed alone."""
        config = ValidityConfig(min_median_item_time_ms=0.0)
        responses = [
            Response(item_id=f"q{i}", value=3, response_time_ms=1000.0 if i < 6 else None)
            for i in range(10)
        ]
        rs = ResponseSet(session_id="s", assessment_type="t", responses=responses)
        result = check_response_speed(rs, config)

        assert result["speed_warning"] is True
        assert "below 9000 ms for 6 answers" in result["details"]

    def test_speed_warning_lowers_verdict(self):
        """Test that a speed warning gives a low verdict."""
        items, pairs = varied_likert(10)
        metrics = analyze_validity(items, response_set(pairs, time_ms=300.0))
        assert metrics.speed_warning is True
        assert metrics.overall_validity == ValidityLevel.LOW
        assert RULE_SPEED_WARNING in [t.rule for t in metrics.triggers]


class TestVerdict:
    """Tests for the composite verdict and authenticity index."""

    def test_no_distortion_items_is_medium(self):
        """Test that validity cannot be verified without distortion items."""
        items, pairs = varied_likert(10)
        metrics = analyze_validity(items, response_set(pairs))

        assert metrics.overall_validity == ValidityLevel.MEDIUM
        assert [t.rule for t in metrics.triggers] == [RULE_NO_DISTORTION_ITEMS]
        for check in (
            ValidityCheck.FAKE_GOOD,
            ValidityCheck.FAKE_BAD,
            ValidityCheck.INCONSISTENCY,
            ValidityCheck.RANDOM_CHECK,
        ):
            assert check in metrics.unevaluated_checks

    def test_unanswered_distortion_items_do_not_raise(self, cair_items, make_response_set):
        """Test that skipped distortion items are unevaluated, not errors."""
        rs = make_response_set(cair_items, skip=["fg1", "fg2", "fg3", "fg4"])
        metrics = analyze_validity(cair_items, rs)
        assert ValidityCheck.FAKE_GOOD in metrics.unevaluated_checks
        assert RULE_NO_DISTORTION_ITEMS in [t.rule for t in metrics.triggers]

    def test_authenticity_uses_worst_component(self):
        """Test authenticity = 100 - worst evaluated component."""
        assert calculate_response_authenticity(25.0, 0.0, 90.0, False) == pytest.approx(75.0)
        assert calculate_response_authenticity(None, None, 60.0, False) == pytest.approx(60.0)

    def test_authenticity_halved_on_random_responding(self):
        """Test that random responding halves authenticity."""
        assert calculate_response_authenticity(25.0, None, None, True) == pytest.approx(37.5)

    def test_authenticity_without_components(self):
        """Test that nothing evaluated leaves authenticity at 100."""
        assert calculate_response_authenticity(None, None, None, False) == pytest.approx(100.0)
