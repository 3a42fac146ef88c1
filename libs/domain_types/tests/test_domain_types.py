"""Tests for shared domain types package."""

import json

from libs.domain_types import (
    AnalysisStatus,
    BiasSeverity,
    ComplianceStatus,
    DistortionType,
    ItemType,
    RiskLevel,
    ScoreLevel,
    ScoreStatus,
    StandardType,
    ValidityLevel,
)


class TestItemType:
    """Tests for ItemType enum."""

    def test_values(self):
        assert set(ItemType) == {
            ItemType.LIKERT,
            ItemType.FORCED_CHOICE,
            ItemType.DISTORTION,
        }

    def test_string_values(self):
        assert ItemType.LIKERT.value == "likert"
        assert ItemType.FORCED_CHOICE.value == "forced_choice"
        assert ItemType.DISTORTION.value == "distortion"

    def test_str_mixin(self):
        assert ItemType("likert") == ItemType.LIKERT

    def test_json_serializable(self):
        assert json.dumps(ItemType.FORCED_CHOICE) == '"forced_choice"'


class TestDistortionType:
    """Tests for DistortionType enum."""

    def test_values(self):
        assert DistortionType.FAKE_GOOD.value == "fake_good"
        assert DistortionType.FAKE_BAD.value == "fake_bad"
        assert DistortionType.INCONSISTENCY.value == "inconsistency"
        assert DistortionType.RANDOM_CHECK.value == "random_check"

    def test_count(self):
        assert len(DistortionType) == 4


class TestScoreEnums:
    """Tests for ScoreStatus and ScoreLevel enums."""

    def test_score_status_values(self):
        assert ScoreStatus.SCORED.value == "scored"
        assert ScoreStatus.INSUFFICIENT_DATA.value == "insufficient_data"

    def test_score_level_order(self):
        assert [level.value for level in ScoreLevel] == [
            "low",
            "moderate",
            "high",
            "exceptional",
        ]


class TestVerdictEnums:
    """Tests for validity, risk and bias verdict enums."""

    def test_validity_level(self):
        assert ValidityLevel("high") == ValidityLevel.HIGH
        assert len(ValidityLevel) == 3

    def test_risk_level(self):
        assert {r.value for r in RiskLevel} == {"low", "medium", "high"}

    def test_bias_severity(self):
        assert len(BiasSeverity) == 4
        assert BiasSeverity.CRITICAL.value == "critical"

    def test_analysis_status(self):
        assert AnalysisStatus.INSUFFICIENT_SAMPLE.value == "insufficient_sample"
        assert json.dumps(AnalysisStatus.COMPLETE) == '"complete"'


class TestComplianceEnums:
    """Tests for StandardType and ComplianceStatus enums."""

    def test_standard_type_values(self):
        assert {s.value for s in StandardType} == {"APA", "ITC", "AERA", "ISO", "GDPR"}

    def test_compliance_status_values(self):
        assert ComplianceStatus.COMPLIANT.value == "compliant"
        assert ComplianceStatus.PARTIAL.value == "partial"
        assert ComplianceStatus.NON_COMPLIANT.value == "non_compliant"
