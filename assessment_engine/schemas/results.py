"""
Pydantic schema for the candidate-facing assessment result.

An AssessmentResult is created once per completed attempt and is immutable;
a retake produces a new result. It deliberately carries no timestamps, so two
assemblies from identical input serialize to identical JSON.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from assessment_engine.schemas.scoring import DimensionScore, SubdimensionScore
from assessment_engine.schemas.validity import ValidityMetrics
from libs.domain_types import RiskLevel


class AssessmentResult(BaseModel):
    """Scores, validity verdict and narrative keys for one attempt."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    candidate_id: Optional[str] = None
    assessment_type: str
    dimension_scores: List[DimensionScore]
    subdimension_scores: List[SubdimensionScore] = Field(default_factory=list)
    overall_score: Optional[float] = Field(
        None,
        ge=0.0,
        le=100.0,
        description="Weighted mean of scored dimensions; None when nothing could be scored",
    )
    profile_label: Optional[str] = None
    validity: ValidityMetrics
    strengths: List[str] = Field(default_factory=list)
    challenges: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(
        default_factory=list, description="Keys into the recommendation content table"
    )
    risk_level: Optional[RiskLevel] = Field(
        None, description="Only set for assessments that declare risk dimensions"
    )
    interpretation_caution: bool = Field(
        False,
        description="True when validity is not high; scores are unchanged but less trustworthy",
    )

    def score_for(self, dimension: str) -> Optional[DimensionScore]:
        for score in self.dimension_scores:
            if score.dimension == dimension:
                return score
        return None
