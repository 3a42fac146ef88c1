"""
Pydantic schemas for dimension scores.

A DimensionScore is derived data: it is recomputed from the response set on
demand and replaced wholesale, never edited in place.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from libs.domain_types import ScoreLevel, ScoreStatus


class LevelBand(BaseModel):
    """Minimum percentage at which a level starts."""

    model_config = ConfigDict(frozen=True)

    min_percentage: float = Field(..., ge=0.0, le=100.0)
    level: ScoreLevel


class DimensionScore(BaseModel):
    """
    Normalized score for one dimension.

    ``percentage`` and ``level`` are None when ``status`` is
    ``insufficient_data``; that state must be presented as distinct from a
    real 0% score.
    """

    model_config = ConfigDict(frozen=True)

    dimension: str
    status: ScoreStatus
    raw_total: float = 0.0
    max_possible: float = 0.0
    percentage: Optional[int] = Field(None, ge=0, le=100)
    level: Optional[ScoreLevel] = None
    answered_items: int = Field(0, ge=0)
    total_items: int = Field(0, ge=0)
    completion_rate: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        description="Answered share of the dimension's items; lower means lower confidence",
    )

    @property
    def is_scored(self) -> bool:
        return self.status == ScoreStatus.SCORED


class SubdimensionScore(DimensionScore):
    """Score for a (dimension, subdimension) pair."""

    subdimension: str
