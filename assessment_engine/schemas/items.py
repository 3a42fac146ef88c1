"""
Pydantic schemas for the item catalog and candidate response sets.

Items are immutable catalog records loaded once per assessment type. A
response set is the ordered sequence of answers for one attempt; the order
is the presentation order and is what the straight-lining check inspects.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from assessment_engine.core.config import settings
from libs.domain_types import DistortionType, ItemType

# Likert answers are integers, forced-choice and binary answers are option keys
ResponseValue = Union[int, str]

# Distortion sub-types whose scoring depends on a keyed answer
KEYED_DISTORTION_TYPES = {
    DistortionType.FAKE_GOOD,
    DistortionType.FAKE_BAD,
    DistortionType.RANDOM_CHECK,
}


class ItemOption(BaseModel):
    """
    One selectable option of a forced-choice or binary item.

    ``weights`` maps dimension names to the points this option adds to that
    dimension. Binary distortion options (e.g. "True"/"False") carry no
    weights.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Answer value recorded for this option")
    label: Optional[str] = None
    weights: Dict[str, float] = Field(default_factory=dict)


class Item(BaseModel):
    """Immutable catalog item."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    dimension: str = Field(
        ...,
        min_length=1,
        description="Dimension measured (distortion items conventionally use 'validity')",
    )
    subdimension: Optional[str] = None
    item_type: ItemType
    reverse_scored: bool = False
    distortion_type: Optional[DistortionType] = None
    paired_item_id: Optional[str] = Field(
        None,
        description="Item with logically opposite phrasing of the same trait",
    )
    scale_min: int = Field(default_factory=lambda: settings.LIKERT_SCALE_MIN)
    scale_max: int = Field(default_factory=lambda: settings.LIKERT_SCALE_MAX)
    options: List[ItemOption] = Field(default_factory=list)
    keyed_response: Optional[ResponseValue] = Field(
        None,
        description=(
            "Answer that endorses a fake-good/fake-bad statement, or the correct "
            "answer of a random-check item. An integer key on a Likert-format "
            "item matches that scale point and anything further from the midpoint."
        ),
    )

    @model_validator(mode="after")
    def validate_item(self) -> "Item":
        """Validate scale bounds, options and distortion metadata."""
        if self.scale_min >= self.scale_max:
            raise ValueError(
                f"Item {self.id}: scale_min must be below scale_max, "
                f"got {self.scale_min} >= {self.scale_max}"
            )

        keys = [option.key for option in self.options]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Item {self.id}: option keys must be unique, got {keys}")

        if self.item_type == ItemType.FORCED_CHOICE and len(self.options) < 2:
            raise ValueError(f"Item {self.id}: forced-choice items need at least 2 options")
        if self.item_type == ItemType.LIKERT and self.options:
            raise ValueError(
                f"Item {self.id}: Likert items are answered on the numeric scale, not options"
            )

        if self.item_type == ItemType.DISTORTION:
            if self.distortion_type is None:
                raise ValueError(f"Item {self.id}: distortion items need a distortion_type")
            if self.distortion_type in KEYED_DISTORTION_TYPES:
                if self.keyed_response is None:
                    raise ValueError(
                        f"Item {self.id}: {self.distortion_type.value} items need a keyed_response"
                    )
                self._validate_value_shape(self.keyed_response, "keyed_response")
        elif self.distortion_type is not None:
            raise ValueError(
                f"Item {self.id}: distortion_type is only valid on distortion items"
            )

        if self.paired_item_id == self.id:
            raise ValueError(f"Item {self.id}: an item cannot be paired with itself")
        return self

    def _validate_value_shape(self, value: ResponseValue, field_name: str) -> None:
        if self.options:
            if value not in self.option_keys:
                raise ValueError(
                    f"Item {self.id}: {field_name} {value!r} is not one of {self.option_keys}"
                )
        elif not isinstance(value, int) or not self.scale_min <= value <= self.scale_max:
            raise ValueError(
                f"Item {self.id}: {field_name} {value!r} is outside "
                f"{self.scale_min}-{self.scale_max}"
            )

    @property
    def option_keys(self) -> List[str]:
        return [option.key for option in self.options]

    @property
    def is_numeric(self) -> bool:
        """True when answers are scale points rather than option keys."""
        return not self.options

    def mirror(self, value: int) -> int:
        """Return the scale point opposite ``value`` (6 - v on a 1-5 scale)."""
        return self.scale_min + self.scale_max - value

    def option(self, key: str) -> Optional[ItemOption]:
        for option in self.options:
            if option.key == key:
                return option
        return None

    def option_position(self, key: str) -> int:
        """1-based position of an option key, used to place answers on a numeric line."""
        return self.option_keys.index(key) + 1

    def matches_key(self, value: ResponseValue) -> bool:
        """
        Whether an answer matches ``keyed_response``.

        Option answers must equal the key. Scale answers match when they
        are at the keyed point or further from the scale midpoint on the
        same side (a key of 4 on 1-5 matches 4 and 5, a key of 2 matches
        2 and 1).
        """
        if self.keyed_response is None:
            return False
        if self.options:
            return value == self.keyed_response
        midpoint = (self.scale_min + self.scale_max) / 2
        if self.keyed_response > midpoint:
            return value >= self.keyed_response
        if self.keyed_response < midpoint:
            return value <= self.keyed_response
        return value == self.keyed_response


class Response(BaseModel):
    """One answered item."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., min_length=1)
    value: ResponseValue
    response_time_ms: Optional[float] = Field(
        None, description="Latency for this item; negative values are ignored as invalid"
    )
    confidence: Optional[float] = None


class ResponseSet(BaseModel):
    """
    Raw answers for one assessment attempt.

    At most one response per item is allowed; the engine rejects duplicates
    as an input-contract violation instead of picking one silently.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(..., min_length=1)
    candidate_id: Optional[str] = None
    assessment_type: str = Field(..., min_length=1)
    responses: List[Response] = Field(default_factory=list)
    total_time_ms: Optional[float] = Field(
        None,
        ge=0.0,
        description="Attempt completion time; falls back to the sum of item times",
    )
