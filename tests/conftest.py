"""
Pytest configuration and shared fixtures for testing.
"""
import sys
from pathlib import Path

# Add project root to path so libs/ is importable without an install
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from datetime import datetime, timezone  # noqa: E402
from typing import Callable, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402

from assessment_engine.core.content import ContentLoader  # noqa: E402
from assessment_engine.schemas import (  # noqa: E402
    AssessmentDefinition,
    InterpretationTables,
    Item,
    ItemOption,
    Response,
    ResponseSet,
)
from libs.domain_types import DistortionType, ItemType  # noqa: E402

CAIR_DIMENSIONS = ["conscientiousness", "agreeableness", "innovation", "resilience"]
BURNOUT_DIMENSIONS = [
    "workload",
    "emotional",
    "efficacy",
    "support",
    "worklife",
    "coping",
    "wellbeing",
]

# Reference instant for timeframe tests; the engine never reads the clock
AS_OF = datetime(2026, 6, 30, 12, 0, tzinfo=timezone.utc)


def _true_false_options() -> List[ItemOption]:
    return [ItemOption(key="A", label="True"), ItemOption(key="B", label="False")]


def build_cair_items() -> List[Item]:
    """
    40 Likert items (10 per dimension, dimensions interleaved) with a
    binary fake-good item after every 10th content item.

    Every fifth content item is reverse scored.
    """
    items: List[Item] = []
    for i in range(40):
        items.append(
            Item(
                id=f"c{i + 1:02d}",
                dimension=CAIR_DIMENSIONS[i % 4],
                item_type=ItemType.LIKERT,
                reverse_scored=(i % 5 == 4),
            )
        )
        if i % 10 == 9:
            n = (i + 1) // 10
            items.append(
                Item(
                    id=f"fg{n}",
                    dimension="validity",
                    item_type=ItemType.DISTORTION,
                    distortion_type=DistortionType.FAKE_GOOD,
                    options=_true_false_options(),
                    keyed_response="A",
                )
            )
    return items


@pytest.fixture
def cair_items() -> List[Item]:
    return build_cair_items()


@pytest.fixture
def cair_definition(cair_items) -> AssessmentDefinition:
    return AssessmentDefinition(
        assessment_type="cair_plus", dimensions=CAIR_DIMENSIONS, items=cair_items
    )


@pytest.fixture
def make_response_set() -> Callable[..., ResponseSet]:
    """
    Factory answering every item of a catalog slice.

    Likert items get ``likert_value`` (or a per-item override), option items
    get ``option_value`` (or a per-item override). Items listed in ``skip``
    are left unanswered.
    """

    def _make(
        items: List[Item],
        likert_value: int = 3,
        option_value: str = "B",
        overrides: Optional[Dict[str, object]] = None,
        skip: Optional[List[str]] = None,
        time_ms: Optional[float] = 4000.0,
        total_time_ms: Optional[float] = None,
        assessment_type: str = "cair_plus",
        session_id: str = "session-1",
    ) -> ResponseSet:
        overrides = overrides or {}
        skip = skip or []
        responses = []
        for item in items:
            if item.id in skip:
                continue
            if item.id in overrides:
                value = overrides[item.id]
            elif item.is_numeric:
                value = likert_value
            else:
                value = option_value
            responses.append(Response(item_id=item.id, value=value, response_time_ms=time_ms))
        return ResponseSet(
            session_id=session_id,
            candidate_id="candidate-1",
            assessment_type=assessment_type,
            responses=responses,
            total_time_ms=total_time_ms,
        )

    return _make


@pytest.fixture
def cair_tables() -> InterpretationTables:
    return InterpretationTables(
        assessment_type="cair_plus",
        top_n=2,
        profile_bands=[
            {"min_score": 85, "label": "Exceptional Fit"},
            {"min_score": 70, "label": "Strong Fit"},
            {"min_score": 55, "label": "Developing Fit"},
            {"min_score": 0, "label": "Limited Fit"},
        ],
        recommendations={
            "conscientiousness": {"low": ["conscientiousness.build_routines"]},
            "agreeableness": {"low": ["agreeableness.practice_active_listening"]},
            "innovation": {"moderate": ["innovation.pilot_small_experiments"]},
            "resilience": {"moderate": ["resilience.plan_for_pressure"]},
        },
    )


@pytest.fixture
def burnout_items() -> List[Item]:
    """Two Likert items per burnout dimension, the second reverse scored."""
    return [
        Item(
            id=f"{dimension}_{n}",
            dimension=dimension,
            item_type=ItemType.LIKERT,
            reverse_scored=(n == 2),
        )
        for dimension in BURNOUT_DIMENSIONS
        for n in (1, 2)
    ]


@pytest.fixture(scope="session")
def packaged_content() -> ContentLoader:
    """Content files shipped with the package."""
    return ContentLoader().load()


@pytest.fixture
def burnout_definition(burnout_items) -> AssessmentDefinition:
    return AssessmentDefinition(
        assessment_type="burnout_prevention", dimensions=BURNOUT_DIMENSIONS, items=burnout_items
    )
