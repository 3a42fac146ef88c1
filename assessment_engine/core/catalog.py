"""
Item catalog indexing and response-set contract checks.

Every computation starts here: items are validated against the declared
dimension list and responses are matched to items. Violations are caller
bugs and raise InputContractError subclasses; unanswered items are normal
and are simply absent from the response index.
"""

import logging
from typing import Dict, Iterable, List, Optional

from assessment_engine.core.errors import (
    DuplicateItemError,
    DuplicateResponseError,
    InvalidResponseValueError,
    UnknownDimensionError,
    UnknownItemError,
)
from assessment_engine.schemas.items import Item, Response, ResponseSet
from libs.domain_types import ItemType

logger = logging.getLogger(__name__)


def content_dimensions(items: Iterable[Item]) -> List[str]:
    """
    Distinct dimensions measured by content items, in first-appearance order.

    Distortion items are skipped; forced-choice weight keys count as
    dimensions the item measures.
    """
    seen: List[str] = []
    for item in items:
        if item.item_type == ItemType.DISTORTION:
            continue
        candidates = [item.dimension]
        for option in item.options:
            candidates.extend(option.weights.keys())
        for dimension in candidates:
            if dimension not in seen:
                seen.append(dimension)
    return seen


def build_item_index(
    items: Iterable[Item], dimensions: Optional[List[str]] = None
) -> Dict[str, Item]:
    """
    Index items by id after validating them against the dimension list.

    Args:
        items: Catalog slice for one assessment type
        dimensions: Declared dimensions. When None, the content items'
            own dimensions are taken as the declaration.

    Returns:
        Mapping of item id to Item, in catalog order

    Raises:
        DuplicateItemError: On duplicate item ids
        UnknownDimensionError: If a content item or forced-choice weight
            references a dimension that is not declared
    """
    items = list(items)
    declared = set(dimensions if dimensions is not None else content_dimensions(items))
    index: Dict[str, Item] = {}

    for item in items:
        if item.id in index:
            raise DuplicateItemError(
                f"Duplicate item id '{item.id}' in catalog",
                context="build_item_index",
            )
        index[item.id] = item

        if item.item_type == ItemType.DISTORTION:
            continue

        if item.dimension not in declared:
            raise UnknownDimensionError(
                f"Item '{item.id}' references unknown dimension '{item.dimension}'",
                context=f"declared dimensions: {sorted(declared)}",
            )
        for option in item.options:
            unknown = sorted(set(option.weights) - declared)
            if unknown:
                raise UnknownDimensionError(
                    f"Option '{option.key}' of item '{item.id}' weights unknown "
                    f"dimension(s) {unknown}",
                    context=f"declared dimensions: {sorted(declared)}",
                )

    for item in index.values():
        if item.paired_item_id is not None and item.paired_item_id not in index:
            logger.warning(
                f"Item '{item.id}' is paired with '{item.paired_item_id}', "
                "which is not in this catalog slice; the pair will not be evaluated"
            )

    logger.debug(f"Indexed {len(index)} items across {len(declared)} dimensions")
    return index


def validate_response_value(item: Item, response: Response) -> None:
    """
    Check a response value against the item's scale or option set.

    Raises:
        InvalidResponseValueError: If a scale answer is not an integer within
            the item's bounds, or an option answer is not one of its keys
    """
    value = response.value
    if item.is_numeric:
        # bool is an int subclass but never a valid scale point
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidResponseValueError(
                f"Item '{item.id}' expects a scale point, got {value!r}",
                context=f"scale {item.scale_min}-{item.scale_max}",
            )
        if not item.scale_min <= value <= item.scale_max:
            raise InvalidResponseValueError(
                f"Item '{item.id}' answer {value} is outside the scale",
                context=f"scale {item.scale_min}-{item.scale_max}",
            )
    elif value not in item.option_keys:
        raise InvalidResponseValueError(
            f"Item '{item.id}' answer {value!r} is not a valid option",
            context=f"options: {item.option_keys}",
        )


def index_responses(
    response_set: ResponseSet, item_index: Dict[str, Item]
) -> Dict[str, Response]:
    """
    Index a response set by item id, enforcing the response contract.

    Args:
        response_set: Raw answers for one attempt
        item_index: Output of build_item_index()

    Returns:
        Mapping of item id to Response, in presentation order

    Raises:
        DuplicateResponseError: If an item was answered more than once
        UnknownItemError: If a response references an item outside the catalog
        InvalidResponseValueError: If a value does not fit its item
    """
    indexed: Dict[str, Response] = {}
    for response in response_set.responses:
        if response.item_id in indexed:
            raise DuplicateResponseError(
                f"Item '{response.item_id}' answered more than once",
                context=f"session {response_set.session_id}",
            )
        item = item_index.get(response.item_id)
        if item is None:
            raise UnknownItemError(
                f"Response references unknown item '{response.item_id}'",
                context=f"session {response_set.session_id}",
            )
        validate_response_value(item, response)
        indexed[response.item_id] = response
    return indexed
