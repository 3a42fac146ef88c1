"""
Exception types raised by the assessment engine.

Missing-data conditions (unanswered items, missing timing, undersized
demographic groups) are never exceptions; they surface as explicit statuses
on the returned records. The exceptions here are reserved for caller bugs
(input-contract violations) and broken static content, which must fail
loudly instead of producing a silently wrong score.
"""

from typing import Optional


class AssessmentEngineError(Exception):
    """Base exception for assessment engine errors.

    Attributes:
        message: Human-readable error description
        original_error: The underlying exception that caused this error
        context: Additional context about where the error occurred
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[str] = None,
    ):
        """Initialize the engine error.

        Args:
            message: Human-readable description of what went wrong
            original_error: The underlying exception that caused this error
            context: Additional context about where the error occurred
        """
        self.message = message
        self.original_error = original_error
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context and original error details."""
        parts = [self.message]
        if self.context:
            parts.append(f"Context: {self.context}")
        if self.original_error:
            parts.append(
                f"Original error: {type(self.original_error).__name__}: {self.original_error}"
            )
        return " | ".join(parts)


class InputContractError(AssessmentEngineError):
    """The caller supplied input that violates the engine's data contract."""


class DuplicateItemError(InputContractError):
    """The catalog slice contains the same item id twice."""


class DuplicateResponseError(InputContractError):
    """More than one response was recorded for the same item in one attempt."""


class UnknownItemError(InputContractError):
    """A response references an item that is not in the catalog slice."""


class UnknownDimensionError(InputContractError):
    """An item (or forced-choice weight) references an undeclared dimension."""


class InvalidResponseValueError(InputContractError):
    """A response value is outside the item's scale or option set."""


class AssessmentTypeMismatchError(InputContractError):
    """A response set was submitted against another assessment's definition."""


class ContentConfigError(AssessmentEngineError):
    """Static content (interpretation tables, checklists) could not be loaded."""
