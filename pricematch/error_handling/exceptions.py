"""
Exception and warning types raised or collected by the pricing match engine.
"""

from dataclasses import dataclass
from typing import List, Optional


class PriceMatchError(Exception):
    """Base class for all engine errors."""


class EmptyInputError(PriceMatchError):
    """Raised when a CSV upload has no non-blank line."""

    def __init__(self, message: str = "CSV input is empty"):
        super().__init__(message)


class MissingRequiredFieldError(PriceMatchError):
    """Raised when required catalog fields remain unmapped after column mapping.

    Attributes:
        missing: Names of the required fields that have no source column
    """

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required field mapping: {', '.join(self.missing)}")


class InvalidTransitionError(PriceMatchError):
    """Raised when a lifecycle action is not permitted from the record's status.

    Attributes:
        record_type: "match" or "recommendation"
        record_id: Identifier of the record
        status: Status the record was in when the action was attempted
        action: Name of the rejected action
    """

    def __init__(self, record_type: str, record_id: str, status: str, action: str):
        self.record_type = record_type
        self.record_id = record_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} {record_type} {record_id}: status is {status}"
        )


@dataclass
class RowParseWarning(UserWarning):
    """Non-fatal problem with a single CSV row.

    The row is skipped and the rest of the batch continues.

    Attributes:
        line_number: 1-based physical line where the row starts
        message: What was wrong with the row
        sample: Leading part of the offending text
    """
    line_number: int
    message: str
    sample: Optional[str] = None

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.message}"


@dataclass
class ProcessingWarning(UserWarning):
    """Non-fatal problem computing a single product or listing.

    Attributes:
        operation: Name of the computation that failed
        subject: Identifier of the product or listing
        message: Description of the failure
    """
    operation: str
    subject: str
    message: str

    def __str__(self) -> str:
        return f"{self.operation}({self.subject}): {self.message}"
