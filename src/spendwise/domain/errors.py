"""Error taxonomy shared by the budgeting and reporting services.

Every error carries an :class:`ErrorKind`; callers branch on ``err.kind``
instead of on the concrete exception class.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    END_BEFORE_START = "END_BEFORE_START"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    OVERLAP_CONFLICT = "OVERLAP_CONFLICT"
    ROLLOVER_OF_ACTIVE_BUDGET = "ROLLOVER_OF_ACTIVE_BUDGET"
    NULL_RANGE = "NULL_RANGE"
    RANGE_INVERTED = "RANGE_INVERTED"
    FUTURE_START = "FUTURE_START"
    BUDGET_NOT_FOUND = "BUDGET_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"


MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.END_BEFORE_START: "End date cannot be before start date",
    ErrorKind.INVALID_AMOUNT: "Budget amount must be greater than zero",
    ErrorKind.OVERLAP_CONFLICT: "Overlapping budget exists for this category and period",
    ErrorKind.ROLLOVER_OF_ACTIVE_BUDGET: "Cannot rollover an active budget",
    ErrorKind.NULL_RANGE: "Date range cannot be null",
    ErrorKind.RANGE_INVERTED: "Start date cannot be after end date",
    ErrorKind.FUTURE_START: "Start date cannot be in the future",
    ErrorKind.BUDGET_NOT_FOUND: "Budget not found",
    ErrorKind.CATEGORY_NOT_FOUND: "Category not found",
}


class SpendWiseError(Exception):
    """Base class for caller-facing service errors."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or MESSAGES[kind]
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.message}


class ValidationError(SpendWiseError):
    """Caller-fixable input problem; never retried."""


class NotFoundError(SpendWiseError):
    """Referenced budget or category does not exist for the owner."""
