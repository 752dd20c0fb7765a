"""
Scoring errors - every rejected operation leaves match state untouched
"""
from typing import Optional


class ScoringError(Exception):
    """Base class for all recoverable scoring errors"""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def name(self) -> str:
        return type(self).__name__


class InvalidState(ScoringError):
    """Match or innings is not in the state the operation requires"""


class ValidationError(ScoringError):
    """Malformed input (runs out of range, unknown extras or dismissal type)"""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class RuleViolation(ScoringError):
    """A cricket rule the scorer enforces was broken"""


class NotFound(ScoringError):
    status_code = 404


class NothingToUndo(ScoringError):
    """No live ball left in the innings to undo"""
