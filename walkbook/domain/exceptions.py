"""
Domain exceptions - Semantic error types for walk requests and reviews.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer maps each one to a single HTTP status.
"""


class WalkbookError(Exception):
    """Base class for walkbook domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(WalkbookError):
    """Malformed input, rejected before any state is read."""

    pass


class NotFound(WalkbookError):
    """Referenced walk request, review or walker does not exist."""

    pass


class Forbidden(WalkbookError):
    """Authenticated actor is not allowed to perform the operation."""

    pass


class InvalidState(WalkbookError):
    """Operation is not valid for the record's current status."""

    pass


class Conflict(WalkbookError):
    """Uniqueness violation, e.g. a second review for the same walk."""

    pass
