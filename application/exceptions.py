"""
Application-layer exceptions.

These exceptions are used across the application, planner and
infrastructure layers. They map onto the four failure modes of a plan sync:

- PlanValidationError: blocking, raised before any network call
- PlanConflictError: server revision mismatch, needs a forced reload
- PlanTransportError: network/server failure, left for a manual retry
- ExerciseResolutionError: a description that matches no catalog exercise
"""

from typing import List, Optional

from domain.models.plan import PlanEntityNotFound


class PlanSyncError(Exception):
    """Base class for plan sync failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PlanValidationError(PlanSyncError):
    """Raised when a plan fails pre-save validation.

    ``message`` is the first violation found; the save is aborted as a
    whole and nothing reaches persistence.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class PlanConflictError(PlanSyncError):
    """Raised when the server revision does not match the expected one.

    Never retried automatically. ``server_time`` is the server's current
    revision token.
    """

    def __init__(self, message: str, server_time: Optional[str] = None):
        super().__init__(message)
        self.server_time = server_time


class PlanTransportError(PlanSyncError):
    """Raised when create/update/fetch fails for a non-conflict reason."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ExerciseResolutionError(PlanSyncError):
    """Raised when an exercise description cannot be linked to the catalog."""

    def __init__(self, description: str, suggestions: Optional[List[str]] = None):
        super().__init__(f"No exercise in the library matches '{description}'")
        self.description = description
        self.suggestions = suggestions or []


class CsvFormatError(PlanSyncError):
    """Raised when a CSV file does not have the expected header."""

    pass


__all__ = [
    "PlanSyncError",
    "PlanValidationError",
    "PlanConflictError",
    "PlanTransportError",
    "ExerciseResolutionError",
    "CsvFormatError",
    "PlanEntityNotFound",
]
