"""
Domain services operating on WorkoutPlan snapshots.

- change_tracker: baseline vs. current diffing per nesting level
- plan_history: undo/redo over pure plan operations
- validation: pre-save checks
"""

from domain.services.change_tracker import (
    EXERCISE_TRACKED_FIELDS,
    PHASE_TRACKED_FIELDS,
    SESSION_TRACKED_FIELDS,
    ChangeTracker,
    snapshot,
)
from domain.services.plan_history import PlanHistory
from domain.services.validation import first_validation_error

__all__ = [
    "ChangeTracker",
    "snapshot",
    "PHASE_TRACKED_FIELDS",
    "SESSION_TRACKED_FIELDS",
    "EXERCISE_TRACKED_FIELDS",
    "PlanHistory",
    "first_validation_error",
]
