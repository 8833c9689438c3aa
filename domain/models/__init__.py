"""
Domain models for the workout plan sync engine.

This package contains pure domain models that are independent of
infrastructure concerns (HTTP, local storage, CSV files).

These models represent the core planning concepts:
- WorkoutPlan: The aggregate root, a tree of phases
- Phase: A training block containing ordered sessions (one may be active)
- Session: A training day containing ordered exercises
- Exercise: A single prescribed exercise with sets, reps, tempo and rest
- CatalogExercise: An entry of the shared exercise library
- PlanChanges: Per-level diff between two plan snapshots

Usage:
    >>> from domain.models import WorkoutPlan

    >>> plan, phase_id = WorkoutPlan().add_phase("Hypertrophy")
    >>> plan, session_id = plan.add_session(phase_id, "Lower A")
    >>> plan, exercise_id = plan.add_exercise(
    ...     phase_id, session_id, description="Back Squat", order_marker="A1"
    ... )

    >>> # Serialize to JSON
    >>> json_str = plan.model_dump_json(indent=2)

    >>> # Deserialize from JSON
    >>> plan = WorkoutPlan.model_validate_json(json_str)
"""

from domain.models.catalog import CatalogExercise
from domain.models.changes import Entity, EntityDiff, EntityKind, PlanChanges, UpdateRecord
from domain.models.exercise import Exercise
from domain.models.phase import Phase
from domain.models.plan import PlanEntityNotFound, WorkoutPlan
from domain.models.session import Session

__all__ = [
    # Main entities
    "WorkoutPlan",
    "Phase",
    "Session",
    "Exercise",
    "CatalogExercise",
    # Change sets
    "Entity",
    "EntityDiff",
    "EntityKind",
    "PlanChanges",
    "UpdateRecord",
    # Errors
    "PlanEntityNotFound",
]
