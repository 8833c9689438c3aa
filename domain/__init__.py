"""
Domain layer for the workout plan sync engine.

This package contains pure domain models and services that are independent
of infrastructure concerns (HTTP, local storage, CSV files).
"""

from domain.models import (
    CatalogExercise,
    Exercise,
    Phase,
    PlanChanges,
    Session,
    WorkoutPlan,
)

__all__ = [
    "CatalogExercise",
    "Exercise",
    "Phase",
    "PlanChanges",
    "Session",
    "WorkoutPlan",
]
