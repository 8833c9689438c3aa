"""
Fake Repository Implementations for Testing.

This package provides in-memory fake implementations of the port interfaces
for fast, isolated testing. No network or file system required.

Features:
- All fakes implement the same Protocol interfaces as real implementations
- Supports seeding with test data
- Supports reset() for test isolation
- Factory functions for common test scenarios

Usage:
    from tests.fakes import FakePlanRepository, create_sample_plan

    repo = FakePlanRepository()
    repo.seed("client-1", create_sample_plan(), plan_id="plan-1")
"""
from typing import List, Optional

from domain.models import CatalogExercise, Exercise, Phase, Session, WorkoutPlan

from tests.fakes.plan_repository import FakePlanRepository, FakeExerciseCatalogRepository
from tests.fakes.backup_storage import InMemoryBackupStorage


# =============================================================================
# Factory Functions
# =============================================================================


def create_catalog() -> List[CatalogExercise]:
    """A small exercise library used across tests."""
    return [
        CatalogExercise(catalog_id="ex-squat", name="Back Squat", motion="Squat", target_area="Legs"),
        CatalogExercise(
            catalog_id="ex-rdl", name="Romanian Deadlift", motion="Hinge", target_area="Hamstrings"
        ),
        CatalogExercise(catalog_id="ex-bench", name="Bench Press", motion="Push", target_area="Chest"),
        CatalogExercise(catalog_id="ex-pullup", name="Pull Up", motion="Pull", target_area="Back"),
    ]


def create_exercise(
    exercise_id: str,
    session_id: str,
    *,
    order_marker: str = "A1",
    description: str = "Back Squat",
    exercise_catalog_id: Optional[str] = "ex-squat",
    **fields,
) -> Exercise:
    """Build a resolved exercise row."""
    return Exercise(
        id=exercise_id,
        session_id=session_id,
        order_marker=order_marker,
        description=description,
        exercise_catalog_id=exercise_catalog_id,
        **fields,
    )


def create_sample_plan() -> WorkoutPlan:
    """
    Two phases with fixed ids.

    - p1 "Hypertrophy" (active) / s1 "Lower A": e1 A1 Back Squat, e2 A2 Romanian Deadlift
    - p2 "Strength" / s2 "Upper A": e3 B1 Bench Press
    """
    return WorkoutPlan(
        phases=[
            Phase(
                id="p1",
                name="Hypertrophy",
                is_active=True,
                order_number=0,
                sessions=[
                    Session(
                        id="s1",
                        phase_id="p1",
                        name="Lower A",
                        order_number=0,
                        exercises=[
                            create_exercise("e1", "s1", motion="Squat", target_area="Legs"),
                            create_exercise(
                                "e2",
                                "s1",
                                order_marker="A2",
                                description="Romanian Deadlift",
                                exercise_catalog_id="ex-rdl",
                                motion="Hinge",
                                target_area="Hamstrings",
                            ),
                        ],
                    )
                ],
            ),
            Phase(
                id="p2",
                name="Strength",
                is_active=False,
                order_number=1,
                sessions=[
                    Session(
                        id="s2",
                        phase_id="p2",
                        name="Upper A",
                        order_number=0,
                        exercises=[
                            create_exercise(
                                "e3",
                                "s2",
                                order_marker="B1",
                                description="Bench Press",
                                exercise_catalog_id="ex-bench",
                                motion="Push",
                                target_area="Chest",
                            ),
                        ],
                    )
                ],
            ),
        ]
    )


def create_plan_repo(
    *,
    client_id: str = "client-1",
    plan: Optional[WorkoutPlan] = None,
    plan_id: str = "plan-1",
) -> FakePlanRepository:
    """
    Create a FakePlanRepository, optionally with a stored plan.

    Args:
        client_id: Owner of the seeded plan
        plan: Plan to store (nothing is stored when None)
        plan_id: Id of the stored plan
    """
    repo = FakePlanRepository()
    if plan is not None:
        repo.seed(client_id, plan, plan_id=plan_id)
    return repo


def create_catalog_repo() -> FakeExerciseCatalogRepository:
    repo = FakeExerciseCatalogRepository()
    repo.seed(create_catalog())
    return repo


__all__ = [
    # Fakes
    "FakePlanRepository",
    "FakeExerciseCatalogRepository",
    "InMemoryBackupStorage",
    # Factories
    "create_catalog",
    "create_catalog_repo",
    "create_exercise",
    "create_plan_repo",
    "create_sample_plan",
]
