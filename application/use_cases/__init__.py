"""
Application Use Cases for the workout plan sync engine.

This package contains application-level use cases that orchestrate domain logic
and coordinate between ports/adapters. Use cases are the entry points for
sync operations and contain the application's workflow logic.

Architecture follows Clean Architecture / Hexagonal pattern:
- Use cases orchestrate domain objects and repository ports
- Dependencies are injected via constructors for testability
- Use cases return domain models, not API responses

Usage:
    from application.use_cases import ConcurrencyGuard, LoadPlanUseCase

    tracker = ChangeTracker()
    guard = ConcurrencyGuard("client-1", plan_repo, tracker)

    # Initial load (with crash recovery)
    result = await LoadPlanUseCase(guard=guard, backup=backup_store).execute()

    # Save the edited plan
    saved = await guard.save(edited_plan)
"""

from application.use_cases.save_plan import (
    ConcurrencyGuard,
    ConflictInfo,
    SavePlanResult,
)
from application.use_cases.load_plan import (
    LoadPlanResult,
    LoadPlanUseCase,
    PlanBackupReader,
)

__all__ = [
    # Save
    "ConcurrencyGuard",
    "ConflictInfo",
    "SavePlanResult",
    # Load
    "LoadPlanUseCase",
    "LoadPlanResult",
    "PlanBackupReader",
]
