"""
Repository Interfaces (Ports) for the workout plan sync engine.

This package defines abstract interfaces that decouple the sync logic from
infrastructure (HTTP API, local files). Implementations are provided in the
infrastructure layer; in-memory fakes live in tests/fakes.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the engine needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import PlanRepository

    class PlanService:
        def __init__(self, plan_repo: PlanRepository):
            self.plan_repo = plan_repo

        async def load(self, client_id: str):
            return await self.plan_repo.fetch_plan(client_id)
"""

# Plan persistence
from application.ports.plan_repository import (
    PlanRepository,
    CreatePlanResult,
    UpdatePlanResult,
    FetchPlanResult,
)

# Exercise library
from application.ports.exercise_catalog_repository import ExerciseCatalogRepository

# Local crash-recovery storage
from application.ports.backup_storage import BackupStorage

__all__ = [
    # Plan
    "PlanRepository",
    "CreatePlanResult",
    "UpdatePlanResult",
    "FetchPlanResult",
    # Catalog
    "ExerciseCatalogRepository",
    # Backup
    "BackupStorage",
]
