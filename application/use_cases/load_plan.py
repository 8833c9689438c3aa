"""
LoadPlan Use Case.

Initial load of a client's plan with crash recovery. The server is the
source of truth: a local backup is consulted only when the fetch completed
and the client has no plan (or an empty one). A failed fetch never falls
back to the backup.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from application.use_cases.save_plan import ConcurrencyGuard
from domain.models import WorkoutPlan

logger = logging.getLogger(__name__)


class PlanBackupReader(Protocol):
    """Anything that can hand back a locally backed-up plan."""

    def restore(self) -> Optional[WorkoutPlan]:
        ...


@dataclass
class LoadPlanResult:
    """Result of the LoadPlan use case execution."""

    plan: WorkoutPlan
    plan_id: Optional[str] = None
    updated_at: Optional[str] = None
    recovered_from_backup: bool = False


class LoadPlanUseCase:
    """
    Fetch the authoritative plan and prime the guard and tracker with it.

    Usage:
        >>> use_case = LoadPlanUseCase(guard=guard, backup=backup_store)
        >>> result = await use_case.execute()
        >>> result.recovered_from_backup
        False
    """

    def __init__(
        self,
        guard: ConcurrencyGuard,
        backup: Optional[PlanBackupReader] = None,
    ) -> None:
        """
        Initialize the use case with required dependencies.

        Args:
            guard: Guard owning plan identity, revision and change tracker
            backup: Optional local backup consulted when the server has nothing
        """
        self._guard = guard
        self._backup = backup

    async def execute(self) -> LoadPlanResult:
        """
        Load the plan.

        Returns:
            LoadPlanResult. When recovered from backup, the recovered tree is
            the tracker's current state over an empty baseline, so it is
            saved as new work.

        Raises:
            PlanTransportError: the fetch failed
        """
        plan = await self._guard.reload_from_server()
        result = LoadPlanResult(
            plan=plan,
            plan_id=self._guard.plan_id,
            updated_at=self._guard.last_known_updated_at,
        )
        if not plan.is_empty or self._backup is None:
            logger.info(
                f"Loaded plan {result.plan_id} for client {self._guard.client_id}: "
                f"{len(plan.phases)} phases, {plan.exercise_count} exercises"
            )
            return result

        recovered = self._backup.restore()
        if recovered is None or recovered.is_empty:
            return result

        recovered = recovered.relinked().sorted()
        self._guard.tracker.update_current_state(recovered)
        logger.info(
            f"Recovered unsaved plan for client {self._guard.client_id} from local backup "
            f"({len(recovered.phases)} phases)"
        )
        result.plan = recovered
        result.recovered_from_backup = True
        return result
