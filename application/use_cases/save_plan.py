"""
ConcurrencyGuard: optimistic-concurrency save for workout plans.

Owns the plan identity (plan id, None until the first save) and the last
known server revision. Every update carries that revision as the expected
version; the repository rejects the write on mismatch and the guard surfaces
the conflict instead of retrying or merging. Server state always wins: the
only way out of a conflict is ``reload_from_server()``, which discards
unsaved local edits.

Persistence contract: the full plan snapshot is sent on both create and
update. The tracked diff decides whether an update is needed at all and is
logged with each save.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from application.exceptions import PlanConflictError, PlanSyncError, PlanTransportError
from application.ports import PlanRepository
from domain.models import PlanChanges, WorkoutPlan
from domain.services import ChangeTracker

logger = logging.getLogger(__name__)

DEFAULT_CONFLICT_MESSAGE = (
    "This plan was changed elsewhere since it was loaded. "
    "Reload to get the latest version."
)


@dataclass
class ConflictInfo:
    """Conflict payload shown to the user."""

    message: str
    server_time: Optional[str] = None


@dataclass
class SavePlanResult:
    """Result of a successful ConcurrencyGuard.save call."""

    success: bool
    plan_id: Optional[str] = None
    updated_at: Optional[str] = None
    is_create: bool = False
    skipped: bool = False
    changes: Optional[PlanChanges] = None


class ConcurrencyGuard:
    """
    Plan identity, revision token and the create/update decision.

    Usage:
        >>> guard = ConcurrencyGuard("client-1", plan_repo, tracker)
        >>> result = await guard.save(plan)
        >>> guard.plan_id, guard.last_known_updated_at
        ('plan-1', '2024-01-01T00:00:00Z')

    Raises (from ``save``):
        PlanConflictError: the stored revision differs from ours
        PlanTransportError: create/update failed for any other reason
    """

    def __init__(
        self,
        client_id: str,
        plan_repo: PlanRepository,
        tracker: ChangeTracker,
        *,
        plan_id: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> None:
        self._client_id = client_id
        self._plan_repo = plan_repo
        self._tracker = tracker
        self._plan_id = plan_id
        self._last_known_updated_at = updated_at
        self._conflict: Optional[ConflictInfo] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def plan_id(self) -> Optional[str]:
        return self._plan_id

    @property
    def last_known_updated_at(self) -> Optional[str]:
        return self._last_known_updated_at

    @property
    def conflict(self) -> Optional[ConflictInfo]:
        return self._conflict

    @property
    def tracker(self) -> ChangeTracker:
        return self._tracker

    def adopt(self, plan_id: Optional[str], updated_at: Optional[str]) -> None:
        """Take over identity and revision from an authoritative fetch."""
        self._plan_id = plan_id
        self._last_known_updated_at = updated_at

    def clear_conflict(self) -> None:
        self._conflict = None

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    async def save(self, plan: WorkoutPlan) -> SavePlanResult:
        """
        Persist the full plan, creating it on first save.

        On success the revision token advances and the tracker baseline
        becomes ``plan``. Edits recorded in the tracker while the request was
        in flight remain pending.
        """
        if plan != self._tracker.current:
            self._tracker.update_current_state(plan)
        changes = self._tracker.changes()

        if self._plan_id is not None and changes.is_empty:
            logger.debug(f"No tracked changes for plan {self._plan_id}, skipping save")
            return SavePlanResult(
                success=True,
                plan_id=self._plan_id,
                updated_at=self._last_known_updated_at,
                skipped=True,
                changes=changes,
            )

        if self._plan_id is None:
            result = await self._create(plan)
        else:
            result = await self._update(plan)
        result.changes = changes

        self._conflict = None
        self._rebase(plan)
        return result

    async def _create(self, plan: WorkoutPlan) -> SavePlanResult:
        logger.info(f"Creating plan for client {self._client_id}")
        try:
            response = await self._plan_repo.create_plan(self._client_id, plan)
        except PlanSyncError:
            raise
        except Exception as e:
            logger.exception(f"Plan create failed for client {self._client_id}: {e}")
            raise PlanTransportError(str(e)) from e

        if not response.success or not response.plan_id:
            logger.error(f"Plan create rejected for client {self._client_id}: {response.error}")
            raise PlanTransportError(response.error or "Failed to create workout plan")

        self.adopt(response.plan_id, response.updated_at)
        logger.info(f"Plan created: {response.plan_id} (revision {response.updated_at})")
        return SavePlanResult(
            success=True,
            plan_id=response.plan_id,
            updated_at=response.updated_at,
            is_create=True,
        )

    async def _update(self, plan: WorkoutPlan) -> SavePlanResult:
        plan_id = self._plan_id
        logger.info(
            f"Updating plan {plan_id} (expected revision {self._last_known_updated_at}): "
            f"{self._tracker.changes().summary()}"
        )
        try:
            response = await self._plan_repo.update_plan(
                plan_id, self._last_known_updated_at, plan
            )
        except PlanSyncError:
            raise
        except Exception as e:
            logger.exception(f"Plan update failed for {plan_id}: {e}")
            raise PlanTransportError(str(e)) from e

        if response.conflict:
            self._conflict = ConflictInfo(
                message=response.error or DEFAULT_CONFLICT_MESSAGE,
                server_time=response.server_updated_at,
            )
            logger.warning(
                f"Plan {plan_id} conflict: expected {self._last_known_updated_at}, "
                f"server has {response.server_updated_at}"
            )
            raise PlanConflictError(self._conflict.message, self._conflict.server_time)

        if not response.success:
            logger.error(f"Plan update rejected for {plan_id}: {response.error}")
            raise PlanTransportError(response.error or "Failed to save workout plan")

        self._last_known_updated_at = response.updated_at
        logger.info(f"Plan saved: {plan_id} (revision {response.updated_at})")
        return SavePlanResult(success=True, plan_id=plan_id, updated_at=response.updated_at)

    def _rebase(self, saved: WorkoutPlan) -> None:
        """Make ``saved`` the baseline, keeping edits made during the request."""
        pending = self._tracker.current
        self._tracker.reset(saved)
        if pending != saved:
            self._tracker.update_current_state(pending)

    # -------------------------------------------------------------------------
    # Reload
    # -------------------------------------------------------------------------

    async def reload_from_server(self) -> WorkoutPlan:
        """
        Replace identity, revision, baseline and current state with server truth.

        Unsaved local edits are discarded. A client without a stored plan
        gets an empty plan and no plan id.

        Raises:
            PlanTransportError: the fetch failed (local state is untouched)
        """
        logger.info(f"Reloading plan for client {self._client_id} from server")
        try:
            fetched = await self._plan_repo.fetch_plan(self._client_id)
        except PlanSyncError:
            raise
        except Exception as e:
            logger.exception(f"Plan fetch failed for client {self._client_id}: {e}")
            raise PlanTransportError(str(e)) from e

        if fetched is None:
            plan = WorkoutPlan()
            self.adopt(None, None)
        else:
            plan = fetched.plan.relinked().sorted()
            self.adopt(fetched.plan_id, fetched.updated_at)

        self._tracker.reset(plan)
        self._conflict = None
        return plan
