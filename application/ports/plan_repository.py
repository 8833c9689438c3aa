"""
Plan Repository Interface (Port).

This module defines the abstract interface for workout plan persistence.
Implementations may use an HTTP API, in-memory storage, or other backends.

The repository owns the revision check: ``update_plan`` compares the
expected ``updated_at`` token with the stored one and reports a conflict on
mismatch instead of overwriting.
"""
from dataclasses import dataclass
from typing import Optional, Protocol

from domain.models import WorkoutPlan


@dataclass
class CreatePlanResult:
    """Outcome of creating a client's first plan."""

    success: bool
    plan_id: Optional[str] = None
    updated_at: Optional[str] = None
    error: Optional[str] = None


@dataclass
class UpdatePlanResult:
    """Outcome of an optimistic-concurrency update.

    ``conflict`` is True when the expected revision did not match; in that
    case ``server_updated_at`` carries the server's current revision.
    """

    success: bool
    updated_at: Optional[str] = None
    conflict: bool = False
    error: Optional[str] = None
    server_updated_at: Optional[str] = None


@dataclass
class FetchPlanResult:
    """The authoritative plan of a client."""

    plan_id: str
    updated_at: str
    plan: WorkoutPlan


class PlanRepository(Protocol):
    """
    Abstract interface for plan persistence operations.

    All methods are coroutines. Unexpected failures (network, timeouts,
    server errors) are raised as PlanTransportError; expected outcomes are
    reported through the result objects.
    """

    async def create_plan(self, client_id: str, plan: WorkoutPlan) -> CreatePlanResult:
        """
        Persist a new plan for a client that has none.

        Args:
            client_id: Owning client
            plan: Full plan tree

        Returns:
            CreatePlanResult with the new plan id and revision on success
        """
        ...

    async def update_plan(
        self,
        plan_id: str,
        expected_updated_at: Optional[str],
        plan: WorkoutPlan,
    ) -> UpdatePlanResult:
        """
        Replace a stored plan if its revision matches.

        Args:
            plan_id: Plan to update
            expected_updated_at: Revision token the client last saw
            plan: Full plan tree

        Returns:
            UpdatePlanResult; conflict=True with server_updated_at on mismatch
        """
        ...

    async def fetch_plan(self, client_id: str) -> Optional[FetchPlanResult]:
        """
        Fetch a client's authoritative plan.

        Returns:
            FetchPlanResult, or None if the client has no plan
        """
        ...
