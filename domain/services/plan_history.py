"""
Undo/redo history for workout plans.

Plan operations are pure, so history is a pair of stacks of plan values.
"""

from typing import List, Optional

from domain.models.plan import WorkoutPlan

DEFAULT_HISTORY_LIMIT = 50


class PlanHistory:
    """
    Past/present/future stacks of plan states.

    Examples:
        >>> history = PlanHistory(WorkoutPlan())
        >>> plan, _ = history.present.add_phase()
        >>> history.push(plan)
        >>> history.undo().is_empty
        True
        >>> history.redo() is plan
        True
    """

    def __init__(self, initial: Optional[WorkoutPlan] = None, limit: int = DEFAULT_HISTORY_LIMIT):
        self._past: List[WorkoutPlan] = []
        self._future: List[WorkoutPlan] = []
        self._present = initial if initial is not None else WorkoutPlan()
        self._limit = limit

    @property
    def present(self) -> WorkoutPlan:
        return self._present

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def push(self, plan: WorkoutPlan) -> None:
        """Record a new state; clears the redo stack."""
        if plan is self._present:
            return
        self._past.append(self._present)
        if len(self._past) > self._limit:
            self._past.pop(0)
        self._present = plan
        self._future.clear()

    def replace_present(self, plan: WorkoutPlan) -> None:
        """Swap the present state without recording an undo step (UI-only changes)."""
        self._present = plan

    def undo(self) -> Optional[WorkoutPlan]:
        """Step back one state. Returns the new present, or None if at the start."""
        if not self._past:
            return None
        self._future.append(self._present)
        self._present = self._past.pop()
        return self._present

    def redo(self) -> Optional[WorkoutPlan]:
        """Step forward one state. Returns the new present, or None if at the end."""
        if not self._future:
            return None
        self._past.append(self._present)
        self._present = self._future.pop()
        return self._present

    def reset(self, plan: WorkoutPlan) -> None:
        """Forget all history (after a load or a forced reload)."""
        self._past.clear()
        self._future.clear()
        self._present = plan
