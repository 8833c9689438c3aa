"""
Phase entity: the top level of a workout plan.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from domain.models.session import Session


class Phase(BaseModel):
    """
    A training phase (mesocycle) containing ordered sessions.

    Only one phase of a plan may be active at a time; the invariant is
    enforced by ``WorkoutPlan.toggle_activation``.
    """

    id: str = Field(..., min_length=1, description="Phase UUID")
    name: str = Field(default="Untitled Phase")
    is_active: bool = Field(default=False)
    order_number: int = Field(default=0, description="Sort key among sibling phases")
    sessions: List[Session] = Field(default_factory=list)

    # UI-only
    is_expanded: bool = Field(default=True)

    @property
    def session_count(self) -> int:
        """Number of sessions in the phase."""
        return len(self.sessions)

    @property
    def exercise_count(self) -> int:
        """Number of exercises across all sessions."""
        return sum(session.exercise_count for session in self.sessions)

    def find_session(self, session_id: str) -> Optional[Session]:
        """Return the session with the given id, or None."""
        return next((s for s in self.sessions if s.id == session_id), None)

    model_config = {"frozen": True}
