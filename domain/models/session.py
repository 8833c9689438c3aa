"""
Session entity: an ordered group of exercises inside a phase.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from domain.models.exercise import Exercise


class Session(BaseModel):
    """
    A training session belonging to one phase.

    ``duration_minutes`` is derived from the child exercises and cannot be
    set directly; any value supplied on input is ignored.

    Examples:
        >>> session = Session(id="s1", phase_id="p1", name="Lower A", exercises=[
        ...     Exercise(id="e1", session_id="s1", duration_minutes=10),
        ...     Exercise(id="e2", session_id="s1", duration_minutes=None),
        ... ])
        >>> session.duration_minutes
        18
    """

    id: str = Field(..., min_length=1, description="Session UUID")
    phase_id: str = Field(default="", description="Owning phase id")
    name: str = Field(default="Untitled Session")
    order_number: int = Field(default=0, description="Sort key among sibling sessions")
    exercises: List[Exercise] = Field(default_factory=list)

    # UI-only
    is_expanded: bool = Field(default=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_minutes(self) -> int:
        """Sum of exercise durations (8 minutes for each unset one)."""
        return sum(exercise.effective_duration for exercise in self.exercises)

    @property
    def exercise_count(self) -> int:
        """Number of exercises in the session."""
        return len(self.exercises)

    def find_exercise(self, exercise_id: str) -> Optional[Exercise]:
        """Return the exercise with the given id, or None."""
        return next((e for e in self.exercises if e.id == exercise_id), None)

    model_config = {"frozen": True}
