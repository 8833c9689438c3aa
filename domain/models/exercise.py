"""
Exercise entity for workout plan sessions.

An exercise row is the leaf of the Phase -> Session -> Exercise tree. Its
``order_marker`` is the label coaches type ("A1", "B2"); the numeric sort key
derived from it lives in ``domain.converters.order_codec`` and is never shown.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, computed_field

DEFAULT_EXERCISE_DURATION = 8
DEFAULT_TEMPO = "3 0 1 0"
DEFAULT_SETS_MAX = 5
DEFAULT_REPS_MAX = 12


def tempo_digit_sum(tempo: Optional[str]) -> int:
    """Sum every number found in a tempo string ("3 0 1 0" -> 4, "3010" -> 3010)."""
    return sum(int(n) for n in re.findall(r"\d+", tempo or DEFAULT_TEMPO))


class Exercise(BaseModel):
    """
    A single prescribed exercise within a session.

    ``exercise_catalog_id`` stays ``None`` until the description has been
    resolved against the exercise catalog. Unresolved rows may live in the
    tree but are rejected by plan validation before any save.

    Examples:
        >>> ex = Exercise(id="e1", session_id="s1", order_marker="A1",
        ...               description="Back Squat", sets_max=4, reps_max=6)
        >>> ex.tut
        96
        >>> ex.effective_duration
        8
    """

    # Identity
    id: str = Field(..., min_length=1, description="Exercise row UUID")
    session_id: str = Field(default="", description="Owning session id")
    exercise_catalog_id: Optional[str] = Field(
        default=None, description="Catalog exercise id, None until resolved"
    )

    # Display
    order_marker: str = Field(
        default="", description="Human-facing order label, e.g. 'A1'"
    )
    description: str = Field(default="New Exercise", description="Exercise name as typed")
    motion: str = Field(default="Unspecified", description="Movement pattern")
    target_area: str = Field(default="Unspecified", description="Targeted muscle area")

    # Prescription
    sets_min: Optional[int] = Field(default=3, ge=0)
    sets_max: Optional[int] = Field(default=5, ge=0)
    reps_min: Optional[int] = Field(default=8, ge=0)
    reps_max: Optional[int] = Field(default=12, ge=0)
    tempo: str = Field(default=DEFAULT_TEMPO, description="Tempo notation, e.g. '3 0 1 0'")
    rest_min: Optional[int] = Field(default=45, ge=0, description="Rest in seconds")
    rest_max: Optional[int] = Field(default=60, ge=0, description="Rest in seconds")
    duration_minutes: Optional[int] = Field(
        default=DEFAULT_EXERCISE_DURATION, ge=0, description="Minutes budgeted"
    )

    # Notes
    customizations: str = Field(default="")
    notes: str = Field(default="")

    # UI-only / legacy aliases (never tracked for changes)
    additional_info: str = Field(
        default="", description="Legacy display alias of customizations"
    )
    is_expanded: bool = Field(default=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tut(self) -> int:
        """Time under tension: tempo digit sum x max sets x max reps."""
        sets_max = self.sets_max if self.sets_max is not None else DEFAULT_SETS_MAX
        reps_max = self.reps_max if self.reps_max is not None else DEFAULT_REPS_MAX
        return tempo_digit_sum(self.tempo) * sets_max * reps_max

    @property
    def effective_duration(self) -> int:
        """Duration used for session totals (8 minutes when unset)."""
        if self.duration_minutes is None:
            return DEFAULT_EXERCISE_DURATION
        return self.duration_minutes

    @property
    def is_resolved(self) -> bool:
        """True once the row points at a catalog exercise."""
        return bool(self.exercise_catalog_id and self.exercise_catalog_id.strip())

    @property
    def display_customizations(self) -> str:
        """Customizations with the legacy alias as fallback."""
        return self.customizations or self.additional_info

    def __str__(self) -> str:
        label = f"{self.order_marker} " if self.order_marker else ""
        return f"{label}{self.description} {self.sets_max}x{self.reps_max}"

    model_config = {"frozen": True}
