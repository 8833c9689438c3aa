"""
Change-set types produced by the ChangeTracker.

A change set is computed per entity kind (phase, session, exercise) by
comparing the current tree with the last-synced baseline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union

from domain.models.exercise import Exercise
from domain.models.phase import Phase
from domain.models.session import Session

Entity = Union[Phase, Session, Exercise]


class EntityKind(str, Enum):
    """Nesting level of a plan entity."""

    PHASE = "phase"
    SESSION = "session"
    EXERCISE = "exercise"


@dataclass(frozen=True)
class UpdateRecord:
    """
    Changed fields of an entity present in both snapshots.

    ``changes`` always carries the parent reference (``phase_id`` for
    sessions, ``session_id`` for exercises) so the receiver can route the
    update, even though that field never takes part in the comparison.
    """

    id: str
    changes: Dict[str, Any]


@dataclass
class EntityDiff:
    """Added, updated and deleted entities of one kind."""

    kind: EntityKind
    added: List[Entity] = field(default_factory=list)
    updated: List[UpdateRecord] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.deleted)

    @property
    def count(self) -> int:
        return len(self.added) + len(self.updated) + len(self.deleted)


@dataclass
class PlanChanges:
    """Diffs for all three nesting levels."""

    phases: EntityDiff
    sessions: EntityDiff
    exercises: EntityDiff

    @property
    def is_empty(self) -> bool:
        return self.phases.is_empty and self.sessions.is_empty and self.exercises.is_empty

    def for_kind(self, kind: EntityKind) -> EntityDiff:
        return {
            EntityKind.PHASE: self.phases,
            EntityKind.SESSION: self.sessions,
            EntityKind.EXERCISE: self.exercises,
        }[kind]

    def summary(self) -> Dict[str, Dict[str, int]]:
        """Counts per kind, for logging."""
        return {
            diff.kind.value: {
                "added": len(diff.added),
                "updated": len(diff.updated),
                "deleted": len(diff.deleted),
            }
            for diff in (self.phases, self.sessions, self.exercises)
        }
