"""
WorkoutPlan aggregate root: the Phase -> Session -> Exercise tree.

Every domain method is pure. It returns a new WorkoutPlan and never mutates
the receiver, so any state container (or none) can keep history for
undo/redo. Methods that create an entity return ``(plan, new_id)``.
"""

import uuid
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field

from domain.converters.order_codec import sort_key
from domain.models.exercise import Exercise
from domain.models.phase import Phase
from domain.models.session import Session

COPY_SUFFIX = " (Copy)"

# Fields an exercise edit may never touch
_IMMUTABLE_EXERCISE_FIELDS = frozenset({"id", "session_id", "tut"})


class PlanEntityNotFound(KeyError):
    """Raised when a tree operation references an unknown id."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


def _new_id() -> str:
    return str(uuid.uuid4())


def _next_order_number(siblings: List[Any]) -> int:
    """max(sibling order numbers) + 1, or 0 for the first child."""
    if not siblings:
        return 0
    return max(s.order_number for s in siblings) + 1


def _clone_exercise(exercise: Exercise, session_id: str, id_factory: Callable[[], str]) -> Exercise:
    return exercise.model_copy(update={"id": id_factory(), "session_id": session_id})


def _clone_session(
    session: Session, phase_id: str, id_factory: Callable[[], str], **overrides: Any
) -> Session:
    new_session_id = id_factory()
    exercises = [_clone_exercise(e, new_session_id, id_factory) for e in session.exercises]
    return session.model_copy(
        update={
            "id": new_session_id,
            "phase_id": phase_id,
            "exercises": exercises,
            **overrides,
        }
    )


class WorkoutPlan(BaseModel):
    """
    The full plan tree owned by one client.

    Plan identity (plan id and server revision) is tracked by the
    ConcurrencyGuard, not by the tree itself.

    Examples:
        >>> plan = WorkoutPlan()
        >>> plan, phase_id = plan.add_phase()
        >>> plan, session_id = plan.add_session(phase_id)
        >>> plan, exercise_id = plan.add_exercise(phase_id, session_id)
        >>> plan.exercise_count
        1
    """

    phases: List[Phase] = Field(default_factory=list)

    model_config = {"frozen": True}

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.phases

    @property
    def exercise_count(self) -> int:
        return sum(phase.exercise_count for phase in self.phases)

    @property
    def active_phase(self) -> Optional[Phase]:
        return next((p for p in self.phases if p.is_active), None)

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        return next((p for p in self.phases if p.id == phase_id), None)

    def find_session(self, phase_id: str, session_id: str) -> Optional[Session]:
        phase = self.find_phase(phase_id)
        return phase.find_session(session_id) if phase else None

    def find_exercise(
        self, phase_id: str, session_id: str, exercise_id: str
    ) -> Optional[Exercise]:
        session = self.find_session(phase_id, session_id)
        return session.find_exercise(exercise_id) if session else None

    def locate_exercise(self, exercise_id: str) -> Optional[Tuple[Phase, Session, Exercise]]:
        """Find an exercise anywhere in the tree along with its ancestors."""
        for phase, session, exercise in self.iter_exercises():
            if exercise.id == exercise_id:
                return phase, session, exercise
        return None

    def iter_sessions(self) -> Iterator[Tuple[Phase, Session]]:
        for phase in self.phases:
            for session in phase.sessions:
                yield phase, session

    def iter_exercises(self) -> Iterator[Tuple[Phase, Session, Exercise]]:
        for phase, session in self.iter_sessions():
            for exercise in session.exercises:
                yield phase, session, exercise

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _require_phase(self, phase_id: str) -> Phase:
        phase = self.find_phase(phase_id)
        if phase is None:
            raise PlanEntityNotFound("phase", phase_id)
        return phase

    def _require_session(self, phase_id: str, session_id: str) -> Session:
        session = self._require_phase(phase_id).find_session(session_id)
        if session is None:
            raise PlanEntityNotFound("session", session_id)
        return session

    def _with_phases(self, phases: List[Phase]) -> "WorkoutPlan":
        return self.model_copy(update={"phases": phases})

    def _replace_phase(self, phase_id: str, fn: Callable[[Phase], Phase]) -> "WorkoutPlan":
        self._require_phase(phase_id)
        return self._with_phases([fn(p) if p.id == phase_id else p for p in self.phases])

    def _replace_session(
        self, phase_id: str, session_id: str, fn: Callable[[Session], Session]
    ) -> "WorkoutPlan":
        self._require_session(phase_id, session_id)

        def update_phase(phase: Phase) -> Phase:
            sessions = [fn(s) if s.id == session_id else s for s in phase.sessions]
            return phase.model_copy(update={"sessions": sessions})

        return self._replace_phase(phase_id, update_phase)

    # -------------------------------------------------------------------------
    # Phase operations
    # -------------------------------------------------------------------------

    def add_phase(
        self, name: str = "Untitled Phase", *, id_factory: Callable[[], str] = _new_id
    ) -> Tuple["WorkoutPlan", str]:
        """Append an inactive phase that sorts after every existing phase."""
        phase = Phase(
            id=id_factory(),
            name=name,
            is_active=False,
            order_number=_next_order_number(self.phases),
        )
        return self._with_phases([*self.phases, phase]), phase.id

    def delete_phase(self, phase_id: str) -> "WorkoutPlan":
        """Remove a phase together with all of its sessions and exercises."""
        self._require_phase(phase_id)
        return self._with_phases([p for p in self.phases if p.id != phase_id])

    def rename_phase(self, phase_id: str, name: str) -> "WorkoutPlan":
        return self._replace_phase(phase_id, lambda p: p.model_copy(update={"name": name}))

    def toggle_phase_expansion(self, phase_id: str) -> "WorkoutPlan":
        return self._replace_phase(
            phase_id, lambda p: p.model_copy(update={"is_expanded": not p.is_expanded})
        )

    def toggle_activation(self, phase_id: str) -> "WorkoutPlan":
        """Activate one phase and deactivate every sibling in the same step."""
        self._require_phase(phase_id)
        return self._with_phases(
            [p.model_copy(update={"is_active": p.id == phase_id}) for p in self.phases]
        )

    def duplicate_phase(
        self, phase_id: str, *, id_factory: Callable[[], str] = _new_id
    ) -> Tuple["WorkoutPlan", str]:
        """
        Deep-clone a phase with fresh ids at every level.

        Sessions are re-parented to the new phase id and exercises to their
        new session ids. The copy is inactive and sorts last.
        """
        source = self._require_phase(phase_id)
        new_phase_id = id_factory()
        sessions = [_clone_session(s, new_phase_id, id_factory) for s in source.sessions]
        copy = source.model_copy(
            update={
                "id": new_phase_id,
                "name": f"{source.name}{COPY_SUFFIX}",
                "is_active": False,
                "order_number": _next_order_number(self.phases),
                "sessions": sessions,
            }
        )
        return self._with_phases([*self.phases, copy]), new_phase_id

    # -------------------------------------------------------------------------
    # Session operations
    # -------------------------------------------------------------------------

    def add_session(
        self,
        phase_id: str,
        name: Optional[str] = None,
        *,
        id_factory: Callable[[], str] = _new_id,
    ) -> Tuple["WorkoutPlan", str]:
        phase = self._require_phase(phase_id)
        session = Session(
            id=id_factory(),
            phase_id=phase_id,
            name=name or f"Untitled Session {phase.session_count + 1}",
            order_number=_next_order_number(phase.sessions),
        )
        plan = self._replace_phase(
            phase_id, lambda p: p.model_copy(update={"sessions": [*p.sessions, session]})
        )
        return plan, session.id

    def delete_session(self, phase_id: str, session_id: str) -> "WorkoutPlan":
        """Remove a session together with its exercises."""
        self._require_session(phase_id, session_id)
        return self._replace_phase(
            phase_id,
            lambda p: p.model_copy(
                update={"sessions": [s for s in p.sessions if s.id != session_id]}
            ),
        )

    def rename_session(self, phase_id: str, session_id: str, name: str) -> "WorkoutPlan":
        return self._replace_session(
            phase_id, session_id, lambda s: s.model_copy(update={"name": name})
        )

    def toggle_session_expansion(self, phase_id: str, session_id: str) -> "WorkoutPlan":
        return self._replace_session(
            phase_id,
            session_id,
            lambda s: s.model_copy(update={"is_expanded": not s.is_expanded}),
        )

    def duplicate_session(
        self, phase_id: str, session_id: str, *, id_factory: Callable[[], str] = _new_id
    ) -> Tuple["WorkoutPlan", str]:
        """Deep-clone a session inside its phase; exercises get fresh ids."""
        phase = self._require_phase(phase_id)
        source = self._require_session(phase_id, session_id)
        copy = _clone_session(
            source,
            phase_id,
            id_factory,
            name=f"{source.name}{COPY_SUFFIX}",
            order_number=_next_order_number(phase.sessions),
        )
        plan = self._replace_phase(
            phase_id, lambda p: p.model_copy(update={"sessions": [*p.sessions, copy]})
        )
        return plan, copy.id

    # -------------------------------------------------------------------------
    # Exercise operations
    # -------------------------------------------------------------------------

    def add_exercise(
        self,
        phase_id: str,
        session_id: str,
        *,
        id_factory: Callable[[], str] = _new_id,
        **fields: Any,
    ) -> Tuple["WorkoutPlan", str]:
        """
        Append an exercise with the default prescription.

        The new row has no catalog id; it must be resolved before the plan
        can be saved.
        """
        exercise = Exercise(id=id_factory(), session_id=session_id, **fields)
        plan = self._replace_session(
            phase_id,
            session_id,
            lambda s: s.model_copy(update={"exercises": [*s.exercises, exercise]}),
        )
        return plan, exercise.id

    def delete_exercise(self, phase_id: str, session_id: str, exercise_id: str) -> "WorkoutPlan":
        session = self._require_session(phase_id, session_id)
        if session.find_exercise(exercise_id) is None:
            raise PlanEntityNotFound("exercise", exercise_id)
        return self._replace_session(
            phase_id,
            session_id,
            lambda s: s.model_copy(
                update={"exercises": [e for e in s.exercises if e.id != exercise_id]}
            ),
        )

    def update_exercise(
        self, phase_id: str, session_id: str, exercise_id: str, **fields: Any
    ) -> "WorkoutPlan":
        """
        Return a plan with the given exercise fields replaced.

        Values are re-validated through the Exercise model.

        Raises:
            PlanEntityNotFound: unknown phase, session or exercise
            ValueError: unknown or immutable field names
        """
        session = self._require_session(phase_id, session_id)
        current = session.find_exercise(exercise_id)
        if current is None:
            raise PlanEntityNotFound("exercise", exercise_id)

        invalid = set(fields) & _IMMUTABLE_EXERCISE_FIELDS
        unknown = set(fields) - set(Exercise.model_fields)
        if invalid or unknown:
            raise ValueError(f"Cannot update exercise fields: {sorted(invalid | unknown)}")

        updated = Exercise.model_validate({**current.model_dump(), **fields})
        return self._replace_session(
            phase_id,
            session_id,
            lambda s: s.model_copy(
                update={"exercises": [updated if e.id == exercise_id else e for e in s.exercises]}
            ),
        )

    # -------------------------------------------------------------------------
    # Whole-tree transforms
    # -------------------------------------------------------------------------

    def relinked(self) -> "WorkoutPlan":
        """Return a plan whose parent references match tree positions."""
        phases = []
        for phase in self.phases:
            sessions = []
            for session in phase.sessions:
                exercises = [
                    e if e.session_id == session.id else e.model_copy(update={"session_id": session.id})
                    for e in session.exercises
                ]
                sessions.append(
                    session.model_copy(update={"phase_id": phase.id, "exercises": exercises})
                )
            phases.append(phase.model_copy(update={"sessions": sessions}))
        return self._with_phases(phases)

    def sorted(self) -> "WorkoutPlan":
        """
        Return the display ordering of the plan.

        The active phase comes first, then phases by order number. Sessions
        sort by order number; exercises by their encoded order marker, with
        unlabelled rows last in their existing order.
        """
        def exercise_key(exercise: Exercise) -> Tuple[bool, Tuple[int, str]]:
            return not exercise.order_marker.strip(), sort_key(exercise.order_marker)

        phases = []
        for phase in sorted(self.phases, key=lambda p: (not p.is_active, p.order_number)):
            sessions = [
                s.model_copy(update={"exercises": sorted(s.exercises, key=exercise_key)})
                for s in sorted(phase.sessions, key=lambda s: s.order_number)
            ]
            phases.append(phase.model_copy(update={"sessions": sessions}))
        return self._with_phases(phases)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize the tree (derived fields included) for persistence."""
        return self.model_dump(mode="json")
