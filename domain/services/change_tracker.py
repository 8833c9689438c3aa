"""
Change tracking between the last-synced plan and the edited plan.

The tracker keeps two snapshots:

- baseline: the tree as of the last confirmed server sync
- current: the tree as the user is editing it

Diffs are computed per nesting level only when asked for (a save attempt),
and memoized until the next ``update_current_state`` or ``reset``. Each
mutation therefore costs a snapshot, never a diff.

Usage:
    >>> tracker = ChangeTracker(plan)
    >>> tracker.update_current_state(plan.rename_phase(phase_id, "Strength"))
    >>> tracker.diff(EntityKind.PHASE).updated[0].changes
    {'name': 'Strength'}
"""

import copy
import logging
from typing import Dict, Optional, Tuple

from pydantic import BaseModel

from domain.models.changes import Entity, EntityDiff, EntityKind, PlanChanges, UpdateRecord
from domain.models.plan import WorkoutPlan

logger = logging.getLogger(__name__)


# =============================================================================
# Tracked fields
# =============================================================================

# Only these fields produce update records. UI-only state (is_expanded) and
# legacy display aliases (additional_info) are never compared.
PHASE_TRACKED_FIELDS: Tuple[str, ...] = ("name", "is_active", "order_number")

SESSION_TRACKED_FIELDS: Tuple[str, ...] = ("name", "duration_minutes", "order_number")

EXERCISE_TRACKED_FIELDS: Tuple[str, ...] = (
    "order_marker",
    "motion",
    "target_area",
    "exercise_catalog_id",
    "sets_min",
    "sets_max",
    "reps_min",
    "reps_max",
    "tempo",
    "tut",
    "rest_min",
    "rest_max",
    "customizations",
    "notes",
)

_TRACKED_FIELDS: Dict[EntityKind, Tuple[str, ...]] = {
    EntityKind.PHASE: PHASE_TRACKED_FIELDS,
    EntityKind.SESSION: SESSION_TRACKED_FIELDS,
    EntityKind.EXERCISE: EXERCISE_TRACKED_FIELDS,
}

# Parent reference re-sent with every update record; never compared.
_PARENT_FIELD: Dict[EntityKind, Optional[str]] = {
    EntityKind.PHASE: None,
    EntityKind.SESSION: "phase_id",
    EntityKind.EXERCISE: "session_id",
}


# =============================================================================
# Snapshots
# =============================================================================


def snapshot(plan: WorkoutPlan) -> WorkoutPlan:
    """
    Take an independent copy of a plan.

    A deep model copy is tried first. If that fails (for example a field
    value that cannot be deep-copied), the plan is serialized to JSON and
    parsed back instead.
    """
    try:
        return plan.model_copy(deep=True)
    except (TypeError, copy.Error, RecursionError) as e:
        logger.debug(f"Deep copy of plan failed ({e}), falling back to JSON round-trip")
        return WorkoutPlan.model_validate_json(plan.model_dump_json())


def _flatten(plan: WorkoutPlan, kind: EntityKind) -> Dict[str, Entity]:
    if kind is EntityKind.PHASE:
        return {phase.id: phase for phase in plan.phases}
    if kind is EntityKind.SESSION:
        return {session.id: session for _, session in plan.iter_sessions()}
    return {exercise.id: exercise for _, _, exercise in plan.iter_exercises()}


def _changed_fields(before: BaseModel, after: BaseModel, fields: Tuple[str, ...]) -> Dict[str, object]:
    return {
        name: getattr(after, name)
        for name in fields
        if getattr(before, name) != getattr(after, name)
    }


def diff_entities(
    kind: EntityKind, baseline: Dict[str, Entity], current: Dict[str, Entity]
) -> EntityDiff:
    """
    Compare two flattened id -> entity maps of the same kind.

    Order of ``added``/``updated`` follows the current tree; ``deleted``
    follows the baseline.
    """
    tracked = _TRACKED_FIELDS[kind]
    parent_field = _PARENT_FIELD[kind]
    result = EntityDiff(kind=kind)

    for entity_id, entity in current.items():
        before = baseline.get(entity_id)
        if before is None:
            result.added.append(entity)
            continue

        changes = _changed_fields(before, entity, tracked)
        if changes:
            if parent_field is not None:
                changes[parent_field] = getattr(entity, parent_field)
            result.updated.append(UpdateRecord(id=entity_id, changes=changes))

    result.deleted.extend(entity_id for entity_id in baseline if entity_id not in current)
    return result


# =============================================================================
# Tracker
# =============================================================================


class ChangeTracker:
    """
    Holds the baseline and current plan snapshots and diffs them lazily.

    The tracker never talks to persistence; the ConcurrencyGuard resets it
    after a successful save or a forced reload.
    """

    def __init__(self, baseline: Optional[WorkoutPlan] = None):
        initial = snapshot(baseline) if baseline is not None else WorkoutPlan()
        self._baseline = initial
        self._current = initial
        self._cache: Dict[EntityKind, EntityDiff] = {}

    @property
    def baseline(self) -> WorkoutPlan:
        return self._baseline

    @property
    def current(self) -> WorkoutPlan:
        return self._current

    def reset(self, new_baseline: WorkoutPlan) -> None:
        """Make ``new_baseline`` both baseline and current: no pending changes."""
        taken = snapshot(new_baseline)
        self._baseline = taken
        self._current = taken
        self._cache.clear()

    def update_current_state(self, new_current: WorkoutPlan) -> None:
        """Record the edited tree. Called after every mutation; does not diff."""
        self._current = snapshot(new_current)
        self._cache.clear()

    def diff(self, kind: EntityKind) -> EntityDiff:
        """Added, updated and deleted entities of one kind (memoized)."""
        cached = self._cache.get(kind)
        if cached is not None:
            return cached

        if self._current is self._baseline:
            result = EntityDiff(kind=kind)
        else:
            result = diff_entities(
                kind, _flatten(self._baseline, kind), _flatten(self._current, kind)
            )
        self._cache[kind] = result
        return result

    def changes(self) -> PlanChanges:
        """Diffs for all three levels."""
        return PlanChanges(
            phases=self.diff(EntityKind.PHASE),
            sessions=self.diff(EntityKind.SESSION),
            exercises=self.diff(EntityKind.EXERCISE),
        )

    @property
    def has_changes(self) -> bool:
        return not self.changes().is_empty
