"""
PlanEditor: the surface the UI layer drives.

Every mutation follows the same path:
1. apply the pure WorkoutPlan operation
2. record the new tree in the ChangeTracker (and undo history)
3. mirror it to the local backup
4. notify the SaveScheduler (exercise edits are queued and debounced,
   structural edits wait for the next save)

Usage:
    editor = create_plan_editor("client-1")  # planner.deps, wired from Settings
    await editor.load()
    phase_id = editor.add_phase("Hypertrophy")
    session_id = editor.add_session(phase_id, "Lower A")
    exercise_id = editor.add_exercise(phase_id, session_id)
    editor.set_exercise_description(phase_id, session_id, exercise_id, "Back Squat")
    outcome = await editor.save()
    await editor.aclose()
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from application.exceptions import PlanValidationError
from application.ports import BackupStorage, ExerciseCatalogRepository, PlanRepository
from application.use_cases import ConcurrencyGuard, ConflictInfo, LoadPlanResult, LoadPlanUseCase
from domain.models import CatalogExercise, WorkoutPlan
from domain.services import ChangeTracker, PlanHistory
from planner.adapters.plan_csv import CsvImportResult, export_plan_to_csv, parse_plan_csv
from planner.core.catalog_resolver import CatalogResolver
from planner.services.events import (
    EditingChanged,
    EditingEnded,
    EditingStarted,
    EventBus,
    PlanReloaded,
)
from planner.services.local_backup import LocalBackupStore
from planner.services.save_scheduler import SaveOutcome, SaveScheduler, SaveStatus, Sleep
from planner.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class PlanEditor:
    """
    Editing facade over one client's plan.

    All mutation methods are synchronous and return as soon as local state is
    updated; persistence happens through the scheduler.
    """

    def __init__(
        self,
        client_id: str,
        plan_repo: PlanRepository,
        *,
        catalog_repo: Optional[ExerciseCatalogRepository] = None,
        backup_storage: Optional[BackupStorage] = None,
        settings: Optional[Settings] = None,
        event_bus: Optional[EventBus] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        settings = settings or get_settings()
        self._client_id = client_id
        self._catalog_repo = catalog_repo
        self._resolver = CatalogResolver([])
        self._bus = event_bus or EventBus()

        self._tracker = ChangeTracker()
        self._guard = ConcurrencyGuard(client_id, plan_repo, self._tracker)
        self._history = PlanHistory(self._tracker.current)
        self._backup = (
            LocalBackupStore(
                backup_storage, client_id, schema_version=settings.backup_schema_version
            )
            if backup_storage is not None
            else None
        )
        self._scheduler = SaveScheduler(
            self._guard,
            backup=self._backup,
            event_bus=self._bus,
            base_delay=settings.autosave_base_delay_seconds,
            editing_grace=settings.editing_grace_seconds,
            reload_on_conflict=settings.reload_on_conflict,
            sleep=sleep,
        )
        self._unsubscribe = self._bus.subscribe(PlanReloaded, self._on_plan_reloaded)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def plan(self) -> WorkoutPlan:
        return self._tracker.current

    @property
    def status(self) -> SaveStatus:
        return self._scheduler.status

    @property
    def conflict(self) -> Optional[ConflictInfo]:
        return self._guard.conflict

    @property
    def plan_id(self) -> Optional[str]:
        return self._guard.plan_id

    @property
    def tracker(self) -> ChangeTracker:
        return self._tracker

    @property
    def scheduler(self) -> SaveScheduler:
        return self._scheduler

    @property
    def events(self) -> EventBus:
        return self._bus

    @property
    def catalog(self) -> List[CatalogExercise]:
        return self._resolver.catalog

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> LoadPlanResult:
        """Load the exercise catalog and the client's plan (with crash recovery)."""
        if self._catalog_repo is not None:
            self.set_catalog(await self._catalog_repo.fetch_exercise_catalog())

        result = await LoadPlanUseCase(guard=self._guard, backup=self._backup).execute()
        self._history.reset(result.plan)
        if result.recovered_from_backup:
            self._scheduler.mark_dirty()
        return result

    def set_catalog(self, catalog: List[CatalogExercise]) -> None:
        self._resolver = CatalogResolver(catalog)
        logger.debug(f"Exercise catalog loaded: {len(catalog)} exercises")

    async def reload_from_server(self) -> WorkoutPlan:
        """Discard local edits and adopt the server's plan."""
        return await self._scheduler.reload_from_server()

    def _on_plan_reloaded(self, event: PlanReloaded) -> None:
        self._history.reset(event.plan)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _apply(self, plan: WorkoutPlan, *, track_history: bool = True) -> None:
        if track_history:
            self._history.push(plan)
        else:
            self._history.replace_present(plan)
        self._tracker.update_current_state(plan)
        if self._backup is not None:
            self._backup.save(plan)

    def _apply_structural(self, plan: WorkoutPlan) -> None:
        self._apply(plan)
        self._scheduler.mark_dirty()

    def _apply_exercise(self, plan: WorkoutPlan, exercise_id: str) -> None:
        self._apply(plan)
        located = plan.locate_exercise(exercise_id)
        if located is not None:
            self._scheduler.enqueue(located[2])

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def add_phase(self, name: str = "Untitled Phase") -> str:
        plan, phase_id = self.plan.add_phase(name)
        self._apply_structural(plan)
        return phase_id

    def delete_phase(self, phase_id: str) -> None:
        self._apply_structural(self.plan.delete_phase(phase_id))

    def rename_phase(self, phase_id: str, name: str) -> None:
        self._apply_structural(self.plan.rename_phase(phase_id, name))

    def duplicate_phase(self, phase_id: str) -> str:
        plan, new_id = self.plan.duplicate_phase(phase_id)
        self._apply_structural(plan)
        return new_id

    def toggle_phase_expansion(self, phase_id: str) -> None:
        self._apply(self.plan.toggle_phase_expansion(phase_id), track_history=False)

    async def toggle_phase_activation(self, phase_id: str) -> SaveOutcome:
        """
        Activate a phase optimistically and save immediately.

        The activation is reverted if the save fails for any reason other
        than a conflict (a conflict reload already replaced the tree).

        Raises:
            PlanValidationError: the plan cannot be saved; activation reverted
        """
        before = {phase.id: phase.is_active for phase in self.plan.phases}
        self._apply_structural(self.plan.toggle_activation(phase_id))

        try:
            outcome = await self._scheduler.save_all()
        except PlanValidationError as e:
            self._revert_activation(phase_id, before, e.message)
            raise
        if not outcome.saved and outcome.conflict is None and outcome.result is None:
            self._revert_activation(phase_id, before, outcome.error)
        return outcome

    def _revert_activation(
        self, phase_id: str, before: Dict[str, bool], reason: Optional[str]
    ) -> None:
        logger.warning(f"Activation of phase {phase_id} reverted: {reason}")
        current = self.plan
        reverted = current.model_copy(
            update={
                "phases": [
                    p.model_copy(update={"is_active": before.get(p.id, False)})
                    for p in current.phases
                ]
            }
        )
        self._apply_structural(reverted)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def add_session(self, phase_id: str, name: Optional[str] = None) -> str:
        plan, session_id = self.plan.add_session(phase_id, name)
        self._apply_structural(plan)
        return session_id

    def delete_session(self, phase_id: str, session_id: str) -> None:
        self._apply_structural(self.plan.delete_session(phase_id, session_id))

    def rename_session(self, phase_id: str, session_id: str, name: str) -> None:
        self._apply_structural(self.plan.rename_session(phase_id, session_id, name))

    def duplicate_session(self, phase_id: str, session_id: str) -> str:
        plan, new_id = self.plan.duplicate_session(phase_id, session_id)
        self._apply_structural(plan)
        return new_id

    def toggle_session_expansion(self, phase_id: str, session_id: str) -> None:
        self._apply(
            self.plan.toggle_session_expansion(phase_id, session_id), track_history=False
        )

    # -------------------------------------------------------------------------
    # Exercises
    # -------------------------------------------------------------------------

    def add_exercise(self, phase_id: str, session_id: str, **fields: Any) -> str:
        plan, exercise_id = self.plan.add_exercise(phase_id, session_id, **fields)
        self._apply_exercise(plan, exercise_id)
        return exercise_id

    def delete_exercise(self, phase_id: str, session_id: str, exercise_id: str) -> None:
        self._apply_structural(self.plan.delete_exercise(phase_id, session_id, exercise_id))
        self._scheduler.discard(exercise_id)

    def update_exercise(
        self, phase_id: str, session_id: str, exercise_id: str, **fields: Any
    ) -> None:
        plan = self.plan.update_exercise(phase_id, session_id, exercise_id, **fields)
        self._apply_exercise(plan, exercise_id)

    def set_exercise_description(
        self, phase_id: str, session_id: str, exercise_id: str, description: str
    ) -> CatalogExercise:
        """
        Link an exercise row to the catalog by its description.

        The row takes the catalog exercise's name, motion and target area.

        Raises:
            ExerciseResolutionError: nothing matches; the edit is dropped
        """
        match = self._resolver.resolve_or_raise(description)
        self.update_exercise(
            phase_id,
            session_id,
            exercise_id,
            description=match.name,
            exercise_catalog_id=match.catalog_id,
            motion=match.motion or "Unspecified",
            target_area=match.target_area or "Unspecified",
        )
        return match

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> bool:
        plan = self._history.undo()
        if plan is None:
            return False
        self._apply(plan, track_history=False)
        self._scheduler.mark_dirty()
        return True

    def redo(self) -> bool:
        plan = self._history.redo()
        if plan is None:
            return False
        self._apply(plan, track_history=False)
        self._scheduler.mark_dirty()
        return True

    # -------------------------------------------------------------------------
    # Editing sessions
    # -------------------------------------------------------------------------

    def start_editing(self, entity_id: str) -> None:
        self._bus.publish(EditingStarted(entity_id))

    def end_editing(self, entity_id: str) -> None:
        self._bus.publish(EditingEnded(entity_id))

    def editing_changed(self, entity_id: str) -> None:
        self._bus.publish(EditingChanged(entity_id))

    # -------------------------------------------------------------------------
    # Save / CSV
    # -------------------------------------------------------------------------

    async def save(self) -> SaveOutcome:
        """
        Manual save of the whole plan.

        Raises:
            PlanValidationError: the plan is invalid; nothing was sent
        """
        return await self._scheduler.save_all()

    def export_csv(self) -> str:
        return export_plan_to_csv(self.plan)

    def import_csv(self, text: str) -> CsvImportResult:
        """
        Replace the plan with an imported one.

        Raises:
            CsvFormatError: wrong header; the current plan is untouched
        """
        result = parse_plan_csv(text, self._resolver)
        self._apply_structural(result.plan)
        if result.unresolved:
            logger.warning(
                f"{len(result.unresolved)} imported exercises need a library match "
                f"before the plan can be saved"
            )
        return result

    def summary(self) -> Dict[str, Any]:
        """Counts for status displays and logs."""
        return {
            "plan_id": self.plan_id,
            "status": self.status.value,
            "phases": len(self.plan.phases),
            "exercises": self.plan.exercise_count,
            "pending": len(self._scheduler.pending),
            "changes": self._tracker.changes().summary(),
        }

    async def aclose(self) -> None:
        self._unsubscribe()
        await self._scheduler.aclose()
