"""
Debounced, editing-aware save scheduling.

The scheduler owns:
- the pending-mutation queue, keyed by exercise id (last write wins)
- the set of entities the user is actively editing
- the save status shown to the user
- the per-plan lock that allows at most one save in flight

Background saves are debounced: every edit restarts the timer, and while
anything is being edited the delay doubles. When the timer fires during an
edit, the save is postponed again instead of running. A manual save skips
the debounce, validates first and saves the full tree.

No save is ever retried automatically. A transport failure leaves the status
``queued`` until the user saves again; a conflict sets ``conflict`` and, when
``reload_on_conflict`` is on, replaces local state with the server's.

Usage:
    scheduler = SaveScheduler(guard, backup=backup_store, event_bus=bus)
    scheduler.enqueue(exercise)       # after an inline exercise edit
    outcome = await scheduler.save_all()
    await scheduler.aclose()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set

from application.exceptions import PlanConflictError, PlanTransportError, PlanValidationError
from application.use_cases.save_plan import ConcurrencyGuard, ConflictInfo, SavePlanResult
from domain.models import Exercise, WorkoutPlan
from domain.services import first_validation_error
from planner.services.events import (
    ConflictDetected,
    EditingChanged,
    EditingEnded,
    EditingStarted,
    EventBus,
    PlanReloaded,
    StatusChanged,
)
from planner.services.local_backup import LocalBackupStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_DELAY_SECONDS = 5.0
DEFAULT_EDITING_GRACE_SECONDS = 1.0

Sleep = Callable[[float], Awaitable[None]]


class SaveStatus(str, Enum):
    """Save state shown to the user."""

    EDITING = "editing"
    QUEUED = "queued"
    SAVING = "saving"
    SAVED = "saved"
    CONFLICT = "conflict"


@dataclass
class SaveOutcome:
    """
    Result of a save attempt.

    Attributes:
        status: Status after the attempt
        saved: True if the plan reached the server
        error: First validation error or transport/conflict message
        validation_errors: Blocking validation problems of a skipped background save
        conflict: Conflict payload when the server revision moved on
        result: Guard result on success
    """

    status: SaveStatus
    saved: bool = False
    error: Optional[str] = None
    validation_errors: List[str] = field(default_factory=list)
    conflict: Optional[ConflictInfo] = None
    result: Optional[SavePlanResult] = None


class SaveScheduler:
    """
    Debounce, batch and serialize plan saves.

    The full tree to save is always the tracker's current state, so callers
    must record every mutation with ``ChangeTracker.update_current_state``
    before notifying the scheduler.
    """

    def __init__(
        self,
        guard: ConcurrencyGuard,
        *,
        backup: Optional[LocalBackupStore] = None,
        event_bus: Optional[EventBus] = None,
        base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
        editing_grace: float = DEFAULT_EDITING_GRACE_SECONDS,
        reload_on_conflict: bool = True,
        sleep: Sleep = asyncio.sleep,
    ):
        self._guard = guard
        self._backup = backup
        self._bus = event_bus
        self._base_delay = base_delay
        self._editing_grace = editing_grace
        self._reload_on_conflict = reload_on_conflict
        self._sleep = sleep

        self._pending: Dict[str, Exercise] = {}
        self._editing: Set[str] = set()
        self._status = SaveStatus.SAVED
        self._lock = asyncio.Lock()
        self._save_in_flight = False
        self._manual_save_running = False
        self._debounce_task: Optional[asyncio.Task] = None
        self._grace_task: Optional[asyncio.Task] = None
        self._last_delay: Optional[float] = None
        self._unsubscribe: List[Callable[[], None]] = []

        if event_bus is not None:
            self.attach(event_bus)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def pending(self) -> Dict[str, Exercise]:
        return dict(self._pending)

    @property
    def editing(self) -> Set[str]:
        return set(self._editing)

    @property
    def is_editing(self) -> bool:
        return bool(self._editing)

    @property
    def is_saving(self) -> bool:
        return self._save_in_flight

    @property
    def conflict(self) -> Optional[ConflictInfo]:
        return self._guard.conflict

    @property
    def last_scheduled_delay(self) -> Optional[float]:
        """Delay used by the most recent ``schedule_auto_save`` call."""
        return self._last_delay

    @property
    def has_scheduled_save(self) -> bool:
        return self._debounce_task is not None and not self._debounce_task.done()

    def current_delay(self) -> float:
        """Debounce delay: the base delay, doubled while anything is being edited."""
        return self._base_delay * 2 if self._editing else self._base_delay

    def _set_status(self, status: SaveStatus) -> None:
        if status is self._status:
            return
        previous, self._status = self._status, status
        logger.debug(f"Save status {previous.value} -> {status.value}")
        if self._bus is not None:
            self._bus.publish(StatusChanged(status=status, previous=previous))

    def _refresh_status(self) -> None:
        if self._status not in (SaveStatus.SAVING, SaveStatus.CONFLICT):
            self._set_status(self._idle_status())

    def _idle_status(self) -> SaveStatus:
        if self._editing:
            return SaveStatus.EDITING
        if self._pending or self._guard.tracker.has_changes:
            return SaveStatus.QUEUED
        return SaveStatus.SAVED

    # -------------------------------------------------------------------------
    # Event wiring
    # -------------------------------------------------------------------------

    def attach(self, bus: EventBus) -> None:
        """Receive editing events from the bus and publish status changes to it."""
        self._bus = bus
        self._unsubscribe = [
            bus.subscribe(EditingStarted, lambda e: self.on_editing_start(e.entity_id)),
            bus.subscribe(EditingEnded, lambda e: self.on_editing_end(e.entity_id)),
            bus.subscribe(EditingChanged, lambda e: self.on_editing_change(e.entity_id)),
        ]

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def enqueue(self, exercise: Exercise) -> None:
        """Queue an edited exercise (replacing any earlier queued version) and debounce."""
        self._pending[exercise.id] = exercise
        self._refresh_status()
        self.schedule_auto_save()

    def discard(self, exercise_id: str) -> None:
        """Drop a queued exercise (for example after it was deleted)."""
        self._pending.pop(exercise_id, None)
        self._refresh_status()

    def mark_dirty(self) -> None:
        """Record a structural change; it is saved by the next save of the full tree."""
        self._refresh_status()

    # -------------------------------------------------------------------------
    # Debounce
    # -------------------------------------------------------------------------

    def schedule_auto_save(self) -> None:
        """(Re)start the debounce timer; no-op while a save is in flight."""
        if self._save_in_flight:
            logger.debug("Save in flight, not scheduling another")
            return
        self._cancel_debounce()
        delay = self.current_delay()
        self._last_delay = delay
        logger.debug(f"Auto-save scheduled in {delay}s (editing={len(self._editing)})")
        self._debounce_task = asyncio.create_task(self._debounce(delay))

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _debounce(self, delay: float) -> None:
        await self._sleep(delay)
        # Past this point the task must not be cancelled by a reschedule
        if self._debounce_task is asyncio.current_task():
            self._debounce_task = None
        await self._on_timer_fired()

    async def _on_timer_fired(self) -> None:
        if not self._pending or self._status is SaveStatus.CONFLICT:
            return
        if self._manual_save_running or self._save_in_flight:
            logger.debug("Manual save running, skipping background save")
            return
        if self._editing:
            logger.debug("Still editing at fire time, rescheduling auto-save")
            self.schedule_auto_save()
            return
        await self._save(manual=False)

    # -------------------------------------------------------------------------
    # Editing sessions
    # -------------------------------------------------------------------------

    def on_editing_start(self, entity_id: str) -> None:
        self._editing.add(entity_id)
        self._refresh_status()
        if self._pending:
            self.schedule_auto_save()

    def on_editing_end(self, entity_id: str) -> None:
        self._editing.discard(entity_id)
        self._refresh_status()
        if self._grace_task is not None and not self._grace_task.done():
            self._grace_task.cancel()
        self._grace_task = asyncio.create_task(self._after_grace())

    def on_editing_change(self, entity_id: str) -> None:
        if self._pending:
            self.schedule_auto_save()

    async def _after_grace(self) -> None:
        await self._sleep(self._editing_grace)
        if self._grace_task is asyncio.current_task():
            self._grace_task = None
        if (
            not self._pending
            or self._editing
            or self._save_in_flight
            or self._manual_save_running
            or self._status is SaveStatus.CONFLICT
        ):
            return
        logger.debug("Editing ended, flushing queued edits")
        self._cancel_debounce()
        await self._save(manual=False)

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    async def save_all(self) -> SaveOutcome:
        """
        Manual save: validate, then save the full tree immediately.

        Any pending debounce is cancelled. Waits for an in-flight background
        save to finish first.

        Raises:
            PlanValidationError: the plan is invalid; nothing was sent
        """
        self._cancel_debounce()
        self._manual_save_running = True
        try:
            return await self._save(manual=True)
        finally:
            self._manual_save_running = False

    async def _save(self, manual: bool) -> SaveOutcome:
        async with self._lock:
            plan = self._guard.tracker.current

            error = first_validation_error(plan)
            if error is not None:
                if manual:
                    logger.warning(f"Plan not saved, validation failed: {error}")
                    raise PlanValidationError(error)
                logger.info(f"Background save skipped, validation failed: {error}")
                return SaveOutcome(
                    status=self._status, error=error, validation_errors=[error]
                )

            self._save_in_flight = True
            self._set_status(SaveStatus.SAVING)
            try:
                result = await self._guard.save(plan)
            except PlanConflictError as e:
                return await self._handle_conflict(e)
            except PlanTransportError as e:
                logger.error(f"Plan save failed, left queued for manual retry: {e.message}")
                self._set_status(SaveStatus.QUEUED)
                return SaveOutcome(status=self._status, error=e.message)
            finally:
                self._save_in_flight = False

            self._after_success(plan)
            return SaveOutcome(status=self._status, saved=not result.skipped, result=result)

    def _after_success(self, saved: WorkoutPlan) -> None:
        saved_exercises = {e.id: e for _, _, e in saved.iter_exercises()}
        for exercise_id, queued in list(self._pending.items()):
            if exercise_id not in saved_exercises or saved_exercises[exercise_id] == queued:
                del self._pending[exercise_id]

        if self._backup is not None:
            if self._guard.tracker.has_changes:
                self._backup.save(self._guard.tracker.current)
            else:
                self._backup.clear()

        self._set_status(self._idle_status())
        if self._pending:
            self.schedule_auto_save()

    async def _handle_conflict(self, error: PlanConflictError) -> SaveOutcome:
        conflict = self._guard.conflict or ConflictInfo(error.message, error.server_time)
        self._cancel_debounce()
        self._set_status(SaveStatus.CONFLICT)
        if self._bus is not None:
            self._bus.publish(ConflictDetected(conflict.message, conflict.server_time))

        if self._reload_on_conflict:
            try:
                await self._reload()
            except PlanTransportError as e:
                logger.error(f"Reload after conflict failed: {e.message}")

        return SaveOutcome(status=self._status, error=conflict.message, conflict=conflict)

    # -------------------------------------------------------------------------
    # Reload
    # -------------------------------------------------------------------------

    async def reload_from_server(self) -> WorkoutPlan:
        """Refetch-and-discard: replace local state with the server's plan."""
        self._cancel_debounce()
        async with self._lock:
            return await self._reload()

    async def _reload(self) -> WorkoutPlan:
        plan = await self._guard.reload_from_server()
        discarded = len(self._pending)
        self._pending.clear()
        if self._backup is not None:
            self._backup.clear()
        logger.warning(f"Local state replaced by server plan ({discarded} queued edits discarded)")
        self._set_status(SaveStatus.EDITING if self._editing else SaveStatus.SAVED)
        if self._bus is not None:
            self._bus.publish(PlanReloaded(plan))
        return plan

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Cancel timers. A request already in flight is allowed to finish."""
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

        tasks = [t for t in (self._debounce_task, self._grace_task) if t is not None]
        self._debounce_task = None
        self._grace_task = None
        for task in tasks:
            if not task.done():
                task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
