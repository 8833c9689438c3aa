"""
Publish/subscribe between the editing surface and the save scheduler.

Handlers run synchronously in subscription order. An event published from
inside a handler is queued and delivered after the current event has
reached every subscriber, so events about one entity arrive in the order
they were published.

Usage:
    bus = EventBus()
    bus.subscribe(EditingStarted, lambda event: print(event.entity_id))
    bus.publish(EditingStarted("exercise-1"))
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, List, Optional, Type

from domain.models import WorkoutPlan

if TYPE_CHECKING:
    from planner.services.save_scheduler import SaveStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class EditingStarted:
    """The user focused an entity (usually an exercise row)."""

    entity_id: str


@dataclass(frozen=True)
class EditingEnded:
    """The user left an entity."""

    entity_id: str


@dataclass(frozen=True)
class EditingChanged:
    """The user changed a value while editing an entity."""

    entity_id: str


@dataclass(frozen=True)
class StatusChanged:
    """The save status moved from ``previous`` to ``status``."""

    status: "SaveStatus"
    previous: Optional["SaveStatus"] = None


@dataclass(frozen=True)
class ConflictDetected:
    """A save was rejected because the server revision moved on."""

    message: str
    server_time: Optional[str] = None


@dataclass(frozen=True)
class PlanReloaded:
    """Server state replaced the local tree (local edits discarded)."""

    plan: WorkoutPlan


Handler = Callable[[Any], None]


# =============================================================================
# Bus
# =============================================================================


class EventBus:
    """Synchronous, re-entrancy safe event dispatcher."""

    def __init__(self):
        self._handlers: Dict[Type[Any], List[Handler]] = {}
        self._queue: Deque[Any] = deque()
        self._dispatching = False

    def subscribe(self, event_type: Type[Any], handler: Handler) -> Callable[[], None]:
        """
        Register a handler for one event type.

        Returns:
            A callable that removes the subscription
        """
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: Any) -> None:
        """Deliver an event, or queue it if a delivery is in progress."""
        self._queue.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                self._deliver(self._queue.popleft())
        finally:
            self._dispatching = False

    def _deliver(self, event: Any) -> None:
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception as e:
                logger.exception(f"Handler {handler!r} failed for {type(event).__name__}: {e}")
