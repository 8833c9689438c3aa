"""
Planner services.

- events: publish/subscribe between the editing surface and the scheduler
- local_backup: crash-recovery copy of the plan being edited
- save_scheduler: debounced, editing-aware, one-at-a-time saves
- plan_editor: the facade the UI layer drives
"""

from planner.services.events import (
    ConflictDetected,
    EditingChanged,
    EditingEnded,
    EditingStarted,
    EventBus,
    PlanReloaded,
    StatusChanged,
)
from planner.services.local_backup import BackupRecord, LocalBackupStore, backup_key
from planner.services.save_scheduler import SaveOutcome, SaveScheduler, SaveStatus
from planner.services.plan_editor import PlanEditor

__all__ = [
    "EventBus",
    "EditingStarted",
    "EditingEnded",
    "EditingChanged",
    "StatusChanged",
    "ConflictDetected",
    "PlanReloaded",
    "BackupRecord",
    "LocalBackupStore",
    "backup_key",
    "SaveOutcome",
    "SaveScheduler",
    "SaveStatus",
    "PlanEditor",
]
