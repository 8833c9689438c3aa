"""
Local crash-recovery backup of the plan being edited.

The backup mirrors the current tree after every mutation so an unsaved plan
survives a crash or a closed window. It is never a source of truth: it is
read only when the server reports no plan for the client, and a successful
save clears it. Storage failures are logged and swallowed so the backup can
never block a save.
"""

import logging
import time
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from application.ports import BackupStorage
from domain.models import Phase, WorkoutPlan

logger = logging.getLogger(__name__)

BACKUP_KEY_PREFIX = "workout-plan-"
DEFAULT_SCHEMA_VERSION = "1.0"


def backup_key(client_id: str) -> str:
    """Storage key of a client's backup."""
    return f"{BACKUP_KEY_PREFIX}{client_id}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class BackupRecord(BaseModel):
    """Serialized backup: the tree plus when and in which format it was written."""

    phases: List[Phase] = Field(default_factory=list)
    timestamp: int = Field(..., description="Epoch milliseconds")
    version: str = Field(default=DEFAULT_SCHEMA_VERSION)

    def to_plan(self) -> WorkoutPlan:
        return WorkoutPlan(phases=self.phases)


class LocalBackupStore:
    """
    Reads and writes one client's backup through a BackupStorage port.

    Usage:
        >>> store = LocalBackupStore(storage, "client-1")
        >>> store.save(plan)
        True
        >>> store.restore() == plan
        True
    """

    def __init__(
        self,
        storage: BackupStorage,
        client_id: str,
        *,
        schema_version: str = DEFAULT_SCHEMA_VERSION,
        clock: Callable[[], int] = _now_ms,
    ):
        self._storage = storage
        self._key = backup_key(client_id)
        self._schema_version = schema_version
        self._clock = clock

    @property
    def key(self) -> str:
        return self._key

    def save(self, plan: WorkoutPlan) -> bool:
        """
        Write the plan. An empty plan clears the record instead.

        Returns:
            True if a record was written
        """
        if plan.is_empty:
            self.clear()
            return False
        record = BackupRecord(
            phases=plan.phases, timestamp=self._clock(), version=self._schema_version
        )
        try:
            self._storage.set_item(self._key, record.model_dump_json())
        except Exception as e:
            logger.warning(f"Failed to write plan backup {self._key}: {e}")
            return False
        return True

    def load(self) -> Optional[BackupRecord]:
        """Read the record; None if absent, unreadable or from another schema version."""
        try:
            raw = self._storage.get_item(self._key)
        except Exception as e:
            logger.warning(f"Failed to read plan backup {self._key}: {e}")
            return None
        if not raw:
            return None

        try:
            record = BackupRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable plan backup {self._key}: {e}")
            return None

        if record.version != self._schema_version:
            logger.info(
                f"Ignoring plan backup {self._key} with version {record.version} "
                f"(expected {self._schema_version})"
            )
            return None
        return record

    def restore(self) -> Optional[WorkoutPlan]:
        """The backed-up plan, if a usable record exists."""
        record = self.load()
        return record.to_plan() if record else None

    def clear(self) -> None:
        """Remove the record after a successful save."""
        try:
            self._storage.remove_item(self._key)
        except Exception as e:
            logger.warning(f"Failed to clear plan backup {self._key}: {e}")
