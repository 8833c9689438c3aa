"""
Backup Storage Interface (Port).

Durable client-local key/value storage used for crash-recovery backups.
Values are JSON strings.
"""
from typing import Optional, Protocol


class BackupStorage(Protocol):
    """Abstract interface for a local string key/value store."""

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete a key. Removing an absent key is not an error."""
        ...
