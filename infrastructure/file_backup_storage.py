"""
File-backed BackupStorage.

Each key is stored as one UTF-8 file under a directory. Writes go to a
temporary file in the same directory and are moved into place with
os.replace, so a crash mid-write never leaves a truncated backup.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path atomically via a sibling temp file and os.replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
        os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


class FileBackupStorage:
    """Key/value storage in a directory of ``<key>.json`` files."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File path of a key; characters outside [A-Za-z0-9._-] become '_'."""
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        atomic_write_text(self.path_for(key), value)
        logger.debug(f"Backup written: {key}")

    def remove_item(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
