"""
Infrastructure Layer for the workout plan sync engine.

This package contains concrete implementations of the application ports:
- http_plan_repository: plan persistence and exercise catalog over HTTP (httpx)
- file_backup_storage: crash-recovery backups as local JSON files
"""

from infrastructure.file_backup_storage import FileBackupStorage
from infrastructure.http_plan_repository import HttpPlanRepository

__all__ = [
    "HttpPlanRepository",
    "FileBackupStorage",
]
