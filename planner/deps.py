"""
Dependency providers for the workout plan editor.

Builds the concrete adapters from Settings and hands them out as port types,
so callers never construct infrastructure directly.

Usage:
    from planner.deps import create_plan_editor

    editor = create_plan_editor("client-1")
    await editor.load()

Testing:
    # Pass explicit settings (or clear get_settings' cache)
    editor = create_plan_editor("client-1", settings=Settings(_env_file=None))
"""

import logging
from typing import Optional

from application.ports import BackupStorage, PlanRepository
from infrastructure import FileBackupStorage, HttpPlanRepository
from planner.services.plan_editor import PlanEditor
from planner.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Repository Providers
# =============================================================================


def get_plan_repo(settings: Optional[Settings] = None) -> PlanRepository:
    """Plan API client configured from settings."""
    settings = settings or get_settings()
    if settings.is_production and not settings.plan_api_token:
        logger.warning("No PLAN_API_TOKEN configured for production plan API")
    return HttpPlanRepository(
        settings.plan_api_url,
        timeout=settings.plan_api_timeout,
        auth_token=settings.plan_api_token,
    )


def get_backup_storage(settings: Optional[Settings] = None) -> BackupStorage:
    settings = settings or get_settings()
    return FileBackupStorage(settings.backup_dir)


# =============================================================================
# Editor
# =============================================================================


def create_plan_editor(client_id: str, settings: Optional[Settings] = None) -> PlanEditor:
    """
    Wire a PlanEditor for one client.

    Plan persistence and the catalog go through one HTTP client; backups
    land in settings.backup_dir.
    """
    settings = settings or get_settings()
    repo = get_plan_repo(settings)
    logger.info(
        f"Plan editor for {client_id} ({settings.environment}) -> {settings.plan_api_url}"
    )
    return PlanEditor(
        client_id,
        repo,
        catalog_repo=repo,
        backup_storage=get_backup_storage(settings),
        settings=settings,
    )
