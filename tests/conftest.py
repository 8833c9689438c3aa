"""
Shared fixtures for the plan sync test suite.
"""

import pytest

from domain.models import CatalogExercise, WorkoutPlan
from planner.settings import Settings
from tests.fakes import (
    FakeExerciseCatalogRepository,
    FakePlanRepository,
    InMemoryBackupStorage,
    create_catalog,
    create_catalog_repo,
    create_sample_plan,
)


@pytest.fixture
def catalog() -> list[CatalogExercise]:
    """The shared test exercise library."""
    return create_catalog()


@pytest.fixture
def sample_plan() -> WorkoutPlan:
    """Two-phase plan with fixed ids (see tests.fakes.create_sample_plan)."""
    return create_sample_plan()


@pytest.fixture
def plan_repo() -> FakePlanRepository:
    """Empty fake plan repository."""
    return FakePlanRepository()


@pytest.fixture
def catalog_repo() -> FakeExerciseCatalogRepository:
    """Fake catalog repository seeded with the test library."""
    return create_catalog_repo()


@pytest.fixture
def backup_storage() -> InMemoryBackupStorage:
    """Empty in-memory backup storage."""
    return InMemoryBackupStorage()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with short timers and no .env file."""
    return Settings(
        _env_file=None,
        environment="test",
        autosave_base_delay_seconds=0.01,
        editing_grace_seconds=0.01,
    )
