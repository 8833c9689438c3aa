"""
Exercise Catalog Repository Interface (Port).

Read-only access to the shared exercise library that plan rows resolve
against.
"""
from typing import List, Protocol

from domain.models import CatalogExercise


class ExerciseCatalogRepository(Protocol):
    """Abstract interface for reading the exercise catalog."""

    async def fetch_exercise_catalog(self) -> List[CatalogExercise]:
        """
        Get every catalog exercise.

        Returns:
            List of catalog exercises (possibly empty)
        """
        ...
