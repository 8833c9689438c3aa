"""
Catalog resolution for exercise descriptions.

Links free-text exercise descriptions (typed inline or imported from CSV)
to catalog exercises using a three-stage approach:
1. Exact name match (case-insensitive)
2. Description contains a catalog name ("Barbell Back Squat" -> "Back Squat")
3. A catalog name contains the description ("Squat" -> "Back Squat")

Stages 2 and 3 take the first catalog entry in catalog order. Anything else
stays unresolved. Fuzzy scores (rapidfuzz) are only used to rank
suggestions for unresolved descriptions, never to resolve automatically.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from rapidfuzz import fuzz

from application.exceptions import ExerciseResolutionError
from domain.models import CatalogExercise

logger = logging.getLogger(__name__)


class MatchMethod(str, Enum):
    """How the match was determined."""
    EXACT = "exact"
    CONTAINS_CATALOG_NAME = "contains_catalog_name"
    CONTAINED_IN_CATALOG_NAME = "contained_in_catalog_name"
    NONE = "none"


@dataclass
class CatalogMatch:
    """Result of a resolution attempt."""
    exercise: Optional[CatalogExercise]
    method: MatchMethod

    @property
    def catalog_id(self) -> Optional[str]:
        return self.exercise.catalog_id if self.exercise else None

    @property
    def is_resolved(self) -> bool:
        return self.exercise is not None


@dataclass
class Suggestion:
    """A ranked alternative for an unresolved description."""
    exercise: CatalogExercise
    score: float  # 0.0 to 1.0


class CatalogResolver:
    """
    Resolve exercise descriptions against an in-memory catalog.

    Usage:
        >>> resolver = CatalogResolver(catalog)
        >>> resolver.resolve("back squat").catalog_id
        'ex-squat'
        >>> [s.exercise.name for s in resolver.suggest("bak sqaut", limit=1)]
        ['Back Squat']
    """

    # Suggestions below this score are not worth showing
    SUGGESTION_MIN_SCORE = 0.50

    def __init__(self, catalog: Iterable[CatalogExercise]):
        self._catalog: List[CatalogExercise] = list(catalog)
        self._by_lower_name: Dict[str, CatalogExercise] = {}
        for exercise in self._catalog:
            self._by_lower_name.setdefault(exercise.name.strip().lower(), exercise)

    @property
    def catalog(self) -> List[CatalogExercise]:
        return list(self._catalog)

    def resolve(self, description: str) -> CatalogMatch:
        """
        Resolve a description to a catalog exercise.

        Args:
            description: Exercise text as typed or imported

        Returns:
            CatalogMatch; ``exercise`` is None when nothing matched
        """
        text = (description or "").strip().lower()
        if not text:
            return CatalogMatch(exercise=None, method=MatchMethod.NONE)

        # Stage 1: exact
        exact = self._by_lower_name.get(text)
        if exact is not None:
            logger.debug(f"Exact match: '{description}' -> '{exact.catalog_id}'")
            return CatalogMatch(exercise=exact, method=MatchMethod.EXACT)

        # Stage 2: row text contains a catalog name
        for exercise in self._catalog:
            name = exercise.name.strip().lower()
            if name and name in text:
                logger.debug(f"Contains match: '{description}' -> '{exercise.catalog_id}'")
                return CatalogMatch(exercise=exercise, method=MatchMethod.CONTAINS_CATALOG_NAME)

        # Stage 3: catalog name contains row text
        for exercise in self._catalog:
            if text in exercise.name.strip().lower():
                logger.debug(f"Contained match: '{description}' -> '{exercise.catalog_id}'")
                return CatalogMatch(
                    exercise=exercise, method=MatchMethod.CONTAINED_IN_CATALOG_NAME
                )

        return CatalogMatch(exercise=None, method=MatchMethod.NONE)

    def suggest(self, description: str, limit: int = 5) -> List[Suggestion]:
        """
        Get the top N catalog exercises that look like a description.

        Args:
            description: The exercise text to rank against
            limit: Maximum number of suggestions

        Returns:
            Suggestions sorted by score, best first
        """
        text = (description or "").strip().lower()
        if not text or not self._catalog:
            return []

        scored = []
        for exercise in self._catalog:
            score = fuzz.token_set_ratio(text, exercise.name.lower()) / 100.0
            if score >= self.SUGGESTION_MIN_SCORE:
                scored.append(Suggestion(exercise=exercise, score=score))

        scored.sort(key=lambda s: s.score, reverse=True)
        return scored[:limit]

    def resolve_or_raise(self, description: str) -> CatalogExercise:
        """
        Resolve a description or raise with suggestions attached.

        Raises:
            ExerciseResolutionError: no catalog exercise matches
        """
        match = self.resolve(description)
        if match.exercise is None:
            suggestions = [s.exercise.name for s in self.suggest(description)]
            logger.warning(
                f"Could not resolve exercise '{description}' (suggestions: {suggestions})"
            )
            raise ExerciseResolutionError(description, suggestions)
        return match.exercise
