"""
Workout plan <-> CSV adapter.

Format:
- UTF-8, comma-delimited, one row per exercise
- Fixed 12-column header (EXPORT_COLUMNS)
- No quoting: commas inside values are replaced with semicolons on export,
  so a value can never contain a comma after a round trip

Import groups rows by PhaseName, then by (PhaseName, SessionName), in the
order they first appear, and resolves each description against the
exercise catalog. Rows that do not resolve are still created; plan
validation rejects them at save time.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from application.exceptions import CsvFormatError
from domain.models import CatalogExercise, Exercise, Phase, Session, WorkoutPlan
from planner.core.catalog_resolver import CatalogResolver

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "PhaseName",
    "SessionName",
    "ExerciseOrder",
    "ExerciseDescription",
    "SetsMin",
    "SetsMax",
    "RepsMin",
    "RepsMax",
    "Tempo",
    "RestMin",
    "RestMax",
    "Customizations",
]

CATALOG_COLUMNS = ["ExerciseName", "Motion", "TargetArea"]

# Columns parsed into Optional[int] exercise fields
_NUMERIC_COLUMNS = {
    "SetsMin": "sets_min",
    "SetsMax": "sets_max",
    "RepsMin": "reps_min",
    "RepsMax": "reps_max",
    "RestMin": "rest_min",
    "RestMax": "rest_max",
}

_LEADING_INT = re.compile(r"^\s*(\d+)")

# Rows with fewer cells carry no exercise description
_MIN_ROW_CELLS = 4


@dataclass
class UnresolvedRow:
    """An imported row whose description matched no catalog exercise."""

    line_number: int
    description: str
    suggestions: List[str] = field(default_factory=list)


@dataclass
class CsvImportResult:
    """Imported plan plus the rows that still need a catalog exercise."""

    plan: WorkoutPlan
    unresolved: List[UnresolvedRow] = field(default_factory=list)

    @property
    def is_fully_resolved(self) -> bool:
        return not self.unresolved


# =============================================================================
# Export
# =============================================================================


def _cell(value: object) -> str:
    if value is None:
        return ""
    return str(value).replace(",", ";")


def export_plan_to_csv(plan: WorkoutPlan) -> str:
    """
    Serialize a plan to CSV text, one row per exercise in tree order.

    Unset numeric fields export as empty cells.
    """
    lines = [",".join(EXPORT_COLUMNS)]
    for phase, session, exercise in plan.iter_exercises():
        row = [
            phase.name,
            session.name,
            exercise.order_marker,
            exercise.description,
            exercise.sets_min,
            exercise.sets_max,
            exercise.reps_min,
            exercise.reps_max,
            exercise.tempo,
            exercise.rest_min,
            exercise.rest_max,
            exercise.display_customizations,
        ]
        lines.append(",".join(_cell(value) for value in row))
    return "\n".join(lines)


def export_catalog_to_csv(catalog: Iterable[CatalogExercise]) -> str:
    """Serialize the exercise catalog as ExerciseName,Motion,TargetArea rows."""
    lines = [",".join(CATALOG_COLUMNS)]
    for exercise in catalog:
        lines.append(
            ",".join(_cell(v) for v in (exercise.name, exercise.motion, exercise.target_area))
        )
    return "\n".join(lines)


# =============================================================================
# Import
# =============================================================================


def parse_int_cell(value: str) -> Optional[int]:
    """
    Parse a numeric cell leniently.

    Blank cells are None; otherwise the leading digits are used ("12 reps"
    -> 12). Cells without leading digits are None.

    >>> parse_int_cell(""), parse_int_cell("8"), parse_int_cell("10-12")
    (None, 8, 10)
    """
    if not value or not value.strip():
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def _read_header(first_line: str) -> Dict[str, int]:
    header = [column.strip() for column in first_line.lstrip("\ufeff").split(",")]
    if set(header) != set(EXPORT_COLUMNS) or len(header) != len(EXPORT_COLUMNS):
        missing = [c for c in EXPORT_COLUMNS if c not in header]
        unexpected = [c for c in header if c not in EXPORT_COLUMNS]
        raise CsvFormatError(
            "Invalid CSV format. Please use the correct template "
            f"(missing: {missing}, unexpected: {unexpected})"
        )
    return {column: index for index, column in enumerate(header)}


def _row_to_exercise(
    values: Dict[str, str],
    session_id: str,
    match: Optional[CatalogExercise],
    line_number: int,
) -> Exercise:
    numeric: Dict[str, Optional[int]] = {}
    for column, field_name in _NUMERIC_COLUMNS.items():
        raw = values[column]
        parsed = parse_int_cell(raw)
        if parsed is None and raw.strip():
            logger.warning(f"Line {line_number}: ignoring non-numeric {column} value '{raw}'")
        numeric[field_name] = parsed

    return Exercise(
        id=str(uuid.uuid4()),
        session_id=session_id,
        exercise_catalog_id=match.catalog_id if match else None,
        order_marker=values["ExerciseOrder"].strip(),
        description=values["ExerciseDescription"].strip(),
        motion=match.motion if match else "",
        target_area=match.target_area if match else "",
        tempo=values["Tempo"].strip(),
        customizations=values["Customizations"],
        **numeric,
    )


def parse_plan_csv(
    text: str, catalog: Union[Iterable[CatalogExercise], CatalogResolver]
) -> CsvImportResult:
    """
    Parse CSV text into a plan and report unresolved descriptions.

    Raises:
        CsvFormatError: empty input or a header that is not exactly the
            expected column set; nothing is parsed in that case
    """
    lines = text.splitlines()
    if not lines:
        raise CsvFormatError("Invalid CSV format. The file is empty.")
    columns = _read_header(lines[0])
    resolver = catalog if isinstance(catalog, CatalogResolver) else CatalogResolver(catalog)

    phases: Dict[str, dict] = {}
    sessions: Dict[Tuple[str, str], dict] = {}
    unresolved: List[UnresolvedRow] = []

    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        cells = line.split(",")
        if len(cells) < _MIN_ROW_CELLS:
            logger.debug(f"Line {line_number}: skipping row with {len(cells)} cells")
            continue
        values = {
            column: cells[index] if index < len(cells) else ""
            for column, index in columns.items()
        }

        phase_name = values["PhaseName"].strip()
        session_name = values["SessionName"].strip()

        phase = phases.get(phase_name)
        if phase is None:
            phase = {
                "id": str(uuid.uuid4()),
                "name": phase_name,
                "is_active": not phases,
                "order_number": len(phases),
                "sessions": [],
            }
            phases[phase_name] = phase

        session = sessions.get((phase_name, session_name))
        if session is None:
            session = {
                "id": str(uuid.uuid4()),
                "phase_id": phase["id"],
                "name": session_name,
                "order_number": len(phase["sessions"]),
                "exercises": [],
            }
            sessions[(phase_name, session_name)] = session
            phase["sessions"].append(session)

        description = values["ExerciseDescription"].strip()
        match = resolver.resolve(description)
        if match.exercise is None:
            suggestions = [s.exercise.name for s in resolver.suggest(description)]
            logger.info(f"Line {line_number}: no catalog match for '{description}'")
            unresolved.append(UnresolvedRow(line_number, description, suggestions))

        session["exercises"].append(
            _row_to_exercise(values, session["id"], match.exercise, line_number)
        )

    plan = WorkoutPlan(
        phases=[
            Phase(
                **{k: v for k, v in phase.items() if k != "sessions"},
                sessions=[Session(**session) for session in phase["sessions"]],
            )
            for phase in phases.values()
        ]
    ).sorted()

    logger.info(
        f"Imported {len(plan.phases)} phases, {plan.exercise_count} exercises "
        f"({len(unresolved)} unresolved)"
    )
    return CsvImportResult(plan=plan, unresolved=unresolved)


def import_plan_from_csv(text: str, catalog: Iterable[CatalogExercise]) -> WorkoutPlan:
    """Parse CSV text into a plan. See ``parse_plan_csv``."""
    return parse_plan_csv(text, catalog).plan
