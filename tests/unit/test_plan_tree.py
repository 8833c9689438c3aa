"""
Unit tests for the WorkoutPlan aggregate and its entities.

Every tree operation is pure: the receiver must be unchanged and the
returned plan must hold the edit.
"""

import itertools

import pytest
from pydantic import ValidationError

from domain.models import Exercise, PlanEntityNotFound, Session, WorkoutPlan
from domain.models.plan import COPY_SUFFIX
from tests.fakes import create_exercise, create_sample_plan


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def plan() -> WorkoutPlan:
    return create_sample_plan()


@pytest.fixture
def ids():
    """Deterministic id factory: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


def all_ids(plan: WorkoutPlan) -> list:
    result = []
    for phase in plan.phases:
        result.append(phase.id)
        for session in phase.sessions:
            result.append(session.id)
            result.extend(e.id for e in session.exercises)
    return result


# =============================================================================
# Entity Tests
# =============================================================================


@pytest.mark.unit
class TestExerciseEntity:
    """Tests for derived exercise values."""

    def test_defaults(self):
        """A new row gets the default prescription and no catalog link."""
        ex = Exercise(id="e1")

        assert ex.description == "New Exercise"
        assert (ex.sets_min, ex.sets_max) == (3, 5)
        assert (ex.reps_min, ex.reps_max) == (8, 12)
        assert (ex.rest_min, ex.rest_max) == (45, 60)
        assert ex.tempo == "3 0 1 0"
        assert ex.motion == "Unspecified"
        assert ex.exercise_catalog_id is None
        assert ex.is_resolved is False

    def test_tut_from_tempo_sets_and_reps(self):
        """TUT = tempo digit sum x max sets x max reps."""
        ex = Exercise(id="e1", tempo="3 1 2 0", sets_max=4, reps_max=10)
        assert ex.tut == 6 * 4 * 10

    def test_tut_uses_defaults_when_unset(self):
        ex = Exercise(id="e1", sets_max=None, reps_max=None)
        assert ex.tut == 4 * 5 * 12

    def test_tut_is_serialized(self):
        assert "tut" in Exercise(id="e1").model_dump()

    def test_blank_catalog_id_is_unresolved(self):
        assert Exercise(id="e1", exercise_catalog_id="  ").is_resolved is False

    def test_negative_sets_rejected(self):
        with pytest.raises(ValidationError):
            Exercise(id="e1", sets_min=-1)

    def test_display_customizations_falls_back_to_legacy_alias(self):
        assert Exercise(id="e1", additional_info="pause").display_customizations == "pause"
        assert (
            Exercise(id="e1", customizations="tempo", additional_info="pause").display_customizations
            == "tempo"
        )

    def test_entities_are_frozen(self):
        ex = Exercise(id="e1")
        with pytest.raises(ValidationError):
            ex.description = "changed"


@pytest.mark.unit
class TestSessionDuration:
    """Tests for the derived session duration."""

    def test_sum_of_exercise_durations(self):
        session = Session(
            id="s1",
            exercises=[
                Exercise(id="e1", duration_minutes=10),
                Exercise(id="e2", duration_minutes=12),
            ],
        )
        assert session.duration_minutes == 22

    def test_unset_duration_counts_as_eight(self):
        session = Session(
            id="s1",
            exercises=[Exercise(id="e1", duration_minutes=None), Exercise(id="e2", duration_minutes=None)],
        )
        assert session.duration_minutes == 16

    def test_empty_session_is_zero(self):
        assert Session(id="s1").duration_minutes == 0


# =============================================================================
# Phase Operation Tests
# =============================================================================


@pytest.mark.unit
class TestPhaseOperations:
    """Tests for phase-level tree operations."""

    def test_add_phase_to_empty_plan(self, ids):
        """The first phase gets order number 0 and is inactive."""
        plan, phase_id = WorkoutPlan().add_phase(id_factory=ids)

        assert phase_id == "id-1"
        assert plan.phases[0].name == "Untitled Phase"
        assert plan.phases[0].order_number == 0
        assert plan.phases[0].is_active is False

    def test_add_phase_order_is_max_plus_one(self, plan, ids):
        updated, phase_id = plan.add_phase("Peaking", id_factory=ids)

        assert updated.find_phase(phase_id).order_number == 2

    def test_operations_do_not_mutate_receiver(self, plan):
        before = plan.model_dump()

        plan.add_phase("New")
        plan.rename_phase("p1", "Renamed")
        plan.delete_phase("p2")
        plan.toggle_activation("p2")

        assert plan.model_dump() == before

    def test_delete_phase_cascades(self, plan):
        updated = plan.delete_phase("p1")

        assert [p.id for p in updated.phases] == ["p2"]
        assert updated.locate_exercise("e1") is None

    def test_delete_unknown_phase_raises(self, plan):
        with pytest.raises(PlanEntityNotFound) as exc_info:
            plan.delete_phase("missing")
        assert exc_info.value.kind == "phase"
        assert exc_info.value.entity_id == "missing"

    def test_rename_phase(self, plan):
        assert plan.rename_phase("p2", "Power").find_phase("p2").name == "Power"

    def test_toggle_activation_leaves_exactly_one_active(self, plan):
        """Activating p2 deactivates p1 in the same step."""
        updated = plan.toggle_activation("p2")

        assert [p.id for p in updated.phases if p.is_active] == ["p2"]

    def test_toggle_activation_on_active_phase_keeps_it_active(self, plan):
        updated = plan.toggle_activation("p1")
        assert updated.active_phase.id == "p1"

    def test_toggle_activation_unknown_phase_raises(self, plan):
        with pytest.raises(PlanEntityNotFound):
            plan.toggle_activation("missing")

    def test_toggle_phase_expansion(self, plan):
        updated = plan.toggle_phase_expansion("p1")
        assert updated.find_phase("p1").is_expanded != plan.find_phase("p1").is_expanded

    def test_duplicate_phase_fresh_ids_and_reparenting(self, plan, ids):
        """Every copied entity has a new id and points at its new parent."""
        updated, new_id = plan.duplicate_phase("p1", id_factory=ids)
        copy = updated.find_phase(new_id)

        assert copy.name == "Hypertrophy" + COPY_SUFFIX
        assert copy.is_active is False
        assert copy.order_number == 2
        assert set(all_ids(plan)).isdisjoint(
            [copy.id] + [s.id for s in copy.sessions] + [e.id for s in copy.sessions for e in s.exercises]
        )
        for session in copy.sessions:
            assert session.phase_id == copy.id
            for exercise in session.exercises:
                assert exercise.session_id == session.id

    def test_duplicate_phase_keeps_content(self, plan, ids):
        updated, new_id = plan.duplicate_phase("p1", id_factory=ids)
        source = plan.find_phase("p1")
        copy = updated.find_phase(new_id)

        assert [s.name for s in copy.sessions] == [s.name for s in source.sessions]
        assert [e.description for e in copy.sessions[0].exercises] == [
            e.description for e in source.sessions[0].exercises
        ]
        assert len(set(all_ids(updated))) == len(all_ids(updated))


# =============================================================================
# Session Operation Tests
# =============================================================================


@pytest.mark.unit
class TestSessionOperations:
    """Tests for session-level tree operations."""

    def test_add_session_default_name_counts_siblings(self, plan):
        updated, session_id = plan.add_session("p1")
        session = updated.find_session("p1", session_id)

        assert session.name == "Untitled Session 2"
        assert session.phase_id == "p1"
        assert session.order_number == 1

    def test_add_session_with_name(self, plan):
        updated, session_id = plan.add_session("p2", "Upper B")
        assert updated.find_session("p2", session_id).name == "Upper B"

    def test_add_session_unknown_phase_raises(self, plan):
        with pytest.raises(PlanEntityNotFound):
            plan.add_session("missing")

    def test_delete_session(self, plan):
        updated = plan.delete_session("p1", "s1")
        assert updated.find_phase("p1").sessions == []

    def test_delete_session_under_wrong_phase_raises(self, plan):
        with pytest.raises(PlanEntityNotFound) as exc_info:
            plan.delete_session("p2", "s1")
        assert exc_info.value.kind == "session"

    def test_rename_session(self, plan):
        assert plan.rename_session("p1", "s1", "Legs").find_session("p1", "s1").name == "Legs"

    def test_duplicate_session(self, plan, ids):
        updated, new_id = plan.duplicate_session("p1", "s1", id_factory=ids)
        copy = updated.find_session("p1", new_id)

        assert copy.name == "Lower A" + COPY_SUFFIX
        assert copy.order_number == 1
        assert [e.id for e in copy.exercises] == ["id-2", "id-3"]
        assert all(e.session_id == new_id for e in copy.exercises)


# =============================================================================
# Exercise Operation Tests
# =============================================================================


@pytest.mark.unit
class TestExerciseOperations:
    """Tests for exercise-level tree operations."""

    def test_add_exercise_defaults(self, plan, ids):
        updated, exercise_id = plan.add_exercise("p1", "s1", id_factory=ids)
        exercise = updated.find_exercise("p1", "s1", exercise_id)

        assert exercise.session_id == "s1"
        assert exercise.is_resolved is False
        assert updated.exercise_count == plan.exercise_count + 1

    def test_add_exercise_with_fields(self, plan):
        updated, exercise_id = plan.add_exercise("p2", "s2", order_marker="B2", sets_max=4)
        exercise = updated.find_exercise("p2", "s2", exercise_id)

        assert exercise.order_marker == "B2"
        assert exercise.sets_max == 4

    def test_delete_exercise(self, plan):
        updated = plan.delete_exercise("p1", "s1", "e1")
        assert [e.id for e in updated.find_session("p1", "s1").exercises] == ["e2"]

    def test_delete_unknown_exercise_raises(self, plan):
        with pytest.raises(PlanEntityNotFound) as exc_info:
            plan.delete_exercise("p1", "s1", "nope")
        assert exc_info.value.kind == "exercise"

    def test_update_exercise_recomputes_tut(self, plan):
        updated = plan.update_exercise("p1", "s1", "e1", sets_max=2, reps_max=5)
        exercise = updated.find_exercise("p1", "s1", "e1")

        assert exercise.tut == 4 * 2 * 5

    def test_update_exercise_revalidates(self, plan):
        with pytest.raises(ValidationError):
            plan.update_exercise("p1", "s1", "e1", reps_min=-3)

    @pytest.mark.parametrize("field", ["id", "session_id", "tut", "not_a_field"])
    def test_update_exercise_rejects_immutable_or_unknown(self, plan, field):
        with pytest.raises(ValueError, match="Cannot update"):
            plan.update_exercise("p1", "s1", "e1", **{field: "x"})

    def test_locate_exercise(self, plan):
        phase, session, exercise = plan.locate_exercise("e3")
        assert (phase.id, session.id, exercise.description) == ("p2", "s2", "Bench Press")


# =============================================================================
# Whole-tree Transform Tests
# =============================================================================


@pytest.mark.unit
class TestTreeTransforms:
    """Tests for sorted(), relinked() and to_payload()."""

    def test_sorted_puts_active_phase_first(self, plan):
        updated = plan.toggle_activation("p2").sorted()
        assert [p.id for p in updated.phases] == ["p2", "p1"]

    def test_sorted_orders_exercises_by_marker_blank_last(self):
        session = Session(
            id="s1",
            exercises=[
                create_exercise("blank", "s1", order_marker=""),
                create_exercise("b1", "s1", order_marker="B1"),
                create_exercise("a10", "s1", order_marker="A10"),
                create_exercise("a2", "s1", order_marker="A2"),
            ],
        )
        plan = WorkoutPlan.model_validate({"phases": [{"id": "p1", "sessions": [session.model_dump()]}]})

        ordered = [e.id for e in plan.sorted().phases[0].sessions[0].exercises]
        assert ordered == ["a2", "a10", "b1", "blank"]

    def test_sorted_orders_sessions_by_order_number(self, plan):
        plan, _ = plan.add_session("p1", "Later")
        reordered = plan.model_copy(
            update={
                "phases": [
                    p.model_copy(update={"sessions": list(reversed(p.sessions))}) for p in plan.phases
                ]
            }
        )
        assert [s.name for s in reordered.sorted().phases[0].sessions] == ["Lower A", "Later"]

    def test_relinked_repairs_parent_references(self):
        plan = WorkoutPlan.model_validate(
            {
                "phases": [
                    {
                        "id": "p1",
                        "sessions": [
                            {"id": "s1", "phase_id": "", "exercises": [{"id": "e1", "session_id": "old"}]}
                        ],
                    }
                ]
            }
        )
        relinked = plan.relinked()
        session = relinked.phases[0].sessions[0]

        assert session.phase_id == "p1"
        assert session.exercises[0].session_id == "s1"

    def test_payload_contains_derived_fields(self, plan):
        payload = plan.to_payload()
        session = payload["phases"][0]["sessions"][0]

        assert session["duration_minutes"] == 16
        assert "tut" in session["exercises"][0]

    def test_payload_round_trips(self, plan):
        assert WorkoutPlan.model_validate(plan.to_payload()).model_dump() == plan.model_dump()
