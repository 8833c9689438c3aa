"""
Unit tests for ChangeTracker and snapshot().
"""

from unittest.mock import patch

import pytest

from domain.models import EntityKind, WorkoutPlan
from domain.services import ChangeTracker, snapshot
from domain.services.change_tracker import diff_entities
from tests.fakes import create_sample_plan


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def plan() -> WorkoutPlan:
    return create_sample_plan()


@pytest.fixture
def tracker(plan) -> ChangeTracker:
    return ChangeTracker(plan)


# =============================================================================
# Diff Tests
# =============================================================================


@pytest.mark.unit
class TestDiff:
    """Tests for per-kind diffs."""

    def test_no_changes_after_construction(self, tracker):
        assert tracker.changes().is_empty
        assert tracker.has_changes is False

    def test_identical_copy_is_empty(self, tracker, plan):
        """Re-recording an equal tree yields no changes."""
        tracker.update_current_state(create_sample_plan())
        assert tracker.changes().is_empty

    def test_added_phase(self, tracker, plan):
        updated, phase_id = plan.add_phase("Peaking")
        tracker.update_current_state(updated)

        diff = tracker.diff(EntityKind.PHASE)
        assert [p.id for p in diff.added] == [phase_id]
        assert diff.updated == [] and diff.deleted == []

    def test_deleted_phase_cascades_to_children(self, tracker, plan):
        tracker.update_current_state(plan.delete_phase("p2"))
        changes = tracker.changes()

        assert changes.phases.deleted == ["p2"]
        assert changes.sessions.deleted == ["s2"]
        assert changes.exercises.deleted == ["e3"]

    def test_phase_update_has_no_parent_field(self, tracker, plan):
        tracker.update_current_state(plan.rename_phase("p1", "Volume"))

        [record] = tracker.diff(EntityKind.PHASE).updated
        assert record.id == "p1"
        assert record.changes == {"name": "Volume"}

    def test_session_update_carries_phase_id(self, tracker, plan):
        tracker.update_current_state(plan.rename_session("p1", "s1", "Legs"))

        [record] = tracker.diff(EntityKind.SESSION).updated
        assert record.changes == {"name": "Legs", "phase_id": "p1"}

    def test_exercise_update_carries_session_id_and_tut(self, tracker, plan):
        """Changing max sets also changes the derived TUT."""
        tracker.update_current_state(plan.update_exercise("p1", "s1", "e1", sets_max=4))

        [record] = tracker.diff(EntityKind.EXERCISE).updated
        assert record.id == "e1"
        assert record.changes["sets_max"] == 4
        assert record.changes["tut"] == 4 * 4 * 12
        assert record.changes["session_id"] == "s1"

    def test_adding_exercise_updates_session_duration(self, tracker, plan):
        updated, exercise_id = plan.add_exercise("p1", "s1")
        tracker.update_current_state(updated)
        changes = tracker.changes()

        assert [e.id for e in changes.exercises.added] == [exercise_id]
        [record] = changes.sessions.updated
        assert record.changes["duration_minutes"] == 24

    def test_untracked_fields_produce_no_updates(self, tracker, plan):
        """Expansion, description and the legacy alias are not compared."""
        updated = (
            plan.toggle_phase_expansion("p1")
            .toggle_session_expansion("p1", "s1")
            .update_exercise("p1", "s1", "e1", description="Front Squat", additional_info="x", is_expanded=True)
        )
        tracker.update_current_state(updated)

        assert tracker.changes().is_empty

    def test_diff_entities_order_follows_trees(self, plan):
        current = {e.id: e for _, _, e in plan.iter_exercises()}
        baseline = dict(current)
        del current["e1"]
        baseline.pop("e3")

        diff = diff_entities(EntityKind.EXERCISE, baseline, current)
        assert [e.id for e in diff.added] == ["e3"]
        assert diff.deleted == ["e1"]

    def test_summary_counts(self, tracker, plan):
        updated, _ = plan.add_phase()
        tracker.update_current_state(updated.delete_phase("p2"))
        summary = tracker.changes().summary()

        assert summary["phase"] == {"added": 1, "updated": 0, "deleted": 1}
        assert summary["exercise"]["deleted"] == 1


# =============================================================================
# State Tests
# =============================================================================


@pytest.mark.unit
class TestTrackerState:
    """Tests for reset(), memoization and snapshots."""

    def test_reset_clears_changes(self, tracker, plan):
        edited = plan.rename_phase("p1", "Volume")
        tracker.update_current_state(edited)
        assert tracker.has_changes

        tracker.reset(edited)

        assert tracker.has_changes is False
        assert tracker.current.find_phase("p1").name == "Volume"
        assert tracker.baseline is tracker.current

    def test_reset_is_idempotent(self, tracker, plan):
        tracker.reset(plan)
        tracker.reset(plan)
        assert tracker.changes().is_empty

    def test_diff_is_memoized_until_next_update(self, tracker, plan):
        tracker.update_current_state(plan.rename_phase("p1", "A"))
        first = tracker.diff(EntityKind.PHASE)
        assert tracker.diff(EntityKind.PHASE) is first

        tracker.update_current_state(plan.rename_phase("p1", "B"))
        assert tracker.diff(EntityKind.PHASE) is not first
        assert tracker.diff(EntityKind.PHASE).updated[0].changes == {"name": "B"}

    def test_current_is_a_snapshot(self, tracker, plan):
        edited = plan.rename_phase("p1", "Volume")
        tracker.update_current_state(edited)

        assert tracker.current == edited
        assert tracker.current is not edited

    def test_default_baseline_is_empty(self):
        tracker = ChangeTracker()
        assert tracker.baseline.is_empty
        assert tracker.changes().is_empty

    def test_snapshot_falls_back_to_json(self, plan):
        """A failing deep copy falls back to a JSON round-trip."""
        with patch.object(WorkoutPlan, "model_copy", side_effect=TypeError("cannot copy")):
            copied = snapshot(plan)

        assert copied is not plan
        assert copied.model_dump() == plan.model_dump()
