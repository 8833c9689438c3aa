"""
Pre-save validation of a workout plan.

Checks walk the tree phase -> session -> exercise and stop at the first
violation; a plan is either fully valid or not saved at all.
"""

from typing import Optional

from domain.models.plan import WorkoutPlan


def first_validation_error(plan: WorkoutPlan) -> Optional[str]:
    """
    Return the first blocking problem in the plan, or None when it may be saved.

    Examples:
        >>> plan, phase_id = WorkoutPlan().add_phase("  ")
        >>> first_validation_error(plan)
        'Phase name cannot be empty'
    """
    for phase in plan.phases:
        if not phase.name.strip():
            return "Phase name cannot be empty"

        for session in phase.sessions:
            if not session.name.strip():
                return f"Session name cannot be empty (phase '{phase.name}')"

            for exercise in session.exercises:
                if not exercise.description.strip():
                    return (
                        f"Exercise description cannot be empty "
                        f"(session '{session.name}')"
                    )
                if not exercise.is_resolved:
                    return (
                        f"Exercise '{exercise.description}' is not linked to the "
                        f"exercise library (session '{session.name}')"
                    )

    return None
