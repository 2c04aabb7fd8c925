"""Stage resolution — pure, never mutates its inputs.

Given what the user selected and what has been collected so far, decide the
single next thing the flow needs. Categories are always walked in
catalog.PRIORITY_ORDER so the wizard sequence is reproducible no matter the
order categories were picked in.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from app.onboarding import catalog
from app.onboarding.models import (
    Complete,
    DeviceId,
    DevicePairing,
    Finalization,
    GoalCategory,
    ProfileSetup,
)


def pending_categories(
    selected_goals: Collection[GoalCategory],
    finalized_goals: Collection[GoalCategory],
) -> list[GoalCategory]:
    """Selected categories without a goal yet, in priority order."""
    return [
        c for c in catalog.PRIORITY_ORDER
        if c in selected_goals and c not in finalized_goals
    ]


def resolve_stage(
    selected_goals: Collection[GoalCategory],
    finalized_goals: Collection[GoalCategory],
    pairing_state: Mapping[GoalCategory, Sequence[DeviceId]],
    config_state: Collection[GoalCategory],
) -> DevicePairing | ProfileSetup | Finalization | Complete:
    """Return the next stage for the first unfinished category.

    A category missing from ``pairing_state`` has not attempted pairing; an
    empty sequence means pairing was explicitly skipped.
    """
    pending = pending_categories(selected_goals, finalized_goals)
    if not pending:
        return Complete()

    category = pending[0]
    if catalog.supports_pairing(category) and category not in pairing_state:
        return DevicePairing(category=category)
    if catalog.requires_setup(category) and category not in config_state:
        return ProfileSetup(category=category)
    return Finalization(category=category)
