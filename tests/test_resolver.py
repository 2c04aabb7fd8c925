"""Tests for stage resolution."""

from __future__ import annotations

import pytest

from app.onboarding.models import (
    Complete,
    DevicePairing,
    Finalization,
    GoalCategory as C,
    ProfileSetup,
)
from app.onboarding.resolver import pending_categories, resolve_stage


def _advance_to_complete(selected, finalized=()):
    """Drive the resolver the way the orchestrator does, answering every stage."""
    finalized = set(finalized)
    pairing: dict = {}
    configs: set = set()
    finalizations = 0
    for _ in range(100):
        stage = resolve_stage(selected, finalized, pairing, configs)
        if isinstance(stage, Complete):
            return finalizations
        if isinstance(stage, DevicePairing):
            pairing[stage.category] = []
        elif isinstance(stage, ProfileSetup):
            configs.add(stage.category)
        else:
            finalized.add(stage.category)
            finalizations += 1
    raise AssertionError("resolver did not terminate")


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_steps_starts_with_pairing(self):
        stage = resolve_stage({C.daily_steps}, set(), {}, set())
        assert stage == DevicePairing(category=C.daily_steps)

    def test_explicit_skip_moves_to_setup(self):
        stage = resolve_stage({C.daily_steps}, set(), {C.daily_steps: []}, set())
        assert stage == ProfileSetup(category=C.daily_steps)

    def test_strength_pairing_after_weight_done(self):
        stage = resolve_stage(
            {C.weight_management, C.strength_building},
            {C.weight_management},
            {},
            {C.weight_management},
        )
        assert stage == DevicePairing(category=C.strength_building)

    def test_workout_consistency_finalizes_without_events(self):
        stage = resolve_stage({C.workout_consistency}, set(), {}, set())
        assert stage == Finalization(category=C.workout_consistency)
        assert resolve_stage({C.workout_consistency}, {C.workout_consistency}, {}, set()) == Complete()


class TestStages:
    def test_nothing_selected_is_complete(self):
        assert resolve_stage(set(), set(), {}, set()) == Complete()

    def test_weight_goes_straight_to_setup(self):
        stage = resolve_stage({C.weight_management}, set(), {}, set())
        assert stage == ProfileSetup(category=C.weight_management)

    def test_submitted_config_is_ready_for_finalization(self):
        stage = resolve_stage({C.sleep_tracking}, set(), {C.sleep_tracking: ["watch-1"]}, {C.sleep_tracking})
        assert stage == Finalization(category=C.sleep_tracking)

    def test_all_finalized_is_complete(self):
        selected = {C.sleep_tracking, C.daily_steps}
        assert resolve_stage(selected, selected, {}, set()) == Complete()

    def test_finalized_but_unselected_is_ignored(self):
        stage = resolve_stage({C.daily_steps}, {C.cardio_endurance}, {}, set())
        assert stage == DevicePairing(category=C.daily_steps)

    def test_inputs_not_mutated(self):
        selected = [C.sleep_tracking]
        pairing: dict = {}
        configs: set = set()
        resolve_stage(selected, set(), pairing, configs)
        assert selected == [C.sleep_tracking]
        assert pairing == {} and configs == set()


class TestPriority:
    @pytest.mark.parametrize(
        "selected",
        [
            [C.weight_management, C.sleep_tracking],
            [C.sleep_tracking, C.weight_management],
        ],
    )
    def test_weight_before_sleep_regardless_of_selection_order(self, selected):
        stage = resolve_stage(selected, set(), {}, set())
        assert stage == ProfileSetup(category=C.weight_management)

    def test_pending_categories_in_priority_order(self):
        selected = [C.workout_consistency, C.daily_steps, C.cardio_endurance, C.weight_management]
        assert pending_categories(selected, {C.cardio_endurance}) == [
            C.weight_management,
            C.daily_steps,
            C.workout_consistency,
        ]


class TestTermination:
    @pytest.mark.parametrize(
        "selected",
        [
            set(),
            {C.workout_consistency},
            {C.daily_steps},
            {C.weight_management, C.strength_building},
            set(C),
        ],
    )
    def test_exactly_one_finalization_per_pending_category(self, selected):
        assert _advance_to_complete(selected) == len(selected)

    def test_already_finalized_not_counted(self):
        selected = {C.weight_management, C.sleep_tracking, C.daily_steps}
        assert _advance_to_complete(selected, finalized={C.sleep_tracking}) == 2
