"""Tests for the static goal catalog."""

from __future__ import annotations

import pytest

from app.onboarding import catalog
from app.onboarding.errors import UnknownCategory
from app.onboarding.models import GoalCategory, UnitSystem


class TestMetadata:
    def test_every_category_has_an_entry(self):
        assert set(catalog.CATALOG) == set(GoalCategory)

    def test_priority_order_covers_every_category_once(self):
        assert len(catalog.PRIORITY_ORDER) == len(GoalCategory)
        assert set(catalog.PRIORITY_ORDER) == set(GoalCategory)

    def test_priority_order_starts_with_weight(self):
        assert catalog.PRIORITY_ORDER[0] == GoalCategory.weight_management
        assert catalog.PRIORITY_ORDER[-1] == GoalCategory.workout_consistency

    def test_steps_metadata(self):
        m = catalog.metadata(GoalCategory.daily_steps)
        assert m.title == "Daily Steps"
        assert m.icon == "footprints"
        assert m.default_target == 10000.0

    def test_accepts_plain_string(self):
        assert catalog.metadata("sleep_tracking").default_target == 8.0

    def test_weight_default_metric(self):
        m = catalog.metadata(GoalCategory.weight_management, UnitSystem.metric)
        assert m.default_target == 5.0

    def test_weight_default_imperial(self):
        m = catalog.metadata(GoalCategory.weight_management, UnitSystem.imperial)
        assert m.default_target == 10.0

    def test_unit_independent_targets_ignore_units(self):
        metric = catalog.metadata(GoalCategory.cardio_endurance, UnitSystem.metric)
        imperial = catalog.metadata(GoalCategory.cardio_endurance, UnitSystem.imperial)
        assert metric.default_target == imperial.default_target == 150.0

    def test_unknown_category_raises(self):
        with pytest.raises(UnknownCategory):
            catalog.metadata("underwater_basket_weaving")


class TestCapabilities:
    @pytest.mark.parametrize(
        "category",
        [
            GoalCategory.cardio_endurance,
            GoalCategory.strength_building,
            GoalCategory.sleep_tracking,
            GoalCategory.daily_steps,
        ],
    )
    def test_pairing_categories(self, category):
        assert catalog.supports_pairing(category)
        assert catalog.requires_setup(category)

    def test_weight_has_setup_but_no_pairing(self):
        assert not catalog.supports_pairing(GoalCategory.weight_management)
        assert catalog.requires_setup(GoalCategory.weight_management)

    def test_workout_consistency_needs_nothing(self):
        assert not catalog.supports_pairing(GoalCategory.workout_consistency)
        assert not catalog.requires_setup(GoalCategory.workout_consistency)

    def test_list_categories_in_priority_order(self):
        listed = [m.category for m in catalog.list_categories()]
        assert listed == list(catalog.PRIORITY_ORDER)
