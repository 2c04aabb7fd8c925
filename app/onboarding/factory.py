"""Goal record factory — completed configuration in, Goal out. Pure, no I/O."""

from __future__ import annotations

from datetime import datetime

from app.onboarding import catalog
from app.onboarding.errors import ConfigurationMismatch
from app.onboarding.models import (
    CardioConfiguration,
    Goal,
    GoalCategory,
    SleepConfiguration,
    StepsConfiguration,
    StrengthConfiguration,
    UnitSystem,
    WeightManagementConfiguration,
)

CARDIO_WEEKLY_MINUTES = 150.0
STRENGTH_PROGRAM_WEEKS = 12.0

_CONFIG_TYPES = {
    GoalCategory.weight_management: WeightManagementConfiguration,
    GoalCategory.cardio_endurance: CardioConfiguration,
    GoalCategory.strength_building: StrengthConfiguration,
    GoalCategory.sleep_tracking: SleepConfiguration,
    GoalCategory.daily_steps: StepsConfiguration,
}


def _weight_description(cfg: WeightManagementConfiguration, unit_system: UnitSystem, weeks: int) -> str:
    unit = "lb" if unit_system == UnitSystem.imperial else "kg"
    diff = round(cfg.current_weight - cfg.target_weight, 1)
    if diff > 0:
        return f"Lose {diff:g}{unit} in {weeks} weeks"
    if diff < 0:
        return f"Gain {-diff:g}{unit} in {weeks} weeks"
    return f"Maintain {cfg.target_weight:g}{unit}"


def _target_current_description(
    category: GoalCategory,
    configuration,
    unit_system: UnitSystem,
    timeframe_weeks: int,
) -> tuple[float, float, str]:
    if category == GoalCategory.weight_management:
        return (
            configuration.target_weight,
            configuration.current_weight,
            _weight_description(configuration, unit_system, timeframe_weeks),
        )
    if category == GoalCategory.cardio_endurance:
        objective = configuration.fitness_objective.replace("_", " ")
        return CARDIO_WEEKLY_MINUTES, 0.0, f"Improve cardiovascular fitness with {objective} focus"
    if category == GoalCategory.strength_building:
        focus = configuration.primary_goal.replace("_", " ")
        return (
            STRENGTH_PROGRAM_WEEKS,
            0.0,
            f"Build {focus} with {configuration.workout_frequency}x/week training",
        )
    if category == GoalCategory.sleep_tracking:
        hours = configuration.target_sleep_hours
        return hours, 0.0, f"Improve sleep quality with {hours:g}h target"
    if category == GoalCategory.daily_steps:
        steps = configuration.daily_step_target
        return float(steps), 0.0, f"Walk {steps:,} steps daily"
    meta = catalog.metadata(category, unit_system)
    return meta.default_target, 0.0, meta.description


def build_goal(
    category: GoalCategory | str,
    configuration=None,
    *,
    created_at: datetime,
    unit_system: UnitSystem = UnitSystem.metric,
    provisional_id: str | None = None,
    timeframe_weeks: int = 12,
) -> Goal:
    """Build the finalized Goal for one category.

    The goal takes ``configuration.goal_id`` when a configuration exists,
    otherwise ``provisional_id``. ``created_at`` is the finalization instant
    and is supplied by the caller so this function stays deterministic.
    """
    meta = catalog.metadata(category, unit_system)  # raises UnknownCategory
    category = meta.category

    expected = _CONFIG_TYPES.get(category)
    if expected is None:
        if configuration is not None:
            raise ConfigurationMismatch(f"{category.value} takes no configuration")
        goal_id = provisional_id
    else:
        if not isinstance(configuration, expected):
            raise ConfigurationMismatch(
                f"{category.value} needs {expected.__name__}, got {type(configuration).__name__}"
            )
        goal_id = configuration.goal_id

    if not goal_id:
        raise ConfigurationMismatch(f"No goal id available for {category.value}")

    target, current, description = _target_current_description(
        category, configuration, unit_system, timeframe_weeks
    )
    return Goal(
        id=goal_id,
        category=category,
        title=meta.title,
        description=description,
        icon=meta.icon,
        target_value=target,
        current_value=current,
        timeframe_weeks=timeframe_weeks,
        is_active=True,
        created_at=created_at,
    )
