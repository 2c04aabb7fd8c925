"""Static goal catalog — presentation metadata and default targets, config only.

PRIORITY_ORDER is the order setup stages are resolved in, independent of
the order the user picked categories.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.onboarding.errors import UnknownCategory
from app.onboarding.models import GoalCategory, UnitSystem


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    title: str
    description: str
    icon: str
    default_target: float
    imperial_default_target: float | None = None  # only when the target is unit-dependent
    supports_pairing: bool = False
    requires_setup: bool = True


@dataclass(frozen=True, slots=True)
class CategoryMetadata:
    category: GoalCategory
    title: str
    description: str
    icon: str
    default_target: float


PRIORITY_ORDER: tuple[GoalCategory, ...] = (
    GoalCategory.weight_management,
    GoalCategory.cardio_endurance,
    GoalCategory.strength_building,
    GoalCategory.sleep_tracking,
    GoalCategory.daily_steps,
    GoalCategory.workout_consistency,
)

CATALOG: dict[GoalCategory, CatalogEntry] = {
    GoalCategory.weight_management: CatalogEntry(
        title="Weight Loss",
        description="Lose weight through calorie tracking and exercise",
        icon="target",
        default_target=5.0,  # kg
        imperial_default_target=10.0,  # lb
    ),
    GoalCategory.cardio_endurance: CatalogEntry(
        title="Cardio Endurance",
        description="Build cardiovascular fitness",
        icon="heart",
        default_target=150.0,  # minutes per week
        supports_pairing=True,
    ),
    GoalCategory.strength_building: CatalogEntry(
        title="Strength Building",
        description="Increase muscle strength",
        icon="dumbbell",
        default_target=12.0,  # program weeks
        supports_pairing=True,
    ),
    GoalCategory.sleep_tracking: CatalogEntry(
        title="Sleep Tracking",
        description="Improve sleep quality",
        icon="moon",
        default_target=8.0,  # hours
        supports_pairing=True,
    ),
    GoalCategory.daily_steps: CatalogEntry(
        title="Daily Steps",
        description="Stay active with daily step goals",
        icon="footprints",
        default_target=10000.0,  # steps per day
        supports_pairing=True,
    ),
    GoalCategory.workout_consistency: CatalogEntry(
        title="Workout Consistency",
        description="Build exercise habits",
        icon="calendar",
        default_target=5.0,  # days per week
        requires_setup=False,
    ),
}


def _entry(category: GoalCategory | str) -> tuple[GoalCategory, CatalogEntry]:
    try:
        key = GoalCategory(category)
    except ValueError:
        raise UnknownCategory(category) from None
    entry = CATALOG.get(key)
    if entry is None:
        raise UnknownCategory(category)
    return key, entry


def metadata(category: GoalCategory | str, unit_system: UnitSystem = UnitSystem.metric) -> CategoryMetadata:
    """Return presentation metadata for a category. Raises UnknownCategory."""
    key, entry = _entry(category)
    target = entry.default_target
    if unit_system == UnitSystem.imperial and entry.imperial_default_target is not None:
        target = entry.imperial_default_target
    return CategoryMetadata(
        category=key,
        title=entry.title,
        description=entry.description,
        icon=entry.icon,
        default_target=target,
    )


def supports_pairing(category: GoalCategory | str) -> bool:
    return _entry(category)[1].supports_pairing


def requires_setup(category: GoalCategory | str) -> bool:
    return _entry(category)[1].requires_setup


def list_categories(unit_system: UnitSystem = UnitSystem.metric) -> list[CategoryMetadata]:
    return [metadata(c, unit_system) for c in PRIORITY_ORDER]
