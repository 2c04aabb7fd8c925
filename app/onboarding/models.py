"""Onboarding contract — Pydantic v2 models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GoalCategory(str, Enum):
    weight_management = "weight_management"
    cardio_endurance = "cardio_endurance"
    strength_building = "strength_building"
    sleep_tracking = "sleep_tracking"
    daily_steps = "daily_steps"
    workout_consistency = "workout_consistency"


class UnitSystem(str, Enum):
    metric = "metric"
    imperial = "imperial"


class Screen(str, Enum):
    welcome = "welcome"
    phone = "phone"
    profile = "profile"
    goals = "goals"
    goal_setup = "goal_setup"
    main = "main"


class Phase(str, Enum):
    selecting_goals = "selecting_goals"
    configuring = "configuring"
    done = "done"


DeviceId = str


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Profile draft
# ---------------------------------------------------------------------------


class UserProfileDraft(BaseModel):
    id: str = Field(default_factory=_new_id)
    phone: str | None = None
    weight: float | None = Field(default=None, gt=0)
    weight_unit: Literal["kg", "pounds"] | None = None
    height: float | None = Field(default=None, gt=0)
    height_unit: Literal["cm", "feet"] | None = None
    age: int | None = Field(default=None, ge=0, le=130)
    gender: Literal["male", "female", "other"] | None = None
    selected_goals: list[GoalCategory] = Field(default_factory=list)  # ordered, duplicate-free
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("selected_goals")
    @classmethod
    def _dedupe(cls, value: list[GoalCategory]) -> list[GoalCategory]:
        return list(dict.fromkeys(value))

    def unit_system(self, default: UnitSystem = UnitSystem.metric) -> UnitSystem:
        if self.weight_unit == "kg":
            return UnitSystem.metric
        if self.weight_unit == "pounds":
            return UnitSystem.imperial
        return default

    def add_goals(self, categories: list[GoalCategory]) -> list[GoalCategory]:
        """Append categories not already selected. Returns only the new ones, in input order."""
        added: list[GoalCategory] = []
        for category in categories:
            if category not in self.selected_goals and category not in added:
                added.append(category)
        self.selected_goals.extend(added)
        return added


# ---------------------------------------------------------------------------
# Per-category configuration (setup-form payloads)
# ---------------------------------------------------------------------------


class _Configuration(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    goal_id: str = Field(default_factory=_new_id, min_length=1)  # provisional until the gateway issues one


class WeightManagementConfiguration(_Configuration):
    category: Literal["weight_management"] = "weight_management"
    current_weight: float = Field(gt=0)
    target_weight: float = Field(gt=0)
    weekly_loss_rate: float = Field(default=0.5, gt=0, le=2)
    daily_calorie_target: float | None = Field(default=None, gt=0)
    activity_level: Literal[
        "sedentary", "lightly_active", "moderately_active", "very_active", "extremely_active"
    ] | None = None


class CardioConfiguration(_Configuration):
    category: Literal["cardio_endurance"] = "cardio_endurance"
    fitness_objective: Literal["fat_burn", "endurance", "performance", "recovery"]
    resting_heart_rate: int | None = Field(default=None, gt=0)
    max_heart_rate: int | None = Field(default=None, gt=0)


class StrengthConfiguration(_Configuration):
    category: Literal["strength_building"] = "strength_building"
    fitness_level: Literal["beginner", "intermediate", "advanced"]
    primary_goal: Literal["muscle_gain", "strength_increase", "endurance", "toning"]
    workout_frequency: int = Field(ge=1, le=7)  # days per week
    preferred_workout_duration: int = Field(default=45, gt=0)  # minutes
    available_equipment: list[str] = Field(default_factory=list)


class SleepConfiguration(_Configuration):
    category: Literal["sleep_tracking"] = "sleep_tracking"
    target_sleep_hours: float = Field(gt=0, le=24)
    target_bedtime: str = Field(default="22:30", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    target_wake_time: str = Field(default="06:30", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    tracking_method: Literal["smartwatch", "phone_placement", "manual", "none"] = "manual"


class StepsConfiguration(_Configuration):
    category: Literal["daily_steps"] = "daily_steps"
    daily_step_target: int = Field(gt=0)
    baseline_average: int | None = Field(default=None, ge=0)
    stride_length_cm: float | None = Field(default=None, gt=0)
    tracking_method: Literal["smartphone", "fitness_tracker", "smartwatch", "manual"] = "smartphone"


CategoryConfiguration = Annotated[
    Union[
        WeightManagementConfiguration,
        CardioConfiguration,
        StrengthConfiguration,
        SleepConfiguration,
        StepsConfiguration,
    ],
    Field(discriminator="category"),
]


# ---------------------------------------------------------------------------
# Goal records
# ---------------------------------------------------------------------------


class Goal(BaseModel):
    id: str
    category: GoalCategory
    title: str
    description: str = ""
    icon: str
    target_value: float | None = None
    current_value: float = 0.0
    timeframe_weeks: int = 12
    is_active: bool = True
    created_at: datetime


class PersistedGoal(Goal):
    """A goal the gateway has stored. ``id`` is server-issued; ``provisional_id`` is what we sent."""

    provisional_id: str | None = None


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


class DevicePairing(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["device_pairing"] = "device_pairing"
    category: GoalCategory


class ProfileSetup(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["profile_setup"] = "profile_setup"
    category: GoalCategory


class Finalization(BaseModel):
    """Category has everything it needs; the orchestrator turns it into a Goal."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["finalization"] = "finalization"
    category: GoalCategory


class Complete(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["complete"] = "complete"


Stage = Annotated[
    Union[DevicePairing, ProfileSetup, Finalization, Complete],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class GoalsChosen(BaseModel):
    type: Literal["goals_chosen"] = "goals_chosen"
    categories: list[GoalCategory]


class PairingSubmitted(BaseModel):
    type: Literal["pairing_submitted"] = "pairing_submitted"
    category: GoalCategory
    devices: list[DeviceId] = Field(default_factory=list)  # empty = explicit skip


class ConfigurationSubmitted(BaseModel):
    type: Literal["configuration_submitted"] = "configuration_submitted"
    category: GoalCategory
    configuration: dict[str, Any]


OnboardingEvent = Annotated[
    Union[GoalsChosen, PairingSubmitted, ConfigurationSubmitted],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Working state & output
# ---------------------------------------------------------------------------


class OnboardingState(BaseModel):
    """Everything the orchestrator knows about one user's flow. Only the orchestrator mutates it."""

    screen: Screen = Screen.welcome
    phase: Phase | None = None
    draft: UserProfileDraft | None = None
    stage: Stage | None = None

    goals: dict[GoalCategory, PersistedGoal] = Field(default_factory=dict)
    pairing: dict[GoalCategory, list[DeviceId]] = Field(default_factory=dict)  # missing key = not attempted
    configurations: dict[GoalCategory, CategoryConfiguration] = Field(default_factory=dict)

    last_error: str | None = None
    validation_errors: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def finalized(self) -> set[GoalCategory]:
        return set(self.goals)


class ScreenDirective(BaseModel):
    screen: Screen
    stage: Stage | None = None
    error: str | None = None
    validation_errors: list[dict[str, Any]] = Field(default_factory=list)
