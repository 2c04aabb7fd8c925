"""Onboarding orchestrator — the goal-setup state machine.

Phases: selecting_goals -> configuring (looping over stages) -> done.

Every category, whether it needs pairing and setup or nothing at all, is
turned into a Goal at exactly one place (_finalize), reached only when the
resolver reports Finalization for it. A category joins ``state.goals`` only
after the gateway has stored it, so local and persisted state never diverge.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from app.config import settings
from app.onboarding import catalog
from app.onboarding.errors import (
    ConfigurationInvalid,
    ConfigurationMismatch,
    GoalPersistenceError,
    InvalidTransition,
)
from app.onboarding.factory import build_goal
from app.onboarding.gateway import GoalGateway
from app.onboarding.models import (
    CategoryConfiguration,
    Complete,
    ConfigurationSubmitted,
    DeviceId,
    Finalization,
    GoalCategory,
    GoalsChosen,
    OnboardingState,
    PairingSubmitted,
    PersistedGoal,
    Phase,
    ProfileSetup,
    Screen,
    ScreenDirective,
    UnitSystem,
    UserProfileDraft,
)
from app.onboarding.resolver import pending_categories, resolve_stage

logger = logging.getLogger(__name__)

_configuration_adapter: TypeAdapter = TypeAdapter(CategoryConfiguration)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_configuration(category: GoalCategory, payload: dict[str, Any] | BaseModel):
    """Validate a setup-form payload into the configuration type for ``category``.

    Raises ConfigurationInvalid; nothing downstream sees a malformed payload.
    """
    data = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
    claimed = data.get("category")
    if claimed is not None and claimed != category.value:
        raise ConfigurationInvalid(
            category.value,
            [{"loc": ["category"], "msg": f"payload is for {claimed}", "type": "category_mismatch"}],
        )
    data["category"] = category.value
    try:
        return _configuration_adapter.validate_python(data)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        raise ConfigurationInvalid(category.value, [dict(e) for e in errors]) from exc


class OnboardingOrchestrator:
    """Drives one user's onboarding state from external events.

    Processes one event at a time; callers must not re-enter it while an
    event is being handled (the HTTP layer holds a per-user lock).
    """

    def __init__(
        self,
        gateway: GoalGateway,
        state: OnboardingState | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        timeframe_weeks: int | None = None,
        default_unit_system: UnitSystem | None = None,
    ):
        self.gateway = gateway
        self.state = state if state is not None else OnboardingState()
        self._clock = clock
        self._timeframe_weeks = timeframe_weeks or settings.goal_timeframe_weeks
        self._default_units = default_unit_system or UnitSystem(settings.default_unit_system)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def directive(self) -> ScreenDirective:
        s = self.state
        return ScreenDirective(
            screen=s.screen,
            stage=s.stage,
            error=s.last_error,
            validation_errors=list(s.validation_errors),
        )

    @property
    def unit_system(self) -> UnitSystem:
        draft = self.state.draft
        return draft.unit_system(self._default_units) if draft else self._default_units

    # ------------------------------------------------------------------
    # Intro screens and profile entry
    # ------------------------------------------------------------------

    def advance_intro(self, skip_phone: bool = False) -> ScreenDirective:
        """Move welcome -> phone -> profile. ``skip_phone`` jumps straight to profile."""
        s = self.state
        if s.screen == Screen.welcome:
            s.screen = Screen.profile if skip_phone else Screen.phone
        elif s.screen == Screen.phone:
            s.screen = Screen.profile
        else:
            raise InvalidTransition(f"No intro step after {s.screen.value}")
        return self.directive()

    async def complete_profile(self, draft: UserProfileDraft) -> ScreenDirective:
        """Create the profile draft and open goal selection.

        Goals the user already has are loaded from the gateway so they are
        never set up or created a second time.
        """
        s = self.state
        if s.draft is not None:
            raise InvalidTransition("Profile already completed")

        existing = await self.gateway.list_goals()
        for goal in existing:
            if goal.category not in s.goals:
                s.goals[goal.category] = PersistedGoal(**goal.model_dump())
        draft.selected_goals = list(dict.fromkeys([*draft.selected_goals, *s.goals]))

        s.draft = draft
        s.phase = Phase.selecting_goals
        s.screen = Screen.goals
        s.stage = None
        logger.debug("Profile %s completed with %d existing goals", draft.id, len(existing))
        return self.directive()

    def reopen_goal_selection(self) -> ScreenDirective:
        """Return from the dashboard to goal selection to add more categories."""
        s = self.state
        if s.phase != Phase.done:
            raise InvalidTransition("Goal selection can only be reopened once onboarding is done")
        s.phase = Phase.selecting_goals
        s.screen = Screen.goals
        s.stage = None
        return self.directive()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def handle(self, event: GoalsChosen | PairingSubmitted | ConfigurationSubmitted) -> ScreenDirective:
        if isinstance(event, GoalsChosen):
            return await self.choose_goals(event.categories)
        if isinstance(event, PairingSubmitted):
            return await self.submit_pairing(event.category, event.devices)
        if isinstance(event, ConfigurationSubmitted):
            return await self.submit_configuration(event.category, event.configuration)
        raise InvalidTransition(f"Unsupported event: {type(event).__name__}")

    async def choose_goals(self, categories: Iterable[GoalCategory]) -> ScreenDirective:
        draft = self._require_draft()
        self._clear_errors()

        added = draft.add_goals([GoalCategory(c) for c in categories])
        if added:
            logger.debug("Goals chosen: %s", ", ".join(c.value for c in added))
        else:
            logger.debug("Goals chosen: nothing new")
        await self._advance()
        return self.directive()

    async def submit_pairing(self, category: GoalCategory, devices: Iterable[DeviceId]) -> ScreenDirective:
        category = GoalCategory(category)
        self._require_draft()
        self._clear_errors()
        if self._already_finalized(category, "pairing"):
            return self.directive()
        self._require_selected(category)
        if not catalog.supports_pairing(category):
            raise InvalidTransition(f"{category.value} has no pairing step")

        self.state.pairing[category] = list(dict.fromkeys(devices))
        logger.debug("Pairing for %s recorded (%d devices)", category.value, len(self.state.pairing[category]))
        await self._advance()
        return self.directive()

    async def submit_configuration(
        self,
        category: GoalCategory,
        configuration: dict[str, Any] | BaseModel,
    ) -> ScreenDirective:
        category = GoalCategory(category)
        s = self.state
        self._require_draft()
        self._clear_errors()
        if self._already_finalized(category, "configuration"):
            return self.directive()
        self._require_selected(category)
        if not catalog.requires_setup(category):
            raise InvalidTransition(f"{category.value} has no setup form")
        if catalog.supports_pairing(category) and category not in s.pairing:
            raise InvalidTransition(f"{category.value} pairing must be completed or skipped first")

        try:
            parsed = parse_configuration(category, configuration)
        except ConfigurationInvalid as exc:
            s.last_error = str(exc)
            s.validation_errors = exc.errors
            logger.warning("Rejected %s configuration: %d errors", category.value, len(exc.errors))
            raise

        s.configurations[category] = parsed
        try:
            await self._advance()
        except ConfigurationMismatch as exc:
            self._drop_configuration(category)
            rejected = ConfigurationInvalid(
                category.value,
                [{"loc": ["configuration"], "msg": str(exc), "type": "configuration_mismatch"}],
            )
            s.last_error = str(rejected)
            s.validation_errors = rejected.errors
            logger.warning("Rejected %s configuration at finalization: %s", category.value, exc)
            raise rejected from exc
        except Exception:
            self._drop_configuration(category)
            raise
        return self.directive()

    async def retry(self) -> ScreenDirective:
        """Re-run resolution, retrying any finalization that failed to persist."""
        self._require_draft()
        self._clear_errors()
        await self._advance()
        return self.directive()

    def abandon(self) -> ScreenDirective:
        """Leave the wizard. Unfinalized selections and working state are dropped; stored goals stay."""
        s = self.state
        draft = self._require_draft()
        dropped = pending_categories(draft.selected_goals, s.finalized)
        draft.selected_goals = [c for c in draft.selected_goals if c in s.goals]
        s.pairing = {c: d for c, d in s.pairing.items() if c in s.goals}
        s.configurations = {c: cfg for c, cfg in s.configurations.items() if c in s.goals}
        s.phase = Phase.done
        s.screen = Screen.main
        s.stage = None
        self._clear_errors()
        if dropped:
            logger.info("Onboarding abandoned; discarded %s", ", ".join(c.value for c in dropped))
        return self.directive()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _advance(self) -> None:
        s = self.state
        draft = self._require_draft()
        while True:
            stage = resolve_stage(draft.selected_goals, s.finalized, s.pairing, s.configurations)

            if isinstance(stage, Finalization):
                if await self._finalize(stage.category):
                    continue
                # Not stored: stay on this category until a retry succeeds.
                if catalog.requires_setup(stage.category):
                    stage = ProfileSetup(category=stage.category)
                s.phase = Phase.configuring
                s.screen = Screen.goal_setup
                s.stage = stage
                return

            if isinstance(stage, Complete):
                s.phase = Phase.done
                s.screen = Screen.main
                s.stage = stage
                logger.debug("Onboarding complete: %d goals", len(s.goals))
                return

            s.phase = Phase.configuring
            s.screen = Screen.goal_setup
            s.stage = stage
            logger.debug("Next stage: %s %s", stage.kind, stage.category.value)
            return

    async def _finalize(self, category: GoalCategory) -> bool:
        s = self.state
        configuration = s.configurations.get(category)
        goal = build_goal(
            category,
            configuration,
            created_at=self._clock(),
            unit_system=self.unit_system,
            provisional_id=None if configuration is not None else str(uuid.uuid4()),
            timeframe_weeks=self._timeframe_weeks,
        )
        try:
            persisted = await self.gateway.create_goal(goal)
        except GoalPersistenceError as exc:
            s.configurations.pop(category, None)
            s.last_error = str(exc)
            logger.warning("Finalizing %s failed: %s", category.value, exc)
            return False

        s.goals[category] = persisted
        if configuration is not None and persisted.id != configuration.goal_id:
            s.configurations[category] = configuration.model_copy(update={"goal_id": persisted.id})
        logger.info("Finalized %s goal %s (provisional %s)", category.value, persisted.id, goal.id)
        return True

    def _drop_configuration(self, category: GoalCategory) -> None:
        """Forget an unfinalized configuration and put its setup form back on screen."""
        s = self.state
        if category in s.goals:
            return
        s.configurations.pop(category, None)
        s.phase = Phase.configuring
        s.screen = Screen.goal_setup
        s.stage = ProfileSetup(category=category)

    def _require_draft(self) -> UserProfileDraft:
        if self.state.draft is None:
            raise InvalidTransition("Profile has not been completed yet")
        return self.state.draft

    def _require_selected(self, category: GoalCategory) -> None:
        if category not in self.state.draft.selected_goals:
            raise InvalidTransition(f"{category.value} is not a selected goal")

    def _already_finalized(self, category: GoalCategory, what: str) -> bool:
        if category in self.state.goals:
            logger.debug("Ignoring %s for finalized %s", what, category.value)
            return True
        return False

    def _clear_errors(self) -> None:
        self.state.last_error = None
        self.state.validation_errors = []
