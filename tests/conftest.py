"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.onboarding.errors import GoalPersistenceError
from app.onboarding.models import Goal, GoalCategory, PersistedGoal
from app.onboarding.orchestrator import OnboardingOrchestrator
from app.onboarding.router import get_gateway
from app.onboarding.sessions import SessionRegistry, get_registry

FIXED_NOW = datetime(2026, 2, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fake persistence gateway (no real Postgres needed)
# ---------------------------------------------------------------------------

class FakeGoalGateway:
    """In-memory GoalGateway. Issues server ids ``srv-1``, ``srv-2``, ..."""

    def __init__(self, existing: list[Goal] | None = None):
        self.stored: list[PersistedGoal] = [PersistedGoal(**g.model_dump()) for g in existing or []]
        self.fail_categories: set[GoalCategory] = set()
        self.create_calls: list[Goal] = []

    async def create_goal(self, goal: Goal) -> PersistedGoal:
        self.create_calls.append(goal)
        if goal.category in self.fail_categories:
            raise GoalPersistenceError(f"Could not store {goal.category.value} goal")
        persisted = PersistedGoal(
            **goal.model_dump(exclude={"id"}),
            id=f"srv-{len(self.stored) + 1}",
            provisional_id=goal.id,
        )
        self.stored.append(persisted)
        return persisted

    async def list_goals(self) -> list[Goal]:
        return [Goal(**g.model_dump(exclude={"provisional_id"})) for g in self.stored]

    def categories(self) -> list[GoalCategory]:
        return [g.category for g in self.stored]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def gateway():
    return FakeGoalGateway()


@pytest.fixture()
def orchestrator(gateway):
    return OnboardingOrchestrator(gateway, clock=lambda: FIXED_NOW, timeframe_weeks=12)


@pytest.fixture()
def registry():
    return SessionRegistry()


@pytest.fixture()
def override_deps(gateway, registry):
    """Override the FastAPI dependencies so no real DB is needed."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_registry] = lambda: registry
    yield gateway
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_deps):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def make_goal(category: GoalCategory, goal_id: str = "existing-1") -> Goal:
    """Helper to build an already-persisted goal."""
    return Goal(
        id=goal_id,
        category=category,
        title=category.value.replace("_", " ").title(),
        icon="target",
        target_value=1.0,
        created_at=FIXED_NOW,
    )


WEIGHT_CONFIG = {"goal_id": "wm-1", "current_weight": 90.0, "target_weight": 80.0, "weekly_loss_rate": 0.5}
CARDIO_CONFIG = {"goal_id": "cardio-1", "fitness_objective": "fat_burn"}
STRENGTH_CONFIG = {
    "goal_id": "str-1",
    "fitness_level": "beginner",
    "primary_goal": "muscle_gain",
    "workout_frequency": 3,
}
SLEEP_CONFIG = {"goal_id": "sleep-1", "target_sleep_hours": 7.5}
STEPS_CONFIG = {"goal_id": "steps-1", "daily_step_target": 9000}
