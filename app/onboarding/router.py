"""Onboarding HTTP router — profile entry, goal selection, pairing, setup."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import verify_api_key
from app.db import get_session
from app.onboarding import catalog
from app.onboarding.gateway import GoalGateway, SqlGoalGateway
from app.onboarding.models import (
    DeviceId,
    Goal,
    GoalCategory,
    GoalsChosen,
    OnboardingEvent,
    ScreenDirective,
    UnitSystem,
    UserProfileDraft,
)
from app.onboarding.orchestrator import OnboardingOrchestrator
from app.onboarding.sessions import OnboardingSession, SessionRegistry, get_registry

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


class ProfileEntry(BaseModel):
    phone: str | None = None
    weight: float | None = Field(default=None, gt=0)
    weight_unit: Literal["kg", "pounds"] | None = None
    height: float | None = Field(default=None, gt=0)
    height_unit: Literal["cm", "feet"] | None = None
    age: int | None = Field(default=None, ge=0, le=130)
    gender: Literal["male", "female", "other"] | None = None


class PairingEntry(BaseModel):
    devices: list[DeviceId] = Field(default_factory=list)


class EventEnvelope(BaseModel):
    event: OnboardingEvent


def get_gateway(user_id: str, session: AsyncSession = Depends(get_session)) -> GoalGateway:
    return SqlGoalGateway(session, user_id)


def _session_or_404(registry: SessionRegistry, user_id: str) -> OnboardingSession:
    session = registry.get(user_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"No onboarding in progress for {user_id}")
    return session


async def _run(
    session: OnboardingSession,
    gateway: GoalGateway,
    step: Callable[[OnboardingOrchestrator], Awaitable[ScreenDirective] | ScreenDirective],
) -> ScreenDirective:
    async with session.lock:
        orchestrator = OnboardingOrchestrator(gateway, session.state)
        result = step(orchestrator)
        if isinstance(result, ScreenDirective):
            return result
        return await result


# ---------------------------------------------------------------------------
# /onboarding/catalog
# ---------------------------------------------------------------------------


@router.get("/catalog")
async def catalog_list(
    _: str = Depends(verify_api_key),
    unit_system: UnitSystem = Query(default=UnitSystem.metric),
) -> list[dict]:
    return [
        {
            "category": m.category.value,
            "title": m.title,
            "description": m.description,
            "icon": m.icon,
            "default_target": m.default_target,
            "supports_pairing": catalog.supports_pairing(m.category),
            "requires_setup": catalog.requires_setup(m.category),
        }
        for m in catalog.list_categories(unit_system)
    ]


# ---------------------------------------------------------------------------
# /onboarding/{user_id}
# ---------------------------------------------------------------------------


@router.get("/{user_id}")
async def onboarding_status(
    user_id: str,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    session = _session_or_404(registry, user_id)
    state = session.state
    directive = ScreenDirective(
        screen=state.screen,
        stage=state.stage,
        error=state.last_error,
        validation_errors=state.validation_errors,
    )
    return {
        "directive": directive.model_dump(mode="json"),
        "phase": state.phase.value if state.phase else None,
        "draft": state.draft.model_dump(mode="json") if state.draft else None,
        "goals": [g.model_dump(mode="json") for g in state.goals.values()],
    }


@router.post("/{user_id}/intro", response_model=ScreenDirective)
async def onboarding_intro(
    user_id: str,
    _: str = Depends(verify_api_key),
    skip_phone: bool = Query(default=False),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = registry.get_or_create(user_id)
    return await _run(session, gateway, lambda o: o.advance_intro(skip_phone=skip_phone))


@router.post("/{user_id}/profile", response_model=ScreenDirective)
async def onboarding_profile(
    user_id: str,
    entry: ProfileEntry,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = registry.get_or_create(user_id)
    draft = UserProfileDraft(id=user_id, **entry.model_dump())
    return await _run(session, gateway, lambda o: o.complete_profile(draft))


@router.post("/{user_id}/goals", response_model=ScreenDirective)
async def onboarding_goals(
    user_id: str,
    event: GoalsChosen,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    return await _run(session, gateway, lambda o: o.choose_goals(event.categories))


@router.post("/{user_id}/pairing/{category}", response_model=ScreenDirective)
async def onboarding_pairing(
    user_id: str,
    category: GoalCategory,
    entry: PairingEntry,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    return await _run(session, gateway, lambda o: o.submit_pairing(category, entry.devices))


@router.post("/{user_id}/configuration/{category}", response_model=ScreenDirective)
async def onboarding_configuration(
    user_id: str,
    category: GoalCategory,
    payload: dict[str, Any] = Body(...),
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    return await _run(session, gateway, lambda o: o.submit_configuration(category, payload))


@router.post("/{user_id}/events", response_model=ScreenDirective)
async def onboarding_event(
    user_id: str,
    envelope: EventEnvelope,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    return await _run(session, gateway, lambda o: o.handle(envelope.event))


@router.post("/{user_id}/retry", response_model=ScreenDirective)
async def onboarding_retry(
    user_id: str,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    return await _run(session, gateway, lambda o: o.retry())


@router.post("/{user_id}/reopen", response_model=ScreenDirective)
async def onboarding_reopen(
    user_id: str,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    return await _run(session, gateway, lambda o: o.reopen_goal_selection())


@router.delete("/{user_id}", response_model=ScreenDirective)
async def onboarding_abandon(
    user_id: str,
    _: str = Depends(verify_api_key),
    registry: SessionRegistry = Depends(get_registry),
    gateway: GoalGateway = Depends(get_gateway),
) -> ScreenDirective:
    session = _session_or_404(registry, user_id)
    directive = await _run(session, gateway, lambda o: o.abandon())
    registry.discard(user_id)
    return directive


@router.get("/{user_id}/goals", response_model=list[Goal])
async def onboarding_goal_list(
    user_id: str,
    _: str = Depends(verify_api_key),
    gateway: GoalGateway = Depends(get_gateway),
) -> list[Goal]:
    return await gateway.list_goals()
