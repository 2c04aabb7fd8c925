"""In-memory onboarding working state, one entry per user.

Pairing and configuration data only ever lives here; once a category is
finalized its Goal is in the database. Abandoning drops the user's entry
and a restart drops them all; only unfinished setup is lost, and the next
profile entry reloads stored goals from the gateway.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from app.onboarding.models import OnboardingState


@dataclass
class OnboardingSession:
    user_id: str
    state: OnboardingState = field(default_factory=OnboardingState)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)  # one event at a time, FIFO


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, OnboardingSession] = {}

    def get(self, user_id: str) -> OnboardingSession | None:
        return self._sessions.get(user_id)

    def get_or_create(self, user_id: str) -> OnboardingSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = OnboardingSession(user_id=user_id)
            self._sessions[user_id] = session
        return session

    def discard(self, user_id: str) -> OnboardingSession | None:
        return self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    return registry
