"""Goal persistence gateway — async access to the goals table.

Table columns: id (uuid, server default), user_id, category, title,
description, icon, target_value, current_value, target_timeframe, is_active,
created_at, client_id. ``client_id`` keeps the provisional id the client
generated so both sides can be reconciled.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.onboarding.errors import GoalPersistenceError
from app.onboarding.models import Goal, GoalCategory, PersistedGoal

logger = logging.getLogger(__name__)

_GOAL_COLUMNS = (
    "id, category, title, description, icon, target_value, current_value, "
    "target_timeframe, is_active, created_at"
)


class GoalGateway(Protocol):
    async def create_goal(self, goal: Goal) -> PersistedGoal:
        """Store ``goal``. Raises GoalPersistenceError on failure."""
        ...

    async def list_goals(self) -> list[Goal]:
        ...


def _row_to_goal(row: dict[str, Any]) -> Goal:
    return Goal(
        id=str(row["id"]),
        category=GoalCategory(row["category"]),
        title=row["title"],
        description=row.get("description") or "",
        icon=row["icon"],
        target_value=row.get("target_value"),
        current_value=row.get("current_value") or 0.0,
        timeframe_weeks=row.get("target_timeframe") or 12,
        is_active=bool(row.get("is_active", True)),
        created_at=row["created_at"],
    )


class SqlGoalGateway:
    """GoalGateway over an AsyncSession, scoped to one user."""

    def __init__(self, session: AsyncSession, user_id: str):
        self.session = session
        self.user_id = user_id

    async def create_goal(self, goal: Goal) -> PersistedGoal:
        query = (
            "INSERT INTO goals (user_id, client_id, category, title, description, icon, "
            "target_value, current_value, target_timeframe, is_active, created_at) "
            "VALUES (:user_id, :client_id, :category, :title, :description, :icon, "
            ":target_value, :current_value, :target_timeframe, :is_active, :created_at) "
            "RETURNING id, created_at"
        )
        params = {
            "user_id": self.user_id,
            "client_id": goal.id,
            "category": goal.category.value,
            "title": goal.title,
            "description": goal.description,
            "icon": goal.icon,
            "target_value": goal.target_value,
            "current_value": goal.current_value,
            "target_timeframe": goal.timeframe_weeks,
            "is_active": goal.is_active,
            "created_at": goal.created_at,
        }
        try:
            result = await self.session.execute(text(query), params)
            row = result.fetchone()
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise GoalPersistenceError(f"Could not store {goal.category.value} goal") from exc

        if row is None:
            raise GoalPersistenceError(f"No id returned for {goal.category.value} goal")
        server_id, created_at = row[0], row[1]
        return PersistedGoal(
            **goal.model_dump(exclude={"id", "created_at"}),
            id=str(server_id),
            created_at=created_at or goal.created_at,
            provisional_id=goal.id,
        )

    async def list_goals(self) -> list[Goal]:
        """Return the user's goals, oldest first. Rows with an unrecognised category are skipped."""
        query = (
            f"SELECT {_GOAL_COLUMNS} FROM goals "
            "WHERE user_id = :user_id ORDER BY created_at"
        )
        try:
            result = await self.session.execute(text(query), {"user_id": self.user_id})
        except SQLAlchemyError as exc:
            raise GoalPersistenceError("Could not list goals") from exc

        columns = list(result.keys())
        goals: list[Goal] = []
        for values in result.fetchall():
            row = dict(zip(columns, values))
            try:
                goals.append(_row_to_goal(row))
            except ValueError:
                logger.warning("Skipping goal %s with unknown category %r", row.get("id"), row.get("category"))
        return goals
