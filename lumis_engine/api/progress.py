"""REST endpoints for users, daily progress, streaks and achievements.

Paths:
    POST /api/users/{user_id}                   register (idempotent)
    GET  /api/users/{user_id}/progress          progress + streak snapshot
    POST /api/users/{user_id}/rollover          close the day, open the next
    POST /api/users/{user_id}/emergency-unlock
    GET  /api/users/{user_id}/achievements
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, HTTPException

from lumis_engine.core import achievement_engine
from lumis_engine.domain.enums import AchievementCategory
from lumis_engine.models.requests import RegisterUserRequest, RolloverRequest
from lumis_engine.store.user_store import UserStore

logger = logging.getLogger(__name__)


def create_progress_router(store: UserStore) -> APIRouter:
    """Factory that wires progression endpoints to a concrete UserStore."""

    router = APIRouter(prefix="/api/users/{user_id}", tags=["progress"])

    @router.post("", status_code=201)
    async def register_user(
        user_id: str,
        body: Optional[RegisterUserRequest] = None,
    ) -> dict[str, Any]:
        body = body or RegisterUserRequest()
        tz = None
        if body.timezone:
            try:
                tz = ZoneInfo(body.timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise HTTPException(status_code=400, detail=f"Unknown timezone {body.timezone!r}") from exc
        user = await store.register(user_id, body.program_start, tz)
        return {"user_id": user.user_id, "program_start": user.program_start.isoformat()}

    @router.get("/progress")
    async def get_progress(user_id: str) -> dict[str, Any]:
        return await store.snapshot(user_id)

    @router.post("/rollover")
    async def roll_over(user_id: str, body: RolloverRequest) -> dict[str, Any]:
        streak = await store.roll_over_day(user_id, body.new_day)
        return {
            "streak": streak.model_dump(mode="json"),
            "progress": (await store.snapshot(user_id))["progress"],
        }

    @router.post("/emergency-unlock", status_code=204)
    async def emergency_unlock(user_id: str) -> None:
        await store.record_emergency_unlock(user_id)

    @router.get("/achievements")
    async def get_achievements(user_id: str, category: Optional[str] = None) -> dict[str, Any]:
        achievements = await store.achievements(user_id)
        grouped = achievement_engine.by_category(achievements)
        total = achievement_engine.total_count()
        if category is not None:
            try:
                wanted = AchievementCategory(category.lower())
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=f"Unknown category {category!r}") from exc
            achievements = grouped[wanted]
            total = len(achievements)
        return {
            "achievements": [a.model_dump(mode="json") for a in achievements],
            "unlocked": achievement_engine.unlocked_count(achievements),
            "total": total,
            "by_category": {
                c.value: achievement_engine.unlocked_count(items) for c, items in grouped.items()
            },
        }

    return router
