"""REST endpoints for the session lifecycle and window submission.

Paths (all under /api/users/{user_id}):
    POST /sessions                                 start a session
    GET  /sessions/{session_id}                    session summary
    POST /sessions/{session_id}/windows            apply a summarised window
    POST /sessions/{session_id}/windows/close      summarise buffered samples
    POST /sessions/{session_id}/complete
    POST /sessions/{session_id}/cancel

Closed sessions and stale windows map to 409; unknown sessions to 404.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from lumis_engine.core.fusion import explain_confidence
from lumis_engine.core.session_engine import SessionClosedError, StaleWindowError
from lumis_engine.domain.session import EvaluationWindow
from lumis_engine.models.requests import (
    ClosePendingWindowRequest,
    StartSessionRequest,
    WindowRequest,
)
from lumis_engine.store.user_store import SessionNotFoundError, UserStore, WindowReceipt

logger = logging.getLogger(__name__)


def receipt_payload(receipt: WindowReceipt) -> dict[str, Any]:
    """JSON shape shared by the REST and WebSocket window paths."""
    outcome = receipt.outcome
    event = outcome.goal_met_event
    return {
        "score": outcome.result.score,
        "credit_rate": outcome.result.credit_rate,
        "warnings": list(outcome.result.warnings),
        "explanation": explain_confidence(outcome.result),
        "credited_minutes": round(outcome.credited_minutes, 4),
        "session_credited_minutes": round(outcome.session_credited_minutes, 4),
        "day_credited_minutes": round(outcome.day_credited_minutes, 4),
        "goal_met": event.model_dump(mode="json") if event else None,
        "newly_unlocked": [a.id for a in receipt.newly_unlocked],
    }


def create_sessions_router(store: UserStore) -> APIRouter:
    """Factory that wires session endpoints to a concrete UserStore."""

    router = APIRouter(prefix="/api/users/{user_id}/sessions", tags=["sessions"])

    @router.post("", status_code=201)
    async def start_session(user_id: str, body: StartSessionRequest) -> dict[str, Any]:
        session = await store.start_session(user_id, body.activity_type, body.started_at)
        return session.summary()

    @router.get("/{session_id}")
    async def get_session(user_id: str, session_id: UUID) -> dict[str, Any]:
        try:
            session = await store.get_session(user_id, session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return session.summary()

    @router.post("/{session_id}/windows")
    async def submit_window(
        user_id: str,
        session_id: UUID,
        body: WindowRequest,
    ) -> dict[str, Any]:
        try:
            window = EvaluationWindow.model_validate(body.model_dump())
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        try:
            receipt = await store.submit_window(user_id, session_id, window)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except (SessionClosedError, StaleWindowError) as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return receipt_payload(receipt)

    @router.post("/{session_id}/windows/close")
    async def close_pending_window(
        user_id: str,
        session_id: UUID,
        body: ClosePendingWindowRequest,
    ) -> dict[str, Any]:
        try:
            receipt = await store.close_pending_window(
                user_id,
                session_id,
                body.location,
                ended_at=body.ended_at,
                cloud_cover_percent=body.cloud_cover_percent,
            )
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except (SessionClosedError, StaleWindowError) as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return receipt_payload(receipt)

    @router.post("/{session_id}/complete")
    async def complete_session(user_id: str, session_id: UUID) -> dict[str, Any]:
        try:
            session = await store.complete_session(user_id, session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except SessionClosedError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return session.summary()

    @router.post("/{session_id}/cancel")
    async def cancel_session(user_id: str, session_id: UUID) -> dict[str, Any]:
        try:
            session = await store.cancel_session(user_id, session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except SessionClosedError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return session.summary()

    return router
