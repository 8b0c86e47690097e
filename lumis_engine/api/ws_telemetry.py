"""WebSocket endpoint for live session telemetry.

Path: /ws/telemetry/{user_id}/{session_id}

Each JSON message carries a "type":
    sample   raw platform payload; routed through the AdapterRegistry and
             buffered on the session
    window   a pre-summarised evaluation window; applied immediately
    close    summarise the buffered samples into a window at "location"

Every message gets exactly one reply.  Failures are reported as
{"status": "error", ...} and the socket stays open.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from lumis_engine.adapters.registry import (
    AdaptationError,
    AdapterRegistry,
    NoAdapterFoundError,
)
from lumis_engine.api.sessions import receipt_payload
from lumis_engine.core.session_engine import SessionClosedError, StaleWindowError
from lumis_engine.domain.session import EvaluationWindow
from lumis_engine.models.requests import ClosePendingWindowRequest
from lumis_engine.store.user_store import SessionNotFoundError, UserStore

logger = logging.getLogger(__name__)


def _error(reason: str, detail: str, **extra: Any) -> dict[str, Any]:
    return {"status": "error", "reason": reason, "detail": detail, **extra}


def create_telemetry_router(store: UserStore, registry: AdapterRegistry) -> APIRouter:
    """Factory that wires the telemetry socket to store + adapter registry."""

    router = APIRouter()

    async def _handle(user_id: str, session_id: UUID, message: dict[str, Any]) -> dict[str, Any]:
        kind = message.get("type")

        if kind == "sample":
            try:
                sample = registry.adapt(message)
            except NoAdapterFoundError as exc:
                return _error("no_adapter", str(exc))
            except AdaptationError as exc:
                return _error("adaptation_failed", exc.reason, adapter=exc.adapter_name)
            pending = await store.record_sample(user_id, session_id, sample)
            return {"status": "buffered", "pending_samples": pending}

        if kind == "window":
            try:
                window = EvaluationWindow.model_validate(message)
            except ValidationError as exc:
                return _error("invalid_window", str(exc))
            receipt = await store.submit_window(user_id, session_id, window)
            return {"status": "accepted", **receipt_payload(receipt)}

        if kind == "close":
            try:
                body = ClosePendingWindowRequest.model_validate(message)
            except ValidationError as exc:
                return _error("invalid_close", str(exc))
            try:
                receipt = await store.close_pending_window(
                    user_id,
                    session_id,
                    body.location,
                    ended_at=body.ended_at,
                    cloud_cover_percent=body.cloud_cover_percent,
                )
            except ValueError as exc:
                return _error("empty_window", str(exc))
            return {"status": "accepted", **receipt_payload(receipt)}

        return _error("unknown_type", f"Unsupported message type {kind!r}")

    @router.websocket("/ws/telemetry/{user_id}/{session_id}")
    async def telemetry(websocket: WebSocket, user_id: str, session_id: UUID) -> None:
        await websocket.accept()
        logger.info("Telemetry connected for %s / %s", user_id, session_id)

        try:
            while True:
                message = await websocket.receive_json()
                if not isinstance(message, dict):
                    await websocket.send_json(_error("malformed", "Expected a JSON object"))
                    continue

                try:
                    reply = await _handle(user_id, session_id, message)
                except SessionNotFoundError as exc:
                    reply = _error("session_not_found", str(exc))
                except SessionClosedError as exc:
                    reply = _error("session_closed", str(exc))
                except StaleWindowError as exc:
                    reply = _error("stale_window", str(exc))
                await websocket.send_json(reply)

        except WebSocketDisconnect:
            logger.info("Telemetry disconnected for %s / %s", user_id, session_id)

    return router
