"""Tests for the HTTP and WebSocket boundary, via FastAPI's TestClient."""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lumis_engine.adapters.device import AndroidLightAdapter, IosLuxAdapter
from lumis_engine.adapters.registry import AdapterRegistry
from lumis_engine.api.insights import create_insights_router
from lumis_engine.api.progress import create_progress_router
from lumis_engine.api.sessions import create_sessions_router
from lumis_engine.api.ws_telemetry import create_telemetry_router
from lumis_engine.store.user_store import UserStore

from tests.test_fusion import _half_credit_inputs, _inputs


# ── Helpers ──────────────────────────────────────────────────────────────────


@pytest.fixture
def client() -> TestClient:
    store = UserStore()
    registry = AdapterRegistry()
    registry.register(IosLuxAdapter())
    registry.register(AndroidLightAdapter())

    app = FastAPI()
    app.include_router(create_sessions_router(store))
    app.include_router(create_progress_router(store))
    app.include_router(create_telemetry_router(store, registry))
    app.include_router(create_insights_router())
    return TestClient(app)


def _window_body(minute: int, inputs=None, minutes: int = 1) -> dict:
    return {
        "started_at": f"2026-06-01T12:{minute:02d}:00Z",
        "ended_at": f"2026-06-01T12:{minute + minutes:02d}:00Z",
        "inputs": (inputs or _inputs()).model_dump(),
    }


def _start(client: TestClient, user: str = "ana") -> str:
    client.post(f"/api/users/{user}", json={"program_start": "2026-06-01"})
    resp = client.post(
        f"/api/users/{user}/sessions",
        json={"activity_type": "walk", "started_at": "2026-06-01T12:00:00Z"},
    )
    assert resp.status_code == 201
    return resp.json()["session_id"]


# ── Sessions ─────────────────────────────────────────────────────────────────


class TestSessionEndpoints:
    def test_start_and_fetch(self, client: TestClient) -> None:
        session_id = _start(client)
        resp = client.get(f"/api/users/ana/sessions/{session_id}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "running"
        assert resp.json()["activity_type"] == "walk"

    def test_unknown_session_is_404(self, client: TestClient) -> None:
        assert client.get(f"/api/users/ana/sessions/{uuid4()}").status_code == 404

    def test_invalid_activity_is_422(self, client: TestClient) -> None:
        resp = client.post("/api/users/ana/sessions", json={"activity_type": "teleport"})
        assert resp.status_code == 422

    def test_window_credits_and_meets_goal(self, client: TestClient) -> None:
        session_id = _start(client)
        url = f"/api/users/ana/sessions/{session_id}/windows"

        first = client.post(url, json=_window_body(0, _half_credit_inputs())).json()
        assert first["credit_rate"] == 0.5
        assert first["credited_minutes"] == 0.5
        assert first["goal_met"] is None

        second = client.post(url, json=_window_body(1, minutes=2)).json()
        assert second["day_credited_minutes"] == 2.5
        assert second["goal_met"]["day"] == "2026-06-01"
        assert second["newly_unlocked"] == ["first_goal"]
        assert second["explanation"].startswith("Strong outdoor signal")

    def test_stale_window_is_409(self, client: TestClient) -> None:
        session_id = _start(client)
        url = f"/api/users/ana/sessions/{session_id}/windows"
        assert client.post(url, json=_window_body(5)).status_code == 200
        assert client.post(url, json=_window_body(0)).status_code == 409

    def test_overlapping_window_is_409(self, client: TestClient) -> None:
        session_id = _start(client)
        url = f"/api/users/ana/sessions/{session_id}/windows"
        assert client.post(url, json=_window_body(0, minutes=2)).status_code == 200
        assert client.post(url, json=_window_body(1, minutes=3)).status_code == 409
        assert client.post(url, json=_window_body(2)).status_code == 200

    def test_backwards_window_is_422(self, client: TestClient) -> None:
        session_id = _start(client)
        body = _window_body(5)
        body["ended_at"] = "2026-06-01T12:00:00Z"
        resp = client.post(f"/api/users/ana/sessions/{session_id}/windows", json=body)
        assert resp.status_code == 422

    def test_complete_then_cancel_is_409(self, client: TestClient) -> None:
        session_id = _start(client)
        base = f"/api/users/ana/sessions/{session_id}"
        assert client.post(f"{base}/complete").json()["status"] == "completed"
        assert client.post(f"{base}/cancel").status_code == 409
        assert client.post(f"{base}/windows", json=_window_body(0)).status_code == 409

    def test_close_without_samples_is_400(self, client: TestClient) -> None:
        session_id = _start(client)
        resp = client.post(
            f"/api/users/ana/sessions/{session_id}/windows/close",
            json={"location": {"latitude": 51.5, "longitude": -0.13}},
        )
        assert resp.status_code == 400


# ── Progress ─────────────────────────────────────────────────────────────────


class TestProgressEndpoints:
    def test_progress_snapshot(self, client: TestClient) -> None:
        _start(client)
        snap = client.get("/api/users/ana/progress").json()
        assert snap["days_in_program"] == 1
        assert snap["progress"]["goal_minutes_required"] == 2
        assert snap["next_milestone"]["next_level"] == "Building Momentum"
        assert snap["streak"]["current_streak"] == 0

    def test_rollover_extends_streak(self, client: TestClient) -> None:
        session_id = _start(client)
        client.post(
            f"/api/users/ana/sessions/{session_id}/windows",
            json=_window_body(0, minutes=3),
        )
        resp = client.post("/api/users/ana/rollover", json={"new_day": "2026-06-02"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["streak"]["current_streak"] == 1
        assert body["progress"]["date"] == "2026-06-02"

    def test_emergency_unlock(self, client: TestClient) -> None:
        assert client.post("/api/users/ana/emergency-unlock").status_code == 204

    def test_unknown_timezone_is_400(self, client: TestClient) -> None:
        resp = client.post("/api/users/ana", json={"timezone": "Mars/Olympus"})
        assert resp.status_code == 400

    def test_achievements_listing(self, client: TestClient) -> None:
        body = client.get("/api/users/ana/achievements").json()
        assert body["total"] == 18
        assert body["unlocked"] == 0
        streaks = client.get("/api/users/ana/achievements", params={"category": "streak"}).json()
        assert streaks["total"] == 5
        assert body["by_category"]["streak"] == 0

    def test_unknown_category_is_400(self, client: TestClient) -> None:
        resp = client.get("/api/users/ana/achievements", params={"category": "karma"})
        assert resp.status_code == 400


# ── Insights ─────────────────────────────────────────────────────────────────


class TestInsightEndpoints:
    def test_vitamin_d(self, client: TestClient) -> None:
        body = client.get(
            "/api/insights/vitamin-d", params={"uv_index": 5, "minutes": 20, "skin_type": 1}
        ).json()
        assert body["iu"] == 1000

    def test_vitamin_d_defaults_skin_type(self, client: TestClient) -> None:
        body = client.get("/api/insights/vitamin-d", params={"uv_index": 5, "minutes": 20}).json()
        assert body["skin_type"] == 2
        assert body["iu"] == 833

    def test_environment(self, client: TestClient) -> None:
        body = client.get("/api/insights/environment", params={"lux": 5}).json()
        assert body["status"] == "night"
        assert body["lux_anomalous"] is False
        assert body["pocket_pattern"] is False

    def test_environment_sudden_darkness(self, client: TestClient) -> None:
        body = client.get(
            "/api/insights/environment", params={"lux": 10, "recent": [2000, 2100, 1900]}
        ).json()
        assert body["lux_anomalous"] is True

    def test_environment_pocket_pattern(self, client: TestClient) -> None:
        body = client.get(
            "/api/insights/environment",
            params={"lux": 300, "is_moving": True, "recent": [5] * 10},
        ).json()
        assert body["pocket_pattern"] is True

    def test_light_quality(self, client: TestClient) -> None:
        body = client.get(
            "/api/insights/light-quality",
            params={
                "lux": 12000,
                "latitude": 51.5,
                "longitude": -0.13,
                "at": "2026-06-21T04:15:00Z",
            },
        ).json()
        assert body["score"] == 100
        assert body["label"] == "Biological Gold"


# ── Telemetry socket ─────────────────────────────────────────────────────────


class TestTelemetrySocket:
    def test_samples_then_close(self, client: TestClient) -> None:
        session_id = _start(client)
        with client.websocket_connect(f"/ws/telemetry/ana/{session_id}") as ws:
            ws.send_json({
                "type": "sample",
                "source_type": "ios_lux",
                "lux": 20000,
                "steps": 100,
                "previous_steps": 0,
                "timestamp": "2026-06-01T12:00:30Z",
            })
            reply = ws.receive_json()
            assert reply == {"status": "buffered", "pending_samples": 1}

            ws.send_json({
                "type": "close",
                "location": {"latitude": 51.5, "longitude": -0.13},
                "ended_at": "2026-06-01T12:01:00Z",
            })
            reply = ws.receive_json()
            assert reply["status"] == "accepted"
            assert "credit_rate" in reply

    def test_window_message(self, client: TestClient) -> None:
        session_id = _start(client)
        with client.websocket_connect(f"/ws/telemetry/ana/{session_id}") as ws:
            ws.send_json({"type": "window", **_window_body(0)})
            reply = ws.receive_json()
            assert reply["status"] == "accepted"
            assert reply["credit_rate"] == 1.0

    def test_errors_keep_socket_open(self, client: TestClient) -> None:
        session_id = _start(client)
        with client.websocket_connect(f"/ws/telemetry/ana/{session_id}") as ws:
            ws.send_json({"type": "sample", "source_type": "garmin"})
            assert ws.receive_json()["reason"] == "no_adapter"

            ws.send_json({"type": "sample", "source_type": "ios_lux", "timestamp": "2026-06-01T12:00:00Z"})
            assert ws.receive_json()["reason"] == "adaptation_failed"

            ws.send_json({"type": "teleport"})
            assert ws.receive_json()["reason"] == "unknown_type"

            ws.send_json({"type": "window", **_window_body(5)})
            assert ws.receive_json()["status"] == "accepted"
            ws.send_json({"type": "window", **_window_body(0)})
            assert ws.receive_json()["reason"] == "stale_window"

    def test_unknown_session(self, client: TestClient) -> None:
        with client.websocket_connect(f"/ws/telemetry/ana/{uuid4()}") as ws:
            ws.send_json({"type": "window", **_window_body(0)})
            assert ws.receive_json()["reason"] == "session_not_found"
