# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Tests for the relay HTTP API — /event, /cli/{source}, /health, headers and limits."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app

pytestmark = pytest.mark.unit


@pytest.fixture
def app():
    return create_app(Settings(_env_file=None))


@pytest.fixture
def client(app):
    return TestClient(app)


class TestPostEvent:
    def test_message_event(self, client):
        resp = client.post("/event", json={"type": "message"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "xp": 10, "source": "unknown"}

    def test_source_override(self, client):
        resp = client.post("/event", json={"type": "message", "source": "codex"})
        assert resp.json()["xp"] == 12
        assert resp.json()["source"] == "codex"

    def test_tool_bonus(self, client):
        resp = client.post("/event", json={"type": "tool_use", "data": {"tool": "Bash"}})
        assert resp.json()["xp"] == 10

    def test_invalid_type_is_400(self, client):
        resp = client.post("/event", json={"type": "drop_tables"})
        assert resp.status_code == 400
        assert "Invalid event type" in resp.json()["detail"]

    def test_invalid_source_is_400(self, client):
        assert client.post("/event", json={"source": "notepad"}).status_code == 400

    def test_malformed_json_is_400(self, client):
        resp = client.post("/event", content=b"{nope", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_non_object_is_400(self, client):
        assert client.post("/event", json=42).status_code == 400

    def test_array_body_prices_as_unknown(self, client):
        resp = client.post("/event", json=[1, 2, 3])
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "xp": 5, "source": "unknown"}

    def test_oversize_body_is_413(self, client):
        body = json.dumps({"type": "message", "pad": "x" * 2000})
        resp = client.post("/event", content=body, headers={"Content-Type": "application/json"})
        assert resp.status_code == 413

    def test_empty_body_defaults_to_unknown(self, client):
        resp = client.post("/event")
        assert resp.status_code == 200
        assert resp.json()["xp"] == 5


class TestPostCli:
    def test_known_source(self, client):
        resp = client.post("/cli/claude", json={"action": "commit"})
        assert resp.json() == {"success": True, "xp": 15, "source": "claude"}

    def test_unknown_source_is_400(self, client):
        assert client.post("/cli/emacs", json={}).status_code == 400

    def test_without_body(self, client):
        assert client.post("/cli/gemini").json()["xp"] == 12


class TestHealth:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["clients"] == 0
        assert data["uptime"] >= 0


class TestHeaders:
    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["Referrer-Policy"] == "no-referrer"

    def test_security_headers_on_errors(self, client):
        resp = client.post("/event", json={"type": "bogus"})
        assert resp.headers["X-Frame-Options"] == "DENY"

    def test_cors_allows_game_origin_only(self, client):
        ok = client.options("/event", headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        })
        assert ok.headers["access-control-allow-origin"] == "http://localhost:5173"
        bad = client.options("/event", headers={
            "Origin": "http://evil.example",
            "Access-Control-Request-Method": "POST",
        })
        assert "access-control-allow-origin" not in bad.headers


class TestBroadcastDelivery:
    def test_event_reaches_websocket_clients(self, client):
        with client.websocket_connect("/ws") as ws:
            assert client.get("/health").json()["clients"] == 1
            client.post("/event", json={"type": "task_complete", "source": "claude"})
            msg = ws.receive_json()
        assert msg["type"] == "task_complete"
        assert msg["amount"] == 15
        assert msg["sourceName"] == "CLAUDE"
        assert msg["sourceColor"] == "#00ffff"
        assert isinstance(msg["timestamp"], int)

    def test_root_websocket_path(self, client):
        with client.websocket_connect("/") as ws:
            client.post("/cli/codex", json={})
            msg = ws.receive_json()
        assert msg["type"] == "activity"
        assert msg["amount"] == 12
