"""Bearer token handling across the whole route table."""

from __future__ import annotations

import logging

import pytest

from roadamico_api.app.core.security import create_access_token


ROUTES = [
    ("GET", "/api/lists", None),
    ("GET", "/api/lists/1", None),
    ("POST", "/api/lists", {"name": "Coffee"}),
    ("PUT", "/api/lists/1", {"name": "Coffee"}),
    ("DELETE", "/api/lists/1", None),
    ("GET", "/api/events", None),
    ("GET", "/api/events/1", None),
    ("POST", "/api/events", {"name": "Ride", "place": 1}),
    ("PUT", "/api/events/1", {"name": "Ride"}),
    ("POST", "/api/events/1/cancel", None),
    ("POST", "/api/events/1/join", None),
    ("POST", "/api/events/1/unjoin", None),
    ("POST", "/api/events/1/messages", {"text": "hi"}),
    ("GET", "/api/places/1/events", None),
    ("GET", "/api/notifications", None),
]


def _ids(route):
    method, path, _ = route
    return f"{method} {path}"


class TestInvalidToken:
    @pytest.mark.parametrize("route", ROUTES, ids=[_ids(r) for r in ROUTES])
    def test_garbage_token_is_401(self, client, seed, route):
        method, path, body = route
        resp = client.request(method, path, json=body, headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid or expired token"
        assert resp.headers["www-authenticate"] == "Bearer"

    @pytest.mark.parametrize("route", ROUTES, ids=[_ids(r) for r in ROUTES])
    def test_token_for_unknown_user_is_401(self, client, seed, route):
        method, path, body = route
        token = create_access_token({"sub": "ghost@example.com"})
        resp = client.request(method, path, json=body, headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "User no longer exists"

    def test_rejections_are_logged(self, client, seed, caplog):
        with caplog.at_level(logging.WARNING, logger="roadamico_api.app.core.security"):
            client.get("/api/events", headers={"Authorization": "Bearer not.a.token"})
            token = create_access_token({"sub": "ghost@example.com"})
            client.get("/api/events", headers={"Authorization": f"Bearer {token}"})
        assert "Rejected invalid or expired bearer token" in caplog.text
        assert "Rejected token for unknown user ghost@example.com" in caplog.text

    def test_anonymous_reads_still_allowed(self, client, seed):
        assert client.get("/api/lists").status_code == 200
        assert client.get("/api/events").status_code == 200
        assert client.get(f"/api/places/{seed.places['cafe']}/events").status_code == 200
