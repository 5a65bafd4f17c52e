"""Shared fixtures for the RoadAmico API test suite.

Every test gets a fresh SQLite file with the migrations applied and a
small cast of users, groups and places:

* ``admin`` (role admin) and ``curator`` (role curator);
* ``alice`` administers the "Riders" group;
* ``bob`` is a member of "Riders";
* ``carol`` and ``dave`` are plain users without groups.
"""

from __future__ import annotations

import json
from typing import Dict

import pytest
from starlette.testclient import TestClient

from roadamico_api.app.core.config import settings
from roadamico_api.app.core.db import get_connection, init_db
from roadamico_api.app.core.security import create_access_token
from roadamico_api.app.main import app


USERS = {
    "admin": ("admin@example.com", "Ada Admin", "admin"),
    "curator": ("curator@example.com", "Cora Curator", "curator"),
    "alice": ("alice@example.com", "Alice", "user"),
    "bob": ("bob@example.com", "Bob", "user"),
    "carol": ("carol@example.com", "Carol", "user"),
    "dave": ("dave@example.com", "Dave", "user"),
}


class Seed:
    """Ids of the seeded rows plus helpers to build auth headers."""

    def __init__(self) -> None:
        self.users: Dict[str, int] = {}
        self.groups: Dict[str, int] = {}
        self.places: Dict[str, int] = {}

    def headers(self, who: str) -> Dict[str, str]:
        email = USERS[who][0]
        return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}

    def user_id(self, who: str) -> int:
        return self.users[who]


@pytest.fixture
def db(tmp_path, monkeypatch) -> str:
    path = str(tmp_path / "roadamico-test.db")
    monkeypatch.setattr(settings, "database_url", path)
    init_db()
    return path


@pytest.fixture
def seed(db) -> Seed:
    data = Seed()
    conn = get_connection()
    try:
        cur = conn.cursor()
        for key, (email, name, role) in USERS.items():
            cur.execute("INSERT INTO users (email, name, role) VALUES (?, ?, ?)", (email, name, role))
            data.users[key] = cur.lastrowid
        cur.execute(
            "INSERT INTO groups (name, administrator_id) VALUES (?, ?)",
            ("Riders", data.users["alice"]),
        )
        data.groups["riders"] = cur.lastrowid
        cur.execute("INSERT INTO groups (name, administrator_id) VALUES (?, NULL)", ("Hikers",))
        data.groups["hikers"] = cur.lastrowid
        cur.execute(
            "INSERT INTO user_groups (user_id, group_id) VALUES (?, ?)",
            (data.users["bob"], data.groups["riders"]),
        )
        for key, name in (("cafe", "Cafe Roma"), ("lake", "Lake Pier")):
            cur.execute(
                "INSERT INTO places (name, location_details, ratings, feed) VALUES (?, ?, ?, ?)",
                (name, json.dumps({"city": "Bologna"}), json.dumps([5, 4]), json.dumps([])),
            )
            data.places[key] = cur.lastrowid
        conn.commit()
    finally:
        conn.close()
    return data


@pytest.fixture
def client(db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_event(client, seed):
    """Create an event through the API and return its JSON."""

    def _make(who: str = "alice", **body):
        payload = {"name": "Ride", "place": seed.places["cafe"], "datetime": "2026-06-07T10:05:00"}
        payload.update(body)
        resp = client.post("/api/events", json=payload, headers=seed.headers(who))
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


def _notifications_for(user_id: int):
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT user_id, data FROM notifications WHERE user_id = ? ORDER BY id", (user_id,)
        ).fetchall()
        return [json.loads(row["data"]) for row in rows]
    finally:
        conn.close()


def _count_rows(table: str) -> int:
    conn = get_connection()
    try:
        return conn.execute(f"SELECT COUNT(*) AS n FROM {table}").fetchone()["n"]
    finally:
        conn.close()


@pytest.fixture
def notifications_for(db):
    """Return the decoded ``data`` of every notification stored for a user."""
    return _notifications_for


@pytest.fixture
def count_rows(db):
    return _count_rows
