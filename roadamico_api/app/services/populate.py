"""
Population of stored references.

Documents are loaded with references as bare ids.  The helpers here
replace those ids with the referenced rows for response assembly,
fetching each kind of reference with a single ``IN`` query per call.
Every helper mutates the given documents in place and returns them.
Ids with no matching row are left as bare ids.
"""

import json
import sqlite3
from typing import Any, Dict, Iterable, List


def _fetch(cursor: sqlite3.Cursor, sql: str, ids: Iterable[int]) -> List[sqlite3.Row]:
    unique = sorted({i for i in ids if i is not None})
    if not unique:
        return []
    placeholders = ", ".join("?" for _ in unique)
    return cursor.execute(sql.format(placeholders=placeholders), tuple(unique)).fetchall()


def _ref_id(value: Any) -> Any:
    return value["id"] if isinstance(value, dict) else value


def _loads(value: str | None) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def user_summaries(cursor: sqlite3.Cursor, ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
    rows = _fetch(cursor, "SELECT id, name FROM users WHERE id IN ({placeholders})", ids)
    return {row["id"]: {"id": row["id"], "name": row["name"]} for row in rows}


def populate_participants(cursor: sqlite3.Cursor, events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Resolve ``participants.participant`` to ``{id, name}``."""
    users = user_summaries(
        cursor,
        (_ref_id(p["participant"]) for e in events for p in e["participants"]),
    )
    for event in events:
        for entry in event["participants"]:
            entry["participant"] = users.get(_ref_id(entry["participant"]), entry["participant"])
    return events


def populate_posters(cursor: sqlite3.Cursor, events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Resolve ``messages.poster`` to ``{id, name}``."""
    users = user_summaries(
        cursor,
        (_ref_id(m["poster"]) for e in events for m in e["messages"]),
    )
    for event in events:
        for message in event["messages"]:
            message["poster"] = users.get(_ref_id(message["poster"]), message["poster"])
    return events


def populate_group_restriction(
    cursor: sqlite3.Cursor,
    events: List[Dict[str, Any]],
    with_name: bool = False,
) -> List[Dict[str, Any]]:
    """Resolve ``group_restriction`` to ``{id, administrator[, name]}``.

    Unknown group ids are resolved to ``{id, administrator: None}`` so
    the authorization predicates always see a uniform shape.
    """
    rows = _fetch(
        cursor,
        "SELECT id, name, administrator_id FROM groups WHERE id IN ({placeholders})",
        (_ref_id(g) for e in events for g in e["group_restriction"]),
    )
    groups = {row["id"]: row for row in rows}
    for event in events:
        resolved = []
        for ref in event["group_restriction"]:
            group_id = _ref_id(ref)
            row = groups.get(group_id)
            entry: Dict[str, Any] = {
                "id": group_id,
                "administrator": row["administrator_id"] if row else None,
            }
            if with_name:
                entry["name"] = row["name"] if row else None
            resolved.append(entry)
        event["group_restriction"] = resolved
    return events


def populate_event(
    cursor: sqlite3.Cursor,
    events: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Full population used for single-event responses."""
    populate_participants(cursor, events)
    populate_posters(cursor, events)
    populate_group_restriction(cursor, events, with_name=True)
    return events


def populate_places(cursor: sqlite3.Cursor, lists: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Resolve ``entries.place`` to the place's details, ratings and feed."""
    rows = _fetch(
        cursor,
        "SELECT id, name, location_details, ratings, feed FROM places WHERE id IN ({placeholders})",
        (_ref_id(entry["place"]) for lst in lists for entry in lst["entries"]),
    )
    places = {
        row["id"]: {
            "id": row["id"],
            "name": row["name"],
            "location_details": _loads(row["location_details"]),
            "ratings": _loads(row["ratings"]),
            "feed": _loads(row["feed"]),
        }
        for row in rows
    }
    for lst in lists:
        for entry in lst["entries"]:
            entry["place"] = places.get(_ref_id(entry["place"]), entry["place"])
    return lists
