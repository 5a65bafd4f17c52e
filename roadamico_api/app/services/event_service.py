"""
Business logic for events.

An event document is assembled from ``events`` plus its child tables
(``event_groups``, ``event_participants``, ``event_messages``) into a
dict whose keys match ``EventRead``.  References are loaded as bare
ids; the ``populate`` helpers resolve them for the response.

Errors are signalled with plain exceptions and translated to HTTP
statuses by the endpoints:

* ``LookupError`` - the event does not exist (404);
* ``PermissionError`` - the actor is not allowed to perform the
  operation, or a precondition on the request failed (403).

Operations that notify participants (``cancel_event`` and
``post_message``) return the notification records alongside the
event.  The caller is responsible for dispatching them.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from roadamico_api.app.core.db import get_connection
from roadamico_api.app.core.permissions import can_edit, can_view
from roadamico_api.app.schemas.event import EventCreate, EventRead, EventUpdate, MessageCreate
from roadamico_api.app.schemas.notification import NotificationCreate
from roadamico_api.app.services.populate import (
    populate_event,
    populate_group_restriction,
    populate_participants,
    populate_posters,
)


logger = logging.getLogger(__name__)

NOT_AUTHORIZED_TO_MODIFY = "You are not authorized to modify this event"
NOT_AUTHORIZED_TO_VIEW = "You are not authorized to view this event"
PLACE_REQUIRED = "An event must have an associated place."
ALREADY_JOINED = "You have already joined this event."
NOT_JOINED = "You have not joined this event."
MUST_ATTEND_TO_MESSAGE = "You must be attending this event to send messages."

# Columns updated through ``update_event``.  ``group_restriction`` is
# stored in its own table and handled separately.
_UPDATABLE_COLUMNS = {
    "name": "name",
    "datetime": "datetime",
    "meetup_time": "meetup_time",
    "meetup_place": "meetup_place",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def format_display_time(value: Any) -> Optional[str]:
    """Format a timestamp the way notifications display it.

    ``2026-06-07T10:05:00`` becomes ``Sun, Jun 7, 2026 10:05 AM``.
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    hour = value.hour % 12 or 12
    return f"{value:%a, %b} {value.day}, {value.year} {hour}:{value:%M %p}"


def _load_events(
    cursor: sqlite3.Cursor,
    where: str = "",
    params: Tuple[Any, ...] = (),
) -> List[Dict[str, Any]]:
    rows = cursor.execute(
        "SELECT id, name, datetime, meetup_time, meetup_place, place_id, creator_id, created, canceled "
        f"FROM events {where} ORDER BY id",
        params,
    ).fetchall()
    events = {
        row["id"]: {
            "id": row["id"],
            "name": row["name"],
            "datetime": row["datetime"],
            "meetup_time": row["meetup_time"],
            "meetup_place": row["meetup_place"],
            "place": row["place_id"],
            "creator": row["creator_id"],
            "created": row["created"],
            "canceled": bool(row["canceled"]),
            "group_restriction": [],
            "participants": [],
            "messages": [],
        }
        for row in rows
    }
    if not events:
        return []
    placeholders = ", ".join("?" for _ in events)
    ids = tuple(events)
    for row in cursor.execute(
        f"SELECT event_id, group_id FROM event_groups WHERE event_id IN ({placeholders}) ORDER BY id",
        ids,
    ):
        events[row["event_id"]]["group_restriction"].append(row["group_id"])
    for row in cursor.execute(
        f"SELECT event_id, user_id, datetime FROM event_participants WHERE event_id IN ({placeholders}) ORDER BY id",
        ids,
    ):
        events[row["event_id"]]["participants"].append(
            {"participant": row["user_id"], "datetime": row["datetime"]}
        )
    for row in cursor.execute(
        f"SELECT event_id, poster_id, datetime, text FROM event_messages WHERE event_id IN ({placeholders}) ORDER BY id",
        ids,
    ):
        events[row["event_id"]]["messages"].append(
            {"poster": row["poster_id"], "datetime": row["datetime"], "text": row["text"]}
        )
    return list(events.values())


def _load_event(cursor: sqlite3.Cursor, event_id: int) -> Dict[str, Any]:
    docs = _load_events(cursor, "WHERE id = ?", (event_id,))
    if not docs:
        raise LookupError(f"Event {event_id} not found")
    return docs[0]


def _write_groups(cursor: sqlite3.Cursor, event_id: int, group_ids: List[int]) -> None:
    cursor.execute("DELETE FROM event_groups WHERE event_id = ?", (event_id,))
    cursor.executemany(
        "INSERT INTO event_groups (event_id, group_id) VALUES (?, ?)",
        [(event_id, group_id) for group_id in group_ids],
    )


def _participant_ids(event: Dict[str, Any]) -> List[int]:
    ids = []
    for entry in event["participants"]:
        participant = entry["participant"]
        ids.append(participant["id"] if isinstance(participant, dict) else participant)
    return ids


def _serialize(event: Dict[str, Any]) -> Dict[str, Any]:
    return EventRead.model_validate(event).model_dump(mode="json", by_alias=True)


class EventService:
    """Service for events, participation and in-event messaging.

    ``current_user`` is the actor dict produced by
    ``core.security`` (``user_id``, ``name``, ``role``, ``groups``) or
    ``None`` for anonymous read access.
    """

    @classmethod
    async def list_events(
        cls,
        current_user: Optional[dict] = None,
        place_id: Optional[int] = None,
    ) -> List[EventRead]:
        """Return every event the actor can view.

        With ``place_id`` only events at that place are considered.
        Group restrictions are populated with their administrators.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if place_id is None:
                docs = _load_events(cursor)
            else:
                docs = _load_events(cursor, "WHERE place_id = ?", (place_id,))
            populate_group_restriction(cursor, docs)
            return [EventRead.model_validate(doc) for doc in docs if can_view(current_user, doc)]
        finally:
            conn.close()

    @classmethod
    async def get_event(cls, event_id: int, current_user: Optional[dict] = None) -> EventRead:
        """Return a fully populated event.

        Raises ``LookupError`` if it does not exist and
        ``PermissionError`` if the actor cannot view it.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = _load_event(cursor, event_id)
            populate_event(cursor, [event])
            if not can_view(current_user, event):
                raise PermissionError(NOT_AUTHORIZED_TO_VIEW)
            return EventRead.model_validate(event)
        finally:
            conn.close()

    @classmethod
    async def create_event(cls, data: EventCreate, current_user: dict) -> EventRead:
        """Create an event owned by the actor.

        The actor becomes the creator and the only participant.  Raises
        ``PermissionError`` when no place is given.
        """
        if data.place is None:
            raise PermissionError(PLACE_REQUIRED)
        now = utcnow().isoformat()
        user_id = current_user["user_id"]
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO events (name, datetime, meetup_time, meetup_place, place_id, creator_id, created, canceled)
                VALUES (?, ?, ?, ?, ?, ?, ?, 0)
                """,
                (
                    data.name,
                    _iso(data.datetime),
                    _iso(data.meetup_time),
                    data.meetup_place,
                    data.place,
                    user_id,
                    now,
                ),
            )
            event_id = cursor.lastrowid
            _write_groups(cursor, event_id, data.group_restriction)
            cursor.execute(
                "INSERT INTO event_participants (event_id, user_id, datetime) VALUES (?, ?, ?)",
                (event_id, user_id, now),
            )
            conn.commit()
            logger.info("User %s created event %s at place %s", user_id, event_id, data.place)
            return EventRead.model_validate(_load_event(cursor, event_id))
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def update_event(cls, event_id: int, updates: EventUpdate, current_user: dict) -> EventRead:
        """Apply the fields present in ``updates``.

        Participants and messages cannot be changed here.  Raises
        ``PermissionError`` if the actor cannot edit the event.
        """
        changes = updates.changes()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = _load_event(cursor, event_id)
            populate_group_restriction(cursor, [event])
            if not can_edit(current_user, event):
                raise PermissionError(NOT_AUTHORIZED_TO_MODIFY)

            columns = {col: _iso(changes[key]) for key, col in _UPDATABLE_COLUMNS.items() if key in changes}
            if columns:
                assignments = ", ".join(f"{col} = ?" for col in columns)
                cursor.execute(
                    f"UPDATE events SET {assignments} WHERE id = ?",
                    (*columns.values(), event_id),
                )
            if "group_restriction" in changes:
                _write_groups(cursor, event_id, changes["group_restriction"])
            conn.commit()
            logger.info(
                "User %s updated event %s (%s)",
                current_user.get("user_id"), event_id, ", ".join(sorted(changes)) or "no changes",
            )
            event = _load_event(cursor, event_id)
            populate_event(cursor, [event])
            return EventRead.model_validate(event)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def cancel_event(
        cls, event_id: int, current_user: dict
    ) -> Tuple[EventRead, List[NotificationCreate]]:
        """Mark the event as canceled.

        Returns the event and one ``event.cancel`` notification per
        participant.  Cancelling twice is allowed and notifies again.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = _load_event(cursor, event_id)
            populate_group_restriction(cursor, [event])
            if not can_edit(current_user, event):
                raise PermissionError(NOT_AUTHORIZED_TO_MODIFY)
            cursor.execute("UPDATE events SET canceled = 1 WHERE id = ?", (event_id,))
            conn.commit()
            event["canceled"] = True
            logger.info("User %s canceled event %s", current_user.get("user_id"), event_id)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        now = utcnow()
        context = _serialize(event)
        when = format_display_time(event["datetime"])
        notifications = [
            NotificationCreate(
                user=participant_id,
                datetime=now,
                data={"name": "event.cancel", "event": context, "when": when},
            )
            for participant_id in _participant_ids(event)
        ]
        return EventRead.model_validate(event), notifications

    @classmethod
    async def join_event(cls, event_id: int, current_user: dict) -> EventRead:
        """Add the actor to the participants.

        Viewing rights are enough to join.  Joining twice raises
        ``PermissionError``; so does losing a race against a concurrent
        join of the same user, via the unique index on participants.
        """
        user_id = current_user["user_id"]
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = _load_event(cursor, event_id)
            populate_group_restriction(cursor, [event])
            if not can_view(current_user, event):
                raise PermissionError(NOT_AUTHORIZED_TO_VIEW)
            if user_id in _participant_ids(event):
                raise PermissionError(ALREADY_JOINED)
            try:
                cursor.execute(
                    "INSERT INTO event_participants (event_id, user_id, datetime) VALUES (?, ?, ?)",
                    (event_id, user_id, utcnow().isoformat()),
                )
            except sqlite3.IntegrityError as exc:
                raise PermissionError(ALREADY_JOINED) from exc
            conn.commit()
            logger.info("User %s joined event %s", user_id, event_id)
            joined = _load_event(cursor, event_id)
            joined["group_restriction"] = event["group_restriction"]
            populate_participants(cursor, [joined])
            populate_posters(cursor, [joined])
            return EventRead.model_validate(joined)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def unjoin_event(cls, event_id: int, current_user: dict) -> EventRead:
        """Remove the actor's participant entry, keeping the others in order."""
        user_id = current_user["user_id"]
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _load_event(cursor, event_id)
            row = cursor.execute(
                "SELECT id FROM event_participants WHERE event_id = ? AND user_id = ?",
                (event_id, user_id),
            ).fetchone()
            if not row:
                raise PermissionError(NOT_JOINED)
            cursor.execute("DELETE FROM event_participants WHERE id = ?", (row["id"],))
            conn.commit()
            logger.info("User %s left event %s", user_id, event_id)
            event = _load_event(cursor, event_id)
            populate_participants(cursor, [event])
            populate_posters(cursor, [event])
            return EventRead.model_validate(event)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def post_message(
        cls, event_id: int, message: MessageCreate, current_user: dict
    ) -> Tuple[EventRead, List[NotificationCreate]]:
        """Append a message from the actor, who must be a participant.

        Returns the event and one ``event.message`` notification for
        every participant except the poster.
        """
        user_id = current_user["user_id"]
        now = utcnow()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            event = _load_event(cursor, event_id)
            participant_ids = _participant_ids(event)
            if user_id not in participant_ids:
                raise PermissionError(MUST_ATTEND_TO_MESSAGE)
            cursor.execute(
                "INSERT INTO event_messages (event_id, poster_id, datetime, text) VALUES (?, ?, ?, ?)",
                (event_id, user_id, now.isoformat(), message.text),
            )
            conn.commit()
            logger.info("User %s posted a message in event %s", user_id, event_id)
            event = _load_event(cursor, event_id)
            context = _serialize(event)
            populate_participants(cursor, [event])
            populate_posters(cursor, [event])
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        poster = {"id": user_id, "name": current_user.get("name")}
        notifications = [
            NotificationCreate(
                user=participant_id,
                datetime=now,
                data={"name": "event.message", "text": message.text, "event": context, "poster": poster},
            )
            for participant_id in participant_ids
            if participant_id != user_id
        ]
        return EventRead.model_validate(event), notifications
