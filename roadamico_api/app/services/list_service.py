"""
Business logic for lists of places.

Lists are stored in ``lists`` with their ordered entries in
``list_entries``.  Every method opens its own connection and raises
``LookupError`` when the requested list does not exist.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from roadamico_api.app.core.db import get_connection
from roadamico_api.app.schemas.list import ListCreate, ListEntry, ListRead, ListUpdate
from roadamico_api.app.services.populate import populate_places


logger = logging.getLogger(__name__)


def _load_lists(cursor: sqlite3.Cursor, list_id: Optional[int] = None) -> List[Dict[str, Any]]:
    if list_id is None:
        rows = cursor.execute("SELECT id, name FROM lists ORDER BY id").fetchall()
        entry_rows = cursor.execute(
            "SELECT list_id, place_id, note FROM list_entries ORDER BY id"
        ).fetchall()
    else:
        rows = cursor.execute("SELECT id, name FROM lists WHERE id = ?", (list_id,)).fetchall()
        entry_rows = cursor.execute(
            "SELECT list_id, place_id, note FROM list_entries WHERE list_id = ? ORDER BY id",
            (list_id,),
        ).fetchall()
    lists = {row["id"]: {"id": row["id"], "name": row["name"], "entries": []} for row in rows}
    for entry in entry_rows:
        if entry["list_id"] in lists:
            lists[entry["list_id"]]["entries"].append(
                {"place": entry["place_id"], "note": entry["note"]}
            )
    return list(lists.values())


def _write_entries(cursor: sqlite3.Cursor, list_id: int, entries: List[ListEntry]) -> None:
    cursor.execute("DELETE FROM list_entries WHERE list_id = ?", (list_id,))
    cursor.executemany(
        "INSERT INTO list_entries (list_id, place_id, note) VALUES (?, ?, ?)",
        [(list_id, entry.place, entry.note) for entry in entries],
    )


class ListService:
    """Service for managing lists of places."""

    @classmethod
    async def list_lists(cls) -> List[ListRead]:
        """Return every list with unpopulated entries.  No pagination."""
        conn = get_connection()
        try:
            return [ListRead.model_validate(doc) for doc in _load_lists(conn.cursor())]
        finally:
            conn.close()

    @classmethod
    async def get_list(cls, list_id: int) -> ListRead:
        """Return a single list with its places populated."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            docs = _load_lists(cursor, list_id)
            if not docs:
                raise LookupError(f"List {list_id} not found")
            populate_places(cursor, docs)
            return ListRead.model_validate(docs[0])
        finally:
            conn.close()

    @classmethod
    async def create_list(cls, data: ListCreate, current_user: Optional[dict] = None) -> ListRead:
        """Persist a new list and return it with unpopulated entries."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("INSERT INTO lists (name) VALUES (?)", (data.name,))
            list_id = cursor.lastrowid
            _write_entries(cursor, list_id, data.entries)
            conn.commit()
            logger.info(
                "User %s created list %s with %d entries",
                (current_user or {}).get("user_id"), list_id, len(data.entries),
            )
            return ListRead(id=list_id, name=data.name, entries=[e.model_dump() for e in data.entries])
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def update_list(cls, list_id: int, updates: ListUpdate) -> ListRead:
        """Apply ``updates`` and return the list with its places populated.

        Populated place objects in the submitted entries have already
        been reduced to ids by the schema.  Entries are replaced
        wholesale; ``name`` is applied when the key was sent.
        """
        sent = updates.model_fields_set
        conn = get_connection()
        try:
            cursor = conn.cursor()
            exists = cursor.execute("SELECT id FROM lists WHERE id = ?", (list_id,)).fetchone()
            if not exists:
                raise LookupError(f"List {list_id} not found")
            if "name" in sent and updates.name is not None:
                cursor.execute(
                    "UPDATE lists SET name = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (updates.name, list_id),
                )
            if "entries" in sent and updates.entries is not None:
                _write_entries(cursor, list_id, updates.entries)
                cursor.execute(
                    "UPDATE lists SET updated_at = CURRENT_TIMESTAMP WHERE id = ?", (list_id,)
                )
            conn.commit()
            docs = populate_places(cursor, _load_lists(cursor, list_id))
            return ListRead.model_validate(docs[0])
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete_list(cls, list_id: int) -> None:
        """Remove a list and its entries."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            exists = cursor.execute("SELECT id FROM lists WHERE id = ?", (list_id,)).fetchone()
            if not exists:
                raise LookupError(f"List {list_id} not found")
            cursor.execute("DELETE FROM list_entries WHERE list_id = ?", (list_id,))
            cursor.execute("DELETE FROM lists WHERE id = ?", (list_id,))
            conn.commit()
            logger.info("List %s deleted", list_id)
        finally:
            conn.close()
