"""
Notification sink.

Event operations produce notification records (one per recipient)
which are written to the ``notifications`` table.  Writes happen
outside the request: endpoints hand the records to ``dispatch`` as a
background task, so a failure here never changes the response of the
operation that produced them.  Delivery to devices is handled
elsewhere; this service only stores the records.
"""

import json
import logging
from typing import Any, Dict, List

from roadamico_api.app.core.db import get_connection
from roadamico_api.app.schemas.notification import NotificationCreate, NotificationRead


logger = logging.getLogger(__name__)


class NotificationService:
    """Service for storing and listing notifications."""

    @classmethod
    async def create_many(cls, records: List[NotificationCreate]) -> List[NotificationRead]:
        """Insert all ``records`` in a single transaction."""
        if not records:
            return []
        conn = get_connection()
        try:
            cursor = conn.cursor()
            created: List[NotificationRead] = []
            for record in records:
                cursor.execute(
                    "INSERT INTO notifications (user_id, datetime, data) VALUES (?, ?, ?)",
                    (record.user, record.datetime.isoformat(), json.dumps(record.data)),
                )
                created.append(NotificationRead(id=cursor.lastrowid, **record.model_dump()))
            conn.commit()
            return created
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def dispatch(cls, records: List[NotificationCreate]) -> None:
        """Fire-and-forget wrapper around ``create_many``.

        Each call makes exactly one attempt.  Errors are logged and
        swallowed.
        """
        if not records:
            return
        name = records[0].data.get("name")
        try:
            await cls.create_many(records)
        except Exception:
            logger.exception("Failed to create %d %s notification(s)", len(records), name)
            return
        logger.info("Created %d %s notification(s)", len(records), name)

    @classmethod
    async def list_for_user(cls, user_id: int, limit: int = 50, offset: int = 0) -> List[NotificationRead]:
        """Return the notifications addressed to ``user_id``, newest first."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            rows = cursor.execute(
                "SELECT id, user_id, datetime, data FROM notifications WHERE user_id = ? "
                "ORDER BY datetime DESC, id DESC LIMIT ? OFFSET ?",
                (user_id, limit, offset),
            ).fetchall()
            notifications: List[NotificationRead] = []
            for row in rows:
                data: Dict[str, Any] = json.loads(row["data"])
                notifications.append(
                    NotificationRead(id=row["id"], user=row["user_id"], datetime=row["datetime"], data=data)
                )
            return notifications
        finally:
            conn.close()
