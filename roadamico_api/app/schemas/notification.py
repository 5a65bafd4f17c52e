"""Pydantic models for notifications."""

import datetime as dt
from typing import Any, Dict

from .common import APIModel


class NotificationCreate(APIModel):
    """A notification record queued for creation.

    ``data`` always carries a ``name`` such as ``event.cancel`` or
    ``event.message`` plus the context the client needs to render it.
    """

    user: int
    datetime: dt.datetime
    data: Dict[str, Any]


class NotificationRead(NotificationCreate):
    id: int
