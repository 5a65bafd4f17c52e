"""
Pydantic models for event data.

``EventCreate`` and ``EventUpdate`` describe what a client may send.
Neither declares ``participants`` or ``messages``: attendance and chat
history are only changed through the join/unjoin/message operations,
so those keys are dropped during validation.  ``EventRead`` is the
response shape; its reference fields hold either a bare id or the
populated object depending on what the operation populated.
"""

import datetime as dt
from typing import List, Optional, Union

from pydantic import Field, field_validator

from .common import APIModel, UserSummary, reference_id


class GroupRef(APIModel):
    """Populated group restriction entry."""

    id: int
    administrator: Optional[int] = None
    name: Optional[str] = None


class ParticipantRead(APIModel):
    participant: Union[UserSummary, int]
    datetime: dt.datetime


class MessageRead(APIModel):
    poster: Union[UserSummary, int]
    datetime: dt.datetime
    text: Optional[str] = None


class EventBase(APIModel):
    name: Optional[str] = Field(None, examples=["Sunday ride to the lake"])
    datetime: Optional[dt.datetime] = Field(None, examples=["2026-06-07T10:00:00"])
    meetup_time: Optional[dt.datetime] = Field(None, examples=["2026-06-07T09:30:00"])
    meetup_place: Optional[str] = Field(None, examples=["Main square fountain"])


class EventCreate(EventBase):
    """Schema for creating an event.

    ``place`` is optional at the schema level so the service can reject
    a missing place with its own message.
    """

    place: Optional[int] = Field(None, examples=[12])
    group_restriction: List[int] = Field(default_factory=list)

    @field_validator("place", mode="before")
    @classmethod
    def _place_id(cls, v):
        # An empty place counts as no place at all.
        if v == "":
            return None
        return reference_id(v)

    @field_validator("group_restriction", mode="before")
    @classmethod
    def _group_ids(cls, v):
        if v is None:
            return []
        if isinstance(v, list):
            return [reference_id(item) for item in v]
        return v


class EventUpdate(EventBase):
    """Schema for updating an event.

    Only keys present in the request (and not ``null``) are applied.
    """

    group_restriction: Optional[List[int]] = None

    @field_validator("group_restriction", mode="before")
    @classmethod
    def _group_ids(cls, v):
        if isinstance(v, list):
            return [reference_id(item) for item in v]
        return v

    def changes(self) -> dict:
        """Return the fields the client actually sent, minus nulls."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class EventRead(EventBase):
    """Schema for reading an event from the API."""

    id: int
    place: int
    creator: int
    created: dt.datetime
    canceled: bool = False
    group_restriction: List[Union[GroupRef, int]] = Field(default_factory=list)
    participants: List[ParticipantRead] = Field(default_factory=list)
    messages: List[MessageRead] = Field(default_factory=list)


class MessageCreate(APIModel):
    """Body of ``POST /events/{id}/messages``."""

    text: str = Field(..., examples=["Running ten minutes late"])
