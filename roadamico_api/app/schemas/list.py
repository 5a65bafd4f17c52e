"""
Pydantic models for lists of places.

A list is a named, ordered collection of entries, each pointing at a
place.  Entries sent by clients may carry the populated place object
returned by ``GET /lists/{id}``; the ``place`` validator reduces it to
the bare id before anything reaches storage.
"""

from typing import Any, List, Optional, Union

from pydantic import Field, field_validator

from .common import APIModel, reference_id


class PlaceRead(APIModel):
    """Populated place as embedded in list entries."""

    id: int
    name: Optional[str] = None
    location_details: Optional[Any] = None
    ratings: Optional[Any] = None
    feed: Optional[Any] = None


class ListEntry(APIModel):
    place: Optional[int] = Field(None, examples=[12])
    note: Optional[str] = None

    @field_validator("place", mode="before")
    @classmethod
    def _unpopulate(cls, v):
        return reference_id(v)


class ListEntryRead(APIModel):
    place: Union[PlaceRead, int, None] = None
    note: Optional[str] = None


class ListCreate(APIModel):
    name: Optional[str] = Field(None, examples=["Best coffee in town"])
    entries: List[ListEntry] = Field(default_factory=list)


class ListUpdate(APIModel):
    """Schema for updating a list.

    ``entries`` replaces the stored entries wholesale when present.
    ``name`` is applied when present, including the empty string.
    """

    name: Optional[str] = None
    entries: Optional[List[ListEntry]] = None


class ListRead(APIModel):
    id: int
    name: Optional[str] = None
    entries: List[ListEntryRead] = Field(default_factory=list)
