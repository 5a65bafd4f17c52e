"""
Shared building blocks for the API schemas.

JSON payloads use camelCase names (``meetupTime``,
``groupRestriction``) while the Python side uses snake_case.  Models
derived from ``APIModel`` accept either spelling on input and
serialise with the camelCase alias.
"""

from typing import Any, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


def reference_id(value: Any) -> Any:
    """Reduce a populated reference to its identifier.

    Clients that received a populated document (e.g. ``{"id": 3,
    "name": "Cafe"}``) often send it back unchanged.  Storage only keeps
    the identifier, so objects are collapsed to their ``id`` (or the
    legacy ``_id``) before validation.  Other values pass through.
    """
    if isinstance(value, dict):
        if "id" in value:
            return value["id"]
        if "_id" in value:
            return value["_id"]
    return value


class UserSummary(APIModel):
    """Populated user reference (participant, poster)."""

    id: int
    name: Optional[str] = None
