"""
Authorization predicates for events.

Both predicates take the actor explicitly (the dict produced by
``core.security``, or ``None`` for anonymous callers) and an event
document whose ``group_restriction`` has been populated with each
group's ``administrator``.  Unpopulated entries (bare ids) are still
matched against the user's group membership but can never grant
administrator rights.
"""

from typing import Any, Dict, Iterable, Optional

PRIVILEGED_ROLES = frozenset({"admin", "curator"})


def _groups(event: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    for group in event.get("group_restriction") or []:
        if isinstance(group, dict):
            yield group
        else:
            yield {"id": group, "administrator": None}


def _administers(user: Dict[str, Any], group: Dict[str, Any]) -> bool:
    administrator = group.get("administrator")
    return administrator is not None and administrator == user.get("user_id")


def can_view(user: Optional[Dict[str, Any]], event: Dict[str, Any]) -> bool:
    """Return True if ``user`` may see ``event``.

    Open events (no group restriction) are visible to everyone,
    anonymous callers included.  Restricted events are visible to
    admins and curators, to administrators of a restricting group and
    to members of a restricting group.
    """
    if not event.get("group_restriction"):
        return True
    if not user:
        return False
    if user.get("role") in PRIVILEGED_ROLES:
        return True
    member_of = set(user.get("groups") or [])
    return any(
        _administers(user, group) or group.get("id") in member_of
        for group in _groups(event)
    )


def can_edit(user: Optional[Dict[str, Any]], event: Dict[str, Any]) -> bool:
    """Return True if ``user`` may modify or cancel ``event``.

    Admins, curators, the creator and administrators of a restricting
    group qualify.  Group members without administrator rights do not.
    """
    if not user:
        return False
    if user.get("role") in PRIVILEGED_ROLES:
        return True
    if event.get("creator") is not None and event.get("creator") == user.get("user_id"):
        return True
    return any(_administers(user, group) for group in _groups(event))
