"""
Event endpoints.

Listing and showing events is open to anonymous callers; visibility
of group-restricted events is decided per event by ``can_view``.
Every mutation requires an authenticated user.  Cancelling an event
and posting a message notify participants; the notifications are
written by a background task after the response has been sent.
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from roadamico_api.app.schemas.event import EventCreate, EventRead, EventUpdate, MessageCreate
from roadamico_api.app.services.event_service import EventService
from roadamico_api.app.services.notification_service import NotificationService
from roadamico_api.app.core.security import get_current_user, get_optional_user


router = APIRouter()


@router.get("", response_model=List[EventRead])
async def list_events(current_user: Optional[dict] = Depends(get_optional_user)) -> List[EventRead]:
    """List every event visible to the caller."""
    return await EventService.list_events(current_user)


@router.get("/{event_id}", response_model=EventRead)
async def get_event(event_id: int, current_user: Optional[dict] = Depends(get_optional_user)) -> EventRead:
    """Retrieve a single event with participants, messages and groups populated."""
    try:
        return await EventService.get_event(event_id, current_user)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: EventCreate,
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Create a new event.

    The caller becomes the creator and first participant.  Any
    ``participants`` or ``messages`` in the body are ignored.  An event
    without a ``place`` is rejected with 403.
    """
    try:
        return await EventService.create_event(event, current_user)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e


@router.put("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: int,
    updates: EventUpdate,
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Update an existing event.

    Only admins, curators, the creator and administrators of a
    restricting group may edit.  Unspecified fields remain unchanged.
    """
    try:
        return await EventService.update_event(event_id, updates, current_user)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e


@router.post("/{event_id}/cancel", response_model=EventRead)
async def cancel_event(
    event_id: int,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Cancel an event and notify its participants."""
    try:
        event, notifications = await EventService.cancel_event(event_id, current_user)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    background_tasks.add_task(NotificationService.dispatch, notifications)
    return event


@router.post("/{event_id}/join", response_model=EventRead)
async def join_event(event_id: int, current_user: dict = Depends(get_current_user)) -> EventRead:
    """Join an event as a participant."""
    try:
        return await EventService.join_event(event_id, current_user)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e


@router.post("/{event_id}/unjoin", response_model=EventRead)
async def unjoin_event(event_id: int, current_user: dict = Depends(get_current_user)) -> EventRead:
    """Back out of an event."""
    try:
        return await EventService.unjoin_event(event_id, current_user)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e


@router.post("/{event_id}/messages", response_model=EventRead)
async def post_message(
    event_id: int,
    message: MessageCreate,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
) -> EventRead:
    """Post a message to an event's participants.

    Only participants may post.  Every other participant receives an
    ``event.message`` notification.
    """
    try:
        event, notifications = await EventService.post_message(event_id, message, current_user)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    background_tasks.add_task(NotificationService.dispatch, notifications)
    return event
