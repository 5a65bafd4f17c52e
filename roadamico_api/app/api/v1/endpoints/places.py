"""
Place-scoped endpoints.

Places themselves are managed elsewhere; this router only exposes the
events organised at a place.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from roadamico_api.app.schemas.event import EventRead
from roadamico_api.app.services.event_service import EventService
from roadamico_api.app.core.security import get_optional_user


router = APIRouter()


@router.get("/{place_id}/events", response_model=List[EventRead])
async def list_place_events(
    place_id: int,
    current_user: Optional[dict] = Depends(get_optional_user),
) -> List[EventRead]:
    """List the events at a place that are visible to the caller.

    An unknown place simply yields an empty list.
    """
    return await EventService.list_events(current_user, place_id=place_id)
