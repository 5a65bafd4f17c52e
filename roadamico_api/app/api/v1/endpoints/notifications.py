"""Notification endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query

from roadamico_api.app.schemas.notification import NotificationRead
from roadamico_api.app.services.notification_service import NotificationService
from roadamico_api.app.core.security import get_current_user


router = APIRouter()


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
) -> List[NotificationRead]:
    """Return the caller's notifications, newest first."""
    return await NotificationService.list_for_user(current_user["user_id"], limit=limit, offset=offset)
