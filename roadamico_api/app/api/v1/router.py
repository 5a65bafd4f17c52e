"""
Top-level router for version 1 of the API.

Aggregates the domain routers under one router which ``main`` mounts
at ``settings.api_prefix``.
"""

from fastapi import APIRouter

from .endpoints import events, lists, notifications, places

router = APIRouter()

router.include_router(lists.router, prefix="/lists", tags=["lists"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(places.router, prefix="/places", tags=["places"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
