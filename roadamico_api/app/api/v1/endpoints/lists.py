"""
List endpoints.

Lists can be read by anyone, though a bearer token that is sent must
still be valid.  Creating, updating and deleting them requires an
authenticated user.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from roadamico_api.app.schemas.list import ListCreate, ListRead, ListUpdate
from roadamico_api.app.services.list_service import ListService
from roadamico_api.app.core.security import get_current_user, get_optional_user


router = APIRouter()


@router.get("", response_model=List[ListRead], dependencies=[Depends(get_optional_user)])
async def list_lists() -> List[ListRead]:
    """Return every list."""
    return await ListService.list_lists()


@router.get("/{list_id}", response_model=ListRead, dependencies=[Depends(get_optional_user)])
async def get_list(list_id: int) -> ListRead:
    """Retrieve a list with its places populated."""
    try:
        return await ListService.get_list(list_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post("", response_model=ListRead, status_code=status.HTTP_201_CREATED)
async def create_list(data: ListCreate, current_user: dict = Depends(get_current_user)) -> ListRead:
    return await ListService.create_list(data, current_user)


@router.put("/{list_id}", response_model=ListRead)
async def update_list(
    list_id: int,
    updates: ListUpdate,
    current_user: dict = Depends(get_current_user),
) -> ListRead:
    """Update a list.

    Entries may be sent back populated (as returned by ``GET``); the
    places are stored by id only.
    """
    try:
        return await ListService.update_list(list_id, updates)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(list_id: int, current_user: dict = Depends(get_current_user)) -> None:
    try:
        await ListService.delete_list(list_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return None
