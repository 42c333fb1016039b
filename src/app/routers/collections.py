# src/app/routers/collections.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.app.deps import get_collection_service, get_current_user
from src.app.domain.models import User
from src.app.schemas.collections import (
    CollectionAppendRequest,
    CollectionCreate,
    CollectionResponse,
    CollectionUpdate,
)
from src.app.schemas.recommendations import MessageResponse
from src.app.services.collection_service import CollectionService

router = APIRouter(prefix="/collections", tags=["collections"])


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    payload: CollectionCreate,
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    collection = service.create_collection(user.id, payload.description, payload.items)
    return CollectionResponse(**collection)


@router.get("", response_model=list[CollectionResponse])
async def list_collections(
    search: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> list[CollectionResponse]:
    return [CollectionResponse(**payload) for payload in service.list_collections(search)]


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: str,
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    return CollectionResponse(**service.get_collection(collection_id))


@router.put("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: str,
    payload: CollectionUpdate,
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    provided = payload.model_dump(exclude_unset=True)
    changes = {}
    if "description" in provided:
        changes["description"] = payload.description
    if "items" in provided:
        changes["item_ids"] = payload.items or []
    return CollectionResponse(**service.update_collection(collection_id, changes))


@router.delete("/{collection_id}", response_model=MessageResponse)
async def delete_collection(
    collection_id: str,
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> MessageResponse:
    service.delete_collection(collection_id)
    return MessageResponse(message="Collection deleted")


@router.post("/{collection_id}/items", response_model=CollectionResponse)
async def add_collection_item(
    collection_id: str,
    payload: CollectionAppendRequest,
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    return CollectionResponse(**service.add_item(collection_id, payload.itemId))


@router.delete("/{collection_id}/items/{item_id}", response_model=CollectionResponse)
async def remove_collection_item(
    collection_id: str,
    item_id: str,
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    return CollectionResponse(**service.remove_item(collection_id, item_id))
