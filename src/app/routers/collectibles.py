# src/app/routers/collectibles.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import TypeAdapter

from src.app.deps import get_collection_service, get_current_user
from src.app.domain.models import User
from src.app.schemas.collections import CollectibleOut
from src.app.services.collection_service import CollectionService

router = APIRouter(prefix="/collectible", tags=["collectibles"])

_collectibles_adapter = TypeAdapter(list[CollectibleOut])


@router.get("/search", response_model=list[CollectibleOut])
async def search_collectibles(
    search: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> list[CollectibleOut]:
    return _collectibles_adapter.validate_python(service.search_collectibles(search))
