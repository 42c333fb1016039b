# src/app/schemas/collections.py
from __future__ import annotations

from typing import Annotated, Optional, Union

from pydantic import BaseModel, Field

from src.app.schemas.recipes import RecipeResponse
from src.app.schemas.recommendations import RecommendationResponse

CollectibleOut = Annotated[Union[RecipeResponse, RecommendationResponse], Field(discriminator="kind")]


class CollectionCreate(BaseModel):
    description: Optional[str] = Field(default=None, max_length=500)
    items: list[str] = Field(default_factory=list)


class CollectionUpdate(BaseModel):
    description: Optional[str] = Field(default=None, max_length=500)
    items: Optional[list[str]] = None


class CollectionAppendRequest(BaseModel):
    itemId: str = Field(..., min_length=1)


class CollectionResponse(BaseModel):
    id: str
    description: Optional[str] = None
    ownerId: Optional[str] = None
    items: list[CollectibleOut] = Field(default_factory=list)
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
