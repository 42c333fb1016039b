# src/app/schemas/recommendations.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

CategoryLiteral = Literal["recipe", "article", "event", "other"]
StatusLiteral = Literal["pending", "promoted", "rejected"]


class PageMetadataOut(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None
    site: Optional[str] = None


class RecommendationCreate(BaseModel):
    link: str = Field(..., min_length=1)
    category: CategoryLiteral
    description: Optional[str] = None


class RecommendationUpdate(BaseModel):
    link: Optional[str] = Field(default=None, min_length=1)
    category: Optional[CategoryLiteral] = None
    description: Optional[str] = None


class MetadataRequest(BaseModel):
    link: str = Field(..., min_length=1)


class RecommendationResponse(BaseModel):
    id: str
    kind: Literal["recommendation"] = "recommendation"
    ownerId: Optional[str] = None
    link: str
    category: CategoryLiteral
    description: Optional[str] = None
    metadata: Optional[PageMetadataOut] = None
    status: StatusLiteral = "pending"
    promotedRecipeId: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
