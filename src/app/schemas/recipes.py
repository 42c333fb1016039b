# src/app/schemas/recipes.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

CollectibleKindLiteral = Literal["recipe", "recommendation"]
LinkTypeLiteral = Literal["instagram", "facebook", "google_map", "alltrail", "other"]


class NamedRef(BaseModel):
    id: str
    name: str


class IngredientLineIn(BaseModel):
    ingredient: Optional[str] = None
    amount: Optional[float] = None
    unit: Optional[str] = None


class StepIn(BaseModel):
    description: str
    order: Optional[int] = None
    imageUrl: Optional[str] = None


class LinkIn(BaseModel):
    url: str = Field(..., min_length=1)
    description: Optional[str] = None


class RecipeCreate(BaseModel):
    description: Optional[str] = None
    ingredients: list[IngredientLineIn] = Field(default_factory=list)
    steps: list[StepIn] = Field(default_factory=list)
    links: list[LinkIn] = Field(default_factory=list)
    coverImage: Optional[str] = None


class RecipeUpdate(BaseModel):
    description: Optional[str] = None
    ingredients: Optional[list[IngredientLineIn]] = None
    steps: Optional[list[StepIn]] = None
    coverImage: Optional[str] = None


class IngredientLineOut(BaseModel):
    ingredient: Optional[NamedRef] = None
    amount: float
    unit: Optional[NamedRef] = None


class StepOut(BaseModel):
    description: str
    order: int
    imageUrl: Optional[str] = None


class LinkOut(BaseModel):
    url: str
    type: LinkTypeLiteral
    description: Optional[str] = None


class RecipeResponse(BaseModel):
    id: str
    kind: Literal["recipe"] = "recipe"
    description: str
    ownerId: Optional[str] = None
    ingredients: list[IngredientLineOut] = Field(default_factory=list)
    steps: list[StepOut] = Field(default_factory=list)
    links: list[LinkOut] = Field(default_factory=list)
    coverImage: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
