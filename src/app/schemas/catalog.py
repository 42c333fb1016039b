# src/app/schemas/catalog.py
from __future__ import annotations

from pydantic import BaseModel, Field


class NamedCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class BulkIngredientsCreate(BaseModel):
    ingredients: list[str] = Field(..., min_length=1)


class NamedResponse(BaseModel):
    id: str
    name: str
