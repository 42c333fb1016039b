# src/app/schemas/events.py
from __future__ import annotations

from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)


class EventResponse(BaseModel):
    id: str
    name: str
    value: str
