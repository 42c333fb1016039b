# src/app/routers/events.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.deps import get_current_user, get_event_service
from src.app.domain.models import User
from src.app.schemas.events import EventCreate, EventResponse
from src.app.services.event_service import EventService
from src.app.services.serializers import serialize_event

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> EventResponse:
    event = service.create_event(payload.name, payload.value)
    return EventResponse(**serialize_event(event))


@router.get("", response_model=list[EventResponse])
async def list_events(
    user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> list[EventResponse]:
    return [EventResponse(**serialize_event(event)) for event in service.list_events()]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    user: User = Depends(get_current_user),
    service: EventService = Depends(get_event_service),
) -> EventResponse:
    return EventResponse(**serialize_event(service.get_event(event_id)))
