# src/app/services/event_service.py
from __future__ import annotations

from typing import Optional

from src.app.domain.errors import NotFoundError, ValidationError
from src.app.domain.models import Event
from src.app.infra.db.base import EventRepository
from src.app.infra.db.supabase_repos import SupabaseEventRepository


class EventService:

    def __init__(self, repository: Optional[EventRepository] = None):
        self._repo = repository or SupabaseEventRepository()

    def create_event(self, name: Optional[str], value: Optional[str]) -> Event:
        if not (name or "").strip():
            raise ValidationError("Event name is required", field="name")
        if value is None or not str(value).strip():
            raise ValidationError("Event value is required", field="value")
        return self._repo.create(name.strip(), str(value))

    def get_event(self, event_id: str) -> Event:
        event = self._repo.get(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def list_events(self) -> list[Event]:
        return self._repo.list_events()
