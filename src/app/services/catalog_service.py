# src/app/services/catalog_service.py
from __future__ import annotations

import logging
from typing import Iterable, Optional

from src.app.domain.errors import ValidationError
from src.app.domain.models import Ingredient, Unit
from src.app.infra.db.base import CatalogRepository
from src.app.infra.db.supabase_repos import SupabaseCatalogRepository

logger = logging.getLogger(__name__)


def _require_name(name: Optional[str], field: str = "name") -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required", field=field)
    return cleaned


class CatalogService:
    """Ingredients and units referenced by recipe lines."""

    def __init__(self, repository: Optional[CatalogRepository] = None):
        self._repo = repository or SupabaseCatalogRepository()

    def create_ingredient(self, name: Optional[str]) -> Ingredient:
        return self._repo.create_ingredient(_require_name(name))

    def bulk_create_ingredients(self, names: Iterable[Optional[str]]) -> list[Ingredient]:
        cleaned = [_require_name(name, field="ingredients") for name in names]
        if not cleaned:
            raise ValidationError("At least one ingredient is required", field="ingredients")
        stored = self._repo.upsert_ingredients(cleaned)
        logger.info("catalog.bulk_ingredients requested=%d stored=%d", len(cleaned), len(stored))
        return stored

    def list_ingredients(self) -> list[Ingredient]:
        return self._repo.list_ingredients()

    def create_unit(self, name: Optional[str]) -> Unit:
        return self._repo.create_unit(_require_name(name))

    def list_units(self) -> list[Unit]:
        return self._repo.list_units()
