# src/app/services/collection_service.py
"""
Collection service.
Collections hold ordered references to collectibles of either kind; reads
expand each reference and skip the ones that no longer resolve.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from src.app.domain.errors import NotFoundError
from src.app.domain.models import Collectible, Collection
from src.app.infra.db.base import CatalogRepository, CollectibleRepository, CollectionRepository
from src.app.infra.db.supabase_repos import (
    SupabaseCatalogRepository,
    SupabaseCollectibleRepository,
    SupabaseCollectionRepository,
)
from src.app.services.serializers import CollectibleExpander

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _dedupe(item_ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(str(i).strip() for i in item_ids if i and str(i).strip()))


def _created_key(item: Collectible) -> datetime:
    created = item.created_at
    if created is None:
        return _OLDEST
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


class CollectionService:
    """
    Responsibilities:
    - Create, list, update and delete collections
    - Add and remove single items atomically
    - Search across recipes and recommendations
    """

    def __init__(
        self,
        repository: Optional[CollectionRepository] = None,
        collectibles: Optional[CollectibleRepository] = None,
        catalog: Optional[CatalogRepository] = None,
    ):
        self._repo = repository or SupabaseCollectionRepository()
        self._collectibles = collectibles or SupabaseCollectibleRepository()
        self._catalog = catalog or SupabaseCatalogRepository()
        self._expander = CollectibleExpander(self._catalog)

    def create_collection(
        self,
        owner_id: Optional[str],
        description: Optional[str],
        item_ids: Iterable[str] = (),
    ) -> dict[str, Any]:
        cleaned = (description or "").strip() or None
        collection = self._repo.create(owner_id, cleaned, _dedupe(item_ids))
        logger.info("collection.created id=%s items=%d", collection.id, len(collection.item_ids))
        return self._expand(collection)

    def list_collections(self, search: Optional[str] = None) -> list[dict[str, Any]]:
        collections = self._repo.list_collections((search or "").strip() or None)
        all_ids = [i for collection in collections for i in collection.item_ids]
        by_id = {item.id: item for item in self._collectibles.get_many(all_ids)}
        return [
            self._expander.collection(collection, [by_id[i] for i in collection.item_ids if i in by_id])
            for collection in collections
        ]

    def get_collection(self, collection_id: str) -> dict[str, Any]:
        return self._expand(self._require(collection_id))

    def update_collection(self, collection_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Replace the description and/or the whole item list.

        Args:
            collection_id: The collection to update
            changes: Any of description, item_ids; absent keys are left untouched
        """
        current = self._require(collection_id)

        columns: dict[str, Any] = {}
        if "description" in changes:
            columns["description"] = (changes["description"] or "").strip() or None
        if "item_ids" in changes:
            columns["item_ids"] = _dedupe(changes["item_ids"] or [])

        if not columns:
            return self._expand(current)

        updated = self._repo.update(collection_id, columns)
        if updated is None:
            raise NotFoundError("Collection", collection_id)
        return self._expand(updated)

    def delete_collection(self, collection_id: str) -> None:
        if not self._repo.delete(collection_id):
            raise NotFoundError("Collection", collection_id)
        logger.info("collection.deleted id=%s", collection_id)

    def add_item(self, collection_id: str, item_id: str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: the collection or the collectible does not exist
            DuplicateItemError: the item is already in the collection
        """
        self._require(collection_id)
        if not self._collectibles.get_many([item_id]):
            raise NotFoundError("Collectible", item_id)

        self._repo.add_item(collection_id, item_id)
        logger.info("collection.item_added id=%s item=%s", collection_id, item_id)
        return self.get_collection(collection_id)

    def remove_item(self, collection_id: str, item_id: str) -> dict[str, Any]:
        self._require(collection_id)
        self._repo.remove_item(collection_id, item_id)
        return self.get_collection(collection_id)

    def search_collectibles(self, query: Optional[str]) -> list[dict[str, Any]]:
        """
        Search recommendations by description or metadata title and recipes
        by description or ingredient name. An empty query returns everything.

        Returns:
            Both kinds merged, newest first, each tagged with `kind`
        """
        term = (query or "").strip()

        recommendations = self._collectibles.search_recommendations(term)
        ingredient_ids = [i.id for i in self._catalog.search_ingredients(term)] if term else []
        recipes = self._collectibles.search_recipes(term, ingredient_ids)

        merged: list[Collectible] = [*recommendations, *recipes]
        merged.sort(key=_created_key, reverse=True)
        logger.info(
            "collectible.search term=%r recommendations=%d recipes=%d",
            term, len(recommendations), len(recipes),
        )
        return self._expander.collectibles(merged)

    def _require(self, collection_id: str) -> Collection:
        collection = self._repo.get(collection_id)
        if collection is None:
            raise NotFoundError("Collection", collection_id)
        return collection

    def _expand(self, collection: Collection) -> dict[str, Any]:
        by_id = {item.id: item for item in self._collectibles.get_many(collection.item_ids)}
        items = [by_id[i] for i in collection.item_ids if i in by_id]
        return self._expander.collection(collection, items)
