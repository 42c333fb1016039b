from __future__ import annotations

import pytest

from src.app.domain.errors import DuplicateItemError, NotFoundError
from src.app.domain.models import IngredientLine, PageMetadata, RecommendationCategory
from src.app.services.collection_service import CollectionService
from tests.stubs import (
    FakeClock,
    InMemoryCatalogRepository,
    InMemoryCollectibleRepository,
    InMemoryCollectionRepository,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> InMemoryCatalogRepository:
    repo = InMemoryCatalogRepository()
    repo.add_ingredient("Basil", ingredient_id="ing-basil")
    repo.add_ingredient("Flour", ingredient_id="ing-flour")
    repo.add_unit("gram", unit_id="unit-g")
    return repo


@pytest.fixture
def collectibles(clock: FakeClock) -> InMemoryCollectibleRepository:
    return InMemoryCollectibleRepository(clock)


@pytest.fixture
def collections(clock: FakeClock) -> InMemoryCollectionRepository:
    return InMemoryCollectionRepository(clock)


@pytest.fixture
def service(
    collections: InMemoryCollectionRepository,
    collectibles: InMemoryCollectibleRepository,
    catalog: InMemoryCatalogRepository,
) -> CollectionService:
    return CollectionService(repository=collections, collectibles=collectibles, catalog=catalog)


def _recipe(collectibles: InMemoryCollectibleRepository, description: str, ingredient_id: str = "ing-flour"):
    return collectibles.create_recipe(
        owner_id="user-1",
        description=description,
        ingredients=[IngredientLine(ingredient_id=ingredient_id, amount=10, unit_id="unit-g")],
        steps=[],
        links=[],
    )


def _recommendation(collectibles: InMemoryCollectibleRepository, description=None, title=None):
    return collectibles.create_recommendation(
        owner_id="user-1",
        link="https://example.com",
        category=RecommendationCategory.ARTICLE,
        description=description,
        metadata=PageMetadata(title=title) if title else None,
    )


class TestCreateCollection:
    def test_deduplicates_items_preserving_order(self, service: CollectionService, collectibles) -> None:
        first = _recipe(collectibles, "Pesto")
        second = _recommendation(collectibles, "Trip")

        created = service.create_collection("user-1", "Summer", [second.id, first.id, second.id])

        assert [item["id"] for item in created["items"]] == [second.id, first.id]
        assert [item["kind"] for item in created["items"]] == ["recommendation", "recipe"]

    def test_recipe_items_are_expanded(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto", "ing-basil")

        created = service.create_collection("user-1", "Summer", [recipe.id])

        line = created["items"][0]["ingredients"][0]
        assert line["ingredient"] == {"id": "ing-basil", "name": "Basil"}
        assert line["unit"] == {"id": "unit-g", "name": "gram"}

    def test_timestamps_have_whole_seconds(self, service: CollectionService) -> None:
        created = service.create_collection("user-1", "Summer")

        assert created["createdAt"] == "2024-01-01T12:00:01Z"


class TestReadCollections:
    def test_missing_collectibles_are_skipped(self, service: CollectionService, collectibles) -> None:
        kept = _recipe(collectibles, "Pesto")
        dropped = _recipe(collectibles, "Bread")
        created = service.create_collection("user-1", "Summer", [kept.id, dropped.id])
        collectibles.delete_recipe(dropped.id)

        fetched = service.get_collection(created["id"])

        assert [item["id"] for item in fetched["items"]] == [kept.id]

    def test_get_missing(self, service: CollectionService) -> None:
        with pytest.raises(NotFoundError):
            service.get_collection("nope")

    def test_search_by_description(self, service: CollectionService) -> None:
        service.create_collection("user-1", "Summer dinners")
        service.create_collection("user-1", "Winter soups")

        found = service.list_collections("SUMMER")

        assert [c["description"] for c in found] == ["Summer dinners"]

    def test_list_all_newest_first(self, service: CollectionService) -> None:
        service.create_collection("user-1", "First")
        service.create_collection("user-2", "Second")

        assert [c["description"] for c in service.list_collections()] == ["Second", "First"]


class TestUpdateCollection:
    def test_replace_items(self, service: CollectionService, collectibles) -> None:
        first = _recipe(collectibles, "Pesto")
        second = _recipe(collectibles, "Bread")
        created = service.create_collection("user-1", "Summer", [first.id])

        updated = service.update_collection(created["id"], {"item_ids": [second.id, second.id]})

        assert [item["id"] for item in updated["items"]] == [second.id]
        assert updated["description"] == "Summer"

    def test_description_only(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")
        created = service.create_collection("user-1", "Summer", [recipe.id])

        updated = service.update_collection(created["id"], {"description": "Autumn"})

        assert updated["description"] == "Autumn"
        assert [item["id"] for item in updated["items"]] == [recipe.id]

    def test_missing(self, service: CollectionService) -> None:
        with pytest.raises(NotFoundError):
            service.update_collection("nope", {"description": "x"})


class TestCollectionItems:
    def test_add_item(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")
        created = service.create_collection("user-1", "Summer")

        updated = service.add_item(created["id"], recipe.id)

        assert [item["id"] for item in updated["items"]] == [recipe.id]

    def test_add_twice_is_conflict_and_kept_once(
        self,
        service: CollectionService,
        collectibles,
        collections: InMemoryCollectionRepository,
    ) -> None:
        recipe = _recipe(collectibles, "Pesto")
        created = service.create_collection("user-1", "Summer")
        service.add_item(created["id"], recipe.id)

        with pytest.raises(DuplicateItemError):
            service.add_item(created["id"], recipe.id)

        assert collections.get(created["id"]).item_ids == [recipe.id]

    def test_add_to_missing_collection(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")

        with pytest.raises(NotFoundError):
            service.add_item("nope", recipe.id)

    def test_add_missing_collectible(self, service: CollectionService) -> None:
        created = service.create_collection("user-1", "Summer")

        with pytest.raises(NotFoundError) as exc_info:
            service.add_item(created["id"], "ghost")

        assert exc_info.value.entity == "Collectible"

    def test_remove_item(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")
        created = service.create_collection("user-1", "Summer", [recipe.id])

        updated = service.remove_item(created["id"], recipe.id)

        assert updated["items"] == []

    def test_remove_non_member_is_noop(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")
        created = service.create_collection("user-1", "Summer", [recipe.id])

        updated = service.remove_item(created["id"], "not-a-member")

        assert [item["id"] for item in updated["items"]] == [recipe.id]

    def test_remove_from_missing_collection(self, service: CollectionService) -> None:
        with pytest.raises(NotFoundError):
            service.remove_item("nope", "x")


class TestDeleteCollection:
    def test_delete_keeps_collectibles(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")
        created = service.create_collection("user-1", "Summer", [recipe.id])

        service.delete_collection(created["id"])

        assert collectibles.get_recipe(recipe.id) is not None
        with pytest.raises(NotFoundError):
            service.get_collection(created["id"])

    def test_delete_missing(self, service: CollectionService) -> None:
        with pytest.raises(NotFoundError):
            service.delete_collection("nope")


class TestSearchCollectibles:
    def test_empty_query_returns_everything_tagged(self, service: CollectionService, collectibles) -> None:
        recipe = _recipe(collectibles, "Pesto")
        recommendation = _recommendation(collectibles, "Trip")

        results = service.search_collectibles("")

        assert [(item["id"], item["kind"]) for item in results] == [
            (recommendation.id, "recommendation"),
            (recipe.id, "recipe"),
        ]

    def test_matches_recommendation_title(self, service: CollectionService, collectibles) -> None:
        match = _recommendation(collectibles, title="Basil farm tour")
        _recommendation(collectibles, "Unrelated")

        results = service.search_collectibles("basil")

        assert [item["id"] for item in results] == [match.id]

    def test_matches_recipe_by_ingredient_name(self, service: CollectionService, collectibles) -> None:
        by_ingredient = _recipe(collectibles, "Green sauce", "ing-basil")
        _recipe(collectibles, "Bread", "ing-flour")
        by_description = _recipe(collectibles, "Basil lemonade", "ing-flour")

        results = service.search_collectibles("Basil")

        assert [item["id"] for item in results] == [by_description.id, by_ingredient.id]

    def test_results_newest_first_with_whole_second_timestamps(
        self,
        service: CollectionService,
        collectibles,
    ) -> None:
        _recipe(collectibles, "Old pesto")
        _recommendation(collectibles, "New pesto place")

        results = service.search_collectibles("pesto")

        assert [item["kind"] for item in results] == ["recommendation", "recipe"]
        assert all("." not in item["createdAt"] and item["createdAt"].endswith("Z") for item in results)
