# src/app/infra/db/base.py
"""
Abstract repositories for the document store.
These interfaces keep the services independent of the storage backend.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from src.app.domain.models import (
    Collectible,
    Collection,
    Event,
    IdentityClaims,
    Ingredient,
    IngredientLine,
    Link,
    PageMetadata,
    Recipe,
    Recommendation,
    RecommendationCategory,
    RecommendationStatus,
    Step,
    Unit,
    User,
    UserRole,
)


class UserRepository(ABC):
    """
    Local user records keyed by the identity provider's uid.

    Implementations:
    - SupabaseUserRepository
    """

    @abstractmethod
    def get_by_uid(self, uid: str) -> Optional[User]:
        pass

    @abstractmethod
    def create(self, claims: IdentityClaims, role: UserRole = UserRole.USER) -> User:
        """
        Insert a user for the given claims.

        Raises:
            ConflictError: a user with the same uid already exists.
        """
        pass

    @abstractmethod
    def list_users(self) -> list[User]:
        pass

    @abstractmethod
    def search(self, term: str) -> list[User]:
        """Case-insensitive substring match over email and display name."""
        pass


class CatalogRepository(ABC):
    """Flat reference tables: ingredients and units."""

    @abstractmethod
    def create_ingredient(self, name: str) -> Ingredient:
        """
        Raises:
            ConflictError: an ingredient with this name already exists.
        """
        pass

    @abstractmethod
    def upsert_ingredients(self, names: Iterable[str]) -> list[Ingredient]:
        pass

    @abstractmethod
    def list_ingredients(self) -> list[Ingredient]:
        pass

    @abstractmethod
    def get_ingredients(self, ingredient_ids: Iterable[str]) -> list[Ingredient]:
        pass

    @abstractmethod
    def search_ingredients(self, term: str) -> list[Ingredient]:
        pass

    @abstractmethod
    def create_unit(self, name: str) -> Unit:
        pass

    @abstractmethod
    def list_units(self) -> list[Unit]:
        pass

    @abstractmethod
    def get_units(self, unit_ids: Iterable[str]) -> list[Unit]:
        pass


class CollectibleRepository(ABC):
    """
    Polymorphic store for recipes and recommendations.

    Both variants live in one table, tagged by `kind`; every method that
    addresses a single row also filters on the variant it expects, so a
    recipe id never resolves as a recommendation and vice versa.
    """

    @abstractmethod
    def create_recipe(
        self,
        owner_id: Optional[str],
        description: str,
        ingredients: list[IngredientLine],
        steps: list[Step],
        links: list[Link],
        cover_image: Optional[str] = None,
    ) -> Recipe:
        pass

    @abstractmethod
    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        pass

    @abstractmethod
    def list_recipes(self) -> list[Recipe]:
        pass

    @abstractmethod
    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        """
        Replace the given fields of a recipe.

        Args:
            recipe_id: The recipe to update
            changes: Any of description, ingredients, steps, links, cover_image

        Returns:
            The updated recipe, or None if no recipe has this id
        """
        pass

    @abstractmethod
    def delete_recipe(self, recipe_id: str) -> bool:
        pass

    @abstractmethod
    def create_recommendation(
        self,
        owner_id: str,
        link: str,
        category: RecommendationCategory,
        description: Optional[str],
        metadata: Optional[PageMetadata],
    ) -> Recommendation:
        pass

    @abstractmethod
    def get_recommendation(self, recommendation_id: str) -> Optional[Recommendation]:
        pass

    @abstractmethod
    def list_recommendations(self) -> list[Recommendation]:
        pass

    @abstractmethod
    def update_recommendation(
        self,
        recommendation_id: str,
        changes: dict[str, Any],
    ) -> Optional[Recommendation]:
        """
        Replace the given fields of a recommendation.

        Args:
            recommendation_id: The recommendation to update
            changes: Any of link, category, description, metadata

        Returns:
            The updated recommendation, or None if it does not exist
        """
        pass

    @abstractmethod
    def delete_recommendation(self, recommendation_id: str) -> bool:
        pass

    @abstractmethod
    def transition_status(
        self,
        recommendation_id: str,
        expected: RecommendationStatus,
        new: RecommendationStatus,
    ) -> bool:
        """
        Atomically move a recommendation from `expected` to `new`.

        Returns:
            True if the row was in `expected` and has been updated,
            False if it was not (missing, or another request got there first)
        """
        pass

    @abstractmethod
    def set_promoted_recipe(self, recommendation_id: str, recipe_id: str) -> None:
        pass

    @abstractmethod
    def get_many(self, collectible_ids: Iterable[str]) -> list[Collectible]:
        """Fetch collectibles of either variant; unknown ids are silently absent."""
        pass

    @abstractmethod
    def search_recommendations(self, term: str) -> list[Recommendation]:
        """Match on description or metadata title; an empty term matches everything."""
        pass

    @abstractmethod
    def search_recipes(self, term: str, ingredient_ids: Iterable[str] = ()) -> list[Recipe]:
        """Match on description or on referencing any of `ingredient_ids`."""
        pass


class CollectionRepository(ABC):
    """Collections and their ordered item-reference lists."""

    @abstractmethod
    def create(
        self,
        owner_id: Optional[str],
        description: Optional[str],
        item_ids: list[str],
    ) -> Collection:
        pass

    @abstractmethod
    def get(self, collection_id: str) -> Optional[Collection]:
        pass

    @abstractmethod
    def list_collections(self, term: Optional[str] = None) -> list[Collection]:
        pass

    @abstractmethod
    def update(self, collection_id: str, changes: dict[str, Any]) -> Optional[Collection]:
        """
        Replace the description and/or the whole item list.

        Returns:
            The updated collection, or None if it does not exist
        """
        pass

    @abstractmethod
    def add_item(self, collection_id: str, item_id: str) -> None:
        """
        Append an item id in a single atomic write.

        Raises:
            DuplicateItemError: the id is already in the collection
            NotFoundError: the collection does not exist
        """
        pass

    @abstractmethod
    def remove_item(self, collection_id: str, item_id: str) -> None:
        """Pull an item id; removing a non-member is a no-op."""
        pass

    @abstractmethod
    def delete(self, collection_id: str) -> bool:
        pass


class EventRepository(ABC):

    @abstractmethod
    def create(self, name: str, value: str) -> Event:
        pass

    @abstractmethod
    def get(self, event_id: str) -> Optional[Event]:
        pass

    @abstractmethod
    def list_events(self) -> list[Event]:
        pass
