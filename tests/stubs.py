from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional
from uuid import uuid4

from src.app.domain.errors import (
    ConflictError,
    DuplicateItemError,
    ForbiddenError,
    NotFoundError,
    RepositoryError,
)
from src.app.domain.models import (
    Collectible,
    Collection,
    Event,
    IdentityClaims,
    Ingredient,
    IngredientLine,
    Link,
    MetadataResult,
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
from src.app.infra.auth.base import TokenVerifier
from src.app.infra.db.base import (
    CatalogRepository,
    CollectibleRepository,
    CollectionRepository,
    EventRepository,
    UserRepository,
)


class FakeClock:
    """Monotonic timestamps with a fractional part, one second apart."""

    def __init__(self) -> None:
        self._current = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

    def now(self) -> datetime:
        self._current += timedelta(seconds=1)
        return self._current


class InMemoryUserRepository(UserRepository):
    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.users: dict[str, User] = {}
        self.clock = clock or FakeClock()
        self.create_calls = 0
        # Simulates a concurrent request inserting the same uid first.
        self.race_on_next_create = False

    def get_by_uid(self, uid: str) -> Optional[User]:
        return self.users.get(uid)

    def create(self, claims: IdentityClaims, role: UserRole = UserRole.USER) -> User:
        self.create_calls += 1
        if self.race_on_next_create:
            self.race_on_next_create = False
            self._store(claims, role)
            raise ConflictError(f"User already exists: {claims.uid}")
        if claims.uid in self.users:
            raise ConflictError(f"User already exists: {claims.uid}")
        return self._store(claims, role)

    def _store(self, claims: IdentityClaims, role: UserRole) -> User:
        user = User(
            id=str(uuid4()),
            uid=claims.uid,
            email=claims.email,
            display_name=claims.display_name,
            photo_url=claims.photo_url,
            role=role,
            created_at=self.clock.now(),
        )
        self.users[claims.uid] = user
        return user

    def list_users(self) -> list[User]:
        return list(self.users.values())

    def search(self, term: str) -> list[User]:
        needle = term.lower()
        return [
            user
            for user in self.users.values()
            if needle in (user.email or "").lower() or needle in (user.display_name or "").lower()
        ]


class InMemoryCatalogRepository(CatalogRepository):
    def __init__(self) -> None:
        self.ingredients: dict[str, Ingredient] = {}
        self.units: dict[str, Unit] = {}

    def add_ingredient(self, name: str, ingredient_id: Optional[str] = None) -> Ingredient:
        ingredient = Ingredient(id=ingredient_id or str(uuid4()), name=name)
        self.ingredients[ingredient.id] = ingredient
        return ingredient

    def add_unit(self, name: str, unit_id: Optional[str] = None) -> Unit:
        unit = Unit(id=unit_id or str(uuid4()), name=name)
        self.units[unit.id] = unit
        return unit

    def create_ingredient(self, name: str) -> Ingredient:
        if any(i.name == name for i in self.ingredients.values()):
            raise ConflictError(f"Ingredient already exists: {name}")
        return self.add_ingredient(name)

    def upsert_ingredients(self, names: Iterable[str]) -> list[Ingredient]:
        stored = []
        for name in dict.fromkeys(names):
            existing = next((i for i in self.ingredients.values() if i.name == name), None)
            stored.append(existing or self.add_ingredient(name))
        return stored

    def list_ingredients(self) -> list[Ingredient]:
        return sorted(self.ingredients.values(), key=lambda i: i.name)

    def get_ingredients(self, ingredient_ids: Iterable[str]) -> list[Ingredient]:
        return [self.ingredients[i] for i in ingredient_ids if i in self.ingredients]

    def search_ingredients(self, term: str) -> list[Ingredient]:
        needle = term.lower()
        return [i for i in self.ingredients.values() if needle and needle in i.name.lower()]

    def create_unit(self, name: str) -> Unit:
        return self.add_unit(name)

    def list_units(self) -> list[Unit]:
        return sorted(self.units.values(), key=lambda u: u.name)

    def get_units(self, unit_ids: Iterable[str]) -> list[Unit]:
        return [self.units[u] for u in unit_ids if u in self.units]


class InMemoryCollectibleRepository(CollectibleRepository):
    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.items: dict[str, Collectible] = {}
        self.clock = clock or FakeClock()
        self.fail_next_recipe_create = False
        self.fail_next_release = False
        self.transitions: list[tuple[str, RecommendationStatus, RecommendationStatus]] = []

    def create_recipe(
        self,
        owner_id: Optional[str],
        description: str,
        ingredients: list[IngredientLine],
        steps: list[Step],
        links: list[Link],
        cover_image: Optional[str] = None,
    ) -> Recipe:
        if self.fail_next_recipe_create:
            self.fail_next_recipe_create = False
            raise RepositoryError("create_recipe", "simulated outage")
        now = self.clock.now()
        recipe = Recipe(
            id=str(uuid4()),
            description=description,
            owner_id=owner_id,
            ingredients=list(ingredients),
            steps=list(steps),
            links=list(links),
            cover_image=cover_image,
            created_at=now,
            updated_at=now,
        )
        self.items[recipe.id] = recipe
        return recipe

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        item = self.items.get(recipe_id)
        return item if isinstance(item, Recipe) else None

    def list_recipes(self) -> list[Recipe]:
        return self._newest_first([i for i in self.items.values() if isinstance(i, Recipe)])

    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        recipe = self.get_recipe(recipe_id)
        if recipe is None:
            return None
        updated = replace(recipe, **changes, updated_at=self.clock.now())
        self.items[recipe_id] = updated
        return updated

    def delete_recipe(self, recipe_id: str) -> bool:
        if self.get_recipe(recipe_id) is None:
            return False
        del self.items[recipe_id]
        return True

    def create_recommendation(
        self,
        owner_id: str,
        link: str,
        category: RecommendationCategory,
        description: Optional[str],
        metadata: Optional[PageMetadata],
    ) -> Recommendation:
        now = self.clock.now()
        recommendation = Recommendation(
            id=str(uuid4()),
            owner_id=owner_id,
            link=link,
            category=category,
            description=description,
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )
        self.items[recommendation.id] = recommendation
        return recommendation

    def get_recommendation(self, recommendation_id: str) -> Optional[Recommendation]:
        item = self.items.get(recommendation_id)
        return item if isinstance(item, Recommendation) else None

    def list_recommendations(self) -> list[Recommendation]:
        return self._newest_first([i for i in self.items.values() if isinstance(i, Recommendation)])

    def update_recommendation(self, recommendation_id: str, changes: dict[str, Any]) -> Optional[Recommendation]:
        recommendation = self.get_recommendation(recommendation_id)
        if recommendation is None:
            return None
        updated = replace(recommendation, **changes, updated_at=self.clock.now())
        self.items[recommendation_id] = updated
        return updated

    def delete_recommendation(self, recommendation_id: str) -> bool:
        if self.get_recommendation(recommendation_id) is None:
            return False
        del self.items[recommendation_id]
        return True

    def transition_status(
        self,
        recommendation_id: str,
        expected: RecommendationStatus,
        new: RecommendationStatus,
    ) -> bool:
        if self.fail_next_release and expected == RecommendationStatus.PROMOTED:
            self.fail_next_release = False
            raise RepositoryError("transition_status", "simulated outage")
        recommendation = self.get_recommendation(recommendation_id)
        if recommendation is None or recommendation.status != expected:
            return False
        self.items[recommendation_id] = replace(recommendation, status=new)
        self.transitions.append((recommendation_id, expected, new))
        return True

    def set_promoted_recipe(self, recommendation_id: str, recipe_id: str) -> None:
        recommendation = self.get_recommendation(recommendation_id)
        if recommendation is not None:
            self.items[recommendation_id] = replace(recommendation, promoted_recipe_id=recipe_id)

    def get_many(self, collectible_ids: Iterable[str]) -> list[Collectible]:
        return [self.items[i] for i in dict.fromkeys(collectible_ids) if i in self.items]

    def search_recommendations(self, term: str) -> list[Recommendation]:
        needle = term.lower()
        return [
            r
            for r in self.list_recommendations()
            if not needle
            or needle in (r.description or "").lower()
            or needle in ((r.metadata.title if r.metadata else None) or "").lower()
        ]

    def search_recipes(self, term: str, ingredient_ids: Iterable[str] = ()) -> list[Recipe]:
        needle = term.lower()
        wanted = set(ingredient_ids)
        return [
            r
            for r in self.list_recipes()
            if not needle or needle in r.description.lower() or wanted.intersection(r.ingredient_ids)
        ]

    @staticmethod
    def _newest_first(items: list) -> list:
        return sorted(items, key=lambda item: item.created_at, reverse=True)


class InMemoryCollectionRepository(CollectionRepository):
    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.collections: dict[str, Collection] = {}
        self.clock = clock or FakeClock()

    def create(self, owner_id: Optional[str], description: Optional[str], item_ids: list[str]) -> Collection:
        now = self.clock.now()
        collection = Collection(
            id=str(uuid4()),
            description=description,
            owner_id=owner_id,
            item_ids=list(dict.fromkeys(item_ids)),
            created_at=now,
            updated_at=now,
        )
        self.collections[collection.id] = collection
        return collection

    def get(self, collection_id: str) -> Optional[Collection]:
        collection = self.collections.get(collection_id)
        return replace(collection, item_ids=list(collection.item_ids)) if collection else None

    def list_collections(self, term: Optional[str] = None) -> list[Collection]:
        needle = (term or "").lower()
        matches = [
            replace(c, item_ids=list(c.item_ids))
            for c in self.collections.values()
            if not needle or needle in (c.description or "").lower()
        ]
        return sorted(matches, key=lambda c: c.created_at, reverse=True)

    def update(self, collection_id: str, changes: dict[str, Any]) -> Optional[Collection]:
        collection = self.collections.get(collection_id)
        if collection is None:
            return None
        if "description" in changes:
            collection.description = changes["description"]
        if "item_ids" in changes:
            collection.item_ids = list(dict.fromkeys(changes["item_ids"]))
        collection.updated_at = self.clock.now()
        return self.get(collection_id)

    def add_item(self, collection_id: str, item_id: str) -> None:
        collection = self.collections.get(collection_id)
        if collection is None:
            raise NotFoundError("Collection", collection_id)
        if item_id in collection.item_ids:
            raise DuplicateItemError(collection_id, item_id)
        collection.item_ids.append(item_id)
        collection.updated_at = self.clock.now()

    def remove_item(self, collection_id: str, item_id: str) -> None:
        collection = self.collections.get(collection_id)
        if collection is not None and item_id in collection.item_ids:
            collection.item_ids.remove(item_id)
            collection.updated_at = self.clock.now()

    def delete(self, collection_id: str) -> bool:
        return self.collections.pop(collection_id, None) is not None


class InMemoryEventRepository(EventRepository):
    def __init__(self) -> None:
        self.events: dict[str, Event] = {}

    def create(self, name: str, value: str) -> Event:
        event = Event(id=str(uuid4()), name=name, value=value)
        self.events[event.id] = event
        return event

    def get(self, event_id: str) -> Optional[Event]:
        return self.events.get(event_id)

    def list_events(self) -> list[Event]:
        return list(self.events.values())


class FakeTokenVerifier(TokenVerifier):
    """Accepts tokens registered in `tokens`; everything else is forbidden."""

    def __init__(self, tokens: Optional[dict[str, IdentityClaims]] = None) -> None:
        self.tokens = dict(tokens or {})
        self.calls: list[str] = []

    def verify(self, token: str) -> IdentityClaims:
        self.calls.append(token)
        claims = self.tokens.get(token)
        if claims is None:
            raise ForbiddenError()
        return claims


class FakeMetadataExtractor:
    """Returns canned metadata per URL; unknown URLs fail."""

    def __init__(self, pages: Optional[dict[str, PageMetadata]] = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[str] = []

    def extract(self, url: str) -> MetadataResult:
        self.calls.append(url)
        metadata = self.pages.get(url)
        if metadata is None:
            return MetadataResult(metadata=None, error=f"Request failed for {url}")
        return MetadataResult(metadata=metadata)
