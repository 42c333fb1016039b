# src/app/services/serializers.py
"""
Shapes domain objects into the JSON payloads returned by the API.
Recipes are expanded against the catalog so callers never see raw ingredient/unit ids.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from src.app.domain.models import (
    Collectible,
    CollectibleKind,
    Collection,
    Event,
    Ingredient,
    Link,
    PageMetadata,
    Recipe,
    Recommendation,
    Step,
    Unit,
    User,
)
from src.app.infra.db.base import CatalogRepository
from src.services.formatting import format_timestamp


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "uid": user.uid,
        "email": user.email,
        "displayName": user.display_name,
        "photoUrl": user.photo_url,
        "role": user.role.value,
        "createdAt": format_timestamp(user.created_at),
    }


def serialize_named(entry: Ingredient | Unit) -> dict[str, Any]:
    return {"id": entry.id, "name": entry.name}


def serialize_link(link: Link) -> dict[str, Any]:
    return {"url": link.url, "type": link.type.value, "description": link.description}


def serialize_step(step: Step) -> dict[str, Any]:
    return {"description": step.description, "order": step.order, "imageUrl": step.image_url}


def serialize_metadata(metadata: Optional[PageMetadata]) -> Optional[dict[str, Any]]:
    if metadata is None:
        return None
    return {
        "title": metadata.title,
        "description": metadata.description,
        "image": metadata.image,
        "url": metadata.url,
        "site": metadata.site,
    }


def serialize_recipe(
    recipe: Recipe,
    ingredients_by_id: dict[str, Ingredient],
    units_by_id: dict[str, Unit],
) -> dict[str, Any]:
    """Dangling ingredient/unit references expand to None."""
    lines = []
    for line in recipe.ingredients:
        ingredient = ingredients_by_id.get(line.ingredient_id)
        unit = units_by_id.get(line.unit_id)
        lines.append(
            {
                "ingredient": serialize_named(ingredient) if ingredient else None,
                "amount": line.amount,
                "unit": serialize_named(unit) if unit else None,
            }
        )

    # sorted() is stable, so steps sharing an order keep their stored sequence.
    steps = sorted(recipe.steps, key=lambda step: step.order)

    return {
        "id": recipe.id,
        "kind": recipe.kind.value,
        "description": recipe.description,
        "ownerId": recipe.owner_id,
        "ingredients": lines,
        "steps": [serialize_step(step) for step in steps],
        "links": [serialize_link(link) for link in recipe.links],
        "coverImage": recipe.cover_image,
        "createdAt": format_timestamp(recipe.created_at),
        "updatedAt": format_timestamp(recipe.updated_at),
    }


def serialize_recommendation(recommendation: Recommendation) -> dict[str, Any]:
    return {
        "id": recommendation.id,
        "kind": recommendation.kind.value,
        "ownerId": recommendation.owner_id,
        "link": recommendation.link,
        "category": recommendation.category.value,
        "description": recommendation.description,
        "metadata": serialize_metadata(recommendation.metadata),
        "status": recommendation.status.value,
        "promotedRecipeId": recommendation.promoted_recipe_id,
        "createdAt": format_timestamp(recommendation.created_at),
        "updatedAt": format_timestamp(recommendation.updated_at),
    }


def serialize_event(event: Event) -> dict[str, Any]:
    return {"id": event.id, "name": event.name, "value": event.value}


class CollectibleExpander:
    """
    Expands recipes and mixed collectible lists with one catalog lookup per batch.
    """

    def __init__(self, catalog: CatalogRepository):
        self._catalog = catalog

    def recipes(self, recipes: Iterable[Recipe]) -> list[dict[str, Any]]:
        recipes = list(recipes)
        ingredient_ids = {i for recipe in recipes for i in recipe.ingredient_ids}
        unit_ids = {u for recipe in recipes for u in recipe.unit_ids}

        ingredients_by_id = {i.id: i for i in self._catalog.get_ingredients(ingredient_ids)}
        units_by_id = {u.id: u for u in self._catalog.get_units(unit_ids)}

        return [serialize_recipe(recipe, ingredients_by_id, units_by_id) for recipe in recipes]

    def recipe(self, recipe: Recipe) -> dict[str, Any]:
        return self.recipes([recipe])[0]

    def collectibles(self, items: Iterable[Collectible]) -> list[dict[str, Any]]:
        """Serialize a mixed list, preserving its order."""
        items = list(items)
        expanded_recipes = iter(self.recipes(item for item in items if item.kind == CollectibleKind.RECIPE))

        payload = []
        for item in items:
            if item.kind == CollectibleKind.RECIPE:
                payload.append(next(expanded_recipes))
            else:
                payload.append(serialize_recommendation(item))
        return payload

    def collection(self, collection: Collection, items: Iterable[Collectible]) -> dict[str, Any]:
        return {
            "id": collection.id,
            "description": collection.description,
            "ownerId": collection.owner_id,
            "items": self.collectibles(items),
            "createdAt": format_timestamp(collection.created_at),
            "updatedAt": format_timestamp(collection.updated_at),
        }
