# src/app/services/recipe_service.py
"""
Recipe service.
Validates recipe payloads against the catalog and returns expanded recipes.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from src.app.domain.errors import NotFoundError, ValidationError
from src.app.domain.models import IngredientLine, Link, Recipe, Step
from src.app.infra.db.base import CatalogRepository, CollectibleRepository
from src.app.infra.db.supabase_repos import SupabaseCatalogRepository, SupabaseCollectibleRepository
from src.app.services.serializers import CollectibleExpander
from src.services.links import build_link

logger = logging.getLogger(__name__)

def require_description(description: Optional[str]) -> str:
    cleaned = (description or "").strip()
    if not cleaned:
        raise ValidationError("Description is required", field="description")
    return cleaned


def parse_ingredient_lines(raw_lines: Iterable[dict[str, Any]]) -> list[IngredientLine]:
    """
    Build ingredient lines from request data.

    Each entry needs `ingredient` (id), `amount` (number >= 0) and `unit` (id).
    """
    lines: list[IngredientLine] = []
    for index, raw in enumerate(raw_lines):
        ingredient_id = raw.get("ingredient")
        unit_id = raw.get("unit")
        amount = raw.get("amount")

        if not ingredient_id:
            raise ValidationError("Ingredient reference is required", field=f"ingredients[{index}].ingredient")
        if amount is None:
            raise ValidationError("Ingredient amount is required", field=f"ingredients[{index}].amount")
        if not unit_id:
            raise ValidationError("Unit reference is required", field=f"ingredients[{index}].unit")
        try:
            amount = float(amount)
        except (TypeError, ValueError) as error:
            raise ValidationError("Ingredient amount must be a number", field=f"ingredients[{index}].amount") from error
        if amount < 0:
            raise ValidationError("Ingredient amount must not be negative", field=f"ingredients[{index}].amount")

        lines.append(IngredientLine(ingredient_id=str(ingredient_id), amount=amount, unit_id=str(unit_id)))
    return lines


def parse_steps(raw_steps: Iterable[dict[str, Any]]) -> list[Step]:
    steps: list[Step] = []
    for index, raw in enumerate(raw_steps):
        description = (raw.get("description") or "").strip()
        if not description:
            raise ValidationError("Step description is required", field=f"steps[{index}].description")
        order = raw.get("order")
        steps.append(
            Step(
                description=description,
                order=int(order) if order is not None else index,
                image_url=raw.get("imageUrl") or None,
            )
        )
    return steps


def parse_links(raw_links: Iterable[dict[str, Any]]) -> list[Link]:
    links: list[Link] = []
    for index, raw in enumerate(raw_links):
        try:
            links.append(build_link(raw.get("url") or "", raw.get("description")))
        except ValueError as error:
            raise ValidationError(str(error), field=f"links[{index}].url") from error
    return links


class RecipeService:
    """
    Responsibilities:
    - Create, read, update and delete recipes
    - Check that every ingredient line references known catalog entries
    - Append links with an inferred link type
    """

    def __init__(
        self,
        repository: Optional[CollectibleRepository] = None,
        catalog: Optional[CatalogRepository] = None,
    ):
        self._repo = repository or SupabaseCollectibleRepository()
        self._catalog = catalog or SupabaseCatalogRepository()
        self._expander = CollectibleExpander(self._catalog)

    def create_recipe(
        self,
        owner_id: Optional[str],
        description: Optional[str],
        ingredients: Iterable[dict[str, Any]] = (),
        steps: Iterable[dict[str, Any]] = (),
        links: Iterable[dict[str, Any]] = (),
        cover_image: Optional[str] = None,
    ) -> dict[str, Any]:
        cleaned_description = require_description(description)
        lines = parse_ingredient_lines(ingredients)
        self._check_references(lines)

        recipe = self._repo.create_recipe(
            owner_id=owner_id,
            description=cleaned_description,
            ingredients=lines,
            steps=parse_steps(steps),
            links=parse_links(links),
            cover_image=cover_image or None,
        )
        logger.info("recipe.created id=%s owner=%s lines=%d", recipe.id, owner_id, len(lines))
        return self._expander.recipe(recipe)

    def get_recipe(self, recipe_id: str) -> dict[str, Any]:
        return self._expander.recipe(self._require(recipe_id))

    def list_recipes(self) -> list[dict[str, Any]]:
        return self._expander.recipes(self._repo.list_recipes())

    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Replace the provided fields of a recipe.

        Args:
            recipe_id: The recipe to update
            changes: Any of description, ingredients, steps, cover_image;
                absent keys are left untouched

        Raises:
            NotFoundError: no recipe has this id
            ValidationError: the new values are invalid
        """
        current = self._require(recipe_id)

        columns: dict[str, Any] = {}
        if "description" in changes:
            columns["description"] = require_description(changes["description"])
        if "ingredients" in changes:
            lines = parse_ingredient_lines(changes["ingredients"] or [])
            self._check_references(lines)
            columns["ingredients"] = lines
        if "steps" in changes:
            columns["steps"] = parse_steps(changes["steps"] or [])
        if "cover_image" in changes:
            columns["cover_image"] = changes["cover_image"] or None

        if not columns:
            return self._expander.recipe(current)

        updated = self._repo.update_recipe(recipe_id, columns)
        if updated is None:
            raise NotFoundError("Recipe", recipe_id)
        return self._expander.recipe(updated)

    def delete_recipe(self, recipe_id: str) -> None:
        if not self._repo.delete_recipe(recipe_id):
            raise NotFoundError("Recipe", recipe_id)
        logger.info("recipe.deleted id=%s", recipe_id)

    def add_link(self, recipe_id: str, url: Optional[str], description: Optional[str] = None) -> dict[str, Any]:
        recipe = self._require(recipe_id)
        link = parse_links([{"url": url, "description": description}])[0]

        updated = self._repo.update_recipe(recipe_id, {"links": [*recipe.links, link]})
        if updated is None:
            raise NotFoundError("Recipe", recipe_id)
        logger.info("recipe.link_added id=%s type=%s", recipe_id, link.type.value)
        return self._expander.recipe(updated)

    def _require(self, recipe_id: str) -> Recipe:
        recipe = self._repo.get_recipe(recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    def _check_references(self, lines: list[IngredientLine]) -> None:
        if not lines:
            return
        wanted_ingredients = {line.ingredient_id for line in lines}
        wanted_units = {line.unit_id for line in lines}

        known_ingredients = {i.id for i in self._catalog.get_ingredients(wanted_ingredients)}
        known_units = {u.id for u in self._catalog.get_units(wanted_units)}

        missing_ingredients = sorted(wanted_ingredients - known_ingredients)
        if missing_ingredients:
            raise ValidationError(f"Unknown ingredient: {missing_ingredients[0]}", field="ingredients")
        missing_units = sorted(wanted_units - known_units)
        if missing_units:
            raise ValidationError(f"Unknown unit: {missing_units[0]}", field="ingredients")
