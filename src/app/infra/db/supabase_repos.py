from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from uuid import uuid4

from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.app.domain.errors import (
    ConflictError,
    DuplicateItemError,
    NotFoundError,
    RecipeBoxError,
    RepositoryError,
)
from src.app.domain.models import (
    Collectible,
    CollectibleKind,
    Collection,
    Event,
    IdentityClaims,
    Ingredient,
    IngredientLine,
    Link,
    LinkType,
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
from src.app.infra.db.base import (
    CatalogRepository,
    CollectibleRepository,
    CollectionRepository,
    EventRepository,
    UserRepository,
)
from src.services.formatting import parse_timestamp, safe_search_term, stringify_id

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes surfaced by PostgREST.
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
# Raised for malformed uuids, which can never match a row.
INVALID_TEXT_REPRESENTATION = "22P02"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _create_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
    return create_client(url, key)


def _translate_api_error(operation: str, error: APIError, entity: str = "Row", entity_id: str = "") -> RecipeBoxError:
    code = getattr(error, "code", None)
    if code == UNIQUE_VIOLATION:
        return ConflictError(f"{entity} already exists: {entity_id}".rstrip(": "))
    if code in (FOREIGN_KEY_VIOLATION, INVALID_TEXT_REPRESENTATION):
        return NotFoundError(entity, entity_id)
    logger.error("Supabase error during %s: code=%s message=%s", operation, code, getattr(error, "message", error))
    return RepositoryError(operation, str(getattr(error, "message", None) or error))


def _is_malformed_id(error: APIError) -> bool:
    return getattr(error, "code", None) == INVALID_TEXT_REPRESENTATION


def _ilike_pattern(term: str) -> str:
    return f"%{term}%"


def _unique_ids(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in ids if i))


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=stringify_id(row.get("user_id")),
        uid=str(row["uid"]),
        email=_safe_str(row.get("email")),
        display_name=_safe_str(row.get("display_name")),
        photo_url=_safe_str(row.get("photo_url")),
        role=UserRole(row.get("role") or UserRole.USER.value),
        created_at=parse_timestamp(row.get("created_at")),
    )


def _row_to_ingredient(row: dict[str, Any]) -> Ingredient:
    return Ingredient(id=stringify_id(row.get("ingredient_id")), name=str(row.get("name") or ""))


def _row_to_unit(row: dict[str, Any]) -> Unit:
    return Unit(id=stringify_id(row.get("unit_id")), name=str(row.get("name") or ""))


def _line_from_json(item: dict[str, Any]) -> IngredientLine:
    return IngredientLine(
        ingredient_id=stringify_id(item.get("ingredient_id")),
        amount=float(item.get("amount") or 0),
        unit_id=stringify_id(item.get("unit_id")),
    )


def _step_from_json(item: dict[str, Any]) -> Step:
    return Step(
        description=str(item.get("description") or ""),
        order=int(item.get("order") or 0),
        image_url=_safe_str(item.get("image_url")),
    )


def _link_from_json(item: dict[str, Any]) -> Link:
    raw_type = item.get("type") or LinkType.OTHER.value
    try:
        link_type = LinkType(raw_type)
    except ValueError:
        link_type = LinkType.OTHER
    return Link(url=str(item.get("url") or ""), type=link_type, description=_safe_str(item.get("description")))


def _metadata_from_json(value: Any) -> Optional[PageMetadata]:
    if not isinstance(value, dict):
        return None
    return PageMetadata(
        title=_safe_str(value.get("title")),
        description=_safe_str(value.get("description")),
        image=_safe_str(value.get("image")),
        url=_safe_str(value.get("url")),
        site=_safe_str(value.get("site")),
    )


def _row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=stringify_id(row.get("collectible_id")),
        description=str(row.get("description") or ""),
        owner_id=_safe_str(row.get("owner_id")),
        ingredients=[_line_from_json(item) for item in row.get("ingredients") or []],
        steps=[_step_from_json(item) for item in row.get("steps") or []],
        links=[_link_from_json(item) for item in row.get("links") or []],
        cover_image=_safe_str(row.get("cover_image")),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def _row_to_recommendation(row: dict[str, Any]) -> Recommendation:
    return Recommendation(
        id=stringify_id(row.get("collectible_id")),
        owner_id=str(row.get("owner_id") or ""),
        link=str(row.get("link") or ""),
        category=RecommendationCategory(row.get("category") or RecommendationCategory.OTHER.value),
        description=_safe_str(row.get("description")),
        metadata=_metadata_from_json(row.get("metadata")),
        status=RecommendationStatus(row.get("status") or RecommendationStatus.PENDING.value),
        promoted_recipe_id=_safe_str(row.get("promoted_recipe_id")),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def _row_to_collectible(row: dict[str, Any]) -> Collectible:
    if row.get("kind") == CollectibleKind.RECOMMENDATION.value:
        return _row_to_recommendation(row)
    return _row_to_recipe(row)


def _row_to_collection(row: dict[str, Any], item_ids: list[str]) -> Collection:
    return Collection(
        id=stringify_id(row.get("collection_id")),
        description=_safe_str(row.get("description")),
        owner_id=_safe_str(row.get("owner_id")),
        item_ids=item_ids,
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def _row_to_event(row: dict[str, Any]) -> Event:
    return Event(
        id=stringify_id(row.get("event_id")),
        name=str(row.get("name") or ""),
        value=str(row.get("value") or ""),
    )


# ---------------------------------------------------------------------------
# Domain -> JSON columns
# ---------------------------------------------------------------------------

def _lines_to_json(lines: list[IngredientLine]) -> list[dict[str, Any]]:
    return [
        {"ingredient_id": line.ingredient_id, "amount": line.amount, "unit_id": line.unit_id}
        for line in lines
    ]


def _steps_to_json(steps: list[Step]) -> list[dict[str, Any]]:
    return [
        {"description": step.description, "order": step.order, "image_url": step.image_url}
        for step in steps
    ]


def _links_to_json(links: list[Link]) -> list[dict[str, Any]]:
    return [
        {"url": link.url, "type": link.type.value, "description": link.description}
        for link in links
    ]


def _metadata_to_json(metadata: Optional[PageMetadata]) -> Optional[dict[str, Any]]:
    if metadata is None:
        return None
    return {
        "title": metadata.title,
        "description": metadata.description,
        "image": metadata.image,
        "url": metadata.url,
        "site": metadata.site,
    }


def _recipe_columns(changes: dict[str, Any]) -> dict[str, Any]:
    columns: dict[str, Any] = {}
    if "description" in changes:
        columns["description"] = changes["description"]
    if "ingredients" in changes:
        lines = changes["ingredients"]
        columns["ingredients"] = _lines_to_json(lines)
        # Denormalised for overlap search on ingredient ids.
        columns["ingredient_ids"] = sorted({line.ingredient_id for line in lines})
    if "steps" in changes:
        columns["steps"] = _steps_to_json(changes["steps"])
    if "links" in changes:
        columns["links"] = _links_to_json(changes["links"])
    if "cover_image" in changes:
        columns["cover_image"] = changes["cover_image"]
    return columns


def _recommendation_columns(changes: dict[str, Any]) -> dict[str, Any]:
    columns: dict[str, Any] = {}
    if "link" in changes:
        columns["link"] = changes["link"]
    if "category" in changes:
        category = changes["category"]
        columns["category"] = category.value if isinstance(category, RecommendationCategory) else category
    if "description" in changes:
        columns["description"] = changes["description"]
    if "metadata" in changes:
        columns["metadata"] = _metadata_to_json(changes["metadata"])
    return columns


class SupabaseUserRepository(UserRepository):
    TABLE_NAME = "users"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    def get_by_uid(self, uid: str) -> Optional[User]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").eq("uid", uid).limit(1).execute()
        except APIError as error:
            raise _translate_api_error("get_user", error, "User", uid) from error
        if not result.data:
            return None
        return _row_to_user(result.data[0])

    def create(self, claims: IdentityClaims, role: UserRole = UserRole.USER) -> User:
        data = {
            "user_id": str(uuid4()),
            "uid": claims.uid,
            "email": claims.email,
            "display_name": claims.display_name,
            "photo_url": claims.photo_url,
            "role": role.value,
            "created_at": _now_utc().isoformat(),
        }
        try:
            result = self._client.table(self.TABLE_NAME).insert(data).execute()
        except APIError as error:
            raise _translate_api_error("create_user", error, "User", claims.uid) from error

        if not result.data:
            raise RepositoryError("create_user", "insert returned no rows")

        user = _row_to_user(result.data[0])
        logger.info("Created user: id=%s, uid=%s", user.id, user.uid)
        return user

    def list_users(self) -> list[User]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").order("created_at", desc=True).execute()
        except APIError as error:
            raise _translate_api_error("list_users", error) from error
        return [_row_to_user(row) for row in result.data or []]

    def search(self, term: str) -> list[User]:
        cleaned = safe_search_term(term)
        query = self._client.table(self.TABLE_NAME).select("*")
        if cleaned:
            pattern = _ilike_pattern(cleaned)
            query = query.or_(f"email.ilike.{pattern},display_name.ilike.{pattern}")
        try:
            result = query.order("created_at", desc=True).execute()
        except APIError as error:
            raise _translate_api_error("search_users", error) from error
        return [_row_to_user(row) for row in result.data or []]


class SupabaseCatalogRepository(CatalogRepository):
    INGREDIENTS_TABLE = "ingredients"
    UNITS_TABLE = "units"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    def create_ingredient(self, name: str) -> Ingredient:
        data = {"ingredient_id": str(uuid4()), "name": name}
        try:
            result = self._client.table(self.INGREDIENTS_TABLE).insert(data).execute()
        except APIError as error:
            raise _translate_api_error("create_ingredient", error, "Ingredient", name) from error
        if not result.data:
            raise RepositoryError("create_ingredient", "insert returned no rows")
        logger.info("Created ingredient: name=%s", name)
        return _row_to_ingredient(result.data[0])

    def upsert_ingredients(self, names: Iterable[str]) -> list[Ingredient]:
        rows = [{"name": name} for name in dict.fromkeys(names)]
        if not rows:
            return []
        try:
            result = (
                self._client.table(self.INGREDIENTS_TABLE)
                .upsert(rows, on_conflict="name")
                .execute()
            )
        except APIError as error:
            raise _translate_api_error("upsert_ingredients", error) from error
        logger.info("Upserted %d ingredients", len(rows))
        return [_row_to_ingredient(row) for row in result.data or []]

    def list_ingredients(self) -> list[Ingredient]:
        return self._list(self.INGREDIENTS_TABLE, _row_to_ingredient)

    def get_ingredients(self, ingredient_ids: Iterable[str]) -> list[Ingredient]:
        return self._get_many(self.INGREDIENTS_TABLE, "ingredient_id", ingredient_ids, _row_to_ingredient)

    def search_ingredients(self, term: str) -> list[Ingredient]:
        cleaned = safe_search_term(term)
        if not cleaned:
            return []
        try:
            result = (
                self._client.table(self.INGREDIENTS_TABLE)
                .select("*")
                .ilike("name", _ilike_pattern(cleaned))
                .execute()
            )
        except APIError as error:
            raise _translate_api_error("search_ingredients", error) from error
        return [_row_to_ingredient(row) for row in result.data or []]

    def create_unit(self, name: str) -> Unit:
        data = {"unit_id": str(uuid4()), "name": name}
        try:
            result = self._client.table(self.UNITS_TABLE).insert(data).execute()
        except APIError as error:
            raise _translate_api_error("create_unit", error, "Unit", name) from error
        if not result.data:
            raise RepositoryError("create_unit", "insert returned no rows")
        logger.info("Created unit: name=%s", name)
        return _row_to_unit(result.data[0])

    def list_units(self) -> list[Unit]:
        return self._list(self.UNITS_TABLE, _row_to_unit)

    def get_units(self, unit_ids: Iterable[str]) -> list[Unit]:
        return self._get_many(self.UNITS_TABLE, "unit_id", unit_ids, _row_to_unit)

    def _list(self, table: str, mapper):
        try:
            result = self._client.table(table).select("*").order("name").execute()
        except APIError as error:
            raise _translate_api_error(f"list_{table}", error) from error
        return [mapper(row) for row in result.data or []]

    def _get_many(self, table: str, column: str, ids: Iterable[str], mapper):
        unique_ids = _unique_ids(ids)
        if not unique_ids:
            return []
        try:
            result = self._client.table(table).select("*").in_(column, unique_ids).execute()
        except APIError as error:
            if _is_malformed_id(error):
                return []
            raise _translate_api_error(f"get_{table}", error, table.rstrip("s").capitalize(), ", ".join(unique_ids)) from error
        return [mapper(row) for row in result.data or []]


class SupabaseCollectibleRepository(CollectibleRepository):
    TABLE_NAME = "collectibles"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    # -- recipes ------------------------------------------------------------

    def create_recipe(
        self,
        owner_id: Optional[str],
        description: str,
        ingredients: list[IngredientLine],
        steps: list[Step],
        links: list[Link],
        cover_image: Optional[str] = None,
    ) -> Recipe:
        now = _now_utc().isoformat()
        data: dict[str, Any] = {
            "collectible_id": str(uuid4()),
            "kind": CollectibleKind.RECIPE.value,
            "owner_id": owner_id,
            "created_at": now,
            "updated_at": now,
        }
        data.update(
            _recipe_columns(
                {
                    "description": description,
                    "ingredients": ingredients,
                    "steps": steps,
                    "links": links,
                    "cover_image": cover_image,
                }
            )
        )
        row = self._insert("create_recipe", data)
        recipe = _row_to_recipe(row)
        logger.info("Created recipe: id=%s, owner=%s", recipe.id, owner_id)
        return recipe

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        row = self._get_one("get_recipe", recipe_id, CollectibleKind.RECIPE)
        return _row_to_recipe(row) if row else None

    def list_recipes(self) -> list[Recipe]:
        rows = self._list_kind("list_recipes", CollectibleKind.RECIPE)
        return [_row_to_recipe(row) for row in rows]

    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        columns = _recipe_columns(changes)
        row = self._update("update_recipe", recipe_id, CollectibleKind.RECIPE, columns)
        if row is None:
            return None
        logger.info("Updated recipe: id=%s, fields=%s", recipe_id, sorted(columns))
        return _row_to_recipe(row)

    def delete_recipe(self, recipe_id: str) -> bool:
        return self._delete("delete_recipe", recipe_id, CollectibleKind.RECIPE)

    # -- recommendations ----------------------------------------------------

    def create_recommendation(
        self,
        owner_id: str,
        link: str,
        category: RecommendationCategory,
        description: Optional[str],
        metadata: Optional[PageMetadata],
    ) -> Recommendation:
        now = _now_utc().isoformat()
        data: dict[str, Any] = {
            "collectible_id": str(uuid4()),
            "kind": CollectibleKind.RECOMMENDATION.value,
            "owner_id": owner_id,
            "status": RecommendationStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }
        data.update(
            _recommendation_columns(
                {"link": link, "category": category, "description": description, "metadata": metadata}
            )
        )
        row = self._insert("create_recommendation", data)
        recommendation = _row_to_recommendation(row)
        logger.info("Created recommendation: id=%s, owner=%s, link=%s", recommendation.id, owner_id, link)
        return recommendation

    def get_recommendation(self, recommendation_id: str) -> Optional[Recommendation]:
        row = self._get_one("get_recommendation", recommendation_id, CollectibleKind.RECOMMENDATION)
        return _row_to_recommendation(row) if row else None

    def list_recommendations(self) -> list[Recommendation]:
        rows = self._list_kind("list_recommendations", CollectibleKind.RECOMMENDATION)
        return [_row_to_recommendation(row) for row in rows]

    def update_recommendation(
        self,
        recommendation_id: str,
        changes: dict[str, Any],
    ) -> Optional[Recommendation]:
        columns = _recommendation_columns(changes)
        row = self._update("update_recommendation", recommendation_id, CollectibleKind.RECOMMENDATION, columns)
        if row is None:
            return None
        logger.info("Updated recommendation: id=%s, fields=%s", recommendation_id, sorted(columns))
        return _row_to_recommendation(row)

    def delete_recommendation(self, recommendation_id: str) -> bool:
        return self._delete("delete_recommendation", recommendation_id, CollectibleKind.RECOMMENDATION)

    def transition_status(
        self,
        recommendation_id: str,
        expected: RecommendationStatus,
        new: RecommendationStatus,
    ) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update({"status": new.value, "updated_at": _now_utc().isoformat()})
                .eq("collectible_id", recommendation_id)
                .eq("kind", CollectibleKind.RECOMMENDATION.value)
                .eq("status", expected.value)
                .execute()
            )
        except APIError as error:
            raise _translate_api_error("transition_status", error, "Recommendation", recommendation_id) from error

        if not result.data:
            logger.warning(
                "Status transition skipped: id=%s, expected=%s, new=%s",
                recommendation_id, expected.value, new.value,
            )
            return False

        logger.info("Recommendation %s: %s -> %s", recommendation_id, expected.value, new.value)
        return True

    def set_promoted_recipe(self, recommendation_id: str, recipe_id: str) -> None:
        self._update(
            "set_promoted_recipe",
            recommendation_id,
            CollectibleKind.RECOMMENDATION,
            {"promoted_recipe_id": recipe_id},
        )

    # -- polymorphic --------------------------------------------------------

    def get_many(self, collectible_ids: Iterable[str]) -> list[Collectible]:
        unique_ids = _unique_ids(collectible_ids)
        if not unique_ids:
            return []
        try:
            result = self._client.table(self.TABLE_NAME).select("*").in_("collectible_id", unique_ids).execute()
        except APIError as error:
            if _is_malformed_id(error):
                return []
            raise _translate_api_error("get_collectibles", error, "Collectible", ", ".join(unique_ids)) from error

        by_id = {stringify_id(row.get("collectible_id")): row for row in result.data or []}
        return [_row_to_collectible(by_id[i]) for i in unique_ids if i in by_id]

    def search_recommendations(self, term: str) -> list[Recommendation]:
        cleaned = safe_search_term(term)
        query = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("kind", CollectibleKind.RECOMMENDATION.value)
        )
        if cleaned:
            pattern = _ilike_pattern(cleaned)
            query = query.or_(f"description.ilike.{pattern},metadata->>title.ilike.{pattern}")
        try:
            result = query.order("created_at", desc=True).execute()
        except APIError as error:
            raise _translate_api_error("search_recommendations", error) from error
        return [_row_to_recommendation(row) for row in result.data or []]

    def search_recipes(self, term: str, ingredient_ids: Iterable[str] = ()) -> list[Recipe]:
        cleaned = safe_search_term(term)
        ids = [i for i in dict.fromkeys(ingredient_ids) if i]
        query = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("kind", CollectibleKind.RECIPE.value)
        )
        if cleaned:
            clauses = [f"description.ilike.{_ilike_pattern(cleaned)}"]
            if ids:
                clauses.append(f"ingredient_ids.ov.{{{','.join(ids)}}}")
            query = query.or_(",".join(clauses))
        try:
            result = query.order("created_at", desc=True).execute()
        except APIError as error:
            raise _translate_api_error("search_recipes", error, "Ingredient", ", ".join(ids)) from error
        return [_row_to_recipe(row) for row in result.data or []]

    # -- helpers ------------------------------------------------------------

    def _insert(self, operation: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            result = self._client.table(self.TABLE_NAME).insert(data).execute()
        except APIError as error:
            raise _translate_api_error(operation, error, "Collectible", data.get("collectible_id", "")) from error
        if not result.data:
            raise RepositoryError(operation, "insert returned no rows")
        return result.data[0]

    def _get_one(self, operation: str, collectible_id: str, kind: CollectibleKind) -> Optional[dict[str, Any]]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("collectible_id", collectible_id)
                .eq("kind", kind.value)
                .limit(1)
                .execute()
            )
        except APIError as error:
            if _is_malformed_id(error):
                return None
            raise _translate_api_error(operation, error, kind.value.capitalize(), collectible_id) from error
        return result.data[0] if result.data else None

    def _list_kind(self, operation: str, kind: CollectibleKind) -> list[dict[str, Any]]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("kind", kind.value)
                .order("created_at", desc=True)
                .execute()
            )
        except APIError as error:
            raise _translate_api_error(operation, error) from error
        return result.data or []

    def _update(
        self,
        operation: str,
        collectible_id: str,
        kind: CollectibleKind,
        columns: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        payload = dict(columns)
        payload["updated_at"] = _now_utc().isoformat()
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update(payload)
                .eq("collectible_id", collectible_id)
                .eq("kind", kind.value)
                .execute()
            )
        except APIError as error:
            raise _translate_api_error(operation, error, "Collectible", collectible_id) from error
        return result.data[0] if result.data else None

    def _delete(self, operation: str, collectible_id: str, kind: CollectibleKind) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .delete()
                .eq("collectible_id", collectible_id)
                .eq("kind", kind.value)
                .execute()
            )
        except APIError as error:
            if _is_malformed_id(error):
                return False
            raise _translate_api_error(operation, error, kind.value.capitalize(), collectible_id) from error
        deleted = bool(result.data)
        if deleted:
            logger.info("Deleted %s: id=%s", kind.value, collectible_id)
        return deleted


class SupabaseCollectionRepository(CollectionRepository):
    TABLE_NAME = "collections"
    ITEMS_TABLE = "collection_items"
    # Postgres functions from supabase/migrations; each call is one transaction.
    CREATE_FUNCTION = "create_collection_with_items"
    UPDATE_FUNCTION = "update_collection_with_items"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    def create(
        self,
        owner_id: Optional[str],
        description: Optional[str],
        item_ids: list[str],
    ) -> Collection:
        unique_ids = _unique_ids(item_ids)
        params = {
            "p_collection_id": str(uuid4()),
            "p_owner_id": owner_id,
            "p_description": description,
            "p_item_ids": unique_ids,
        }
        try:
            result = self._client.rpc(self.CREATE_FUNCTION, params).execute()
        except APIError as error:
            raise _translate_api_error("create_collection", error, "Collectible", ", ".join(unique_ids)) from error
        if not result.data:
            raise RepositoryError("create_collection", "insert returned no rows")

        row = result.data[0]
        collection_id = stringify_id(row.get("collection_id"))
        logger.info("Created collection: id=%s, items=%d", collection_id, len(unique_ids))
        return _row_to_collection(row, unique_ids)

    def get(self, collection_id: str) -> Optional[Collection]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("collection_id", collection_id)
                .limit(1)
                .execute()
            )
        except APIError as error:
            if _is_malformed_id(error):
                return None
            raise _translate_api_error("get_collection", error, "Collection", collection_id) from error
        if not result.data:
            return None
        items = self._items_for([collection_id])
        return _row_to_collection(result.data[0], items.get(collection_id, []))

    def list_collections(self, term: Optional[str] = None) -> list[Collection]:
        query = self._client.table(self.TABLE_NAME).select("*")
        cleaned = safe_search_term(term)
        if cleaned:
            query = query.ilike("description", _ilike_pattern(cleaned))
        try:
            result = query.order("created_at", desc=True).execute()
        except APIError as error:
            raise _translate_api_error("list_collections", error) from error

        rows = result.data or []
        ids = [stringify_id(row.get("collection_id")) for row in rows]
        items = self._items_for(ids)
        return [_row_to_collection(row, items.get(cid, [])) for row, cid in zip(rows, ids)]

    def update(self, collection_id: str, changes: dict[str, Any]) -> Optional[Collection]:
        item_ids = _unique_ids(changes["item_ids"]) if "item_ids" in changes else None
        params = {
            "p_collection_id": collection_id,
            "p_set_description": "description" in changes,
            "p_description": changes.get("description"),
            "p_item_ids": item_ids,
        }
        try:
            result = self._client.rpc(self.UPDATE_FUNCTION, params).execute()
        except APIError as error:
            if _is_malformed_id(error) and item_ids:
                raise NotFoundError("Collectible", ", ".join(item_ids)) from error
            if _is_malformed_id(error):
                return None
            raise _translate_api_error("update_collection", error, "Collection", collection_id) from error
        if not result.data:
            return None

        if item_ids is None:
            item_ids = self._items_for([collection_id]).get(collection_id, [])
        logger.info("Updated collection: id=%s, fields=%s", collection_id, sorted(changes))
        return _row_to_collection(result.data[0], item_ids)

    def add_item(self, collection_id: str, item_id: str) -> None:
        data = {
            "collection_id": collection_id,
            "collectible_id": item_id,
            "added_at": _now_utc().isoformat(),
        }
        try:
            self._client.table(self.ITEMS_TABLE).insert(data).execute()
        except APIError as error:
            if getattr(error, "code", None) == UNIQUE_VIOLATION:
                raise DuplicateItemError(collection_id, item_id) from error
            raise _translate_api_error("add_collection_item", error, "Collection", collection_id) from error

        self._touch(collection_id)
        logger.info("Added item to collection: collection=%s, item=%s", collection_id, item_id)

    def remove_item(self, collection_id: str, item_id: str) -> None:
        try:
            result = (
                self._client.table(self.ITEMS_TABLE)
                .delete()
                .eq("collection_id", collection_id)
                .eq("collectible_id", item_id)
                .execute()
            )
        except APIError as error:
            if _is_malformed_id(error):
                # A malformed id cannot be a member.
                return
            raise _translate_api_error("remove_collection_item", error, "Collection", collection_id) from error

        if result.data:
            self._touch(collection_id)
            logger.info("Removed item from collection: collection=%s, item=%s", collection_id, item_id)

    def delete(self, collection_id: str) -> bool:
        try:
            result = self._client.table(self.TABLE_NAME).delete().eq("collection_id", collection_id).execute()
        except APIError as error:
            if _is_malformed_id(error):
                return False
            raise _translate_api_error("delete_collection", error, "Collection", collection_id) from error
        deleted = bool(result.data)
        if deleted:
            logger.info("Deleted collection: id=%s", collection_id)
        return deleted

    def _items_for(self, collection_ids: list[str]) -> dict[str, list[str]]:
        if not collection_ids:
            return {}
        try:
            result = (
                self._client.table(self.ITEMS_TABLE)
                .select("collection_id,collectible_id,position")
                .in_("collection_id", collection_ids)
                .order("position")
                .execute()
            )
        except APIError as error:
            raise _translate_api_error("list_collection_items", error, "Collection", ", ".join(collection_ids)) from error

        grouped: dict[str, list[str]] = {}
        for row in result.data or []:
            grouped.setdefault(stringify_id(row.get("collection_id")), []).append(
                stringify_id(row.get("collectible_id"))
            )
        return grouped

    def _touch(self, collection_id: str) -> None:
        try:
            (
                self._client.table(self.TABLE_NAME)
                .update({"updated_at": _now_utc().isoformat()})
                .eq("collection_id", collection_id)
                .execute()
            )
        except APIError as error:
            raise _translate_api_error("touch_collection", error, "Collection", collection_id) from error


class SupabaseEventRepository(EventRepository):
    TABLE_NAME = "events"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    def create(self, name: str, value: str) -> Event:
        data = {
            "event_id": str(uuid4()),
            "name": name,
            "value": value,
            "created_at": _now_utc().isoformat(),
        }
        try:
            result = self._client.table(self.TABLE_NAME).insert(data).execute()
        except APIError as error:
            raise _translate_api_error("create_event", error) from error
        if not result.data:
            raise RepositoryError("create_event", "insert returned no rows")
        event = _row_to_event(result.data[0])
        logger.info("Created event: id=%s, name=%s", event.id, name)
        return event

    def get(self, event_id: str) -> Optional[Event]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").eq("event_id", event_id).limit(1).execute()
        except APIError as error:
            if _is_malformed_id(error):
                return None
            raise _translate_api_error("get_event", error, "Event", event_id) from error
        return _row_to_event(result.data[0]) if result.data else None

    def list_events(self) -> list[Event]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").order("created_at", desc=True).execute()
        except APIError as error:
            raise _translate_api_error("list_events", error) from error
        return [_row_to_event(row) for row in result.data or []]
