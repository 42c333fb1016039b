# src/app/services/recommendation_service.py
"""
Recommendation service.
Handles recommended links, their scraped metadata and promotion into recipes.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from src.app.domain.errors import (
    AlreadyPromotedError,
    MetadataUnavailableError,
    NotFoundError,
    ValidationError,
)
from src.app.domain.models import (
    PageMetadata,
    Recommendation,
    RecommendationCategory,
    RecommendationStatus,
)
from src.app.infra.db.base import CatalogRepository, CollectibleRepository
from src.app.infra.db.supabase_repos import SupabaseCatalogRepository, SupabaseCollectibleRepository
from src.app.services.serializers import CollectibleExpander, serialize_recommendation
from src.services.links import build_link
from src.services.metadata import MetadataExtractor

logger = logging.getLogger(__name__)


def _require_link(link: Optional[str]) -> str:
    cleaned = (link or "").strip()
    if not cleaned:
        raise ValidationError("Link is required", field="link")
    return cleaned


def _parse_category(category: Any) -> RecommendationCategory:
    if isinstance(category, RecommendationCategory):
        return category
    if not category:
        raise ValidationError("Category is required", field="category")
    try:
        return RecommendationCategory(str(category).lower())
    except ValueError as error:
        raise ValidationError(f"Unknown category: {category}", field="category") from error


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


class RecommendationService:
    """
    Responsibilities:
    - Create, read, update and delete recommendations
    - Attach best-effort page metadata; extraction failures never fail a request
    - Promote a recommendation into a recipe at most once
    """

    def __init__(
        self,
        extractor: MetadataExtractor,
        repository: Optional[CollectibleRepository] = None,
        catalog: Optional[CatalogRepository] = None,
    ):
        self._extractor = extractor
        self._repo = repository or SupabaseCollectibleRepository()
        self._expander = CollectibleExpander(catalog or SupabaseCatalogRepository())

    def create_recommendation(
        self,
        owner_id: str,
        link: Optional[str],
        category: Any,
        description: Optional[str] = None,
    ) -> dict[str, Any]:
        cleaned_link = _require_link(link)
        parsed_category = _parse_category(category)
        metadata = self._try_extract(cleaned_link)

        cleaned_description = _clean_description(description)
        if cleaned_description is None and metadata is not None:
            cleaned_description = metadata.description

        recommendation = self._repo.create_recommendation(
            owner_id=owner_id,
            link=cleaned_link,
            category=parsed_category,
            description=cleaned_description,
            metadata=metadata,
        )
        logger.info(
            "recommendation.created id=%s owner=%s metadata=%s",
            recommendation.id, owner_id, metadata is not None,
        )
        return serialize_recommendation(recommendation)

    def get_recommendation(self, recommendation_id: str) -> dict[str, Any]:
        return serialize_recommendation(self._require(recommendation_id))

    def list_recommendations(self) -> list[dict[str, Any]]:
        return [serialize_recommendation(r) for r in self._repo.list_recommendations()]

    def update_recommendation(self, recommendation_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Replace the provided fields of a recommendation.

        When the link changes, metadata is re-extracted; the stored metadata
        is only replaced if the new extraction succeeds.
        """
        current = self._require(recommendation_id)

        columns: dict[str, Any] = {}
        if "link" in changes:
            new_link = _require_link(changes["link"])
            columns["link"] = new_link
            if new_link != current.link:
                metadata = self._try_extract(new_link)
                if metadata is not None:
                    columns["metadata"] = metadata
        if "category" in changes:
            columns["category"] = _parse_category(changes["category"])
        if "description" in changes:
            columns["description"] = _clean_description(changes["description"])

        if not columns:
            return serialize_recommendation(current)

        updated = self._repo.update_recommendation(recommendation_id, columns)
        if updated is None:
            raise NotFoundError("Recommendation", recommendation_id)
        return serialize_recommendation(updated)

    def delete_recommendation(self, recommendation_id: str) -> None:
        if not self._repo.delete_recommendation(recommendation_id):
            raise NotFoundError("Recommendation", recommendation_id)
        logger.info("recommendation.deleted id=%s", recommendation_id)

    def preview_metadata(self, link: Optional[str]) -> PageMetadata:
        """
        Extract metadata for a link without storing anything.

        Raises:
            ValidationError: link missing
            MetadataUnavailableError: extraction failed
        """
        cleaned_link = _require_link(link)
        result = self._extractor.extract(cleaned_link)
        if not result.ok:
            raise MetadataUnavailableError(cleaned_link, result.error)
        return result.metadata

    def promote(self, recommendation_id: str, owner_id: Optional[str]) -> dict[str, Any]:
        """
        Turn a recommendation into a recipe.

        The recommendation is claimed first with a conditional status update,
        so concurrent promotions cannot both create a recipe. If creating the
        recipe fails, the claim is released.

        Returns:
            The new recipe, expanded

        Raises:
            NotFoundError: no recommendation has this id
            AlreadyPromotedError: the recommendation was already promoted
        """
        recommendation = self._require(recommendation_id)
        if recommendation.is_promoted:
            raise AlreadyPromotedError(recommendation_id)

        observed = recommendation.status
        if not self._repo.transition_status(recommendation_id, observed, RecommendationStatus.PROMOTED):
            raise AlreadyPromotedError(recommendation_id)

        metadata = recommendation.metadata
        title = metadata.title if metadata else None
        description = recommendation.description or title or recommendation.link

        try:
            recipe = self._repo.create_recipe(
                owner_id=owner_id,
                description=description,
                ingredients=[],
                steps=[],
                links=[build_link(recommendation.link, title)],
                cover_image=metadata.image if metadata else None,
            )
        except Exception:
            logger.exception("recommendation.promote_fail id=%s, releasing claim", recommendation_id)
            self._release_claim(recommendation_id, observed)
            raise

        self._repo.set_promoted_recipe(recommendation_id, recipe.id)
        logger.info("recommendation.promoted id=%s recipe=%s", recommendation_id, recipe.id)
        return self._expander.recipe(recipe)

    def _require(self, recommendation_id: str) -> Recommendation:
        recommendation = self._repo.get_recommendation(recommendation_id)
        if recommendation is None:
            raise NotFoundError("Recommendation", recommendation_id)
        return recommendation

    def _release_claim(self, recommendation_id: str, previous: RecommendationStatus) -> None:
        """Revert a promotion claim; a failure here must not mask the original error."""
        try:
            self._repo.transition_status(recommendation_id, RecommendationStatus.PROMOTED, previous)
        except Exception:
            logger.exception(
                "recommendation.release_fail id=%s, left as %s",
                recommendation_id, RecommendationStatus.PROMOTED.value,
            )

    def _try_extract(self, link: str) -> Optional[PageMetadata]:
        result = self._extractor.extract(link)
        if not result.ok:
            logger.warning("recommendation.metadata_fail url=%s error=%s", link, result.error)
            return None
        return result.metadata
