# src/app/routers/recommendations.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from starlette.concurrency import run_in_threadpool

from src.app.deps import get_current_user, get_recommendation_service
from src.app.domain.models import User
from src.app.schemas.recipes import RecipeResponse
from src.app.schemas.recommendations import (
    MessageResponse,
    MetadataRequest,
    PageMetadataOut,
    RecommendationCreate,
    RecommendationResponse,
    RecommendationUpdate,
)
from src.app.services.recommendation_service import RecommendationService
from src.app.services.serializers import serialize_metadata

router = APIRouter(prefix="/recommendations", tags=["recommendations"])
metadata_router = APIRouter(tags=["recommendations"])


@router.post("", response_model=RecommendationResponse, status_code=status.HTTP_201_CREATED)
async def create_recommendation(
    payload: RecommendationCreate,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    # Metadata scraping does blocking network I/O.
    recommendation = await run_in_threadpool(
        service.create_recommendation,
        user.id,
        payload.link,
        payload.category,
        payload.description,
    )
    return RecommendationResponse(**recommendation)


@router.get("", response_model=list[RecommendationResponse])
async def list_recommendations(
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[RecommendationResponse]:
    return [RecommendationResponse(**item) for item in service.list_recommendations()]


@router.get("/{recommendation_id}", response_model=RecommendationResponse)
async def get_recommendation(
    recommendation_id: str,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    return RecommendationResponse(**service.get_recommendation(recommendation_id))


@router.put("/{recommendation_id}", response_model=RecommendationResponse)
async def update_recommendation(
    recommendation_id: str,
    payload: RecommendationUpdate,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    changes = payload.model_dump(exclude_unset=True)
    updated = await run_in_threadpool(service.update_recommendation, recommendation_id, changes)
    return RecommendationResponse(**updated)


@router.delete("/{recommendation_id}", response_model=MessageResponse)
async def delete_recommendation(
    recommendation_id: str,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> MessageResponse:
    service.delete_recommendation(recommendation_id)
    return MessageResponse(message="Recommendation deleted")


@router.post(
    "/{recommendation_id}/promote",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def promote_recommendation(
    recommendation_id: str,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecipeResponse:
    return RecipeResponse(**service.promote(recommendation_id, user.id))


@metadata_router.post("/metadata", response_model=PageMetadataOut)
async def preview_metadata(
    payload: MetadataRequest,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> PageMetadataOut:
    metadata = await run_in_threadpool(service.preview_metadata, payload.link)
    return PageMetadataOut(**serialize_metadata(metadata))
