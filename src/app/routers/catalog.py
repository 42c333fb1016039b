# src/app/routers/catalog.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.deps import get_catalog_service, get_current_user
from src.app.domain.models import User
from src.app.schemas.catalog import BulkIngredientsCreate, NamedCreate, NamedResponse
from src.app.services.catalog_service import CatalogService
from src.app.services.serializers import serialize_named

router = APIRouter(tags=["catalog"])


@router.post("/ingredients", response_model=NamedResponse, status_code=status.HTTP_201_CREATED)
async def create_ingredient(
    payload: NamedCreate,
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
) -> NamedResponse:
    return NamedResponse(**serialize_named(service.create_ingredient(payload.name)))


@router.post("/bulk-ingredients", response_model=list[NamedResponse], status_code=status.HTTP_201_CREATED)
async def bulk_create_ingredients(
    payload: BulkIngredientsCreate,
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
) -> list[NamedResponse]:
    stored = service.bulk_create_ingredients(payload.ingredients)
    return [NamedResponse(**serialize_named(item)) for item in stored]


@router.get("/ingredients", response_model=list[NamedResponse])
async def list_ingredients(
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
) -> list[NamedResponse]:
    return [NamedResponse(**serialize_named(item)) for item in service.list_ingredients()]


@router.post("/units", response_model=NamedResponse, status_code=status.HTTP_201_CREATED)
async def create_unit(
    payload: NamedCreate,
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
) -> NamedResponse:
    return NamedResponse(**serialize_named(service.create_unit(payload.name)))


@router.get("/units", response_model=list[NamedResponse])
async def list_units(
    user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
) -> list[NamedResponse]:
    return [NamedResponse(**serialize_named(item)) for item in service.list_units()]
