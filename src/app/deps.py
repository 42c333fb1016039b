# src/app/deps.py
from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client, create_client

from src.app.config import get_settings
from src.app.domain.errors import UnauthorizedError
from src.app.domain.models import User
from src.app.infra.auth.base import TokenVerifier
from src.app.infra.db.base import (
    CatalogRepository,
    CollectibleRepository,
    CollectionRepository,
    EventRepository,
    UserRepository,
)
from src.app.infra.db.supabase_repos import (
    SupabaseCatalogRepository,
    SupabaseCollectibleRepository,
    SupabaseCollectionRepository,
    SupabaseEventRepository,
    SupabaseUserRepository,
)
from src.app.services.catalog_service import CatalogService
from src.app.services.collection_service import CollectionService
from src.app.services.event_service import EventService
from src.app.services.identity_service import IdentityService
from src.app.services.recipe_service import RecipeService
from src.app.services.recommendation_service import RecommendationService
from src.services.metadata import MetadataExtractor

_client: Client | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        settings = get_settings()
        _client = create_client(str(settings.SUPABASE_URL), settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


# -- repositories -----------------------------------------------------------

def get_user_repo(supa: Client = Depends(get_supabase)) -> UserRepository:
    return SupabaseUserRepository(supa)


def get_catalog_repo(supa: Client = Depends(get_supabase)) -> CatalogRepository:
    return SupabaseCatalogRepository(supa)


def get_collectible_repo(supa: Client = Depends(get_supabase)) -> CollectibleRepository:
    return SupabaseCollectibleRepository(supa)


def get_collection_repo(supa: Client = Depends(get_supabase)) -> CollectionRepository:
    return SupabaseCollectionRepository(supa)


def get_event_repo(supa: Client = Depends(get_supabase)) -> EventRepository:
    return SupabaseEventRepository(supa)


# -- collaborators constructed once at startup ------------------------------

def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_metadata_extractor(request: Request) -> MetadataExtractor:
    return request.app.state.metadata_extractor


# -- services ---------------------------------------------------------------

def get_identity_service(users: UserRepository = Depends(get_user_repo)) -> IdentityService:
    return IdentityService(users)


def get_catalog_service(catalog: CatalogRepository = Depends(get_catalog_repo)) -> CatalogService:
    return CatalogService(catalog)


def get_event_service(events: EventRepository = Depends(get_event_repo)) -> EventService:
    return EventService(events)


def get_recipe_service(
    collectibles: CollectibleRepository = Depends(get_collectible_repo),
    catalog: CatalogRepository = Depends(get_catalog_repo),
) -> RecipeService:
    return RecipeService(collectibles, catalog)


def get_recommendation_service(
    extractor: MetadataExtractor = Depends(get_metadata_extractor),
    collectibles: CollectibleRepository = Depends(get_collectible_repo),
    catalog: CatalogRepository = Depends(get_catalog_repo),
) -> RecommendationService:
    return RecommendationService(extractor, collectibles, catalog)


def get_collection_service(
    collections: CollectionRepository = Depends(get_collection_repo),
    collectibles: CollectibleRepository = Depends(get_collectible_repo),
    catalog: CatalogRepository = Depends(get_catalog_repo),
) -> CollectionService:
    return CollectionService(collections, collectibles, catalog)


# -- authentication ---------------------------------------------------------

auth_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
    identity: IdentityService = Depends(get_identity_service),
) -> User:
    """
    Receives Authorization: Bearer <id_token>, verifies it with the identity
    provider and resolves the caller to a local user (created on first sight).
    """
    if cred is None or cred.scheme.lower() != "bearer" or not cred.credentials:
        raise UnauthorizedError()

    claims = verifier.verify(cred.credentials)
    return identity.resolve_user(claims)
