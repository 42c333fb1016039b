# src/app/routers/users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.app.deps import get_current_user, get_identity_service
from src.app.domain.models import User
from src.app.schemas.users import UserResponse, VerifyResponse
from src.app.services.identity_service import IdentityService
from src.app.services.serializers import serialize_user

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/verify", response_model=VerifyResponse)
async def verify_user(user: User = Depends(get_current_user)) -> VerifyResponse:
    return VerifyResponse(message="User verified", user=UserResponse(**serialize_user(user)))


@router.get("", response_model=list[UserResponse])
async def list_users(
    user: User = Depends(get_current_user),
    service: IdentityService = Depends(get_identity_service),
) -> list[UserResponse]:
    return [UserResponse(**serialize_user(u)) for u in service.list_users()]


@router.get("/search", response_model=list[UserResponse])
async def search_users(
    query: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    service: IdentityService = Depends(get_identity_service),
) -> list[UserResponse]:
    return [UserResponse(**serialize_user(u)) for u in service.search_users(query)]
