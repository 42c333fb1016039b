# src/app/schemas/users.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    uid: str
    email: Optional[str] = None
    displayName: Optional[str] = None
    photoUrl: Optional[str] = None
    role: Literal["user", "admin"] = "user"
    createdAt: Optional[str] = None


class VerifyResponse(BaseModel):
    message: str
    user: UserResponse
