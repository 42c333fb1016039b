# src/app/services/identity_service.py
"""
Bridges verified identity-provider claims to local user records.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.app.domain.errors import ConflictError, RepositoryError, ValidationError
from src.app.domain.models import IdentityClaims, User
from src.app.infra.db.base import UserRepository
from src.app.infra.db.supabase_repos import SupabaseUserRepository

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Responsibilities:
    - Resolve a verified identity to exactly one local user
    - List and search local users
    """

    def __init__(self, repository: Optional[UserRepository] = None):
        self._repo = repository or SupabaseUserRepository()

    def resolve_user(self, claims: IdentityClaims) -> User:
        """
        Look up the user for `claims.uid`, creating it on first sight.

        Existing users are returned unchanged; profile fields are only
        copied from the claims when the record is created.

        Raises:
            RepositoryError: storage failure
        """
        existing = self._repo.get_by_uid(claims.uid)
        if existing is not None:
            return existing

        try:
            user = self._repo.create(claims)
        except ConflictError:
            # Lost a race with a concurrent first request for the same uid.
            winner = self._repo.get_by_uid(claims.uid)
            if winner is None:
                raise RepositoryError("resolve_user", f"user {claims.uid} vanished after conflict")
            logger.info("identity.race_resolved uid=%s", claims.uid)
            return winner

        logger.info("identity.user_created uid=%s id=%s", user.uid, user.id)
        return user

    def list_users(self) -> list[User]:
        return self._repo.list_users()

    def search_users(self, query: Optional[str]) -> list[User]:
        term = (query or "").strip()
        if not term:
            raise ValidationError("Search query is required", field="query")
        return self._repo.search(term)
