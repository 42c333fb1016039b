# src/app/infra/auth/base.py
"""
Abstract base class for identity-token verification.
Routes depend on this interface so the identity provider can be swapped or faked.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from src.app.domain.models import IdentityClaims


class TokenVerifier(ABC):
    """
    Verifies bearer tokens issued by an external identity provider.

    Implementations:
    - FirebaseTokenVerifier: Firebase Authentication ID tokens
    """

    @abstractmethod
    def verify(self, token: str) -> IdentityClaims:
        """
        Verify a bearer token and return its claims.

        Args:
            token: The raw token from the Authorization header

        Returns:
            The verified identity claims

        Raises:
            ForbiddenError: the token is invalid, expired or revoked
            IdentityProviderError: the provider could not be reached
        """
        pass
