# src/app/infra/auth/firebase_provider.py
"""
Firebase Authentication token verifier.
Uses firebase-admin with a named app so it never collides with other initializations.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from src.app.domain.errors import ForbiddenError, IdentityProviderError
from src.app.domain.models import IdentityClaims
from src.app.infra.auth.base import TokenVerifier

logger = logging.getLogger(__name__)

APP_NAME = "recipe-box"


def claims_from_token(decoded: dict[str, Any]) -> IdentityClaims:
    """Map a decoded Firebase ID token to identity claims."""
    uid = decoded.get("uid") or decoded.get("sub")
    if not uid:
        raise ForbiddenError()
    return IdentityClaims(
        uid=str(uid),
        email=decoded.get("email"),
        display_name=decoded.get("name"),
        photo_url=decoded.get("picture"),
    )


class FirebaseTokenVerifier(TokenVerifier):
    """
    Verifies Firebase ID tokens.

    Configuration:
    - project_id: Firebase project the tokens must be issued for
    - credentials_file: (Optional) service-account JSON; falls back to
      application default credentials
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_file: Optional[str] = None,
        check_revoked: bool = False,
    ):
        self.project_id = project_id
        self.check_revoked = check_revoked
        self._app = self._init_app(project_id, credentials_file)
        logger.info("FirebaseTokenVerifier initialized: project=%s", project_id)

    @staticmethod
    def _init_app(project_id: Optional[str], credentials_file: Optional[str]) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(APP_NAME)
        except ValueError:
            pass

        cred = credentials.Certificate(credentials_file) if credentials_file else credentials.ApplicationDefault()
        options = {"projectId": project_id} if project_id else None
        return firebase_admin.initialize_app(cred, options=options, name=APP_NAME)

    def verify(self, token: str) -> IdentityClaims:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._app, check_revoked=self.check_revoked)
        except firebase_auth.CertificateFetchError as error:
            logger.error("auth.provider_unavailable error=%s", error)
            raise IdentityProviderError(str(error)) from error
        except (
            firebase_auth.InvalidIdTokenError,
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.UserDisabledError,
            ValueError,
        ) as error:
            logger.info("auth.rejected error=%s", error)
            raise ForbiddenError() from error

        return claims_from_token(decoded)
