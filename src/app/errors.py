# src/app/errors.py
"""
Exception handlers translating domain errors into `{"detail": ...}` responses.

Status mapping:
- ValidationError, MetadataUnavailableError, request validation -> 400
- UnauthorizedError -> 401
- ForbiddenError -> 403
- NotFoundError -> 404
- ConflictError -> 409
- RepositoryError, IdentityProviderError, anything else -> 500
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.app.domain.errors import (
    ConflictError,
    ForbiddenError,
    MetadataUnavailableError,
    NotFoundError,
    RecipeBoxError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[RecipeBoxError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (MetadataUnavailableError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def status_for(exc: RecipeBoxError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_domain_error(request: Request, exc: RecipeBoxError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.exception("request.fail %s %s", request.method, request.url.path, exc_info=exc)
    else:
        logger.info("request.rejected %s %s status=%d detail=%s", request.method, request.url.path, status_code, exc)

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    detail = "; ".join(messages) or "Invalid request"
    logger.info("request.invalid %s %s detail=%s", request.method, request.url.path, detail)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecipeBoxError, _handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
