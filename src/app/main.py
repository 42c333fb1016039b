# src/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.app.config import settings
from src.app.errors import register_error_handlers
from src.app.infra.auth.firebase_provider import FirebaseTokenVerifier
from src.app.routers.catalog import router as catalog_router
from src.app.routers.collectibles import router as collectibles_router
from src.app.routers.collections import router as collections_router
from src.app.routers.events import router as events_router
from src.app.routers.recipes import router as recipes_router
from src.app.routers.recommendations import metadata_router
from src.app.routers.recommendations import router as recommendations_router
from src.app.routers.users import router as users_router
from src.services.metadata import USER_AGENT, MetadataExtractor

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Recipe Box API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(users_router)
app.include_router(recipes_router)
app.include_router(recommendations_router)
app.include_router(metadata_router)
app.include_router(collections_router)
app.include_router(collectibles_router)
app.include_router(events_router)
app.include_router(catalog_router)


@app.on_event("startup")
async def startup() -> None:
    # Tests install fakes on app.state before the app starts.
    if getattr(app.state, "token_verifier", None) is None:
        app.state.token_verifier = FirebaseTokenVerifier(
            project_id=settings.FIREBASE_PROJECT_ID,
            credentials_file=settings.FIREBASE_CREDENTIALS_FILE,
        )
    if getattr(app.state, "metadata_extractor", None) is None:
        app.state.metadata_extractor = MetadataExtractor(
            timeout=settings.METADATA_TIMEOUT_SECONDS,
            user_agent=settings.METADATA_USER_AGENT or USER_AGENT,
        )
    logger.info("app.started env=%s", settings.APP_ENV)


@app.get("/health")
def health():
    return {"ok": True}
