import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statdeck.api import decks_router, health_router, library_router, share_router
from statdeck.config import settings
from statdeck.db.database import close_db, init_db, storage
from statdeck.models.failure import KnownError
from statdeck.services.library import PresetLibrary

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    await PresetLibrary(storage).seed_official()
    yield
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("statdeck"),
    lifespan=lifespan,
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures as ApiResponse envelopes."""
    if exc.status_code >= 500:
        logger.error("%s: %s (%s)", exc.kind.value, exc.message, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


app.include_router(decks_router)
app.include_router(health_router)
app.include_router(library_router)
app.include_router(share_router)

# The bridge only ever serves the local UI dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.share_origin],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
