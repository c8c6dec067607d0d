import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from operalog.api import (
    auth_router,
    catalog_router,
    health_router,
    watched_router,
    wishlist_router,
)
from operalog.config import settings
from operalog.db.database import init_db
from operalog.models.failure import KnownError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("operalog"),
    lifespan=lifespan,
)

app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(health_router)
app.include_router(watched_router)
app.include_router(wishlist_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures as {"error": message} with their status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )
