"""
Health check endpoints.

Liveness, plus a readiness probe that checks the database and the catalog.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from operalog.db.database import get_session
from operalog.services.catalog_data import get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    catalog: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the database is unreachable or the catalog file is missing.
    """
    database = "connected"
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness check: database unavailable: %s", e)
        database = "disconnected"

    catalog = "loaded"
    try:
        get_catalog()
    except FileNotFoundError:
        catalog = "missing"

    if database != "connected" or catalog != "loaded":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database=database, catalog=catalog)
    return HealthResponse(status="ready", database=database, catalog=catalog)
