"""
Static catalog endpoint.

Serves the catalog produced by the build_catalog job. The file is loaded
once per process and cached.
"""

from typing import Any

from fastapi import APIRouter

from operalog.config import CATALOG_ENDPOINT
from operalog.models.failure import FailureKind, KnownError
from operalog.services.catalog_data import get_catalog

router = APIRouter(tags=["catalog"])


@router.get(CATALOG_ENDPOINT)
async def get_all_operas() -> list[dict[str, Any]]:
    """Return every opera in the catalog."""
    try:
        catalog = get_catalog()
    except FileNotFoundError as e:
        raise KnownError(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message="Opera catalog not available. Please try again later.",
            detail=str(e),
            status_code=503,
        ) from e

    return [opera.to_dict() for opera in catalog]
