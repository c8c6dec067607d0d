"""
Opera catalog data service.

Builds the static opera catalog from the OpenOpus work dump, writes it to
disk, and loads and caches it for the API.
"""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx

from operalog.config import PLACEHOLDER_IMAGE, settings
from operalog.models.opera import ComposerInfo, FirstPerformance, Opera

logger = logging.getLogger(__name__)


async def fetch_openopus_dump(url: str | None = None, timeout: float = 120.0) -> dict[str, Any]:
    """
    Download the full OpenOpus work dump.

    Raises:
        httpx.HTTPError: If the download fails
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(url or settings.openopus_dump_url)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data


def _slugify(text: str) -> str:
    return re.sub(r"\s+", "-", text).lower()


def is_opera(work: dict[str, Any]) -> bool:
    """A work is an opera when its genre mentions opera, ignoring case."""
    genre = work.get("genre")
    return bool(genre) and "opera" in genre.lower()


def work_to_opera(work: dict[str, Any], composer: dict[str, Any]) -> Opera:
    """Map one OpenOpus work and its composer to a catalog entry."""
    composer_name = composer.get("complete_name") or composer.get("name") or "Unknown Composer"
    title = work.get("title") or "Unknown Title"
    work_id = work.get("id") or f"{_slugify(composer_name)}-{_slugify(title)}"
    year = work.get("year")

    return Opera(
        id=str(work_id),
        title=title,
        composer=composer_name,
        synopsis=work.get("subtitle") or "",
        first_performance=FirstPerformance(date=str(year), place="N/A") if year else None,
        image_url=composer.get("portrait") or PLACEHOLDER_IMAGE,
        genre=work.get("genre"),
        epoch=composer.get("epoch"),
        composer_info=ComposerInfo(
            id=str(composer.get("id", "")),
            name=composer.get("name", ""),
            complete_name=composer.get("complete_name"),
            birth=composer.get("birth"),
            death=composer.get("death"),
            epoch=composer.get("epoch"),
            portrait=composer.get("portrait"),
        ),
    )


def extract_operas(dump: dict[str, Any]) -> list[Opera]:
    """
    Keep only operas from an OpenOpus dump.

    Args:
        dump: Parsed dump with a top-level "composers" list, each holding "works"

    Returns:
        Catalog entries in dump order.
    """
    operas: list[Opera] = []
    genres: set[str] = set()
    works_seen = 0

    for composer in dump.get("composers") or []:
        for work in composer.get("works") or []:
            works_seen += 1
            if work.get("genre"):
                genres.add(work["genre"])
            if is_opera(work):
                operas.append(work_to_opera(work, composer))

    logger.info("Processed %d works from dump", works_seen)
    logger.debug("Genres encountered: %s", ", ".join(sorted(genres)))
    logger.info("Included %d works whose genre contains 'opera'", len(operas))
    return operas


def write_catalog(operas: list[Opera], path: Path | None = None) -> Path:
    """Write catalog entries as pretty-printed JSON."""
    if path is None:
        path = settings.catalog_path

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([opera.to_dict() for opera in operas], f, indent=2, ensure_ascii=False)
    return path


def load_catalog(path: Path | None = None) -> list[Opera]:
    """
    Load the catalog from file.

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
    """
    if path is None:
        path = settings.catalog_path

    if not path.exists():
        raise FileNotFoundError(
            f"Opera catalog not found at {path}. "
            "Run `python -m operalog.jobs.build_catalog` first."
        )

    with open(path, encoding="utf-8") as f:
        entries = json.load(f)

    return [Opera.from_dict(entry) for entry in entries]


@lru_cache(maxsize=1)
def get_catalog() -> list[Opera]:
    """
    Get cached catalog.

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
    """
    return load_catalog()
