"""
Build the static opera catalog.

Downloads the OpenOpus work dump, keeps works whose genre contains "opera",
and writes them to the catalog file served at /data/all_operas.json.
"""

import argparse
import asyncio
import logging
from pathlib import Path

import httpx

from operalog.services.catalog_data import extract_operas, fetch_openopus_dump, write_catalog

logger = logging.getLogger(__name__)


async def run_build(output_path: Path | None = None, url: str | None = None) -> int:
    """
    Download, filter and save the catalog.

    Returns:
        Number of operas written.
    """
    logger.info("Fetching OpenOpus data dump...")

    try:
        dump = await fetch_openopus_dump(url)
    except httpx.HTTPError as e:
        logger.error("Failed to fetch OpenOpus dump: %s", e)
        raise

    operas = extract_operas(dump)
    path = write_catalog(operas, output_path)
    logger.info("Saved %d operas to %s", len(operas), path)
    return len(operas)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Build the opera catalog from OpenOpus.")
    parser.add_argument("--output", type=Path, default=None, help="Catalog JSON path")
    parser.add_argument("--url", default=None, help="OpenOpus dump URL")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_build(args.output, args.url))


if __name__ == "__main__":
    main()
