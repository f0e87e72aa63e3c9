#!/usr/bin/env python3
"""
Reset Vector Collection
Drops the place vector collection so it can be recreated with a new dimension.

Run this after switching EMBEDDING_PROVIDER or EMBEDDING_MODEL.

Usage:
    python -m placesearch.scripts.reset_vector_collection --yes
    python -m placesearch.scripts.reset_vector_collection --yes --resync
"""

import argparse
import asyncio
import logging
import sys

from placesearch.config import get_settings
from placesearch.container import SearchServices

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def reset(resync: bool) -> int:
    settings = get_settings()
    services = SearchServices.from_settings(settings)

    try:
        dropped = await services.vector_index.drop_collection()
        if dropped:
            logger.info(f"Collection '{settings.index_name}' deleted")
        else:
            logger.info(f"Collection '{settings.index_name}' does not exist, nothing to delete")

        if resync:
            await services.startup()
            report = await services.orchestrator.sync_all()
            logger.info(
                f"Re-sync finished: {report.synced}/{report.total} synced, {report.failed} failed"
            )
            return 0 if report.failed == 0 else 2

        logger.info("Done. Restart the API (or pass --resync) to recreate the collection.")
        return 0
    finally:
        await services.aclose()


def main():
    parser = argparse.ArgumentParser(description="Drop the place vector collection")
    parser.add_argument("--yes", action="store_true", help="Confirm deletion")
    parser.add_argument(
        "--resync",
        action="store_true",
        help="Recreate the collection and re-index every published place",
    )
    args = parser.parse_args()

    if not args.yes:
        logger.error("Refusing to delete without --yes")
        sys.exit(1)

    try:
        sys.exit(asyncio.run(reset(args.resync)))
    except Exception as e:
        logger.error(f"Error resetting collection: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
