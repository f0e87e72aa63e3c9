"""
Index Sync Tasks
Background re-sync of places outside the request path.
"""

import asyncio
import logging
from typing import Any, Dict

from ..container import SearchServices
from .celery_app import app

logger = logging.getLogger(__name__)


async def _run_sync_place(document_id: str) -> Dict[str, Any]:
    services = SearchServices.from_settings()
    try:
        result = await services.orchestrator.sync_place(document_id)
        return result.to_dict()
    finally:
        await services.aclose()


async def _run_sync_all() -> Dict[str, Any]:
    services = SearchServices.from_settings()
    try:
        await services.startup()
        report = await services.orchestrator.sync_all()
        return report.to_dict()
    finally:
        await services.aclose()


# No retries: sync is at-least-attempted, the nightly reconcile is the recovery path
@app.task(bind=True, name="tasks.sync_place", max_retries=0)
def sync_place_task(self, document_id: str) -> Dict[str, Any]:
    """
    Re-sync one place into both indexes.

    Args:
        document_id: Place document ID

    Returns:
        Per-index outcome
    """
    logger.info(f"Syncing place {document_id} (task {self.request.id})")
    return asyncio.run(_run_sync_place(document_id))


@app.task(bind=True, name="tasks.sync_all_places", max_retries=0)
def sync_all_places_task(self) -> Dict[str, Any]:
    """
    Re-index every published place.

    Returns:
        Sync report (total, synced, failed, per-index counts, failures)
    """
    logger.info(f"Starting full place re-sync (task {self.request.id})")
    report = asyncio.run(_run_sync_all())
    logger.info(f"Full place re-sync finished: {report['synced']}/{report['total']} synced")
    return report
