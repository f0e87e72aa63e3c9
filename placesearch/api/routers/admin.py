"""
Admin Endpoints
Manual sync and index inspection.
"""

import logging
from typing import Union

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ...container import SearchServices
from ...sync import SyncOrchestrator
from ...tasks.sync import sync_all_places_task
from ..dependencies import get_orchestrator, get_request_id, get_services, verify_api_key
from ..errors import SyncError
from ..models.sync import (
    IndexDocumentsResponse,
    PlaceSyncResponse,
    SyncQueuedResponse,
    SyncReportResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("/places/{place_id}/sync", response_model=PlaceSyncResponse)
async def sync_place(
    place_id: str,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id),
) -> PlaceSyncResponse:
    """
    Re-read one place from the CMS and mirror it into both indexes.

    Index failures are reported in the body; a CMS failure is a 500.
    """
    try:
        result = await orchestrator.sync_place(place_id)
    except Exception as e:
        logger.error(f"Sync of place {place_id} failed: {e}", extra={"request_id": request_id})
        raise SyncError(f"Failed to sync place {place_id}", details={"error": str(e)})

    return PlaceSyncResponse(**result.to_dict())


@router.post(
    "/places/sync-all",
    response_model=Union[SyncReportResponse, SyncQueuedResponse],
)
async def sync_all_places(
    background: bool = Query(False, description="Queue as a background task instead of waiting"),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id),
):
    """
    Re-index every published place.

    Returns the sync report, or 202 with the task id when `background=true`.
    """
    if background:
        task = sync_all_places_task.delay()
        logger.info(f"Queued full re-sync as task {task.id}", extra={"request_id": request_id})
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=SyncQueuedResponse(task_id=str(task.id)).model_dump(),
        )

    try:
        report = await orchestrator.sync_all()
    except Exception as e:
        logger.error(f"Full re-sync failed: {e}", extra={"request_id": request_id})
        raise SyncError("Full re-sync failed", details={"error": str(e)})

    return SyncReportResponse(**report.to_dict())


@router.get("/index/documents", response_model=IndexDocumentsResponse)
async def list_index_documents(
    limit: int = Query(20, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    services: SearchServices = Depends(get_services),
) -> IndexDocumentsResponse:
    """Documents currently in the keyword index."""
    documents, total = await services.keyword_index.list_documents(limit=limit, offset=offset)
    return IndexDocumentsResponse(data=documents, total=total, limit=limit, offset=offset)
