"""
CMS Webhook Endpoint
POST /api/v1/webhooks/cms - place lifecycle events from the CMS.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ...sync import LifecycleAction, LifecycleEvent, SyncOrchestrator
from ..dependencies import get_orchestrator, verify_api_key
from ..errors import InvalidRequestError
from ..models.sync import CMSWebhookPayload, WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(verify_api_key)],
)

PLACE_MODEL = "place"

EVENT_ACTIONS = {
    "entry.create": LifecycleAction.CREATED,
    "entry.update": LifecycleAction.UPDATED,
    "entry.delete": LifecycleAction.DELETED,
    "entry.publish": LifecycleAction.PUBLISHED,
    "entry.unpublish": LifecycleAction.UNPUBLISHED,
}


@router.post("/cms", response_model=WebhookAck, status_code=status.HTTP_202_ACCEPTED)
async def cms_webhook(
    payload: CMSWebhookPayload,
    background_tasks: BackgroundTasks,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> WebhookAck:
    """
    Accept a CMS lifecycle event and sync in the background.

    The CMS gets its answer before any index is touched, so a slow or failing
    index never blocks the content mutation.
    """
    if payload.model and payload.model != PLACE_MODEL:
        return WebhookAck(accepted=False, reason=f"ignored model '{payload.model}'")

    action = EVENT_ACTIONS.get(payload.event)
    if action is None:
        return WebhookAck(accepted=False, reason=f"ignored event '{payload.event}'")

    document_id = payload.entry.get("documentId")
    if not document_id:
        raise InvalidRequestError("Webhook entry has no documentId", details={"event": payload.event})

    # publishedAt describes the saved version only; the orchestrator re-reads the
    # published version instead of trusting it
    event = LifecycleEvent(action=action, document_id=str(document_id))
    background_tasks.add_task(orchestrator.handle_event, event)

    logger.info(
        f"Accepted {payload.event} for place {document_id}",
        extra={"document_id": document_id, "action": action.value},
    )
    return WebhookAck(accepted=True, action=action.value, document_id=str(document_id))
