"""
API Models
Pydantic models for request/response validation.
"""

from .search import PlacesMeta, PlacesResponse
from .sync import (
    CMSWebhookPayload,
    IndexDocumentsResponse,
    PlaceSyncResponse,
    SyncFailureModel,
    SyncQueuedResponse,
    SyncReportResponse,
    WebhookAck,
)

__all__ = [
    "PlacesMeta",
    "PlacesResponse",
    "CMSWebhookPayload",
    "IndexDocumentsResponse",
    "PlaceSyncResponse",
    "SyncFailureModel",
    "SyncQueuedResponse",
    "SyncReportResponse",
    "WebhookAck",
]
