"""
Sync Models
Request and response models for admin sync endpoints and CMS webhooks.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SyncFailureModel(BaseModel):
    document_id: str
    index: str
    operation: str
    error: str


class PlaceSyncResponse(BaseModel):
    """Outcome of syncing one place."""

    document_id: str = Field(..., description="Place document ID")
    operation: str = Field(..., description="upsert, delete, noop or error")
    keyword_ok: Optional[bool] = Field(None, description="Keyword index result (null = untouched)")
    vector_ok: Optional[bool] = Field(None, description="Vector index result (null = untouched)")
    ok: bool
    failures: List[SyncFailureModel] = Field(default_factory=list)


class SyncReportResponse(BaseModel):
    """Aggregate of a full re-sync."""

    total: int
    synced: int
    failed: int
    keyword_indexed: int
    vector_indexed: int
    duration_seconds: float
    failures: List[SyncFailureModel] = Field(default_factory=list)


class SyncQueuedResponse(BaseModel):
    status: str = "queued"
    task_id: str


class CMSWebhookPayload(BaseModel):
    """
    CMS webhook body.

    Example:
        {"event": "entry.publish", "model": "place",
         "entry": {"id": 7, "documentId": "abc123", "publishedAt": "2025-01-01T00:00:00Z"}}
    """

    event: str = Field(..., description="entry.create, entry.update, entry.delete, entry.publish, entry.unpublish")
    model: Optional[str] = Field(None, description="Content type name")
    entry: Dict[str, Any] = Field(default_factory=dict, description="Affected entry")


class WebhookAck(BaseModel):
    accepted: bool
    action: Optional[str] = None
    document_id: Optional[str] = None
    reason: Optional[str] = None


class IndexDocumentsResponse(BaseModel):
    data: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int
