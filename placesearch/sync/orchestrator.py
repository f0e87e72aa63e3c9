"""
Sync Orchestrator
Keeps the keyword and vector indexes consistent with published places.

Consistency model is at-least-attempted: each index is written independently,
failures are logged and counted, and nothing is retried. Recovery is the next
mutation of the place or a full re-sync.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional

from ..content import ContentStore
from ..ml.embeddings import EmbeddingProvider
from ..ml.retrieval import KeywordIndex, VectorIndex
from ..models import Place, Projection
from .projector import project

logger = logging.getLogger(__name__)

KEYWORD = "keyword"
VECTOR = "vector"


class LifecycleAction(str, Enum):
    """Content mutations the orchestrator reacts to."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


@dataclass
class LifecycleEvent:
    """
    A place mutation.

    `place` is the resulting entity when the transport already carries a
    populated one; otherwise the orchestrator re-reads it from the content
    store. `published` overrides the status of `place` when given; with
    neither, created and updated events re-read the published version.
    """

    action: LifecycleAction
    document_id: str
    place: Optional[Place] = None
    published: Optional[bool] = None

    @property
    def is_published(self) -> bool:
        if self.published is not None:
            return self.published
        return self.place is not None and self.place.is_published


@dataclass
class SyncFailure:
    """One failed index operation."""

    document_id: str
    index: str
    operation: str
    error: str

    def to_dict(self) -> dict:
        return {
            "document_id": self.document_id,
            "index": self.index,
            "operation": self.operation,
            "error": self.error,
        }


@dataclass
class PlaceSyncResult:
    """Outcome of syncing one place. None means the index was not touched."""

    document_id: str
    operation: str
    keyword_ok: Optional[bool] = None
    vector_ok: Optional[bool] = None
    failures: List[SyncFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.keyword_ok is not False and self.vector_ok is not False

    def to_dict(self) -> dict:
        return {
            "document_id": self.document_id,
            "operation": self.operation,
            "keyword_ok": self.keyword_ok,
            "vector_ok": self.vector_ok,
            "ok": self.ok,
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class SyncReport:
    """Aggregate of a full re-sync. A place is `synced` only if both indexes accepted it."""

    total: int = 0
    synced: int = 0
    failed: int = 0
    keyword_indexed: int = 0
    vector_indexed: int = 0
    duration_seconds: float = 0.0
    failures: List[SyncFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "synced": self.synced,
            "failed": self.failed,
            "keyword_indexed": self.keyword_indexed,
            "vector_indexed": self.vector_indexed,
            "duration_seconds": round(self.duration_seconds, 3),
            "failures": [f.to_dict() for f in self.failures],
        }


class SyncOrchestrator:
    """
    Applies lifecycle events and full re-syncs to both indexes.

    | Event       | Published | Action                    |
    |-------------|-----------|---------------------------|
    | created     | yes       | project + upsert both     |
    | created     | no        | no-op                     |
    | updated     | yes       | re-project + upsert both  |
    | updated     | no        | delete from both          |
    | deleted     | n/a       | delete from both          |
    | published   | yes       | as updated/yes            |
    | unpublished | no        | as updated/no             |

    Same-place events are not serialized: overlapping events race and the
    last write to each index wins.
    """

    def __init__(
        self,
        content_store: ContentStore,
        keyword_index: KeywordIndex,
        vector_index: VectorIndex,
        embedder: EmbeddingProvider,
        sync_timeout: float = 30.0,
        batch_size: int = 1000,
        concurrency: int = 4,
    ):
        self.content_store = content_store
        self.keyword_index = keyword_index
        self.vector_index = vector_index
        self.embedder = embedder
        self.sync_timeout = sync_timeout
        self.batch_size = batch_size
        self.concurrency = concurrency

    async def handle_event(self, event: LifecycleEvent) -> PlaceSyncResult:
        """
        Apply a lifecycle event. Never raises.
        """
        logger.info(
            f"Handling {event.action.value} event for place {event.document_id}",
            extra={"document_id": event.document_id, "action": event.action.value},
        )
        try:
            action = event.action

            if action in (LifecycleAction.DELETED, LifecycleAction.UNPUBLISHED):
                return await self.remove_place(event.document_id)

            if action == LifecycleAction.PUBLISHED:
                return await self.sync_place(event.document_id)

            # Status unknown: a draft save carries no publishedAt even when a
            # published version exists, so the content store decides
            if event.place is None and event.published is None:
                if action == LifecycleAction.CREATED:
                    place = await asyncio.wait_for(
                        self.content_store.find_one(event.document_id), timeout=self.sync_timeout
                    )
                    if place is None or not place.is_published:
                        return PlaceSyncResult(document_id=event.document_id, operation="noop")
                    return await self.index_place(place)
                return await self.sync_place(event.document_id)

            if not event.is_published:
                if action == LifecycleAction.CREATED:
                    return PlaceSyncResult(document_id=event.document_id, operation="noop")
                return await self.remove_place(event.document_id)

            if event.place is not None:
                return await self.index_place(event.place)
            return await self.sync_place(event.document_id)

        except Exception as e:
            logger.error(
                f"Failed to sync place {event.document_id} after {event.action.value}: {e}",
                extra={"document_id": event.document_id, "action": event.action.value},
                exc_info=True,
            )
            return PlaceSyncResult(
                document_id=event.document_id,
                operation="error",
                failures=[
                    SyncFailure(event.document_id, "event", event.action.value, str(e) or type(e).__name__)
                ],
            )

    async def sync_place(self, document_id: str) -> PlaceSyncResult:
        """
        Re-read a place and mirror its published state into both indexes.

        A place that is missing or unpublished is deleted from both.
        Content store errors propagate.
        """
        place = await asyncio.wait_for(
            self.content_store.find_one(document_id), timeout=self.sync_timeout
        )
        if place is None or not place.is_published:
            logger.info(f"Place {document_id} not published; removing from indexes")
            return await self.remove_place(document_id)
        return await self.index_place(place)

    async def index_place(self, place: Place) -> PlaceSyncResult:
        """Project a published place and upsert it to both indexes concurrently."""
        projection = project(place)
        result = PlaceSyncResult(document_id=place.document_id, operation="upsert")

        result.keyword_ok, result.vector_ok = await asyncio.gather(
            self._guarded(
                place.document_id,
                KEYWORD,
                "upsert",
                self.keyword_index.upsert_many([projection.keyword_doc]),
                result.failures,
            ),
            self._guarded(
                place.document_id,
                VECTOR,
                "upsert",
                self._upsert_vector(projection),
                result.failures,
            ),
        )

        if result.ok:
            logger.info(f"Place {place.document_id} (ID: {place.id}) synced to both indexes")
        return result

    async def remove_place(self, document_id: str) -> PlaceSyncResult:
        """Delete a place from both indexes concurrently."""
        result = PlaceSyncResult(document_id=document_id, operation="delete")

        result.keyword_ok, result.vector_ok = await asyncio.gather(
            self._guarded(
                document_id, KEYWORD, "delete", self.keyword_index.delete(document_id), result.failures
            ),
            self._guarded(
                document_id, VECTOR, "delete", self.vector_index.delete(document_id), result.failures
            ),
        )

        if result.ok:
            logger.info(f"Place {document_id} removed from both indexes")
        return result

    async def sync_all(self) -> SyncReport:
        """
        Re-index every published place.

        Keyword documents go in batches; vectors are embedded and upserted per
        place with bounded concurrency. Individual failures are counted, never
        raised. Content store errors propagate.
        """
        start_time = time.time()
        places = [p for p in await self.content_store.find_many() if p.is_published]
        report = SyncReport(total=len(places))
        logger.info(f"Starting full sync of {len(places)} places")

        projections: List[Projection] = [project(place) for place in places]

        keyword_ok: Dict[str, bool] = {}
        for start in range(0, len(projections), self.batch_size):
            batch = projections[start:start + self.batch_size]
            batch_failures: List[SyncFailure] = []
            ok = await self._guarded(
                f"batch[{start}:{start + len(batch)}]",
                KEYWORD,
                "upsert_many",
                self.keyword_index.upsert_many([p.keyword_doc for p in batch]),
                batch_failures,
            )
            for projection in batch:
                keyword_ok[projection.document_id] = ok
                if not ok:
                    report.failures.extend(
                        SyncFailure(projection.document_id, f.index, f.operation, f.error)
                        for f in batch_failures
                    )

        semaphore = asyncio.Semaphore(self.concurrency)

        async def upsert_one(projection: Projection) -> bool:
            async with semaphore:
                return await self._guarded(
                    projection.document_id,
                    VECTOR,
                    "upsert",
                    self._upsert_vector(projection),
                    report.failures,
                )

        vector_results = await asyncio.gather(*(upsert_one(p) for p in projections))

        for projection, vector_ok in zip(projections, vector_results):
            k_ok = keyword_ok.get(projection.document_id, False)
            report.keyword_indexed += int(k_ok)
            report.vector_indexed += int(vector_ok)
            if k_ok and vector_ok:
                report.synced += 1
            else:
                report.failed += 1

        report.duration_seconds = time.time() - start_time
        logger.info(
            f"Full sync complete: {report.synced}/{report.total} synced, {report.failed} failed "
            f"(keyword={report.keyword_indexed}, vector={report.vector_indexed}) "
            f"in {report.duration_seconds:.2f}s"
        )
        return report

    async def _upsert_vector(self, projection: Projection) -> None:
        vector = await self.embedder.embed(projection.search_text)
        await self.vector_index.upsert(
            projection.document_id, vector, projection.vector_payload.to_payload()
        )

    async def _guarded(
        self,
        document_id: str,
        index: str,
        operation: str,
        awaitable: Awaitable[Any],
        failures: Optional[List[SyncFailure]] = None,
    ) -> bool:
        """Run one index operation with a timeout; log and record failure instead of raising."""
        try:
            await asyncio.wait_for(awaitable, timeout=self.sync_timeout)
            return True
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error(
                f"{index} index {operation} failed for place {document_id}: {error}",
                extra={"document_id": document_id, "index": index, "operation": operation},
            )
            if failures is not None:
                failures.append(SyncFailure(document_id, index, operation, error))
            return False
