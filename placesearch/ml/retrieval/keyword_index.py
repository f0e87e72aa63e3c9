"""
Keyword Index
Meilisearch index of place documents: primary relevance source and facet provider.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import meilisearch
from meilisearch.errors import MeilisearchApiError

from ...models import SearchDocument
from .filters import PlaceFilters
from .ranking import IndexHit

logger = logging.getLogger(__name__)

FACET_FIELDS = ["cityFacet", "provinceFacet", "districtFacet", "wardFacet"]

INDEX_SETTINGS = {
    "searchableAttributes": [
        "serviceNames",
        "name",
        "serviceGroupNames",
        "categoryNames",
        "categories",
        "description",
        "address",
        "city",
        "province",
        "district",
        "ward",
    ],
    "filterableAttributes": [
        "categories",
        "city",
        "province",
        "district",
        "ward",
        "cityFacet",
        "provinceFacet",
        "districtFacet",
        "wardFacet",
        "rating",
        "_geo",
    ],
    "sortableAttributes": ["rating", "quantitySold", "_geo"],
    "rankingRules": ["exactness", "words", "attribute", "proximity", "typo", "sort"],
    "typoTolerance": {
        "enabled": True,
        "minWordSizeForTypos": {"oneTypo": 4, "twoTypos": 8},
    },
}


@dataclass
class KeywordSearchResult:
    """Page of keyword hits plus the engine's total estimate."""

    hits: List[IndexHit] = field(default_factory=list)
    total_estimate: int = 0


class KeywordIndex:
    """
    Adapter over one Meilisearch index keyed by `documentId`.

    The official client is synchronous, so every call runs in a worker thread.
    Document writes are enqueued engine tasks and are idempotent.
    """

    def __init__(
        self,
        index_name: str,
        host: str = "http://127.0.0.1:7700",
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        batch_size: int = 1000,
        client: Optional[meilisearch.Client] = None,
    ):
        self.index_name = index_name
        self.batch_size = batch_size
        self.client = client or meilisearch.Client(host, api_key, timeout=int(timeout))
        self.index = self.client.index(index_name)

    async def ensure_index(self) -> None:
        """Create the index if missing and apply search settings."""
        await asyncio.to_thread(self._ensure_index)

    def _ensure_index(self) -> None:
        try:
            self.client.get_index(self.index_name)
        except MeilisearchApiError as e:
            if e.code != "index_not_found":
                raise
            logger.info(f"Creating keyword index '{self.index_name}'")
            task = self.client.create_index(self.index_name, {"primaryKey": "documentId"})
            self.client.wait_for_task(task.task_uid)

        self.index.update_settings(INDEX_SETTINGS)
        logger.info(f"Keyword index '{self.index_name}' settings applied")

    async def upsert_many(self, documents: Sequence[SearchDocument]) -> int:
        """
        Add or replace documents in chunks of `batch_size`.

        Returns:
            Number of documents sent
        """
        payloads = [doc.to_document() for doc in documents]
        for start in range(0, len(payloads), self.batch_size):
            chunk = payloads[start:start + self.batch_size]
            await asyncio.to_thread(self.index.add_documents, chunk, "documentId")
            logger.debug(f"Enqueued {len(chunk)} keyword documents")
        return len(payloads)

    async def delete(self, document_id: str) -> None:
        await asyncio.to_thread(self.index.delete_document, document_id)
        logger.debug(f"Deleted keyword document {document_id}")

    async def search(
        self,
        query: Optional[str],
        filters: Optional[PlaceFilters] = None,
        sort: Optional[List[str]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> KeywordSearchResult:
        """
        Full-text search with filters and optional engine-side sort.

        Hit scores are the engine's `_rankingScore` (0..1).
        """
        params: Dict[str, Any] = {"limit": limit, "offset": offset, "showRankingScore": True}
        filter_expr = filters.to_keyword_filter() if filters else None
        if filter_expr:
            params["filter"] = filter_expr
        if sort:
            params["sort"] = sort

        result = await asyncio.to_thread(self.index.search, query or "", params)

        hits = [
            IndexHit(
                document_id=str(hit["documentId"]),
                score=float(hit.get("_rankingScore", 0.0)),
                payload=hit,
            )
            for hit in result.get("hits", [])
        ]
        total = result.get("estimatedTotalHits", result.get("totalHits", len(hits)))
        return KeywordSearchResult(hits=hits, total_estimate=int(total))

    async def facets(
        self, query: Optional[str], facet_fields: Optional[List[str]] = None
    ) -> Dict[str, Dict[str, int]]:
        """
        Facet counts for the query text, ignoring every filter.

        Returns:
            {field: {value: count}}
        """
        params = {"limit": 0, "facets": facet_fields or FACET_FIELDS}
        result = await asyncio.to_thread(self.index.search, query or "", params)
        return result.get("facetDistribution", {}) or {}

    async def list_documents(self, limit: int = 20, offset: int = 0) -> Tuple[List[Dict[str, Any]], int]:
        """Raw indexed documents for inspection."""
        result = await asyncio.to_thread(
            self.index.get_documents, {"limit": limit, "offset": offset}
        )
        return [dict(doc) for doc in result.results], result.total

    async def count(self) -> int:
        stats = await asyncio.to_thread(self.index.get_stats)
        return stats.number_of_documents

    async def health(self) -> bool:
        try:
            status = await asyncio.to_thread(self.client.health)
            return status.get("status") == "available"
        except Exception as e:
            logger.warning(f"Keyword engine health check failed: {e}")
            return False

    async def aclose(self) -> None:
        """The HTTP session of the official client needs no explicit close."""
