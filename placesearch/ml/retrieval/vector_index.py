"""
Vector Index
Qdrant collection holding one embedding point per published place.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from qdrant_client import AsyncQdrantClient, models

from ...exceptions import ConfigurationError, PlaceNotIndexedError
from .filters import PlaceFilters
from .ids import uuid_of
from .ranking import IndexHit

logger = logging.getLogger(__name__)

# Payload indexes built when the collection is created
PAYLOAD_INDEXES = {
    "city": models.PayloadSchemaType.KEYWORD,
    "province": models.PayloadSchemaType.KEYWORD,
    "district": models.PayloadSchemaType.KEYWORD,
    "ward": models.PayloadSchemaType.KEYWORD,
    "categories": models.PayloadSchemaType.KEYWORD,
    "rating": models.PayloadSchemaType.FLOAT,
    "location": models.PayloadSchemaType.GEO,
}


def _vector_size(info: models.CollectionInfo) -> Optional[int]:
    vectors = info.config.params.vectors
    if isinstance(vectors, dict):
        vectors = next(iter(vectors.values()), None)
    return getattr(vectors, "size", None)


class VectorIndex:
    """
    Adapter over one Qdrant collection (cosine distance).

    Point ids are `uuid_of(document_id)`; the document id is also kept in the
    payload. Backend errors propagate to the caller.
    """

    def __init__(
        self,
        collection_name: str,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        dimension: Optional[int] = None,
        client: Optional[AsyncQdrantClient] = None,
    ):
        """
        Initialize vector index adapter.

        Args:
            collection_name: Qdrant collection name
            url: Qdrant URL
            api_key: Qdrant API key
            timeout: Request timeout in seconds
            dimension: Expected vector size, used to create the collection lazily
            client: Existing async client
        """
        self.collection_name = collection_name
        self.client = client or AsyncQdrantClient(url=url, api_key=api_key, timeout=int(timeout))
        self.dimension = dimension
        self._ready = False
        self._lock = asyncio.Lock()

    async def ensure_collection(self, dimension: int) -> None:
        """
        Create the collection and payload indexes if missing.

        Raises:
            ConfigurationError: If the existing collection has a different vector size
        """
        if await self.client.collection_exists(self.collection_name):
            info = await self.client.get_collection(self.collection_name)
            size = _vector_size(info)
            if size != dimension:
                raise ConfigurationError(
                    f"Vector collection '{self.collection_name}' has dimension {size}, "
                    f"embedding provider produces {dimension}. "
                    "Run `python -m placesearch.scripts.reset_vector_collection` and re-sync."
                )
            logger.info(f"Vector collection '{self.collection_name}' ready (dim={size})")
        else:
            logger.info(f"Creating vector collection '{self.collection_name}' (dim={dimension})")
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=models.VectorParams(size=dimension, distance=models.Distance.COSINE),
            )
            for field_name, schema in PAYLOAD_INDEXES.items():
                await self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=schema,
                )

        self.dimension = dimension
        self._ready = True

    async def _ensure_ready(self, dimension: Optional[int] = None) -> None:
        if self._ready:
            return
        dimension = dimension or self.dimension
        if dimension is None:
            return
        async with self._lock:
            if not self._ready:
                await self.ensure_collection(dimension)

    async def upsert(self, document_id: str, vector: List[float], payload: Dict[str, Any]) -> None:
        """Insert or replace the point for a place."""
        await self._ensure_ready(len(vector))
        await self.client.upsert(
            collection_name=self.collection_name,
            points=[
                models.PointStruct(
                    id=uuid_of(document_id),
                    vector=vector,
                    payload={**payload, "documentId": document_id},
                )
            ],
            wait=True,
        )
        logger.debug(f"Upserted vector for place {document_id}")

    async def delete(self, document_id: str) -> None:
        """Delete the point for a place (no-op if absent)."""
        await self._ensure_ready()
        await self.client.delete(
            collection_name=self.collection_name,
            points_selector=models.PointIdsList(points=[uuid_of(document_id)]),
            wait=True,
        )
        logger.debug(f"Deleted vector for place {document_id}")

    async def search(
        self,
        vector: List[float],
        filters: Optional[PlaceFilters] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[IndexHit]:
        """
        Nearest-neighbour search.

        Returns:
            Hits ordered by cosine similarity (descending)
        """
        await self._ensure_ready(len(vector))
        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=vector,
            query_filter=filters.to_vector_filter() if filters else None,
            limit=limit,
            offset=offset,
            with_payload=True,
        )
        return [self._to_hit(point, point.score) for point in response.points]

    async def scroll_by_filter(self, filters: Optional[PlaceFilters], limit: int = 100) -> List[IndexHit]:
        """Payload-only lookup (no similarity ordering)."""
        await self._ensure_ready()
        points, _ = await self.client.scroll(
            collection_name=self.collection_name,
            scroll_filter=filters.to_vector_filter() if filters else None,
            limit=limit,
            with_payload=True,
            with_vectors=False,
        )
        return [self._to_hit(point, 0.0) for point in points]

    async def fetch_vector(self, document_id: str) -> Optional[List[float]]:
        """Stored vector for a place, or None if it is not indexed."""
        await self._ensure_ready()
        records = await self.client.retrieve(
            collection_name=self.collection_name,
            ids=[uuid_of(document_id)],
            with_vectors=True,
            with_payload=False,
        )
        if not records or records[0].vector is None:
            return None

        vector = records[0].vector
        if isinstance(vector, dict):
            vector = next(iter(vector.values()))
        return list(vector)

    async def find_similar(
        self,
        document_id: str,
        limit: int = 10,
        filters: Optional[PlaceFilters] = None,
    ) -> List[IndexHit]:
        """
        Places most similar to an indexed place, excluding the place itself.

        Raises:
            PlaceNotIndexedError: If the place has no point
        """
        vector = await self.fetch_vector(document_id)
        if vector is None:
            raise PlaceNotIndexedError(document_id)

        hits = await self.search(vector, filters=filters, limit=limit + 1)
        return [hit for hit in hits if hit.document_id != document_id][:limit]

    async def count(self) -> int:
        await self._ensure_ready()
        result = await self.client.count(collection_name=self.collection_name, exact=True)
        return result.count

    async def drop_collection(self) -> bool:
        """Delete the whole collection. Returns False if it did not exist."""
        if not await self.client.collection_exists(self.collection_name):
            return False
        await self.client.delete_collection(collection_name=self.collection_name)
        self._ready = False
        logger.warning(f"Dropped vector collection '{self.collection_name}'")
        return True

    async def health(self) -> bool:
        try:
            await self.client.get_collections()
            return True
        except Exception as e:
            logger.warning(f"Vector store health check failed: {e}")
            return False

    async def aclose(self) -> None:
        await self.client.close()

    @staticmethod
    def _to_hit(point: Any, score: float) -> IndexHit:
        payload = dict(point.payload or {})
        return IndexHit(
            document_id=str(payload.get("documentId") or point.id),
            score=float(score or 0.0),
            payload=payload,
        )
