"""
Health Check Endpoints
Liveness, backend status and latency metrics.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ...container import SearchServices
from ..dependencies import get_services
from ..middleware.timing import get_latency_tracker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """Basic health check."""
    return {"status": "healthy", "timestamp": _now()}


@router.get("/status", status_code=status.HTTP_200_OK)
async def status_check(services: SearchServices = Depends(get_services)) -> Dict[str, Any]:
    """
    Detailed status check.

    Checks the keyword engine, vector store, embedding provider and cache.
    Any failing component marks the service as degraded.
    """
    settings = services.settings
    status_info = {
        "status": "healthy",
        "timestamp": _now(),
        "version": settings.version,
        "index": settings.index_name,
        "strategy": settings.search_strategy,
        "components": {},
    }

    if await services.keyword_index.health():
        component = {"status": "healthy"}
        try:
            component["documents"] = await services.keyword_index.count()
        except Exception as e:
            logger.warning(f"Keyword document count failed: {e}")
        status_info["components"]["keyword_index"] = component
    else:
        status_info["components"]["keyword_index"] = {"status": "unhealthy"}
        status_info["status"] = "degraded"

    if await services.vector_index.health():
        component = {"status": "healthy"}
        try:
            component["points"] = await services.vector_index.count()
        except Exception as e:
            logger.warning(f"Vector point count failed: {e}")
        status_info["components"]["vector_index"] = component
    else:
        status_info["components"]["vector_index"] = {"status": "unhealthy"}
        status_info["status"] = "degraded"

    status_info["components"]["embeddings"] = services.embedder.info()

    cache = services.embedder.cache
    if cache is not None:
        cache_ok = await cache.ping()
        status_info["components"]["embedding_cache"] = {"status": "healthy" if cache_ok else "unhealthy"}
        if not cache_ok:
            status_info["status"] = "degraded"

    latency = get_latency_tracker().get_stats()
    status_info["performance"] = {
        "request_count": latency["count"],
        "latency_p50_ms": round(latency["p50"], 2),
        "latency_p95_ms": round(latency["p95"], 2),
    }

    return status_info


@router.get("/metrics", status_code=status.HTTP_200_OK)
async def get_metrics() -> Dict[str, Any]:
    """Latency statistics, overall and per route group."""
    tracker = get_latency_tracker()
    stats = tracker.get_stats()

    return {
        "requests": {"total": stats["count"]},
        "latency": {
            "p50_ms": round(stats["p50"], 2),
            "p95_ms": round(stats["p95"], 2),
            "p99_ms": round(stats["p99"], 2),
            "mean_ms": round(stats["mean"], 2),
            "max_ms": round(stats["max"], 2),
        },
        "groups": {
            name: {"count": group["count"], "p95_ms": round(group["p95"], 2)}
            for name, group in tracker.get_group_stats().items()
        },
        "timestamp": _now(),
    }
