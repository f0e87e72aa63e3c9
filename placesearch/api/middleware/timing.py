"""
Request Timing Middleware
Rolling latency statistics per route group.
"""

import logging
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Callable, Deque, Dict

import numpy as np
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

EMPTY_STATS = {"count": 0, "p50": 0.0, "p95": 0.0, "p99": 0.0, "mean": 0.0, "max": 0.0}


def route_group(path: str) -> str:
    """Bucket a path: `/api/v1/places/search` -> `places`, `/health` -> `health`."""
    parts = [p for p in path.split("/") if p]
    if len(parts) >= 3 and parts[0] == "api":
        return parts[2]
    return parts[0] if parts else "root"


class LatencyTracker:
    """
    Rolling window of recent latencies, overall and per route group.
    """

    def __init__(self, window_size: int = 1000):
        self.window_size = window_size
        self._all: Deque[float] = deque(maxlen=window_size)
        self._groups: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=window_size))
        self._lock = Lock()

    def record(self, latency_ms: float, group: str = "other") -> None:
        with self._lock:
            self._all.append(latency_ms)
            self._groups[group].append(latency_ms)

    @staticmethod
    def _summarize(values) -> Dict[str, float]:
        if not values:
            return dict(EMPTY_STATS)
        arr = np.asarray(values, dtype=np.float64)
        p50, p95, p99 = np.percentile(arr, [50, 95, 99])
        return {
            "count": int(arr.size),
            "p50": float(p50),
            "p95": float(p95),
            "p99": float(p99),
            "mean": float(arr.mean()),
            "max": float(arr.max()),
        }

    def get_stats(self) -> Dict[str, float]:
        """Stats over all recent requests."""
        with self._lock:
            values = list(self._all)
        return self._summarize(values)

    def get_group_stats(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            groups = {name: list(values) for name, values in self._groups.items()}
        return {name: self._summarize(values) for name, values in groups.items()}

    def reset(self) -> None:
        with self._lock:
            self._all.clear()
            self._groups.clear()


_latency_tracker = LatencyTracker()


def get_latency_tracker() -> LatencyTracker:
    """Get global latency tracker."""
    return _latency_tracker


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Records request latency and flags slow requests.
    """

    def __init__(self, app, tracker: LatencyTracker = None, slow_request_ms: float = 500.0):
        super().__init__(app)
        self.tracker = tracker or get_latency_tracker()
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        self.tracker.record(duration_ms, route_group(request.url.path))
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if duration_ms > self.slow_request_ms:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration_ms:.0f}ms",
                extra={"path": request.url.path, "duration_ms": duration_ms},
            )

        return response
