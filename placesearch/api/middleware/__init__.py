"""
Middleware
Request logging and latency tracking.
"""

from .logging import RequestLoggingMiddleware
from .timing import LatencyTracker, RequestTimingMiddleware, get_latency_tracker

__all__ = [
    "RequestLoggingMiddleware",
    "RequestTimingMiddleware",
    "LatencyTracker",
    "get_latency_tracker",
]
