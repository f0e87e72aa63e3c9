"""
Sync Module
Projection of places into index documents and index synchronization.
"""

from .orchestrator import (
    LifecycleAction,
    LifecycleEvent,
    PlaceSyncResult,
    SyncFailure,
    SyncOrchestrator,
    SyncReport,
)
from .projector import build_search_text, project

__all__ = [
    "LifecycleAction",
    "LifecycleEvent",
    "PlaceSyncResult",
    "SyncFailure",
    "SyncOrchestrator",
    "SyncReport",
    "build_search_text",
    "project",
]
