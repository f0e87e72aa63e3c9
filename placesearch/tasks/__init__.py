"""
Background Tasks
Celery tasks for index synchronization.
"""

from .celery_app import app as celery_app

__all__ = ["celery_app"]
