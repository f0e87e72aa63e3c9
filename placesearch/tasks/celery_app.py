"""
Celery Application Configuration
"""

from celery import Celery
from celery.schedules import crontab

from ..config import get_settings

settings = get_settings()

app = Celery(
    "placesearch",
    broker=settings.celery_broker_url,
    backend=settings.celery_broker_url,
    include=["placesearch.tasks.sync"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=60 * 60,
    task_soft_time_limit=55 * 60,
    worker_prefetch_multiplier=1,
)

# Nightly reconciliation repairs partial syncs that were only logged
app.conf.beat_schedule = {
    "reconcile-place-indexes-nightly": {
        "task": "tasks.sync_all_places",
        "schedule": crontab(hour=3, minute=0),
    },
}

if __name__ == "__main__":
    app.start()
