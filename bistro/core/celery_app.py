"""
Bistro API — Celery application

Uses Redis as both broker and result backend. Beat schedules the
partial-settlement sweep; workers run outside the API process.
"""
from celery import Celery
from bistro.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "bistro",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["bistro.tasks.reconcile_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "reconcile-partial-settlements": {
            "task": "bistro.reconcile_partial_settlements",
            "schedule": float(settings.RECONCILE_INTERVAL_SECONDS),
        },
    },
)
