from celery import Celery

from app.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "merchtech_entitlements",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.workers.tasks.retention_cleanup",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_routes={
        "app.workers.tasks.retention_cleanup.*": {"queue": "q_low"},
    },
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    result_expires=24 * 60 * 60,
    timezone="UTC",
    enable_utc=True,
)
