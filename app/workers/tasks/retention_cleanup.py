from __future__ import annotations

from datetime import datetime, timedelta, timezone
from time import perf_counter

import structlog
from celery.schedules import crontab

from app.core.config import get_settings
from app.db.repo.redemption_attempts_repo import RedemptionAttemptsRepo
from app.db.session import SessionLocal
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


def _clamp_retention_days(value: int) -> int:
    return max(1, min(3650, int(value)))


def _clamp_batch_size(value: int) -> int:
    return max(1, min(50000, int(value)))


def _clamp_max_batches(value: int) -> int:
    return max(1, min(1000, int(value)))


def _clamp_schedule_hour(value: int) -> int:
    return max(0, min(23, int(value)))


async def run_retention_cleanup_async() -> dict[str, object]:
    settings = get_settings()
    now_utc = datetime.now(timezone.utc)

    retention_days = _clamp_retention_days(settings.retention_redemption_attempts_days)
    batch_size = _clamp_batch_size(settings.retention_cleanup_batch_size)
    max_batches = _clamp_max_batches(settings.retention_cleanup_max_batches)
    cutoff_utc = now_utc - timedelta(days=retention_days)

    started_at = perf_counter()
    rows_deleted = 0
    batches_executed = 0
    for _ in range(max_batches):
        async with SessionLocal.begin() as session:
            deleted_in_batch = await RedemptionAttemptsRepo.delete_attempted_before(
                session,
                cutoff_utc=cutoff_utc,
                limit=batch_size,
            )
        batches_executed += 1
        rows_deleted += deleted_in_batch
        if deleted_in_batch < batch_size:
            break

    result: dict[str, object] = {
        "generated_at": now_utc.isoformat(),
        "table": "redemption_attempts",
        "retention_days": retention_days,
        "cutoff_utc": cutoff_utc.isoformat(),
        "batch_size": batch_size,
        "max_batches": max_batches,
        "batches_executed": batches_executed,
        "rows_deleted_total": rows_deleted,
        "duration_ms": int((perf_counter() - started_at) * 1000),
    }
    logger.info("retention_cleanup_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.retention_cleanup.run_retention_cleanup")
def run_retention_cleanup() -> dict[str, object]:
    return run_async_job(run_retention_cleanup_async(), job_name="retention_cleanup")


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
settings = get_settings()
celery_app.conf.beat_schedule.update(
    {
        "retention-cleanup-daily": {
            "task": "app.workers.tasks.retention_cleanup.run_retention_cleanup",
            "schedule": crontab(
                hour=_clamp_schedule_hour(settings.retention_cleanup_schedule_hour_utc),
                minute=0,
            ),
            "options": {"queue": "q_low"},
        },
    }
)
