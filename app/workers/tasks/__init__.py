from app.workers.tasks.retention_cleanup import run_retention_cleanup

__all__ = [
    "run_retention_cleanup",
]
