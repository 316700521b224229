"""
Celery tasks for background processing.
"""

from app.tasks.content_tasks import (
    process_content_task,
    reclaim_stale_processing_task,
)

__all__ = [
    "process_content_task",
    "reclaim_stale_processing_task",
]
