# tasks.py

from celery import Celery
import logging

from config import REDIS_URL, POLL_INTERVAL_SECONDS, LOG_LEVEL
from poller import build_poller

celery = Celery('tasks', broker=REDIS_URL, backend=REDIS_URL)
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
)

# Celery beat fires the poller on a fixed timer
celery.conf.beat_schedule = {
    "poll-active-video-jobs": {
        "task": "tasks.poll_active_jobs_task",
        "schedule": POLL_INTERVAL_SECONDS,
    },
}


@celery.task
def poll_active_jobs_task():
    """
    Background task that checks every active video job against the vendor
    and posts finished videos back to their pages.
    """
    summary = build_poller().run()
    return summary.model_dump()
