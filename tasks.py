# tasks.py

import logging

from celery import Celery

from config import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    CLEANUP_INTERVAL_SECONDS,
    JOB_RETENTION_HOURS,
    LOG_LEVEL,
)
from database import SessionLocal
from services.orchestrator import build_orchestrator

celery = Celery('tasks', broker=CELERY_BROKER_URL, backend=CELERY_RESULT_BACKEND)
celery.conf.update(
    task_always_eager=CELERY_TASK_ALWAYS_EAGER,
    # One render at a time per worker process; renders are CPU bound.
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    beat_schedule={
        "sweep-expired-jobs": {
            "task": "tasks.sweep_expired_jobs",
            "schedule": CLEANUP_INTERVAL_SECONDS,
        },
    },
)
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")


@celery.task(name="tasks.generate_video_task")
def generate_video_task(job_id: str):
    """
    Background task that drives one job from pending to a terminal state.
    All status updates are written to the job store by the orchestrator.
    """
    logging.info(f"📝 Worker received job {job_id}")
    build_orchestrator(SessionLocal).run(job_id)


@celery.task(name="tasks.sweep_expired_jobs")
def sweep_expired_jobs(max_age_hours: float = JOB_RETENTION_HOURS) -> int:
    """Periodic retention sweep, scheduled by celery beat."""
    removed = build_orchestrator(SessionLocal).sweep_expired(max_age_hours)
    if removed:
        logging.info(f"🧹 Retention sweep removed {removed} job(s)")
    return removed
