"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from encore.config import get_settings

settings = get_settings()

celery_app = Celery(
    "encore",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "encore.tasks.scrape_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=3600,
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "run-due-scrapes": {
        "task": "encore.tasks.scrape_tasks.run_pipeline",
        "schedule": crontab(
            minute=0,
            hour=settings.scrape_schedule_hour,
            day_of_week=settings.scrape_schedule_day_of_week,
        ),
        "kwargs": {"run_type": "all", "force_update": False},
    },
}
