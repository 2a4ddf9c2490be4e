from celery import Celery

from app.config import settings

celery_app = Celery(
    "builder_api",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend or settings.celery_broker_url,
    include=["app.tasks.profile_tasks"]
)

# Celery Configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,  # 4 minutes
    worker_max_tasks_per_child=100,  # Restart worker after 100 tasks
    worker_prefetch_multiplier=1,  # One task per worker
    task_ignore_result=True,
    # Publishing happens inside HTTP requests; fail fast when the broker is down
    task_publish_retry=False,
    broker_connection_timeout=3,
)

celery_app.conf.task_routes = {
    "refresh_user_social_profiles": {"queue": "profiles"},
    "update_recommendations": {"queue": "profiles"}
}

celery_app.conf.task_default_retry_delay = 60  # 1 minute
celery_app.conf.task_max_retries = 1  # Retry once
