from app.tasks.celery_app import celery_app
from app.tasks.profile_tasks import (
    refresh_user_social_profiles,
    update_recommendations
)

__all__ = [
    "celery_app",
    "refresh_user_social_profiles",
    "update_recommendations"
]
