from celery import Task
from celery.utils.log import get_task_logger

from app.core.social_data import SocialDataClient
from app.tasks.celery_app import celery_app
from app.tasks.utils import get_db, store_recommendations, store_social_profiles

logger = get_task_logger(__name__)

class BaseTaskWithRetry(Task):
    """Base task class with retry logic."""
    max_retries = 1
    default_retry_delay = 60  # 1 minute

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Log task failure using Celery's task logger."""
        logger.error(
            "Task failed: %s (task_id: %s, task_args: %s, task_kwargs: %s)",
            str(exc),
            task_id,
            args,
            kwargs,
            exc_info=exc
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

@celery_app.task(
    bind=True,
    base=BaseTaskWithRetry,
    name="refresh_user_social_profiles"
)
def refresh_user_social_profiles(self, user_id: int, wallet: str) -> dict:
    """
    Pull the social profiles of a linked wallet and store them for the user.
    """
    logger.info(
        "Refreshing social profiles",
        extra={"user_id": user_id, "wallet": wallet}
    )

    try:
        profiles = SocialDataClient().get_social_profiles(wallet)
        with get_db() as db:
            stored = store_social_profiles(db, user_id, profiles)
            profile_count = len(stored)

        logger.info(
            "Stored social profiles",
            extra={"user_id": user_id, "profile_count": profile_count}
        )
        return {"status": "success", "user_id": user_id, "profile_count": profile_count}

    except Exception as e:
        logger.error(
            "Error refreshing social profiles",
            exc_info=e,
            extra={"user_id": user_id}
        )
        raise self.retry(exc=e)

@celery_app.task(
    bind=True,
    base=BaseTaskWithRetry,
    name="update_recommendations"
)
def update_recommendations(self, wallet: str) -> dict:
    """
    Pull scored follow recommendations for a linked wallet and store them.
    """
    logger.info("Updating recommendations", extra={"wallet": wallet})

    try:
        recommendations = SocialDataClient().get_recommendations(wallet)
        with get_db() as db:
            stored = store_recommendations(db, wallet, recommendations)
            recommendation_count = len(stored) if stored is not None else 0

        return {"status": "success", "wallet": wallet, "recommendation_count": recommendation_count}

    except Exception as e:
        logger.error(
            "Error updating recommendations",
            exc_info=e,
            extra={"wallet": wallet}
        )
        raise self.retry(exc=e)
