import logging

from app.tasks.profile_tasks import refresh_user_social_profiles, update_recommendations

logger = logging.getLogger(__name__)


def schedule_profile_refresh(user_id: int, wallet: str) -> bool:
    """
    Enqueue the social profile and recommendation refresh for a linked wallet.

    Never raises: the caller's request has already succeeded and a broker
    outage only delays enrichment.

    Returns:
        bool: True if both tasks were enqueued
    """
    wallet = wallet.lower()
    try:
        refresh_user_social_profiles.delay(user_id, wallet)
        update_recommendations.delay(wallet)
        return True
    except Exception:
        logger.exception(f"Failed to enqueue profile refresh for user_id={user_id}, wallet={wallet}")
        return False
