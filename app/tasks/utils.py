import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import create_engine, delete, select, text
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.models import RecommendedUser, SocialProfile, User
from app.schemas.recommendations import ProviderRecommendation
from app.schemas.social_profiles import ProviderSocialProfile

logger = logging.getLogger(__name__)

# Global engine to avoid recreating it every time
_engine = None
_SessionLocal = None

def _get_engine():
    """Get or create a database engine with credential refresh support."""
    global _engine, _SessionLocal
    max_retries = 2
    retry_count = 0

    while retry_count <= max_retries:
        try:
            if _engine is None:
                _engine = create_engine(
                    settings.database_url,
                    pool_pre_ping=True,  # Validate connections before use
                    pool_recycle=3600,   # Recycle connections every hour
                    pool_size=5,
                    max_overflow=10
                )
                _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
                logger.info("Created new database engine")

            with _SessionLocal() as test_session:
                test_session.execute(text("SELECT 1"))

            return _engine, _SessionLocal

        except Exception as e:
            _engine = None
            _SessionLocal = None

            error_msg = str(e).lower()
            if ('authentication' in error_msg or 'password' in error_msg) and retry_count < max_retries:
                logger.warning(f"Database authentication failed (retry {retry_count + 1}): {e}")

                # Rotated credentials: drop cached secrets before retrying
                if settings.environment == "production":
                    from app.secrets_manager import SecretsManager
                    SecretsManager(region_name=settings.aws_region).clear_cache()

                retry_count += 1
                continue
            logger.error(f"Database connection failed: {e}")
            raise

@contextmanager
def get_db():
    """Get a database session context manager with proper lifecycle management."""
    _, SessionLocal = _get_engine()
    session = SessionLocal()
    try:
        yield session
        session.commit()
        logger.debug("Database session committed successfully")
    except Exception:
        session.rollback()
        logger.error("Database session rolled back due to error")
        raise
    finally:
        session.close()

def store_social_profiles(
    db: Session,
    user_id: int,
    profiles: List[ProviderSocialProfile]
) -> List[SocialProfile]:
    """
    Replace the stored social profiles of a user with a fresh set.

    One profile per network is kept; a later entry for the same network wins.
    """
    db.execute(delete(SocialProfile).where(SocialProfile.user_id == user_id))

    by_type = {profile.type: profile for profile in profiles}
    stored = [
        SocialProfile(
            user_id=user_id,
            type=profile.type,
            profile_name=profile.profile_name,
            avatar=profile.avatar,
            bio=profile.bio
        )
        for profile in by_type.values()
    ]
    db.add_all(stored)
    db.flush()
    return stored

def store_recommendations(
    db: Session,
    wallet: str,
    recommendations: List[ProviderRecommendation]
) -> Optional[List[RecommendedUser]]:
    """
    Replace the recommendations of the user whose social wallet is ``wallet``.

    Returns:
        None when no user has linked this wallet, the stored rows otherwise
    """
    wallet = wallet.lower()
    owner = db.execute(select(User).where(User.social_wallet == wallet)).scalar_one_or_none()
    if owner is None:
        logger.warning(f"No user linked to social wallet {wallet}, skipping recommendations")
        return None

    recommended_wallets = [rec.wallet.lower() for rec in recommendations]
    registered = db.execute(
        select(User.id, User.social_wallet).where(User.social_wallet.in_(recommended_wallets))
    ).all()
    user_ids = {row.social_wallet: row.id for row in registered}

    db.execute(delete(RecommendedUser).where(RecommendedUser.for_id == owner.id))

    stored = [
        RecommendedUser(
            for_id=owner.id,
            user_id=user_ids.get(rec.wallet.lower()),
            wallet=rec.wallet.lower(),
            display_name=rec.display_name,
            avatar_url=rec.avatar_url,
            recommendation_score=rec.recommendation_score
        )
        for rec in recommendations
        if rec.wallet.lower() != wallet
    ]
    db.add_all(stored)
    db.flush()
    return stored
