import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union

from eth_utils import is_address
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.signature import verify_message
from app.errors import ErrorKind, UserServiceError
from app.models import SigningChallenge, User
from app.services import profile_refresh
from app.services.user_service import get_user_by_privy_id
from app.utils.time_utils import as_utc, epoch_millis, utcnow

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoChallenge:
    user_id: int


@dataclass(frozen=True)
class PendingChallenge:
    user_id: int
    message: str
    address: str
    issued_at: datetime

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return abs(now - self.issued_at) > ttl


ChallengeState = Union[NoChallenge, PendingChallenge]


def challenge_ttl() -> timedelta:
    return timedelta(minutes=settings.challenge_ttl_minutes)


def build_challenge_message(public_key: str, issued_at: datetime) -> str:
    """
    Build the text the wallet owner signs. The timestamp and nonce make every
    issued message unique, so verification must use the stored text.
    """
    return (
        "I'm verifying the ownership of this wallet for builderfi.\n"
        f"Timestamp: {epoch_millis(issued_at)}\n"
        f"Nonce: {secrets.token_hex(8)}\n"
        f"Wallet: {public_key}"
    )


async def load_challenge_state(db: AsyncSession, user_id: int) -> ChallengeState:
    result = await db.execute(select(SigningChallenge).where(SigningChallenge.user_id == user_id))
    challenge = result.scalar_one_or_none()
    if challenge is None:
        return NoChallenge(user_id=user_id)
    return PendingChallenge(
        user_id=user_id,
        message=challenge.message,
        address=challenge.public_key,
        issued_at=as_utc(challenge.updated_at)
    )


async def _write_challenge(db: AsyncSession, user_id: int, public_key: str, message: str, now: datetime) -> SigningChallenge:
    result = await db.execute(select(SigningChallenge).where(SigningChallenge.user_id == user_id))
    challenge = result.scalar_one_or_none()
    if challenge is None:
        challenge = SigningChallenge(user_id=user_id, created_at=now)
        db.add(challenge)

    challenge.public_key = public_key
    challenge.message = message
    challenge.updated_at = now
    await db.commit()
    return challenge


async def generate_challenge(db: AsyncSession, privy_user_id: str, public_key: str) -> SigningChallenge:
    """
    Issue the signing challenge for linking ``public_key`` to the caller,
    replacing any challenge issued before.

    Args:
        db: AsyncSession - Database session for executing queries
        privy_user_id: str - Privy id of the caller
        public_key: str - Wallet address the caller wants to link

    Returns:
        SigningChallenge: The persisted challenge; its message is what must be signed

    Raises:
        UserServiceError: INVALID_REQUEST if ``public_key`` is not an address
        NoResultFound: If the caller is not registered
    """
    public_key = public_key.strip()
    if not is_address(public_key):
        raise UserServiceError(ErrorKind.INVALID_REQUEST)

    user = await get_user_by_privy_id(db, privy_user_id)
    user_id = user.id
    now = utcnow()
    message = build_challenge_message(public_key, now)

    try:
        challenge = await _write_challenge(db, user_id, public_key, message, now)
    except IntegrityError:
        # A concurrent request inserted the user's challenge first; overwrite it
        await db.rollback()
        logger.warning(f"Concurrent challenge issuance for user_id={user_id}, retrying as update")
        challenge = await _write_challenge(db, user_id, public_key, message, now)

    await db.refresh(challenge)
    logger.info(f"Issued signing challenge for user_id={user_id}, wallet={public_key}")
    return challenge


async def link_new_wallet(db: AsyncSession, privy_user_id: str, signature: str) -> User:
    """
    Verify the signed challenge and link its wallet as the caller's social wallet.

    The challenge is consumed and the wallet set in a single commit. An expired
    or wrongly signed challenge is left in place.

    Raises:
        UserServiceError: CHALLENGE_EXPIRED, INVALID_SIGNATURE, or
            INVALID_REQUEST when the wallet is already linked to another account
        NoResultFound: If the caller is not registered or has no challenge
    """
    user = await get_user_by_privy_id(db, privy_user_id)
    user_id = user.id

    state = await load_challenge_state(db, user_id)
    if isinstance(state, NoChallenge):
        raise NoResultFound(f"No signing challenge issued for user_id={user_id}")

    if state.is_expired(utcnow(), challenge_ttl()):
        logger.info(f"Signing challenge expired for user_id={user_id}")
        raise UserServiceError(ErrorKind.CHALLENGE_EXPIRED)

    if not verify_message(state.address, state.message, signature):
        logger.info(f"Invalid signature for user_id={user_id}, wallet={state.address}")
        raise UserServiceError(ErrorKind.INVALID_SIGNATURE)

    social_wallet = state.address.lower()
    await db.execute(delete(SigningChallenge).where(SigningChallenge.user_id == user_id))
    user.social_wallet = social_wallet

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"Wallet {social_wallet} is already linked to another account")
        raise UserServiceError(ErrorKind.INVALID_REQUEST)

    await db.refresh(user)
    logger.info(f"Linked social wallet {social_wallet} to user_id={user_id}")

    profile_refresh.schedule_profile_refresh(user_id, social_wallet)
    return user
