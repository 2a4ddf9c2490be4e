import logging
import re
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.privy_client import PrivyClient
from app.errors import ErrorKind, UserServiceError
from app.models import InviteCode, RecommendedUser, User
from app.schemas.recommendations import RecommendationEntry, RecommendedUserResponse
from app.schemas.users import CurrentUserResponse, InviteCodeResponse, UpdateUserRequest
from app.services import profile_refresh

# Configure logger for this module
logger = logging.getLogger(__name__)

DISPLAY_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_.]{2,19}$")

async def get_user_by_privy_id(db: AsyncSession, privy_user_id: str) -> User:
    """
    Fetch the caller's own account.

    Raises:
        NoResultFound: If no account exists for the Privy id. Callers reaching
            this point must already be registered, so this is not a domain error.
    """
    result = await db.execute(select(User).where(User.privy_user_id == privy_user_id))
    return result.scalar_one()

async def create_user(
    db: AsyncSession,
    privy_client: PrivyClient,
    privy_user_id: str,
    invite_code: str
) -> User:
    """
    Register a new account admitted by an invite code.

    The user insert and the invite code increment are committed together.
    The increment only applies while the code is under its cap, so a racing
    registration that takes the last use makes this one fail cleanly.

    Args:
        db: AsyncSession - Database session for executing queries
        privy_client: PrivyClient - Identity provider client
        privy_user_id: str - Privy id of the caller
        invite_code: str - Invite code as typed by the caller

    Returns:
        User: The created account

    Raises:
        UserServiceError: UNAUTHORIZED, USER_ALREADY_EXISTS, WALLET_MISSING,
            INVALID_INVITE_CODE or CODE_ALREADY_USED
    """
    invite_code = invite_code.strip()
    logger.info(f"Starting registration for privy_user_id={privy_user_id}, invite_code={invite_code}")

    privy_user = await privy_client.get_user(privy_user_id)
    if privy_user is None:
        raise UserServiceError(ErrorKind.UNAUTHORIZED)

    existing = await db.execute(select(User.id).where(User.privy_user_id == privy_user_id))
    if existing.scalar_one_or_none() is not None:
        logger.warning(f"User already exists for privy_user_id={privy_user_id}")
        raise UserServiceError(ErrorKind.USER_ALREADY_EXISTS)

    embedded_wallet = privy_user.find_embedded_wallet()
    if embedded_wallet is None:
        raise UserServiceError(ErrorKind.WALLET_MISSING)

    address = embedded_wallet.address.lower()

    result = await db.execute(select(InviteCode).where(InviteCode.code == invite_code))
    code = result.scalar_one_or_none()
    if code is None or not code.is_active:
        raise UserServiceError(ErrorKind.INVALID_INVITE_CODE)

    if code.used >= code.max_uses:
        raise UserServiceError(ErrorKind.CODE_ALREADY_USED)

    code_id = code.id
    new_user = User(
        privy_user_id=privy_user.id,
        invited_by_id=code_id,
        wallet=address,
        is_active=True
    )
    db.add(new_user)

    consumed = await db.execute(
        update(InviteCode)
        .where(InviteCode.id == code_id, InviteCode.used < InviteCode.max_uses)
        .values(used=InviteCode.used + 1)
        .execution_options(synchronize_session=False)
    )
    if consumed.rowcount != 1:
        await db.rollback()
        logger.warning(f"Invite code {invite_code} reached its cap during registration")
        raise UserServiceError(ErrorKind.CODE_ALREADY_USED)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"Duplicate registration rejected for privy_user_id={privy_user_id}")
        raise UserServiceError(ErrorKind.USER_ALREADY_EXISTS)

    await db.refresh(new_user)
    logger.info(f"User registered successfully: user_id={new_user.id}, wallet={address}")
    return new_user

async def update_user(db: AsyncSession, privy_user_id: str, request: UpdateUserRequest) -> User:
    """
    Update the caller's display name and onboarding flag.

    A display name can only be chosen while no social profile provides one,
    and onboarding can only be finished once a display name exists.
    """
    user = await get_user_by_privy_id(db, privy_user_id)

    if request.display_name is not None:
        if user.social_profiles:
            raise UserServiceError(ErrorKind.INVALID_REQUEST)
        if not DISPLAY_NAME_PATTERN.match(request.display_name):
            raise UserServiceError(ErrorKind.USERNAME_INVALID_FORMAT)

    if request.has_finished_onboarding:
        if not user.display_name and not request.display_name:
            raise UserServiceError(ErrorKind.INVALID_REQUEST)

    if request.has_finished_onboarding is not None:
        user.has_finished_onboarding = request.has_finished_onboarding
    if request.display_name is not None:
        user.display_name = request.display_name

    await db.commit()
    await db.refresh(user)
    return user

async def get_current_user(db: AsyncSession, privy_user_id: str) -> Optional[CurrentUserResponse]:
    """
    Retrieve the caller's account with its social profiles and the active
    invite codes it can share. None when the caller has not registered yet.
    """
    result = await db.execute(select(User).where(User.privy_user_id == privy_user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    current = CurrentUserResponse.model_validate(user)
    current.invite_codes = [
        InviteCodeResponse.model_validate(code) for code in user.invite_codes if code.is_active
    ]
    return current

async def get_user(db: AsyncSession, wallet: str) -> User:
    result = await db.execute(select(User).where(User.wallet == wallet.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserServiceError(ErrorKind.USER_NOT_FOUND)
    return user

async def check_users_exist(db: AsyncSession, wallets: List[str]) -> List[User]:
    """Return the users whose linked social wallet is among ``wallets``."""
    addresses = [wallet.lower() for wallet in wallets]
    if not addresses:
        return []
    result = await db.execute(select(User).where(User.social_wallet.in_(addresses)))
    return list(result.scalars().all())

async def get_bulk_users(db: AsyncSession, addresses: List[str]) -> List[User]:
    """Return the active, onboarded users among the given primary wallets."""
    addresses = [address.lower() for address in addresses]
    if not addresses:
        return []
    result = await db.execute(
        select(User).where(
            User.wallet.in_(addresses),
            User.is_active.is_(True),
            User.has_finished_onboarding.is_(True)
        )
    )
    return list(result.scalars().all())

async def get_questionable_users(
    db: AsyncSession,
    privy_user_id: str,
    search: Optional[str] = None,
    offset: int = 0
) -> List[User]:
    """
    List users the caller can put questions to: active, onboarded accounts
    other than the caller, newest first, one page at a time.

    Args:
        search: Optional case-insensitive substring matched against display
            name and both wallets
        offset: Number of users to skip
    """
    caller = await get_user_by_privy_id(db, privy_user_id)

    query = select(User).where(
        User.id != caller.id,
        User.is_active.is_(True),
        User.has_finished_onboarding.is_(True)
    )
    if search:
        term = search.strip()
        query = query.where(or_(
            User.display_name.icontains(term, autoescape=True),
            User.wallet.icontains(term, autoescape=True),
            User.social_wallet.icontains(term, autoescape=True)
        ))

    query = query.order_by(User.created_at.desc(), User.id.desc()).offset(max(offset, 0)).limit(settings.users_page_size)
    result = await db.execute(query)
    return list(result.scalars().all())

async def refresh_current_user_profile(db: AsyncSession, privy_user_id: str) -> User:
    user = await get_user_by_privy_id(db, privy_user_id)
    if not user.social_wallet:
        raise UserServiceError(ErrorKind.NO_SOCIAL_PROFILE_FOUND)

    profile_refresh.schedule_profile_refresh(user.id, user.social_wallet)
    return user

async def refresh_all_users_profile(db: AsyncSession) -> List[User]:
    """Schedule a profile refresh for every user with a linked social wallet."""
    result = await db.execute(select(User).where(User.social_wallet.is_not(None)))
    users = list(result.scalars().all())

    scheduled = sum(profile_refresh.schedule_profile_refresh(user.id, user.social_wallet) for user in users)
    logger.info(f"Scheduled profile refresh for {scheduled}/{len(users)} users")
    return users

async def get_recommended_users(db: AsyncSession, address: str) -> List[RecommendationEntry]:
    """
    Recommendations for the user owning primary wallet ``address``, highest
    score first. Entries backed by a registered account carry that account's
    primary wallet; ``social_wallet`` is always the recommended wallet.
    """
    owner = await get_user(db, address)

    result = await db.execute(
        select(RecommendedUser)
        .where(RecommendedUser.for_id == owner.id)
        .order_by(RecommendedUser.recommendation_score.desc())
    )
    recommendations = list(result.scalars().all())

    user_ids = [rec.user_id for rec in recommendations if rec.user_id is not None]
    wallets_by_id = {}
    if user_ids:
        rows = await db.execute(select(User.id, User.wallet).where(User.id.in_(user_ids)))
        wallets_by_id = {row.id: row.wallet for row in rows.all()}

    entries = []
    for rec in recommendations:
        base = RecommendedUserResponse.model_validate(rec).model_dump()
        base["wallet"] = wallets_by_id.get(rec.user_id, rec.wallet)
        entries.append(RecommendationEntry(**base, social_wallet=rec.wallet))
    return entries

async def get_recommended_user(db: AsyncSession, wallet: str) -> RecommendedUser:
    result = await db.execute(
        select(RecommendedUser).where(RecommendedUser.wallet == wallet.lower()).limit(1)
    )
    recommendation = result.scalars().first()
    if recommendation is None:
        raise UserServiceError(ErrorKind.USER_NOT_FOUND)
    return recommendation
