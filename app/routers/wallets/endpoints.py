import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.common import get_current_user_id
from app.init_db import get_db
from app.schemas.base import DataResponse
from app.schemas.users import UserResponse
from app.schemas.wallets import ChallengeRequest, LinkWalletRequest, SigningChallengeResponse
from app.services import wallet_service

# Configure logging for the module
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user/link-wallet", tags=["wallets"])


@router.post("/challenge", response_model=DataResponse[SigningChallengeResponse])
async def generate_challenge_api(
    request: ChallengeRequest,
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Issue the message the caller must sign with the wallet they want to link.
    Any earlier challenge of the caller is replaced.
    """
    challenge = await wallet_service.generate_challenge(db, privy_user_id, request.public_key)
    return {"data": challenge}

@router.post("", response_model=DataResponse[UserResponse])
async def link_new_wallet_api(
    request: LinkWalletRequest,
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Verify the signed challenge and link its wallet as the caller's social wallet.

    Errors:
        CHALLENGE_EXPIRED, INVALID_SIGNATURE, INVALID_REQUEST
    """
    user = await wallet_service.link_new_wallet(db, privy_user_id, request.signature)
    return {"data": user}
