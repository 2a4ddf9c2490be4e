import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.common import get_current_user_id
from app.core.privy_client import PrivyClient, get_privy_client
from app.init_db import get_db
from app.schemas.base import DataResponse
from app.schemas.recommendations import RecommendationEntry, RecommendedUserResponse
from app.schemas.users import (
    BulkUsersRequest,
    CheckUsersExistRequest,
    CreateUserRequest,
    CurrentUserResponse,
    PublicUserResponse,
    UpdateUserRequest,
    UserResponse,
)
from app.services import user_service
from app.utils.verify_cron_secret import verify_cron_secret

# Configure logging for the module
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize router with prefix and tags for API documentation
router = APIRouter(prefix="/user", tags=["users"])


@router.get("/me", response_model=DataResponse[Optional[CurrentUserResponse]])
async def get_current_user_api(
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the caller's account, or null when they have not registered yet.
    """
    return {"data": await user_service.get_current_user(db, privy_user_id)}

@router.post("/me", response_model=DataResponse[UserResponse])
async def create_user_api(
    request: CreateUserRequest,
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    privy_client: PrivyClient = Depends(get_privy_client)
):
    """
    Register the caller using an invite code.

    Errors:
        UNAUTHORIZED, USER_ALREADY_EXISTS, WALLET_MISSING,
        INVALID_INVITE_CODE, CODE_ALREADY_USED
    """
    user = await user_service.create_user(db, privy_client, privy_user_id, request.invite_code)
    return {"data": user}

@router.put("/me", response_model=DataResponse[UserResponse])
async def update_user_api(
    request: UpdateUserRequest,
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Update the caller's display name or onboarding status.
    """
    return {"data": await user_service.update_user(db, privy_user_id, request)}

@router.post("/me/refresh", response_model=DataResponse[UserResponse])
async def refresh_current_user_profile_api(
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Schedule a refresh of the caller's social profiles and recommendations.
    """
    return {"data": await user_service.refresh_current_user_profile(db, privy_user_id)}

@router.post("/refresh-all", response_model=DataResponse[List[UserResponse]], dependencies=[Depends(verify_cron_secret)])
async def refresh_all_users_profile_api(db: AsyncSession = Depends(get_db)):
    return {"data": await user_service.refresh_all_users_profile(db)}

@router.get("/questionable", response_model=DataResponse[List[PublicUserResponse]])
async def get_questionable_users_api(
    offset: int = Query(default=0, ge=0),
    search: Optional[str] = Query(default=None),
    privy_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    List users the caller can ask questions to.

    Args:
        offset: Number of users to skip
        search: Optional case-insensitive substring of display name or wallet
    """
    users = await user_service.get_questionable_users(db, privy_user_id, search or None, offset)
    return {"data": users}

@router.post("/check-exist", response_model=DataResponse[List[UserResponse]], dependencies=[Depends(get_current_user_id)])
async def check_users_exist_api(request: CheckUsersExistRequest, db: AsyncSession = Depends(get_db)):
    """
    Return the users whose linked social wallet is one of the given wallets.
    """
    return {"data": await user_service.check_users_exist(db, request.wallets)}

@router.post("/bulk", response_model=DataResponse[List[UserResponse]], dependencies=[Depends(get_current_user_id)])
async def get_bulk_users_api(request: BulkUsersRequest, db: AsyncSession = Depends(get_db)):
    return {"data": await user_service.get_bulk_users(db, request.addresses)}

@router.get("/recommended/{wallet}", response_model=DataResponse[RecommendedUserResponse], dependencies=[Depends(get_current_user_id)])
async def get_recommended_user_api(wallet: str, db: AsyncSession = Depends(get_db)):
    return {"data": await user_service.get_recommended_user(db, wallet)}

@router.get("/{wallet}/recommended", response_model=DataResponse[List[RecommendationEntry]], dependencies=[Depends(get_current_user_id)])
async def get_recommended_users_api(wallet: str, db: AsyncSession = Depends(get_db)):
    """
    Follow recommendations for the user owning ``wallet``, best first.
    """
    return {"data": await user_service.get_recommended_users(db, wallet)}

@router.get("/{wallet}", response_model=DataResponse[PublicUserResponse], dependencies=[Depends(get_current_user_id)])
async def get_user_api(wallet: str, db: AsyncSession = Depends(get_db)):
    return {"data": await user_service.get_user(db, wallet)}
