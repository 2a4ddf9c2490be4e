from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.base import ApiModel
from app.schemas.social_profiles import SocialProfileResponse

class CreateUserRequest(ApiModel):
    invite_code: str

class UpdateUserRequest(ApiModel):
    has_finished_onboarding: Optional[bool] = None
    display_name: Optional[str] = None

class CheckUsersExistRequest(ApiModel):
    wallets: List[str]

class BulkUsersRequest(ApiModel):
    addresses: List[str]

class InviteCodeResponse(ApiModel):
    id: int
    code: str
    is_active: bool
    used: int
    max_uses: int

class UserResponse(ApiModel):
    id: int
    privy_user_id: str
    wallet: str
    social_wallet: Optional[str] = None
    display_name: Optional[str] = None
    has_finished_onboarding: bool
    is_active: bool
    invited_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class PublicUserResponse(UserResponse):
    social_profiles: List[SocialProfileResponse] = Field(default_factory=list)

class CurrentUserResponse(PublicUserResponse):
    invite_codes: List[InviteCodeResponse] = Field(default_factory=list)
