from datetime import datetime
from enum import Enum
from typing import Optional

from app.schemas.base import ApiModel

class SocialProfileType(str, Enum):
    FARCASTER = "FARCASTER"
    LENS = "LENS"
    TALENT_PROTOCOL = "TALENT_PROTOCOL"
    ENS = "ENS"

class SocialProfileResponse(ApiModel):
    id: int
    type: SocialProfileType
    profile_name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    updated_at: Optional[datetime] = None

class ProviderSocialProfile(ApiModel):
    """Profile entry as returned by the social-data provider."""
    type: SocialProfileType
    profile_name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
