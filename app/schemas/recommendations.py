from datetime import datetime
from typing import Optional

from app.schemas.base import ApiModel

class RecommendedUserResponse(ApiModel):
    id: int
    for_id: int
    user_id: Optional[int] = None
    wallet: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    recommendation_score: float
    created_at: Optional[datetime] = None

class RecommendationEntry(RecommendedUserResponse):
    """Recommendation enriched with the registered user's wallets."""
    social_wallet: str

class ProviderRecommendation(ApiModel):
    """Scored recommendation as returned by the social-data provider."""
    wallet: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    recommendation_score: float
