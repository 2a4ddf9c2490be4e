import logging
from typing import List

import httpx

from app.config import settings
from app.schemas.recommendations import ProviderRecommendation
from app.schemas.social_profiles import ProviderSocialProfile

logger = logging.getLogger(__name__)


class SocialDataClient:
    """
    Synchronous client for the social-data provider used by the background
    tasks. The provider aggregates Farcaster, Lens, Talent Protocol and ENS
    data per wallet and scores follow recommendations.
    """

    def __init__(self, base_url: str = None, api_key: str = None, timeout: float = 20.0):
        self.base_url = (base_url or settings.social_data_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.social_data_api_key.get_secret_value()
        self.timeout = timeout

    def _get(self, path: str) -> list:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        with httpx.Client(base_url=self.base_url, headers=headers, timeout=self.timeout) as client:
            logger.debug(f"Requesting social data: {path}")
            response = client.get(path)
            response.raise_for_status()
            return response.json()

    def get_social_profiles(self, wallet: str) -> List[ProviderSocialProfile]:
        payload = self._get(f"/profiles/{wallet.lower()}")
        return [ProviderSocialProfile.model_validate(item) for item in payload]

    def get_recommendations(self, wallet: str) -> List[ProviderRecommendation]:
        payload = self._get(f"/recommendations/{wallet.lower()}")
        return [ProviderRecommendation.model_validate(item) for item in payload]
