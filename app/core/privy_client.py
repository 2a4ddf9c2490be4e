import logging
from typing import List, Optional

import httpx
from cachetools import TTLCache
from jose import jwt, JWTError
from pydantic import BaseModel

from app.config import settings

# Configure logger for this module
logger = logging.getLogger(__name__)

PRIVY_ISSUER = "privy.io"

# Cache the JWKS for 1 hour to avoid fetching it on every request
jwks_cache = TTLCache(maxsize=1, ttl=3600)


class LinkedAccount(BaseModel):
    type: str
    address: Optional[str] = None
    chain_type: Optional[str] = None
    wallet_client_type: Optional[str] = None
    connector_type: Optional[str] = None


class PrivyUser(BaseModel):
    id: str
    linked_accounts: List[LinkedAccount] = []

    def find_embedded_wallet(self) -> Optional[LinkedAccount]:
        """
        Return the wallet custodied by Privy itself, ignoring externally
        connected wallets.
        """
        for account in self.linked_accounts:
            if (
                account.type == "wallet"
                and account.wallet_client_type == "privy"
                and account.connector_type == "embedded"
                and account.address
            ):
                return account
        return None


class PrivyClient:
    """
    Client for the Privy server API.

    Privy holds the identity of every account; the API resolves a Privy user
    id to the accounts (embedded wallet included) linked to it.
    """

    def __init__(self, app_id: str = None, app_secret: str = None, base_url: str = None):
        self.app_id = app_id or settings.privy_app_id
        self.app_secret = app_secret or settings.privy_app_secret.get_secret_value()
        self.base_url = (base_url or settings.privy_api_url).rstrip("/")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.app_id, self.app_secret),
            headers={"privy-app-id": self.app_id},
            timeout=10.0
        )

    async def get_user(self, privy_user_id: str) -> Optional[PrivyUser]:
        """
        Fetch a Privy user.

        Returns:
            Optional[PrivyUser]: None when Privy does not know the id

        Raises:
            httpx.HTTPError: If Privy cannot be reached or answers with an error
        """
        async with self._client() as client:
            response = await client.get(f"/users/{privy_user_id}")

        if response.status_code in (400, 404):
            logger.warning(f"Privy user {privy_user_id} not found (status {response.status_code})")
            return None

        response.raise_for_status()
        return PrivyUser.model_validate(response.json())

    async def get_jwks(self) -> dict:
        if "jwks" in jwks_cache:
            return jwks_cache["jwks"]

        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(f"{self.base_url}/apps/{self.app_id}/jwks.json")
            response.raise_for_status()

        jwks = response.json()
        jwks_cache["jwks"] = jwks
        return jwks

    async def verify_access_token(self, token: str) -> str:
        """
        Verify a Privy access token and return the Privy user id it was
        issued for.

        Raises:
            JWTError: If the token is malformed, expired or not issued for this app
        """
        jwks = await self.get_jwks()
        claims = jwt.decode(
            token,
            jwks,
            algorithms=["ES256"],
            audience=self.app_id,
            issuer=PRIVY_ISSUER
        )
        subject = claims.get("sub")
        if not subject:
            raise JWTError("Token missing subject")
        return subject


privy_client = PrivyClient()


def get_privy_client() -> PrivyClient:
    return privy_client
