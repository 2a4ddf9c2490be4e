import hmac
import logging

from fastapi import Request

from app.config import settings
from app.errors import ErrorKind, UserServiceError

logger = logging.getLogger(__name__)

async def verify_cron_secret(request: Request) -> None:
    """
    Guards maintenance endpoints called by the scheduler.

    Raises:
        UserServiceError: UNAUTHORIZED if the bearer token is not the configured cron secret
    """
    auth_header = request.headers.get("authorization", "")
    expected = settings.cron_secret.get_secret_value()

    if not expected or not auth_header.startswith("Bearer "):
        raise UserServiceError(ErrorKind.UNAUTHORIZED)

    token = auth_header.removeprefix("Bearer ").strip()
    if not hmac.compare_digest(token.encode(), expected.encode()):
        logger.warning("Rejected maintenance call with an invalid cron secret")
        raise UserServiceError(ErrorKind.UNAUTHORIZED)
