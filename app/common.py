import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from app.config import settings
from app.core.privy_client import PrivyClient, get_privy_client
from app.errors import ErrorKind, UserServiceError

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.environment == "production":
        if not settings.privy_app_id:
            raise RuntimeError("PRIVY_APP_ID must be set in production")
        logger.info("Privy access tokens will be verified for app %s", settings.privy_app_id)
    else:
        logger.info("Running in development mode - caller identity is read from the privyUserId header")

    yield

    # Shutdown
    from app.database import engine
    await engine.dispose()

app = FastAPI(lifespan=lifespan)
security = HTTPBearer(auto_error=False)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def error_response(kind: ErrorKind, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": kind.value})

@app.exception_handler(UserServiceError)
async def user_service_error_handler(request: Request, exc: UserServiceError):
    logger.info(f"{request.method} {request.url.path} -> {exc.kind.value}")
    return error_response(exc.kind, exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.errors()}")
    return error_response(ErrorKind.INVALID_REQUEST, status.HTTP_400_BAD_REQUEST)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(ErrorKind.SOMETHING_WENT_WRONG, status.HTTP_500_INTERNAL_SERVER_ERROR)

# Dependency to get the caller's Privy user id
async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    privy_user_id: Optional[str] = Header(default=None, alias="privyUserId", convert_underscores=False),
    privy_client: PrivyClient = Depends(get_privy_client)
) -> str:

    if settings.environment != "production":
        if not privy_user_id:
            raise UserServiceError(ErrorKind.INVALID_REQUEST)
        logger.debug("Development mode - trusting privyUserId header")
        return privy_user_id

    if credentials is None:
        raise UserServiceError(ErrorKind.INVALID_REQUEST)

    token = credentials.credentials
    logger.info(f"Verifying token: {token[:10]}... (truncated for security)")
    try:
        return await privy_client.verify_access_token(token)
    except JWTError as e:
        logger.warning(f"Invalid Privy access token: {e}")
        raise UserServiceError(ErrorKind.UNAUTHORIZED)
