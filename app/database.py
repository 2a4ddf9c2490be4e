from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.config import settings
import logging

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.database_url

masked_url = SQLALCHEMY_DATABASE_URL.replace(
    settings.db_password.get_secret_value(), "*****"
) if settings.db_password.get_secret_value() else SQLALCHEMY_DATABASE_URL
logger.info(f"SQLAlchemy DB URL: {masked_url}")

engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    pool_pre_ping=True
)

# Objects stay loaded after commit so route handlers can serialize them
AsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    class_=AsyncSession
)

Base = declarative_base()
