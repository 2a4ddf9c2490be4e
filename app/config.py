from typing import Optional

from pydantic import field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .secrets_manager import SecretsManager


class Settings(BaseSettings):
    aws_region: str = "us-east-1"
    environment: str = "development"

    host: str = "localhost"
    port: int = 5432
    database: str = "builder"
    db_username: str = "postgres"
    db_password: SecretStr = SecretStr("postgres")

    privy_app_id: str = ""
    privy_app_secret: SecretStr = SecretStr("")
    privy_api_url: str = "https://auth.privy.io/api/v1"

    social_data_api_url: str = "http://localhost:8100"
    social_data_api_key: SecretStr = SecretStr("")

    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: Optional[str] = None

    cron_secret: SecretStr = SecretStr("")

    challenge_ttl_minutes: int = 15
    users_page_size: int = 20

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("db_username", "db_password", "privy_app_secret", "social_data_api_key", mode="before")
    @classmethod
    def load_secrets(cls, v, info):
        if info.data.get("environment") != "production":
            return v
        try:
            secrets = SecretsManager(region_name=info.data.get("aws_region"))
            if info.field_name == "db_username":
                v = secrets.get_db_credentials()["username"]
            elif info.field_name == "db_password":
                v = secrets.get_db_credentials()["password"]
            elif info.field_name == "privy_app_secret":
                v = secrets.get_privy_credentials()["app_secret"]
            elif info.field_name == "social_data_api_key":
                v = secrets.get_api_key("social-data")
            return v
        except Exception:
            # Fall back to the env value when Secrets Manager is unreachable
            return v

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+psycopg://{self.db_username}:{self.db_password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.database}"
        )


settings = Settings()
