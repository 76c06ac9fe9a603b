from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "FarmTrace"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"
    LOG_COLOR: bool = True

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "farmtrace"
    MONGO_TLS: bool = False        # Atlas needs True

    # Redis (optional, QR lookup cache only)
    REDIS_URL: str = ""

    # Identity provider (token verification only)
    JWT_SECRET_KEY: str = "change-me-to-a-32-byte-or-longer-secret"
    JWT_ALGORITHM: str = "HS256"

    # Lifecycle policy
    TOTAL_VALIDATORS: int = 5
    ALLOW_PENDING_DISTRIBUTION: bool = True    # distributors may skip validation
    QR_CODE_MAX_ATTEMPTS: int = 5
    WRITE_MAX_RETRIES: int = 10                # compare-and-swap attempts per mutation

    # Cache config
    qr_cache_ttl: int = 5 * 60            # 5 minutes

    # API
    api_prefix: str = "/api"
    ALLOWED_ORIGINS: str = ""             # CSV

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
