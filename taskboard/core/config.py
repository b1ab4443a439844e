"""
Application Settings - Environment-driven configuration
"""

from functools import lru_cache
from typing import List
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-me-in-production"

class Settings(BaseSettings):
    """
    Runtime configuration loaded from environment variables (or a .env file).
    Field names match the environment variable names.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    APP_NAME: str = "Scrum Task Board"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | test | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./taskboard.db"
    DB_POOL_SIZE: int = 5  # Ignored for SQLite
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Security
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 10

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    # Registration
    ADMIN_INVITE_CODE: str = ""  # Empty disables admin self-registration
    MIN_USERNAME_LENGTH: int = 3
    MIN_PASSWORD_LENGTH: int = 6

@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance (cached)"""
    return Settings()

settings = get_settings()

def is_production() -> bool:
    return settings.ENVIRONMENT.lower() == "production"

def validate_config() -> None:
    """
    Fail fast on settings that would make the service unsafe or unusable.

    Raises:
        ValueError: describing the first invalid setting found
    """
    if is_production() and settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        raise ValueError("SECRET_KEY must be set in production")
    if settings.DB_POOL_SIZE < 1:
        raise ValueError("DB_POOL_SIZE must be at least 1")
    if settings.MIN_PASSWORD_LENGTH < 1:
        raise ValueError("MIN_PASSWORD_LENGTH must be at least 1")
    if settings.BCRYPT_ROUNDS < 4 or settings.BCRYPT_ROUNDS > 31:
        raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
    if not settings.ADMIN_INVITE_CODE:
        logger.warning("⚠️  ADMIN_INVITE_CODE is empty - admin self-registration disabled")
    logger.info("✅ Configuration validated")
