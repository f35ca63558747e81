"""
Configuration settings for the Tether API.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite:///./tether.db"

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    CORS_ORIGINS: List[str] = ["*"]
    DEFAULT_LINK_LIMIT: int = 20

    # Logging
    LOG_LEVEL: str = "INFO"

    # Authentication
    GOOGLE_CLIENT_ID: Optional[str] = None
    ALLOW_TEST_USERS: bool = False

    # AI summaries
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
