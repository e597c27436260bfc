"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = "sqlite+aiosqlite:///./portfolio.db"
    AUTO_CREATE_TABLES: bool = True

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = "change-me-in-production"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ======================
    # Admin
    # ======================
    ADMIN_PASSWORD: str = "change-me"
    ADMIN_COOKIE_NAME: str = "admin_token"

    # ======================
    # Timezone
    # ======================
    # Empty means the server-local zone decides the admin day boundary.
    TIMEZONE: Optional[str] = None

    # ======================
    # Market Data
    # ======================
    FINNHUB_API_KEY: Optional[str] = None
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    MARKET_DATA_TIMEOUT_SECONDS: float = 30.0
    YAHOO_HISTORY_PERIOD: str = "1y"
    YAHOO_HISTORY_INTERVAL: str = "1mo"
    HISTORY_FALLBACK_DAYS: List[int] = [450, 400, 365, 240, 120, 60]

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
