"""
app/core/config.py

Application settings for the Market Desk backend.
Every value can be overridden from the environment or a local .env file.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Market Desk Backend"
    VERSION: str = "1.0.0"

    # FastAPI / uvicorn
    DEBUG: bool = False
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # CORS: the desktop shell loads pages from file://, so allow everything
    ALLOWED_ORIGINS: list[str] = ["*"]

    # "Today" for the calendar is always New York local time
    TIMEZONE: str = "America/New_York"

    # Economic calendar (weekly JSON files)
    CALENDAR_BASE_URL: str = "https://nfs.faireconomy.media"
    CALENDAR_TTL: float = 10 * 60

    # Quotes
    QUOTES_URL: str = "https://query1.finance.yahoo.com/v7/finance/quote"
    QUOTES_TTL: float = 5
    QUOTES_CACHE_MAXSIZE: int = 256
    DEFAULT_SYMBOLS: str = "SPY,QQQ,^VIX"

    # Headline feed
    FEED_URL: str = (
        "https://feeds.finance.yahoo.com/rss/2.0/headline"
        "?s=%5EGSPC&region=US&lang=en-US"
    )
    FEED_TTL: float = 60

    # Outbound HTTP
    UPSTREAM_TIMEOUT: float = 10.0
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120 Safari/537.36"
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
