# inventory_master/config.py

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENVIRONMENT: str = "development"
    CORS_ALLOW_ORIGINS: str = "*"

    # Database
    DATABASE_URL: Optional[str] = None
    POSTGRES_URL: Optional[str] = None
    LOCAL_DATABASE_PATH: str = "./inventory.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_RECYCLE: int = 300
    DB_CONNECT_TIMEOUT: int = 10

    # Ledger
    DEFAULT_USER_ID: str = "Admin"
    TRANSACTION_CACHE_LIMIT: int = 100
    # Seconds before reads reload the cache from the store; unset disables
    CACHE_REFRESH_SECONDS: Optional[float] = 5.0

    # AI insights (Gemini)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    INSIGHT_TIMEOUT: float = 30.0
    INSIGHT_TRANSACTION_LIMIT: int = 20
    DEFAULT_LANGUAGE: Literal["en", "bn", "hi"] = "en"
    OFFLINE_MODE: bool = False

    # Google Drive backups
    GOOGLE_DRIVE_ACCESS_TOKEN: Optional[str] = None
    DRIVE_TIMEOUT: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
