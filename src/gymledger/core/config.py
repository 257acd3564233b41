# src/gymledger/core/config.py

from dotenv import load_dotenv
load_dotenv(".env")
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field
from typing import Optional

class Settings(BaseSettings):
    # model_config picks up .env automatically
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    APP_ENV: str = "production"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "gymledger"
    DB_PASSWORD: str = ""
    DB_NAME: str = "gymledger"
    # Overrides the assembled URL when set, e.g. "sqlite+aiosqlite:///./gym.db"
    DB_URL_OVERRIDE: Optional[str] = None

    @computed_field
    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL_OVERRIDE:
            return self.DB_URL_OVERRIDE
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # --- Membership engine ---
    TENANT_CACHE_TTL_SECONDS: int = Field(300, description="How long a resolved gym id is reused before re-resolving.")
    CALENDAR_UPCOMING_WINDOW_DAYS: int = Field(7, description="Look-ahead used by the 'expiring this week' dashboard query.")
    TENANT_HEADER: str = "X-Gym-Id"

settings = Settings()
