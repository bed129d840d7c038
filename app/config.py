"""Application settings loaded from environment variables / .env."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Tutor Tracker"
    APP_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    BASE_DIR: Path = BASE_DIR
    DATA_DIR: Path = BASE_DIR / "data"
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'tutor_tracker.db'}"

    # Header set by the trusted upstream identity proxy
    AUTH_HEADER: str = "x-authenticated-user-id"

    LEADERBOARD_SIZE: int = 25
    REQUESTS_PAGE_MAX: int = 50


settings = Settings()
