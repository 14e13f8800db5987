"""Application configuration: environment-driven settings via pydantic-settings.

Every setting can be overridden with a `TTT_` prefixed environment variable or an `.env` file.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TTT_", env_file=".env", case_sensitive=False
    )

    # Database
    database_url: str = "sqlite:///./tictactoe.db"
    echo_sql: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"


@lru_cache
def get_settings() -> Settings:
    """Single Settings instance per process."""
    return Settings()
