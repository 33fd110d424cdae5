"""Environment settings using pydantic-settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoutSettings(BaseSettings):
    """Secrets and runtime switches read from the environment or ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCOUT_",
        extra="ignore",
    )

    # Optional key for higher Semantic Scholar rate limits.
    # Read from SCOUT_SEMANTIC_SCHOLAR_API_KEY
    semantic_scholar_api_key: str | None = None

    config_path: Path | None = None

    # Logging
    log_level: str = "INFO"


def get_settings() -> ScoutSettings:
    """Return a ScoutSettings instance."""
    return ScoutSettings()
