"""API service configuration.

All settings live on a single `pydantic-settings` object so required values are
validated once at startup. Values come from `SLP_`-prefixed environment variables
(or a local `.env` file), e.g. `SLP_MAX_FILES=50`.

Route handlers receive settings through `Depends(get_settings)`, which lets tests
swap them via `app.dependency_overrides`.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the replay API."""

    model_config = SettingsConfigDict(env_prefix="SLP_", env_file=".env", extra="ignore")

    # per-request upload cap, applied to every uploaded file
    max_upload_bytes: int = 10 * 1024 * 1024
    # batch limit shared with the browser file picker
    max_files: int = 100

    sample_data_dir: Path = Path("public/assets/slp-demo-data")
    sample_data_limit: int = 10

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance (cached after first use)."""
    return Settings()
