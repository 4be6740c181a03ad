from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# .env file is in the project root (parent of src/)
# Only use if it exists (CI uses environment variables directly)
# Path: core/config.py -> feedlot -> src -> project root -> .env
_ENV_FILE = Path(__file__).parent.parent.parent.parent / ".env"
_ENV_FILE = _ENV_FILE if _ENV_FILE.exists() else None


@lru_cache
def get_cache_dir() -> Path:
    """Get the cache directory (.cache/ in the project root).

    Looks for project root by finding a .git directory or pyproject.toml,
    then returns .cache/ within that root.
    """
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / ".git").exists() or (parent / "pyproject.toml").exists():
            cache_dir = parent / ".cache"
            cache_dir.mkdir(exist_ok=True)
            return cache_dir
    # Fallback to current working directory
    cache_dir = Path.cwd() / ".cache"
    cache_dir.mkdir(exist_ok=True)
    return cache_dir


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FEEDLOT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Record store (PostgREST-compatible REST endpoint)
    store_url: str = "http://localhost:54321/rest/v1"
    store_api_key: str | None = None

    # Default farm for CLI commands. Engine calls always take farm_id explicitly.
    farm_id: str | None = None

    # Single farm currency (ISO 4217 code), used for display only
    currency: str = "TRY"

    # Display units for CLI output ("metric" = kg, "imperial" = lb)
    # Note: the record store and the engine always use kilograms
    display_units: Literal["metric", "imperial"] = "metric"

    # HTTP behaviour
    request_timeout: float = 30.0
    page_size: int = 1000

    log_level: str = "INFO"


settings = Settings()
