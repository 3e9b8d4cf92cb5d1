"""
Configuration helpers for the country records service.

Settings are read from environment variables once and cached, so routers and
services never touch os.environ directly. Tests call
``get_settings.cache_clear()`` after patching the environment.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    data_file: str
    storage_backend: str
    serialize_writes: bool
    access_log_path: str
    log_level: str
    host: str
    port: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/"),
        data_file=os.getenv("COUNTRY_DATA_FILE", os.path.join("DB", "Country.txt")),
        storage_backend=(os.getenv("COUNTRY_STORAGE") or "file").strip().lower(),
        serialize_writes=_bool(os.getenv("COUNTRY_SERIALIZE_WRITES"), True),
        access_log_path=os.getenv("ACCESS_LOG_PATH", "access_log.txt"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_int(os.getenv("PORT", "3000"), 3000),
    )
