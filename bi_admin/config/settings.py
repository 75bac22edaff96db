"""Settings loader driven by environment variables."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir

logger = logging.getLogger(__name__)

APP_NAME = "bi-admin"
APP_AUTHOR = "BeyondIdentity"
DATABASE_FILENAME = "sqlite.db"


def _env_int(var_name: str, default: int, minimum: int = 0) -> int:
    """Read an integer environment variable.

    Raises:
        ValueError: If the value is not an integer or is below ``minimum``
    """
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {var_name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"Environment variable {var_name} must be >= {minimum}, got {value}")
    return value


@dataclass
class AppConfig:
    """Application configuration container."""
    # Local store
    data_dir: Path

    # HTTP
    request_timeout: int = 30
    page_size: int = 200

    # Seconds before expiry at which a cached token is considered stale
    token_safety_margin: int = 60

    # Logging
    log_level: str = "WARNING"

    @property
    def database_path(self) -> Path:
        return self.data_dir / DATABASE_FILENAME


def default_data_dir() -> Path:
    """Per-user, per-application writable directory for the local store."""
    return Path(user_data_dir(APP_NAME, APP_AUTHOR))


def load_settings(data_dir: Optional[str] = None) -> AppConfig:
    """Load application settings from the environment.

    Recognised variables:
        BI_DATA_DIR: directory holding the SQLite store
        BI_REQUEST_TIMEOUT: HTTP timeout in seconds (default 30)
        BI_PAGE_SIZE: page size for list calls (default 200)
        BI_TOKEN_SAFETY_MARGIN: refresh tokens this many seconds early (default 60)
        BI_LOG_LEVEL: logging level name (default WARNING)
    """
    raw_dir = data_dir or os.environ.get("BI_DATA_DIR", "").strip()
    resolved_dir = Path(raw_dir).expanduser() if raw_dir else default_data_dir()

    log_level = os.environ.get("BI_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Environment variable BI_LOG_LEVEL has unknown level {log_level!r}")

    config = AppConfig(
        data_dir=resolved_dir,
        request_timeout=_env_int("BI_REQUEST_TIMEOUT", 30, minimum=1),
        page_size=_env_int("BI_PAGE_SIZE", 200, minimum=1),
        token_safety_margin=_env_int("BI_TOKEN_SAFETY_MARGIN", 60),
        log_level=log_level,
    )
    logger.debug("[settings] data_dir=%s page_size=%s timeout=%s",
                 config.data_dir, config.page_size, config.request_timeout)
    return config


# Global settings instance (loaded on first import)
settings: AppConfig = load_settings()
