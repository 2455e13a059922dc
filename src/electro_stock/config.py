"""Application configuration helpers."""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_PREFIX = "ELECTRO_STOCK_"


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _default_data_root() -> Path:
    """Return the platform specific directory used for persistent data."""

    override = os.environ.get(f"{ENV_PREFIX}HOME")
    if override:
        return Path(override).expanduser()
    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home()))
        return base / "ElectroStock"
    return Path.home() / ".electro_stock"


def _default_database_path() -> Path:
    """Resolve the database path taking overrides into account."""

    override = os.environ.get(f"{ENV_PREFIX}DB")
    if override:
        return Path(override).expanduser()
    return _default_data_root() / "inventory.sqlite3"


def _default_log_file() -> Path | None:
    override = os.environ.get(f"{ENV_PREFIX}LOG_FILE")
    if override:
        return Path(override).expanduser()
    return None


def _default_secret_key() -> str:
    """Return the secret key used for signing sessions."""

    override = os.environ.get(f"{ENV_PREFIX}SECRET")
    if override:
        return override
    return secrets.token_hex(32)


@dataclass(slots=True)
class Settings:
    """Runtime configuration loaded from environment variables."""

    app_name: str = field(default_factory=lambda: _env("APP_NAME", "Electro Stock"))
    host: str = field(default_factory=lambda: _env("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(_env("PORT", "8000")))
    reload: bool = field(default_factory=lambda: _env("RELOAD", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "info"))
    log_file: Path | None = field(default_factory=_default_log_file)
    database_path: Path = field(default_factory=_default_database_path)
    database_timeout: float = field(default_factory=lambda: float(_env("DB_TIMEOUT", "30")))
    echo_sql: bool = field(default_factory=lambda: _env("DB_ECHO", "false").lower() == "true")
    secret_key: str = field(default_factory=_default_secret_key)
    session_max_age: int = field(default_factory=lambda: int(_env("SESSION_AGE", str(60 * 60 * 8))))
    low_stock_limit: int = field(default_factory=lambda: int(_env("LOW_STOCK_LIMIT", "5")))
    recent_movements_limit: int = field(default_factory=lambda: int(_env("RECENT_MOVEMENTS_LIMIT", "5")))
    max_page_size: int = field(default_factory=lambda: int(_env("MAX_PAGE_SIZE", "200")))

    def ensure_storage(self) -> None:
        """Ensure that the database and log directories exist."""

        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    settings = Settings()
    settings.ensure_storage()
    return settings
