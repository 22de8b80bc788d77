"""
Application Configuration.

Pydantic Settings model for the VMS authentication layer.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Profile store ---
    USERS_TABLE: str = "users"
    DEFAULT_DEPARTMENT: str = "General"

    # --- Demo accounts ---
    # Enables the hard-coded demo credential table.  Never enable in a
    # production build.
    DEMO_MODE: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # empty = console only
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit startup warnings for empty or risky configuration.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators get a log line for each degraded mode instead.
        """
        _log = logging.getLogger("vms_auth.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found: all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "Supabase is not configured: identity provider and "
                "profile store calls will fail as network errors."
            )

        if self.DEMO_MODE:
            _log.warning(
                "DEMO_MODE is enabled: hard-coded demo credentials are "
                "accepted. Do not ship this setting."
            )

        return self

    @property
    def log_level(self) -> int:
        """Numeric ``logging`` level for ``LOG_LEVEL`` (INFO when unknown)."""
        level = logging.getLevelName(self.LOG_LEVEL.upper())
        return level if isinstance(level, int) else logging.INFO


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern so the fast path skips the lock
    while first initialisation stays thread-safe.

    Prefer constructor injection of ``AppConfig`` in new code; this
    factory exists for the logger and the composition root.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
