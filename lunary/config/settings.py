"""Runtime configuration for Lunary with caching utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import Any

from platformdirs import PlatformDirs
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings read from the environment.

    User preferences (theme, exclude patterns, ...) are *not* stored here;
    they live in ``settings.json`` and are handled by
    :class:`lunary.storage.repositories.SettingsRepository`.
    """

    model_config = SettingsConfigDict(
        env_prefix="LUNARY_",
        env_file=[".env.test", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application identity
    app_name: str = "lunary"
    environment: str = "desktop"

    # Storage locations (None = platform default)
    config_dir: Path | None = None
    data_dir: Path | None = None
    log_dir: Path | None = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"
    enable_file_logging: bool = True

    # Search session
    search_debounce_ms: int = Field(default=300, ge=0)
    search_history_limit: int = Field(default=10, ge=1)
    default_per_page: int = 20

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment.lower() in ["development", "dev"]

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode"""
        return self.environment.lower() in ["testing", "test"]

    @property
    def debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000

    def resolve_config_dir(self) -> Path:
        """Return the directory holding the persisted JSON documents."""
        if self.config_dir is not None:
            return self.config_dir
        dirs = PlatformDirs(appname=self.app_name, appauthor=False)
        return Path(dirs.user_config_dir)

    def resolve_data_dir(self) -> Path:
        """Return the directory holding the fallback key-value database."""
        if self.data_dir is not None:
            return self.data_dir
        dirs = PlatformDirs(appname=self.app_name, appauthor=False)
        return Path(dirs.user_data_dir)

    def resolve_log_dir(self) -> Path:
        if self.log_dir is not None:
            return self.log_dir
        dirs = PlatformDirs(appname=self.app_name, appauthor=False)
        return Path(dirs.user_log_dir)


_SETTINGS_LOCK = RLock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, refresh: bool = False) -> Settings:
    """Return a cached ``Settings`` instance.

    Parameters
    ----------
    refresh:
        When ``True`` the cached instance is discarded and a new one is created.
    """

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        if refresh or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear the cached settings instance."""

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


get_settings.cache_clear = clear_settings_cache  # type: ignore[attr-defined]


@contextmanager
def override_settings(**overrides: Any) -> Iterator[Settings]:
    """Temporarily override the cached settings within a context."""

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        previous_settings = _SETTINGS_CACHE

    base_settings = previous_settings or Settings()
    patched_settings = base_settings.model_copy(update=overrides)

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = patched_settings

    try:
        yield patched_settings
    finally:
        with _SETTINGS_LOCK:
            _SETTINGS_CACHE = previous_settings
