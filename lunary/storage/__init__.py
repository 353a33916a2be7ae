"""Durable configuration storage."""

from lunary.storage.backends import (
    DIRECTORIES_DOCUMENT,
    INDEX_STATUS_DOCUMENT,
    SETTINGS_DOCUMENT,
    DocumentLocation,
    FileStorageBackend,
    KeyValueStorageBackend,
    MemoryKeyValueStore,
    StorageBackend,
)
from lunary.storage.config_store import ConfigStore
from lunary.storage.models import (
    AppSettings,
    DirectoryConfig,
    IndexingSettings,
    IndexStatus,
    SearchSettings,
    ThemeMode,
    UISettings,
)
from lunary.storage.repositories import (
    DirectoryRepository,
    IndexStatusRepository,
    SettingsRepository,
    SettingsValidationError,
)
from lunary.storage.sqlite_store import SqliteKeyValueStore

__all__ = [
    "AppSettings",
    "ConfigStore",
    "DIRECTORIES_DOCUMENT",
    "DirectoryConfig",
    "DirectoryRepository",
    "DocumentLocation",
    "FileStorageBackend",
    "INDEX_STATUS_DOCUMENT",
    "IndexStatus",
    "IndexStatusRepository",
    "IndexingSettings",
    "KeyValueStorageBackend",
    "MemoryKeyValueStore",
    "SETTINGS_DOCUMENT",
    "SearchSettings",
    "SettingsRepository",
    "SettingsValidationError",
    "SqliteKeyValueStore",
    "StorageBackend",
    "ThemeMode",
    "UISettings",
]
