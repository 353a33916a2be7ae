"""
Storage backends for persisted documents.

``FileStorageBackend`` is the primary medium (one JSON file per document
under the app-config directory). ``KeyValueStorageBackend`` is the flat
string-keyed fallback used when the file system is unavailable; by default it
is backed by a SQLite database in the app data directory.
"""

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

import aiofiles

from lunary.storage.sqlite_store import SqliteKeyValueStore
from lunary.utils.mixins import LoggerMixin

FALLBACK_KEY_PREFIX = "lunary"


class DocumentNotFoundError(LookupError):
    """The backend holds no document for the requested location."""


@dataclass(frozen=True)
class DocumentLocation:
    """Where a document lives in each backend."""

    namespace: str
    key: str
    fallback_key: str

    @property
    def relative_path(self) -> PurePosixPath:
        """Path of the JSON file relative to the config directory."""
        filename = f"{self.key}.json"
        if not self.namespace:
            return PurePosixPath(filename)
        return PurePosixPath(self.namespace.strip("/")) / filename

    @classmethod
    def for_key(cls, namespace: str, key: str) -> "DocumentLocation":
        """Location with the fallback key derived from namespace/key."""
        known = KNOWN_DOCUMENTS.get((namespace, key))
        if known is not None:
            return known
        parts = [FALLBACK_KEY_PREFIX]
        parts.extend(p for p in namespace.strip("/").split("/") if p)
        parts.append(key)
        return cls(namespace=namespace, key=key, fallback_key=".".join(parts))


SETTINGS_DOCUMENT = DocumentLocation("", "settings", "lunary.settings")
DIRECTORIES_DOCUMENT = DocumentLocation("", "directories", "lunary.directories")
INDEX_STATUS_DOCUMENT = DocumentLocation(
    "indexes/default", "status", "lunary.indexStatus"
)

KNOWN_DOCUMENTS: dict[tuple[str, str], DocumentLocation] = {
    (doc.namespace, doc.key): doc
    for doc in (SETTINGS_DOCUMENT, DIRECTORIES_DOCUMENT, INDEX_STATUS_DOCUMENT)
}


class StorageBackend(LoggerMixin, ABC):
    """Common interface of the persistence media."""

    name = "backend"

    @abstractmethod
    async def read_text(self, location: DocumentLocation) -> str:
        """Return the stored text or raise (``DocumentNotFoundError`` if absent)."""

    @abstractmethod
    async def write_text(self, location: DocumentLocation, text: str) -> None:
        """Store ``text``; raise on failure."""

    @abstractmethod
    async def remove(self, location: DocumentLocation) -> None:
        """Drop the stored copy if any; raise on failure."""


class FileStorageBackend(StorageBackend):
    """JSON files under the application config directory."""

    name = "file"
    log_context = {"backend": "file"}

    def __init__(
        self,
        config_dir: Path | None = None,
        resolve_config_dir: Callable[[], Path] | None = None,
    ) -> None:
        """
        初期化

        Args:
            config_dir: 固定の設定ディレクトリ
            resolve_config_dir: 操作ごとに設定ディレクトリを解決する関数
        """
        if config_dir is None and resolve_config_dir is None:
            from lunary.config import get_settings

            resolve_config_dir = get_settings().resolve_config_dir
        self._config_dir = config_dir
        self._resolve_config_dir = resolve_config_dir

    @property
    def config_dir(self) -> Path:
        if self._config_dir is not None:
            return self._config_dir
        assert self._resolve_config_dir is not None
        return self._resolve_config_dir()

    def path_for(self, location: DocumentLocation) -> Path:
        return self.config_dir.joinpath(*location.relative_path.parts)

    async def read_text(self, location: DocumentLocation) -> str:
        file_path = self.path_for(location)
        if not file_path.exists():
            raise DocumentNotFoundError(str(file_path))

        async with aiofiles.open(file_path, encoding="utf-8") as f:
            return await f.read()

    async def write_text(self, location: DocumentLocation, text: str) -> None:
        file_path = self.path_for(location)

        def _write() -> None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=file_path.parent, prefix=f"{location.key}_", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                    tmp_file.write(text)
                    tmp_file.flush()
                    os.fsync(tmp_file.fileno())
                os.replace(temp_path, file_path)
            finally:
                if os.path.exists(temp_path):
                    try:
                        os.remove(temp_path)
                    except FileNotFoundError:
                        pass

        await asyncio.to_thread(_write)
        self.logger.debug("Document file written", path=str(file_path))

    async def remove(self, location: DocumentLocation) -> None:
        file_path = self.path_for(location)
        await asyncio.to_thread(file_path.unlink, missing_ok=True)
        self.logger.debug("Document file removed", path=str(file_path))


class KeyValueStore(Protocol):
    """Flat string-keyed store (localStorage-like)."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process key-value store, lives as long as the session."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class KeyValueStorageBackend(StorageBackend):
    """Fallback backend addressing documents by their prefixed flat key."""

    name = "key_value"
    log_context = {"backend": "key_value"}

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.store: KeyValueStore = (
            store if store is not None else SqliteKeyValueStore()
        )

    async def read_text(self, location: DocumentLocation) -> str:
        value = self.store.get_item(location.fallback_key)
        if value is None:
            raise DocumentNotFoundError(location.fallback_key)
        return value

    async def write_text(self, location: DocumentLocation, text: str) -> None:
        self.store.set_item(location.fallback_key, text)

    async def remove(self, location: DocumentLocation) -> None:
        self.store.remove_item(location.fallback_key)
