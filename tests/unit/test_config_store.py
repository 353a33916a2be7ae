"""Tests for the dual-backend configuration store."""

import json
from pathlib import Path

import pytest

from lunary.storage import (
    DIRECTORIES_DOCUMENT,
    INDEX_STATUS_DOCUMENT,
    SETTINGS_DOCUMENT,
    ConfigStore,
    DocumentLocation,
    FileStorageBackend,
    KeyValueStorageBackend,
    MemoryKeyValueStore,
    StorageBackend,
)
from lunary.storage.sqlite_store import SqliteKeyValueStore


class BrokenBackend(StorageBackend):
    """Backend that fails every operation (e.g. sandboxed file system)."""

    name = "broken"

    def __init__(self) -> None:
        self.reads = 0
        self.writes = 0

    async def read_text(self, location: DocumentLocation) -> str:
        self.reads += 1
        raise PermissionError("access denied")

    async def write_text(self, location: DocumentLocation, text: str) -> None:
        self.writes += 1
        raise PermissionError("access denied")

    async def remove(self, location: DocumentLocation) -> None:
        raise PermissionError("access denied")


class ReadOnlyAfterFirstWrite(FileStorageBackend):
    """File backend whose directory turns read-only after one write."""

    def __init__(self, config_dir: Path) -> None:
        super().__init__(config_dir=config_dir)
        self.deny_writes = False

    async def write_text(self, location: DocumentLocation, text: str) -> None:
        if self.deny_writes:
            raise PermissionError("read-only file system")
        await super().write_text(location, text)


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def store(tmp_path: Path, kv_store: MemoryKeyValueStore) -> ConfigStore:
    return ConfigStore(
        [
            FileStorageBackend(config_dir=tmp_path / "config"),
            KeyValueStorageBackend(kv_store),
        ]
    )


class TestDocumentLocation:
    def test_known_documents_paths(self):
        assert str(SETTINGS_DOCUMENT.relative_path) == "settings.json"
        assert str(DIRECTORIES_DOCUMENT.relative_path) == "directories.json"
        assert (
            str(INDEX_STATUS_DOCUMENT.relative_path) == "indexes/default/status.json"
        )

    def test_known_documents_fallback_keys(self):
        assert SETTINGS_DOCUMENT.fallback_key == "lunary.settings"
        assert DIRECTORIES_DOCUMENT.fallback_key == "lunary.directories"
        assert INDEX_STATUS_DOCUMENT.fallback_key == "lunary.indexStatus"

    def test_for_key_resolves_known_document(self):
        assert DocumentLocation.for_key("indexes/default", "status") is (
            INDEX_STATUS_DOCUMENT
        )

    def test_for_key_derives_fallback_key(self):
        location = DocumentLocation.for_key("indexes/work", "meta")
        assert location.fallback_key == "lunary.indexes.work.meta"
        assert str(location.relative_path) == "indexes/work/meta.json"


class TestConfigStore:
    @pytest.mark.asyncio
    async def test_write_then_read_primary(self, store, tmp_path, kv_store):
        document = {"search": {"resultsPerPage": 50}, "name": "日本語"}

        assert await store.write("", "settings", document) is True

        assert await store.read("", "settings") == document
        file_path = tmp_path / "config" / "settings.json"
        assert json.loads(file_path.read_text(encoding="utf-8")) == document
        # Primary succeeded, fallback untouched
        assert kv_store.get_item("lunary.settings") is None

    @pytest.mark.asyncio
    async def test_nested_namespace_directories_created(self, store, tmp_path):
        await store.write("indexes/default", "status", {"progress": 40})

        status_file = tmp_path / "config" / "indexes" / "default" / "status.json"
        assert status_file.exists()
        assert await store.read("indexes/default", "status") == {"progress": 40}

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, store, tmp_path):
        await store.write("", "directories", [{"path": "/a"}])
        await store.write("", "directories", [{"path": "/b"}])

        leftovers = list((tmp_path / "config").glob("*.tmp"))
        assert leftovers == []
        assert await store.read("", "directories") == [{"path": "/b"}]

    @pytest.mark.asyncio
    async def test_primary_failure_falls_back_on_write_and_read(self, kv_store):
        broken = BrokenBackend()
        store = ConfigStore([broken, KeyValueStorageBackend(kv_store)])
        document = [{"path": "/x", "enabled": True}]

        assert await store.write("", "directories", document) is True
        assert broken.writes == 1
        assert json.loads(kv_store.get_item("lunary.directories")) == document

        assert await store.read("", "directories") == document
        # served by the backend that took the write
        assert broken.reads == 0

        fresh = ConfigStore([broken, KeyValueStorageBackend(kv_store)])
        assert await fresh.read("", "directories") == document
        assert broken.reads == 1

    @pytest.mark.asyncio
    async def test_missing_file_falls_back_to_key_value(self, store, kv_store):
        kv_store.set_item("lunary.indexStatus", json.dumps({"progress": 100}))

        assert await store.read("indexes/default", "status") == {"progress": 100}

    @pytest.mark.asyncio
    async def test_corrupt_primary_document_falls_back(self, store, tmp_path, kv_store):
        config = tmp_path / "config"
        config.mkdir(parents=True)
        (config / "settings.json").write_text("{not json", encoding="utf-8")
        kv_store.set_item("lunary.settings", json.dumps({"ui": {"theme": "dark"}}))

        assert await store.read("", "settings") == {"ui": {"theme": "dark"}}

    @pytest.mark.asyncio
    async def test_absent_everywhere_returns_none(self, store):
        assert await store.read("", "settings") is None

    @pytest.mark.asyncio
    async def test_all_backends_failing_never_raises(self):
        store = ConfigStore([BrokenBackend(), BrokenBackend()])

        assert await store.write("", "settings", {"a": 1}) is False
        assert await store.read("", "settings") is None

    @pytest.mark.asyncio
    async def test_unserialisable_document_is_rejected(self, store):
        assert await store.write("", "settings", {"bad": object()}) is False

    def test_requires_a_backend(self):
        with pytest.raises(ValueError):
            ConfigStore([])

    @pytest.mark.asyncio
    async def test_file_backend_unwritable_location_uses_fallback(
        self, tmp_path, kv_store
    ):
        # A regular file where the config directory should be
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        store = ConfigStore(
            [
                FileStorageBackend(config_dir=blocker / "config"),
                KeyValueStorageBackend(kv_store),
            ]
        )

        assert await store.write("", "settings", {"ok": True}) is True
        assert kv_store.get_item("lunary.settings") is not None
        assert await store.read("", "settings") == {"ok": True}

    @pytest.mark.asyncio
    async def test_read_after_fallback_write_returns_latest(self, tmp_path, kv_store):
        primary = ReadOnlyAfterFirstWrite(tmp_path / "config")
        store = ConfigStore([primary, KeyValueStorageBackend(kv_store)])
        assert await store.write("", "settings", {"v": 1}) is True

        primary.deny_writes = True
        assert await store.write("", "settings", {"v": 2}) is True

        assert await store.read("", "settings") == {"v": 2}
        # The older primary copy no longer shadows the fallback
        assert not (tmp_path / "config" / "settings.json").exists()
        restarted = ConfigStore([primary, KeyValueStorageBackend(kv_store)])
        assert await restarted.read("", "settings") == {"v": 2}

    @pytest.mark.asyncio
    async def test_primary_write_after_recovery_is_read_first(
        self, tmp_path, kv_store
    ):
        primary = ReadOnlyAfterFirstWrite(tmp_path / "config")
        store = ConfigStore([primary, KeyValueStorageBackend(kv_store)])
        primary.deny_writes = True
        await store.write("", "settings", {"v": 1})

        primary.deny_writes = False
        await store.write("", "settings", {"v": 2})

        assert await store.read("", "settings") == {"v": 2}


class TestSqliteKeyValueStore:
    def test_set_get_remove(self, tmp_path):
        kv = SqliteKeyValueStore(tmp_path / "kv.sqlite3")

        assert kv.get_item("lunary.settings") is None
        kv.set_item("lunary.settings", '{"a": 1}')
        kv.set_item("lunary.settings", '{"a": 2}')
        kv.set_item("lunary.directories", "[]")

        assert kv.get_item("lunary.settings") == '{"a": 2}'
        assert kv.keys() == ["lunary.directories", "lunary.settings"]
        kv.remove_item("lunary.settings")
        kv.remove_item("lunary.settings")
        assert kv.get_item("lunary.settings") is None

    def test_default_location_is_data_dir(self, tmp_path):
        kv = SqliteKeyValueStore()

        assert kv.db_path == tmp_path / "data" / "fallback.sqlite3"

    def test_default_fallback_backend_is_durable(self):
        backend = KeyValueStorageBackend()

        assert isinstance(backend.store, SqliteKeyValueStore)

    @pytest.mark.asyncio
    async def test_fallback_documents_survive_new_store_instance(self, tmp_path):
        db_path = tmp_path / "data" / "fallback.sqlite3"
        store = ConfigStore(
            [BrokenBackend(), KeyValueStorageBackend(SqliteKeyValueStore(db_path))]
        )
        assert await store.write("indexes/default", "status", {"progress": 30})

        reopened = ConfigStore(
            [BrokenBackend(), KeyValueStorageBackend(SqliteKeyValueStore(db_path))]
        )

        assert await reopened.read("indexes/default", "status") == {"progress": 30}
