"""Watched directories and index rebuilds."""

from collections.abc import Callable

from lunary.desktop.picker import DirectoryPicker
from lunary.index.backends import IndexBackend
from lunary.models import now_ms
from lunary.storage.models import DirectoryConfig, IndexStatus
from lunary.storage.repositories import DirectoryRepository, IndexStatusRepository
from lunary.utils.mixins import LoggerMixin

ProgressListener = Callable[[IndexStatus], None]


class IndexManager(LoggerMixin):
    """インデックス対象ディレクトリとインデックス状態の管理"""

    def __init__(
        self,
        directory_repository: DirectoryRepository,
        status_repository: IndexStatusRepository,
    ) -> None:
        self.directory_repository = directory_repository
        self.status_repository = status_repository
        self.directories: list[DirectoryConfig] = []
        self.status = IndexStatus()
        self._listeners: list[ProgressListener] = []
        self._rebuilding = False

    async def load(self) -> None:
        """Load directories and the last status snapshot."""
        self.directories = await self.directory_repository.load()
        status = await self.status_repository.load()
        if status.is_indexing:
            # 前回プロセスが再構築中に終了した
            self.logger.warning("Stale indexing flag found, resetting")
            status = status.model_copy(update={"is_indexing": False})
        self.status = status

        self.logger.info(
            "Index state loaded",
            directories=len(self.directories),
            total_files=self.status.total_files,
        )

    # ------------------------------------------------------------------
    # Directories

    def get_directory(self, path: str) -> DirectoryConfig | None:
        for directory in self.directories:
            if directory.path == path:
                return directory
        return None

    @property
    def enabled_directories(self) -> list[DirectoryConfig]:
        return [d for d in self.directories if d.enabled]

    async def add_directories(self, paths: list[str]) -> list[DirectoryConfig]:
        """Append new paths as enabled, recursive, never indexed.

        Paths that are already watched are left as they are.
        """
        added: list[DirectoryConfig] = []
        for raw_path in paths:
            path = raw_path.strip()
            if not path or self.get_directory(path) is not None:
                continue
            directory = DirectoryConfig(
                path=path, enabled=True, recursive=True, last_indexed=0
            )
            self.directories.append(directory)
            added.append(directory)

        if added:
            await self._save_directories()
            self.logger.info("Directories added", paths=[d.path for d in added])
        return added

    async def add_from_picker(self, picker: DirectoryPicker) -> list[DirectoryConfig]:
        try:
            paths = await picker.pick_directories()
        except Exception as e:
            self.logger.error("Directory picker failed", error=str(e))
            return []
        if not paths:
            return []
        return await self.add_directories(list(paths))

    async def remove_directory(self, path: str) -> bool:
        remaining = [d for d in self.directories if d.path != path]
        if len(remaining) == len(self.directories):
            return False
        self.directories = remaining
        await self._save_directories()
        self.logger.info("Directory removed", path=path)
        return True

    async def toggle_enabled(self, path: str) -> DirectoryConfig | None:
        return await self._toggle(path, "enabled")

    async def toggle_recursive(self, path: str) -> DirectoryConfig | None:
        return await self._toggle(path, "recursive")

    async def _toggle(self, path: str, flag: str) -> DirectoryConfig | None:
        for i, directory in enumerate(self.directories):
            if directory.path != path:
                continue
            updated = directory.model_copy(
                update={flag: not getattr(directory, flag)}
            )
            self.directories[i] = updated
            await self._save_directories()
            return updated
        return None

    async def _save_directories(self) -> None:
        await self.directory_repository.save(self.directories)

    # ------------------------------------------------------------------
    # Rebuild

    def subscribe_progress(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def is_rebuilding(self) -> bool:
        return self._rebuilding

    async def rebuild_index(self, backend: IndexBackend) -> IndexStatus | None:
        """Rebuild the index of all enabled directories.

        Progress never goes backwards and the final snapshot always reports
        100% with every file indexed. Returns ``None`` when a rebuild is
        already running or the backend fails.
        """
        if self._rebuilding or self.status.is_indexing:
            self.logger.warning("Index rebuild already in progress")
            return None

        # バックエンドの最初のスナップショットより前に占有する
        self._rebuilding = True
        try:
            return await self._run_rebuild(backend)
        finally:
            self._rebuilding = False

    async def _run_rebuild(self, backend: IndexBackend) -> IndexStatus | None:
        targets = self.enabled_directories
        self.logger.info("Starting index rebuild", directories=len(targets))

        last_progress = 0
        try:
            async for snapshot in backend.rebuild_index(targets):
                progress = max(last_progress, snapshot.progress)
                last_progress = progress
                self._publish(
                    IndexStatus.model_validate(
                        {
                            **snapshot.model_dump(),
                            "is_indexing": True,
                            "progress": progress,
                        }
                    )
                )
        except Exception as e:
            self.logger.error("Index rebuild failed", error=str(e), exc_info=True)
            self._publish(self.status.model_copy(update={"is_indexing": False}))
            await self.status_repository.save(self.status)
            return None

        finished_at = now_ms()
        final = IndexStatus(
            is_indexing=False,
            progress=100,
            total_files=self.status.total_files,
            indexed_files=self.status.total_files,
            index_size=self.status.index_size,
            last_updated=finished_at,
        )
        self._publish(final)

        target_paths = {d.path for d in targets}
        self.directories = [
            d.model_copy(update={"last_indexed": finished_at})
            if d.path in target_paths
            else d
            for d in self.directories
        ]
        await self._save_directories()
        await self.status_repository.save(final)

        self.logger.info(
            "Index rebuild completed",
            total_files=final.total_files,
            index_size=final.index_size,
        )
        return final

    def _publish(self, status: IndexStatus) -> None:
        self.status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                self.logger.warning("Progress listener failed", error=str(e))
