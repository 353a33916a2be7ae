"""Index rebuild backends."""

import asyncio
import math
from collections.abc import AsyncIterator
from typing import Protocol

from lunary.models import now_ms
from lunary.storage.models import DirectoryConfig, IndexStatus


class IndexBackend(Protocol):
    """External indexer; streams progress snapshots while rebuilding."""

    def rebuild_index(
        self, directories: list[DirectoryConfig]
    ) -> AsyncIterator[IndexStatus]: ...


class SimulatedIndexBackend:
    """Fake rebuild emitting evenly spaced progress snapshots.

    Used for demos and tests in place of the real engine. Defaults match the
    numbers shown by the desktop app's preview build.
    """

    def __init__(
        self,
        total_files: int = 1250,
        step: int = 5,
        interval: float = 0.2,
        index_size: int = 156 * 1024 * 1024,
    ) -> None:
        if not 0 < step <= 100:
            raise ValueError("step must be between 1 and 100")
        self.total_files = total_files
        self.step = step
        self.interval = interval
        self.index_size = index_size

    async def rebuild_index(
        self, directories: list[DirectoryConfig]
    ) -> AsyncIterator[IndexStatus]:
        started = now_ms()
        yield IndexStatus(
            is_indexing=True,
            progress=0,
            total_files=self.total_files,
            indexed_files=0,
            index_size=0,
            last_updated=started,
        )

        progress = 0
        while progress < 100:
            await asyncio.sleep(self.interval)
            progress = min(progress + self.step, 100)
            if progress >= 100:
                break
            yield IndexStatus(
                is_indexing=True,
                progress=progress,
                total_files=self.total_files,
                indexed_files=math.floor(progress / 100 * self.total_files),
                index_size=0,
                last_updated=started,
            )

        yield IndexStatus(
            is_indexing=False,
            progress=100,
            total_files=self.total_files,
            indexed_files=self.total_files,
            index_size=self.index_size,
            last_updated=now_ms(),
        )
