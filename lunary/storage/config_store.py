"""Document persistence with ordered backend fallback."""

import json
from collections.abc import Sequence
from typing import Any

from lunary.storage.backends import (
    DocumentLocation,
    DocumentNotFoundError,
    FileStorageBackend,
    KeyValueStorageBackend,
    StorageBackend,
)
from lunary.utils.mixins import LoggerMixin


class ConfigStore(LoggerMixin):
    """Key -> JSON document store over an ordered list of backends.

    Every operation tries the backends in order and moves on to the next one
    on *any* failure. Neither ``read`` nor ``write`` raises: losing a
    preference must never crash the session.

    When a write lands on a later backend, copies held by the backends ahead
    of it are dropped and that backend is read first for the rest of the
    process, so a read always returns the last successful write.
    """

    def __init__(self, backends: Sequence[StorageBackend] | None = None) -> None:
        if backends is None:
            backends = [FileStorageBackend(), KeyValueStorageBackend()]
        if not backends:
            raise ValueError("ConfigStore needs at least one backend")
        self.backends: list[StorageBackend] = list(backends)
        # location -> backend that holds the latest copy
        self._latest: dict[DocumentLocation, StorageBackend] = {}

    async def read(self, namespace: str, key: str) -> Any | None:
        """Return the decoded document, or ``None`` when no backend has it."""
        return await self.read_document(DocumentLocation.for_key(namespace, key))

    async def write(self, namespace: str, key: str, document: Any) -> bool:
        """Persist ``document``; returns whether any backend stored it."""
        return await self.write_document(
            DocumentLocation.for_key(namespace, key), document
        )

    def _read_order(self, location: DocumentLocation) -> list[StorageBackend]:
        latest = self._latest.get(location)
        if latest is None:
            return self.backends
        return [latest, *(b for b in self.backends if b is not latest)]

    async def read_document(self, location: DocumentLocation) -> Any | None:
        for backend in self._read_order(location):
            try:
                text = await backend.read_text(location)
                return json.loads(text)
            except DocumentNotFoundError:
                self.logger.debug(
                    "Document not found",
                    backend=backend.name,
                    namespace=location.namespace,
                    key=location.key,
                )
            except Exception as e:
                self.logger.warning(
                    "Failed to read document, trying next backend",
                    backend=backend.name,
                    namespace=location.namespace,
                    key=location.key,
                    error=str(e),
                )

        return None

    async def write_document(self, location: DocumentLocation, document: Any) -> bool:
        try:
            text = json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            self.logger.error(
                "Document is not JSON serialisable",
                namespace=location.namespace,
                key=location.key,
                error=str(e),
            )
            return False

        for index, backend in enumerate(self.backends):
            try:
                await backend.write_text(location, text)
            except Exception as e:
                self.logger.warning(
                    "Failed to write document, trying next backend",
                    backend=backend.name,
                    namespace=location.namespace,
                    key=location.key,
                    error=str(e),
                )
                continue

            self.logger.debug(
                "Document saved",
                backend=backend.name,
                namespace=location.namespace,
                key=location.key,
            )
            self._latest[location] = backend
            if index > 0:
                await self._drop_stale_copies(location, self.backends[:index])
            return True

        self.logger.error(
            "Document could not be saved to any backend",
            namespace=location.namespace,
            key=location.key,
        )
        return False

    async def _drop_stale_copies(
        self, location: DocumentLocation, backends: list[StorageBackend]
    ) -> None:
        """Remove older copies that would shadow the fallback on next start."""
        for backend in backends:
            try:
                await backend.remove(location)
            except Exception as e:
                self.logger.warning(
                    "Failed to remove stale document copy",
                    backend=backend.name,
                    namespace=location.namespace,
                    key=location.key,
                    error=str(e),
                )
