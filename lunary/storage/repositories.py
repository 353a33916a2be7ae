"""Typed repositories over :class:`ConfigStore`, one per document kind."""

from typing import Any

from pydantic import ValidationError

from lunary.storage.backends import (
    DIRECTORIES_DOCUMENT,
    INDEX_STATUS_DOCUMENT,
    SETTINGS_DOCUMENT,
)
from lunary.storage.config_store import ConfigStore
from lunary.storage.models import (
    SETTINGS_SECTIONS,
    AppSettings,
    DirectoryConfig,
    IndexStatus,
    dedupe_preserving_order,
)
from lunary.utils.mixins import LoggerMixin


class SettingsValidationError(ValueError):
    """A partial settings update does not match the section schema."""


class SettingsRepository(LoggerMixin):
    """Repository for :class:`AppSettings` (``settings.json``)."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    async def load(self) -> AppSettings:
        """Stored settings, or defaults when absent or undecodable."""
        document = await self.store.read_document(SETTINGS_DOCUMENT)
        if document is None:
            return AppSettings()

        try:
            return AppSettings.model_validate(document)
        except ValidationError as e:
            self.logger.warning(
                "Stored settings are invalid, using defaults",
                errors=e.error_count(),
            )
            return AppSettings()

    async def save(self, settings: AppSettings) -> bool:
        """Persist settings; exclude patterns are de-duplicated first."""
        patterns = settings.indexing.exclude_patterns
        unique = dedupe_preserving_order(patterns)
        if unique != patterns:
            settings = settings.model_copy(
                update={
                    "indexing": settings.indexing.model_copy(
                        update={"exclude_patterns": unique}
                    )
                }
            )

        return await self.store.write_document(
            SETTINGS_DOCUMENT, settings.to_document()
        )

    async def update_section(self, section: str, **changes: Any) -> AppSettings:
        """Read-modify-write of a single settings section.

        ``changes`` use the snake_case field names of the section model and
        are validated against it. Raises :class:`SettingsValidationError`
        without touching storage if the section or a value is invalid.
        """
        section_model = SETTINGS_SECTIONS.get(section)
        if section_model is None:
            raise SettingsValidationError(f"Unknown settings section: {section}")

        unknown = set(changes) - set(section_model.model_fields)
        if unknown:
            raise SettingsValidationError(
                f"Unknown fields for section '{section}': {sorted(unknown)}"
            )

        current = await self.load()
        merged = getattr(current, section).model_dump()
        merged.update(changes)
        try:
            new_section = section_model.model_validate(merged)
        except ValidationError as e:
            raise SettingsValidationError(str(e)) from e

        updated = current.model_copy(update={section: new_section})
        await self.save(updated)

        self.logger.info(
            "Settings section updated", section=section, fields=sorted(changes)
        )
        return updated

    async def add_exclude_pattern(self, pattern: str) -> AppSettings:
        settings = await self.load()
        patterns = settings.indexing.exclude_patterns
        pattern = pattern.strip()
        if not pattern or pattern in patterns:
            return settings
        return await self.update_section(
            "indexing", exclude_patterns=[*patterns, pattern]
        )

    async def remove_exclude_pattern(self, pattern: str) -> AppSettings:
        settings = await self.load()
        patterns = settings.indexing.exclude_patterns
        if pattern not in patterns:
            return settings
        return await self.update_section(
            "indexing", exclude_patterns=[p for p in patterns if p != pattern]
        )

    async def reset(self) -> AppSettings:
        """既定値に戻して保存"""
        defaults = AppSettings()
        await self.save(defaults)
        return defaults


class DirectoryRepository(LoggerMixin):
    """Repository for the watched directory list (``directories.json``)."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    async def load(self) -> list[DirectoryConfig]:
        document = await self.store.read_document(DIRECTORIES_DOCUMENT)
        if document is None:
            return []
        if not isinstance(document, list):
            self.logger.warning("Stored directory list is not a list, ignoring")
            return []

        try:
            directories = [DirectoryConfig.model_validate(item) for item in document]
        except ValidationError as e:
            self.logger.warning(
                "Stored directory list is invalid, using defaults",
                errors=e.error_count(),
            )
            return []

        return self._unique_by_path(directories)

    async def save(self, directories: list[DirectoryConfig]) -> bool:
        unique = self._unique_by_path(directories)
        if len(unique) != len(directories):
            self.logger.info(
                "Dropped duplicate directory entries",
                dropped=len(directories) - len(unique),
            )
        return await self.store.write_document(
            DIRECTORIES_DOCUMENT, [d.to_document() for d in unique]
        )

    @staticmethod
    def _unique_by_path(directories: list[DirectoryConfig]) -> list[DirectoryConfig]:
        seen: set[str] = set()
        unique = []
        for directory in directories:
            if directory.path in seen:
                continue
            seen.add(directory.path)
            unique.append(directory)
        return unique


class IndexStatusRepository(LoggerMixin):
    """Repository for :class:`IndexStatus` (``indexes/default/status.json``)."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    async def load(self) -> IndexStatus:
        document = await self.store.read_document(INDEX_STATUS_DOCUMENT)
        if document is None:
            return IndexStatus()

        try:
            return IndexStatus.model_validate(document)
        except ValidationError as e:
            self.logger.warning(
                "Stored index status is invalid, using defaults",
                errors=e.error_count(),
            )
            return IndexStatus()

    async def save(self, status: IndexStatus) -> bool:
        return await self.store.write_document(
            INDEX_STATUS_DOCUMENT, status.to_document()
        )
