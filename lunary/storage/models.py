"""Persisted document models (settings, watched directories, index status)."""

from enum import Enum

from pydantic import Field, field_validator, model_validator

from lunary.models import CamelModel

DEFAULT_EXCLUDE_PATTERNS = ["*.tmp", "*.log", "node_modules/*"]
DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
MIN_UPDATE_INTERVAL = 300  # seconds


class ThemeMode(str, Enum):
    """テーマモード"""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


def dedupe_preserving_order(values: list[str]) -> list[str]:
    """Drop repeated entries, keeping the first occurrence of each."""
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        unique.append(value)
    return unique


class SearchSettings(CamelModel):
    """検索設定"""

    results_per_page: int = Field(default=20, ge=1)
    match_precision: float = Field(default=0.8, ge=0.1, le=1.0)
    enable_highlighting: bool = True


class IndexingSettings(CamelModel):
    """インデックス設定"""

    auto_update: bool = True
    # Only meaningful while auto_update is enabled
    update_interval: int = Field(default=3600, ge=MIN_UPDATE_INTERVAL)
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)

    @field_validator("exclude_patterns")
    @classmethod
    def validate_exclude_patterns(cls, v: list[str]) -> list[str]:
        """Strip blanks and duplicates."""
        return dedupe_preserving_order([p.strip() for p in v if p.strip()])


class UISettings(CamelModel):
    """UI 設定"""

    theme: ThemeMode = ThemeMode.SYSTEM
    language: str = "zh-CN"
    show_thumbnails: bool = True


class AppSettings(CamelModel):
    """User preferences persisted in ``settings.json``."""

    search: SearchSettings = Field(default_factory=SearchSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    ui: UISettings = Field(default_factory=UISettings)


SETTINGS_SECTIONS: dict[str, type[CamelModel]] = {
    "search": SearchSettings,
    "indexing": IndexingSettings,
    "ui": UISettings,
}


class DirectoryConfig(CamelModel):
    """インデックス対象ディレクトリ"""

    path: str = Field(..., min_length=1, description="Absolute directory path")
    enabled: bool = True
    recursive: bool = True
    last_indexed: int = Field(default=0, ge=0, description="Epoch ms, 0 = never")

    @property
    def never_indexed(self) -> bool:
        return self.last_indexed == 0


class IndexStatus(CamelModel):
    """Snapshot of indexing progress."""

    is_indexing: bool = False
    progress: int = Field(default=0, ge=0, le=100)
    total_files: int = Field(default=0, ge=0)
    indexed_files: int = Field(default=0, ge=0)
    index_size: int = Field(default=0, ge=0, description="Bytes")
    last_updated: int = Field(default=0, ge=0, description="Epoch ms")

    @model_validator(mode="after")
    def clamp_indexed_files(self) -> "IndexStatus":
        """indexed_files never exceeds total_files."""
        if self.indexed_files > self.total_files:
            self.indexed_files = self.total_files
        return self

    @property
    def is_complete(self) -> bool:
        return not self.is_indexing and self.progress == 100
