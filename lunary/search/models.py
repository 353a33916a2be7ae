"""Search-related data models."""

from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator, model_validator

from lunary.models import CamelModel, now_ms

DAY_MS = 86_400_000
WEEK_MS = 604_800_000
MONTH_MS = 2_592_000_000

PER_PAGE_CHOICES = (10, 20, 50, 100)


class DatePreset(str, Enum):
    """Named shorthand for a modification-time range ending now."""

    ANY = "any"
    LAST_DAY = "lastDay"
    LAST_WEEK = "lastWeek"
    LAST_MONTH = "lastMonth"

    @property
    def span_ms(self) -> int | None:
        return _PRESET_SPANS[self]


_PRESET_SPANS: dict[DatePreset, int | None] = {
    DatePreset.ANY: None,
    DatePreset.LAST_DAY: DAY_MS,
    DatePreset.LAST_WEEK: WEEK_MS,
    DatePreset.LAST_MONTH: MONTH_MS,
}


class DateRange(CamelModel):
    start: int | None = None
    end: int | None = None

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("date range start must not be after end")
        return self


class FileSizeRange(CamelModel):
    min: int | None = Field(default=None, ge=0)
    max: int | None = Field(default=None, ge=0)


def _normalize_file_types(values: Iterable[str] | None) -> tuple[str, ...] | None:
    if not values:
        return None
    seen: list[str] = []
    for file_type in values:
        normalized = file_type.strip().lstrip(".").lower()
        if normalized and normalized not in seen:
            seen.append(normalized)
    return tuple(seen) or None


class SearchFilters(CamelModel):
    """Refinement predicate sent along with a query.

    ``date_preset`` and ``date_range`` are kept consistent: use the
    ``with_*`` helpers rather than assigning the fields directly.
    """

    model_config = ConfigDict(frozen=True)

    file_types: tuple[str, ...] | None = None
    date_range: DateRange | None = None
    date_preset: DatePreset | None = None
    file_size_range: FileSizeRange | None = None

    @field_validator("file_types")
    @classmethod
    def validate_file_types(cls, v: tuple[str, ...] | None) -> tuple[str, ...] | None:
        """Empty selection means no file-type filter."""
        return _normalize_file_types(v)

    def with_file_type(self, file_type: str, checked: bool) -> "SearchFilters":
        current = list(self.file_types or ())
        normalized = file_type.strip().lstrip(".").lower()
        if checked and normalized not in current:
            current.append(normalized)
        elif not checked:
            current = [t for t in current if t != normalized]
        return self.model_copy(
            update={"file_types": _normalize_file_types(current)}
        )

    def with_date_preset(
        self, preset: DatePreset, now: int | None = None
    ) -> "SearchFilters":
        """Select a preset; the range is recomputed from ``now`` (epoch ms)."""
        preset = DatePreset(preset)
        span = preset.span_ms
        if span is None:
            return self.model_copy(update={"date_preset": preset, "date_range": None})

        end = now if now is not None else now_ms()
        return self.model_copy(
            update={
                "date_preset": preset,
                "date_range": DateRange(start=end - span, end=end),
            }
        )

    def with_date_range(self, start: int | None, end: int | None) -> "SearchFilters":
        """Custom range; clears any preset."""
        date_range = None
        if start is not None or end is not None:
            date_range = DateRange(start=start, end=end)
        return self.model_copy(update={"date_range": date_range, "date_preset": None})

    def with_file_size_range(
        self, minimum: int | None, maximum: int | None
    ) -> "SearchFilters":
        size_range = None
        if minimum is not None or maximum is not None:
            size_range = FileSizeRange(min=minimum, max=maximum)
        return self.model_copy(update={"file_size_range": size_range})

    @property
    def is_empty(self) -> bool:
        return (
            self.file_types is None
            and self.date_range is None
            and self.file_size_range is None
        )

    def to_payload(self) -> dict[str, Any]:
        """camelCase payload for the engine; unset filters are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Query(CamelModel):
    """Current query text and whether it has been committed."""

    text: str = ""
    committed: bool = False

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class PageState(CamelModel):
    """Pagination cursor."""

    page: int = Field(default=1, ge=1)
    per_page: int = 20

    @field_validator("per_page")
    @classmethod
    def validate_per_page(cls, v: int) -> int:
        if v not in PER_PAGE_CHOICES:
            raise ValueError(f"per_page must be one of {PER_PAGE_CHOICES}")
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def has_next(self, total_results: int) -> bool:
        return self.page * self.per_page < total_results

    def has_previous(self) -> bool:
        return self.page > 1


class SearchRequest(CamelModel):
    """Parameters of one engine call, tagged with its sequence number."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    query: str
    limit: int
    offset: int
    filters: SearchFilters = Field(default_factory=SearchFilters)


class SearchResult(CamelModel):
    """One hit returned by the engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str = ""
    file_path: str
    file_type: str = ""
    modified_time: int = 0
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    # Marked-up fragments; escaping them for display is the caller's job
    highlights: tuple[str, ...] = ()


class SearchResponse(CamelModel):
    """Engine response; ``total_count`` may be absent or zero."""

    results: list[SearchResult] = Field(default_factory=list)
    total_count: int | None = None
    search_time: float | None = None
    has_more: bool = False

    @property
    def effective_total(self) -> int:
        return self.total_count or len(self.results)
