"""Search session: query lifecycle, filters, pagination and history."""

from lunary.search.engine import CallableSearchEngine, SearchEngine, SearchEngineError
from lunary.search.history import SearchHistory
from lunary.search.models import (
    DatePreset,
    DateRange,
    FileSizeRange,
    PageState,
    Query,
    SearchFilters,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from lunary.search.scheduler import ScheduledHandle, TaskScheduler
from lunary.search.session import SearchSessionController, SessionState

__all__ = [
    "CallableSearchEngine",
    "DatePreset",
    "DateRange",
    "FileSizeRange",
    "PageState",
    "Query",
    "ScheduledHandle",
    "SearchEngine",
    "SearchEngineError",
    "SearchFilters",
    "SearchHistory",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SearchSessionController",
    "SessionState",
    "TaskScheduler",
]
