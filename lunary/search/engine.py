"""Port to the external search engine."""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from lunary.search.models import SearchFilters, SearchResponse

SearchIndexFunction = Callable[..., Awaitable[Any]]


class SearchEngine(Protocol):
    """The external indexing/ranking engine."""

    async def search_index(
        self, query: str, limit: int, offset: int, filters: SearchFilters
    ) -> SearchResponse:
        """Run one query and return a page of results."""
        ...


class SearchEngineError(Exception):
    """検索エンジン呼び出しエラー"""


class CallableSearchEngine:
    """Adapter over a plain ``search_index`` coroutine function.

    The wrapped function receives the camelCase filter payload and may return
    either a :class:`SearchResponse` or the raw response mapping
    (``{"results": [...], "totalCount": ...}``).
    """

    def __init__(self, search_index: SearchIndexFunction) -> None:
        self._search_index = search_index

    async def search_index(
        self, query: str, limit: int, offset: int, filters: SearchFilters
    ) -> SearchResponse:
        raw = await self._search_index(
            query=query, limit=limit, offset=offset, filters=filters.to_payload()
        )
        if isinstance(raw, SearchResponse):
            return raw
        if isinstance(raw, list):
            # Older engines return a bare result list
            return SearchResponse.model_validate({"results": raw})
        try:
            return SearchResponse.model_validate(raw)
        except Exception as e:
            raise SearchEngineError(f"Malformed search response: {e}") from e
