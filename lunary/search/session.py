"""
Search session controller

Owns the query text, filter set and pagination cursor of the search page and
issues requests to the external engine. Typing is debounced; explicit
submits, filter changes and page changes search immediately. Only the most
recently issued request may update the displayed state.
"""

import time
from collections.abc import Callable
from enum import Enum

from lunary.config import get_settings
from lunary.search.engine import SearchEngine
from lunary.search.history import SearchHistory
from lunary.search.models import (
    DatePreset,
    PageState,
    Query,
    SearchFilters,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from lunary.search.scheduler import ScheduledHandle, TaskScheduler
from lunary.utils.logger import query_log_fields
from lunary.utils.mixins import LoggerMixin


class SessionState(str, Enum):
    """検索セッションの状態"""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"
    SETTLED = "settled"


ErrorCallback = Callable[[Exception], None]
ChangeCallback = Callable[["SearchSessionController"], None]


class SearchSessionController(LoggerMixin):
    """Query lifecycle, debouncing, supersession, filters and pagination."""

    def __init__(
        self,
        engine: SearchEngine,
        history: SearchHistory | None = None,
        scheduler: TaskScheduler | None = None,
        debounce_seconds: float | None = None,
        per_page: int | None = None,
        on_error: ErrorCallback | None = None,
        on_change: ChangeCallback | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """
        初期化

        Args:
            engine: 外部検索エンジン
            history: 検索履歴（省略時は新規作成）
            scheduler: デバウンス用スケジューラ
            debounce_seconds: 入力が落ち着くまでの待機時間
            per_page: 1 ページあたりの件数
            on_error: 検索失敗時のコールバック
            on_change: 表示状態が変わった時のコールバック
            clock: 経過時間計測用の時計
        """
        settings = get_settings()

        self.engine = engine
        self.history = (
            history
            if history is not None
            else SearchHistory(settings.search_history_limit)
        )
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or TaskScheduler()
        self.debounce_seconds = (
            settings.debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.on_error = on_error
        self.on_change = on_change
        self._clock = clock

        self.query = Query()
        self.committed_text = ""
        self.filters = SearchFilters()
        self.page_state = PageState(per_page=per_page or settings.default_per_page)

        self.results: list[SearchResult] = []
        self.total_results = 0
        self.search_time = 0.0
        self.last_error: str | None = None
        self.state = SessionState.IDLE

        self.active_request: SearchRequest | None = None
        self._sequence = 0
        self._debounce_handle: ScheduledHandle | None = None

    # ------------------------------------------------------------------
    # Derived state

    @property
    def is_searching(self) -> bool:
        return self.state == SessionState.IN_FLIGHT

    @property
    def page(self) -> int:
        return self.page_state.page

    @property
    def per_page(self) -> int:
        return self.page_state.per_page

    @property
    def has_next_page(self) -> bool:
        return self.page_state.has_next(self.total_results)

    @property
    def has_previous_page(self) -> bool:
        return self.page_state.has_previous()

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    # ------------------------------------------------------------------
    # Query input

    def set_query_text(self, text: str) -> None:
        """Handle an edit of the query box.

        Blank text clears the results at once without contacting the engine;
        anything else restarts the debounce timer.
        """
        self.query = Query(text=text, committed=False)
        self._cancel_debounce()

        if self.query.is_blank:
            self._clear_session()
            return

        self._debounce_handle = self.scheduler.schedule(
            self.debounce_seconds, self._on_debounce_elapsed
        )
        self.state = SessionState.DEBOUNCING
        self._notify_change()

    async def submit(self, text: str | None = None) -> SearchResponse | None:
        """Explicit submit (Enter): bypasses the debounce."""
        if text is not None:
            self.query = Query(text=text, committed=False)
        self._cancel_debounce()
        return await self._commit_and_search(self.query.text)

    async def search_from_history(self, text: str) -> SearchResponse | None:
        return await self.submit(text)

    async def _on_debounce_elapsed(self) -> None:
        self._debounce_handle = None
        await self._commit_and_search(self.query.text)

    async def _commit_and_search(self, text: str) -> SearchResponse | None:
        if not text.strip():
            self._clear_session()
            return None

        if text != self.committed_text:
            # 新しいクエリは 1 ページ目から
            self.page_state = PageState(page=1, per_page=self.page_state.per_page)
        self.committed_text = text
        self.query = Query(text=text, committed=True)
        return await self._execute()

    # ------------------------------------------------------------------
    # Filters

    async def set_filters(self, filters: SearchFilters) -> SearchResponse | None:
        self.filters = filters
        self.page_state = PageState(page=1, per_page=self.page_state.per_page)
        return await self._refresh()

    async def toggle_file_type(
        self, file_type: str, checked: bool
    ) -> SearchResponse | None:
        return await self.set_filters(self.filters.with_file_type(file_type, checked))

    async def select_date_preset(
        self, preset: DatePreset | str, now: int | None = None
    ) -> SearchResponse | None:
        return await self.set_filters(
            self.filters.with_date_preset(DatePreset(preset), now=now)
        )

    async def set_date_range(
        self, start: int | None, end: int | None
    ) -> SearchResponse | None:
        return await self.set_filters(self.filters.with_date_range(start, end))

    async def set_file_size_range(
        self, minimum: int | None, maximum: int | None
    ) -> SearchResponse | None:
        return await self.set_filters(
            self.filters.with_file_size_range(minimum, maximum)
        )

    async def clear_filters(self) -> SearchResponse | None:
        return await self.set_filters(SearchFilters())

    # ------------------------------------------------------------------
    # Pagination

    async def goto_page(self, page: int) -> SearchResponse | None:
        if page < 1:
            return None
        self.page_state = PageState(page=page, per_page=self.page_state.per_page)
        return await self._refresh()

    async def next_page(self) -> SearchResponse | None:
        if not self.has_next_page:
            return None
        return await self.goto_page(self.page + 1)

    async def previous_page(self) -> SearchResponse | None:
        if not self.has_previous_page:
            return None
        return await self.goto_page(self.page - 1)

    async def set_per_page(self, per_page: int) -> SearchResponse | None:
        """Change the page size; always returns to page 1."""
        self.page_state = PageState(page=1, per_page=per_page)
        return await self._refresh()

    # ------------------------------------------------------------------
    # Request execution

    async def _refresh(self) -> SearchResponse | None:
        """Re-run the committed query after a filter or page change."""
        if not self.committed_text.strip():
            self._notify_change()
            return None
        return await self._execute()

    async def _execute(self) -> SearchResponse | None:
        self._sequence += 1
        request = SearchRequest(
            sequence=self._sequence,
            query=self.committed_text,
            limit=self.page_state.per_page,
            offset=self.page_state.offset,
            filters=self.filters,
        )
        self.active_request = request
        self.state = SessionState.IN_FLIGHT
        self.history.record(request.query)
        self._notify_change()

        self.logger.debug(
            "Search issued",
            sequence=request.sequence,
            limit=request.limit,
            offset=request.offset,
            **query_log_fields(request.query),
        )

        started = self._clock()
        try:
            response = await self.engine.search_index(
                request.query, request.limit, request.offset, request.filters
            )
        except Exception as e:
            if not self._is_latest(request):
                self.logger.debug(
                    "Discarded failure of superseded search",
                    sequence=request.sequence,
                    latest=self._sequence,
                )
                return None
            self._apply_failure(request, e)
            return None

        if not self._is_latest(request):
            self.logger.debug(
                "Discarded superseded search response",
                sequence=request.sequence,
                latest=self._sequence,
            )
            return None

        self._apply_response(request, response, self._clock() - started)
        return response

    def _is_latest(self, request: SearchRequest) -> bool:
        return request.sequence == self._sequence

    def _settled_state(self) -> SessionState:
        # 入力途中ならデバウンス中のまま
        if self._debounce_handle is not None:
            return SessionState.DEBOUNCING
        return SessionState.SETTLED

    def _apply_response(
        self, request: SearchRequest, response: SearchResponse, elapsed: float
    ) -> None:
        self.results = list(response.results)
        self.total_results = response.effective_total
        self.search_time = round(elapsed, 3)
        self.last_error = None
        self.state = self._settled_state()

        self.logger.info(
            "Search completed",
            sequence=request.sequence,
            results=len(self.results),
            total=self.total_results,
            search_time=self.search_time,
        )
        self._notify_change()

    def _apply_failure(self, request: SearchRequest, error: Exception) -> None:
        self.results = []
        self.total_results = 0
        self.search_time = 0.0
        self.last_error = str(error) or type(error).__name__
        self.state = self._settled_state()

        self.logger.error(
            "Search failed",
            sequence=request.sequence,
            error=str(error),
            error_type=type(error).__name__,
        )

        if self.on_error is not None:
            try:
                self.on_error(error)
            except Exception as e:
                self.logger.warning("Search error callback failed", error=str(e))
        self._notify_change()

    # ------------------------------------------------------------------
    # Housekeeping

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self.scheduler.cancel(self._debounce_handle)
            self._debounce_handle = None

    def _clear_session(self) -> None:
        """Empty query: drop results and invalidate anything in flight."""
        self._sequence += 1
        self.active_request = None
        self.committed_text = ""
        self.results = []
        self.total_results = 0
        self.search_time = 0.0
        self.last_error = None
        self.state = SessionState.IDLE
        self._notify_change()

    def _notify_change(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self)
        except Exception as e:
            self.logger.warning("Search change callback failed", error=str(e))

    async def close(self) -> None:
        """Cancel pending timers and ignore any response still in flight."""
        self._cancel_debounce()
        self._sequence += 1
        if self._owns_scheduler:
            await self.scheduler.shutdown()
