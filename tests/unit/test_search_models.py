"""Tests for search filters, pagination, history and the engine adapter."""

import pytest
from pydantic import ValidationError

from lunary.search import (
    CallableSearchEngine,
    DatePreset,
    PageState,
    SearchEngineError,
    SearchFilters,
    SearchHistory,
    SearchResponse,
)
from lunary.search.models import DAY_MS, MONTH_MS, WEEK_MS

NOW = 1_700_000_000_000


class TestSearchFilters:
    def test_defaults_are_empty(self):
        filters = SearchFilters()

        assert filters.is_empty
        assert filters.to_payload() == {}

    @pytest.mark.parametrize(
        ("preset", "span"),
        [
            (DatePreset.LAST_DAY, DAY_MS),
            (DatePreset.LAST_WEEK, WEEK_MS),
            (DatePreset.LAST_MONTH, MONTH_MS),
        ],
    )
    def test_date_presets(self, preset, span):
        filters = SearchFilters().with_date_preset(preset, now=NOW)

        assert filters.date_preset == preset
        assert filters.date_range.start == NOW - span
        assert filters.date_range.end == NOW

    def test_last_week_constant(self):
        assert WEEK_MS == 604_800_000

    def test_any_preset_clears_range(self):
        filters = SearchFilters().with_date_preset(DatePreset.LAST_DAY, now=NOW)

        filters = filters.with_date_preset(DatePreset.ANY)

        assert filters.date_range is None
        assert filters.date_preset == DatePreset.ANY

    def test_custom_range_clears_preset(self):
        filters = SearchFilters().with_date_preset("lastMonth", now=NOW)

        filters = filters.with_date_range(10, 20)

        assert filters.date_preset is None
        assert (filters.date_range.start, filters.date_range.end) == (10, 20)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            SearchFilters().with_date_range(20, 10)

    def test_file_type_toggle(self):
        filters = SearchFilters()

        filters = filters.with_file_type(".PDF", True)
        filters = filters.with_file_type("docx", True)
        filters = filters.with_file_type("pdf", True)
        assert filters.file_types == ("pdf", "docx")

        filters = filters.with_file_type("pdf", False)
        filters = filters.with_file_type("docx", False)
        assert filters.file_types is None
        assert filters.is_empty

    def test_file_types_normalised_on_construction(self):
        filters = SearchFilters(file_types=[" TXT", ".md", "txt"])

        assert filters.file_types == ("txt", "md")

    def test_filters_are_immutable(self):
        filters = SearchFilters()

        with pytest.raises(ValidationError):
            filters.file_types = ("pdf",)

    def test_payload_uses_camel_case(self):
        filters = (
            SearchFilters()
            .with_file_type("pdf", True)
            .with_date_preset(DatePreset.LAST_DAY, now=NOW)
            .with_file_size_range(None, 2048)
        )

        assert filters.to_payload() == {
            "fileTypes": ["pdf"],
            "dateRange": {"start": NOW - DAY_MS, "end": NOW},
            "datePreset": "lastDay",
            "fileSizeRange": {"max": 2048},
        }


class TestPageState:
    def test_offset(self):
        assert PageState(page=3, per_page=20).offset == 40

    def test_has_next_boundary(self):
        state = PageState(page=2, per_page=10)

        assert state.has_next(21) is True
        assert state.has_next(20) is False

    @pytest.mark.parametrize("per_page", [0, 15, 1000])
    def test_per_page_choices(self, per_page):
        with pytest.raises(ValidationError):
            PageState(per_page=per_page)

    def test_page_must_be_positive(self):
        with pytest.raises(ValidationError):
            PageState(page=0)


class TestSearchHistory:
    def test_most_recent_first(self):
        history = SearchHistory()
        history.record("a")
        history.record("b")

        assert history.entries == ["b", "a"]

    def test_duplicates_keep_first_position(self):
        history = SearchHistory()
        for text in ["a", "b", "c", "a"]:
            history.record(text)

        assert history.entries == ["c", "b", "a"]
        assert history.record("b") is False

    def test_capped_at_limit(self):
        history = SearchHistory()
        for i in range(15):
            history.record(f"q{i}")

        assert len(history) == 10
        assert history.entries[0] == "q14"
        assert "q4" not in history
        assert "q5" in history

    def test_blank_queries_ignored(self):
        history = SearchHistory()

        assert history.record("  ") is False
        assert len(history) == 0

    def test_remove_and_clear(self):
        history = SearchHistory(limit=3)
        history.record("x")
        history.record("y")

        assert history.remove("x") is True
        assert history.remove("x") is False
        history.clear()
        assert list(history) == []

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            SearchHistory(limit=0)


class TestCallableSearchEngine:
    @pytest.mark.asyncio
    async def test_passes_camel_case_filters(self):
        received = {}

        async def search_index(**kwargs):
            received.update(kwargs)
            return {
                "results": [
                    {
                        "id": "1",
                        "title": "Report",
                        "content": "quarterly",
                        "filePath": "/docs/report.pdf",
                        "fileType": "pdf",
                        "modifiedTime": NOW,
                        "score": 0.9,
                        "highlights": ["<mark>report</mark>"],
                    }
                ],
                "totalCount": 7,
            }

        engine = CallableSearchEngine(search_index)
        filters = SearchFilters().with_file_type("pdf", True)

        response = await engine.search_index("report", 20, 0, filters)

        assert received == {
            "query": "report",
            "limit": 20,
            "offset": 0,
            "filters": {"fileTypes": ["pdf"]},
        }
        assert response.total_count == 7
        assert response.results[0].file_path == "/docs/report.pdf"
        assert response.results[0].highlights == ("<mark>report</mark>",)

    @pytest.mark.asyncio
    async def test_accepts_bare_result_list(self):
        async def search_index(**kwargs):
            return [{"id": "1", "title": "t", "filePath": "/a"}]

        response = await CallableSearchEngine(search_index).search_index(
            "t", 10, 0, SearchFilters()
        )

        assert response.total_count is None
        assert response.effective_total == 1

    @pytest.mark.asyncio
    async def test_passes_through_typed_response(self):
        expected = SearchResponse(total_count=3)

        async def search_index(**kwargs):
            return expected

        response = await CallableSearchEngine(search_index).search_index(
            "t", 10, 0, SearchFilters()
        )

        assert response is expected

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        async def search_index(**kwargs):
            return {"results": "nope"}

        with pytest.raises(SearchEngineError):
            await CallableSearchEngine(search_index).search_index(
                "t", 10, 0, SearchFilters()
            )
