"""Session-scoped search history."""

from collections.abc import Iterator

DEFAULT_HISTORY_LIMIT = 10


class SearchHistory:
    """Bounded, de-duplicated, most-recent-first log of issued queries.

    Re-issuing a query that is already present leaves the log untouched, so
    an entry keeps the position it had when first recorded. Nothing is
    persisted; the log lives as long as the session.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._entries: list[str] = []

    def record(self, query_text: str) -> bool:
        """Record ``query_text``; returns False if nothing changed."""
        if not query_text.strip() or query_text in self._entries:
            return False
        self._entries.insert(0, query_text)
        del self._entries[self.limit :]
        return True

    def remove(self, query_text: str) -> bool:
        try:
            self._entries.remove(query_text)
        except ValueError:
            return False
        return True

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, query_text: object) -> bool:
        return query_text in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
