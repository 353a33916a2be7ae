"""Explicit preference context objects (theme flag, locale)."""

from collections.abc import Callable
from typing import Generic, TypeVar

from lunary.utils.mixins import LoggerMixin

T = TypeVar("T")

Listener = Callable[[T], None]
Unsubscribe = Callable[[], None]


class PreferenceContext(LoggerMixin, Generic[T]):
    """A single observable value with an explicit lifecycle.

    Created once at process start, torn down with :meth:`close` at shutdown.
    Listeners are only called when the value actually changes.
    """

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self._value = initial
        self._listeners: list[Listener[T]] = []
        self._closed = False

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Update the value; returns whether listeners were notified."""
        if self._closed:
            raise RuntimeError(f"Preference context '{self.name}' is closed")
        if value == self._value:
            return False

        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as e:
                self.logger.warning(
                    "Preference listener failed", context=self.name, error=str(e)
                )
        return True

    def subscribe(self, listener: Listener[T]) -> Unsubscribe:
        if self._closed:
            raise RuntimeError(f"Preference context '{self.name}' is closed")
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._listeners.clear()
        self._closed = True
