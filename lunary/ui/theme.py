"""Light/dark presentation mode."""

from collections.abc import Callable
from typing import Protocol

from lunary.storage.models import ThemeMode
from lunary.storage.repositories import SettingsRepository
from lunary.ui.preferences import PreferenceContext, Unsubscribe
from lunary.utils.mixins import LoggerMixin


class SystemAppearance(Protocol):
    """OS dark-mode preference signal."""

    def prefers_dark(self) -> bool: ...

    def subscribe(self, listener: Callable[[bool], None]) -> Unsubscribe: ...


class AppearanceSignal:
    """Settable appearance signal, driven by the host toolkit.

    The host calls :meth:`update` whenever the OS reports a new
    colour-scheme preference.
    """

    def __init__(self, dark: bool = False) -> None:
        self._context: PreferenceContext[bool] = PreferenceContext(
            "system_appearance", dark
        )

    def prefers_dark(self) -> bool:
        return self._context.get()

    def update(self, dark: bool) -> None:
        self._context.set(dark)

    def subscribe(self, listener: Callable[[bool], None]) -> Unsubscribe:
        return self._context.subscribe(listener)

    @property
    def listener_count(self) -> int:
        return self._context.listener_count


def resolve_dark(mode: ThemeMode, system_dark: bool) -> bool:
    """Effective presentation: dark, or system while the OS prefers dark."""
    return mode == ThemeMode.DARK or (mode == ThemeMode.SYSTEM and system_dark)


class ThemeController(LoggerMixin):
    """Holds the theme mode and publishes the effective dark flag.

    The dark flag goes to ``presentation`` (a :class:`PreferenceContext`)
    which the UI layer observes. While the mode is ``system`` the controller
    listens to the OS appearance signal.
    """

    def __init__(
        self,
        settings_repository: SettingsRepository,
        appearance: SystemAppearance,
        presentation: PreferenceContext[bool] | None = None,
    ) -> None:
        self.settings_repository = settings_repository
        self.appearance = appearance
        self.presentation = presentation or PreferenceContext("dark_mode", False)
        self._mode = ThemeMode.SYSTEM
        self._system_unsubscribe: Unsubscribe | None = None

    @property
    def mode(self) -> ThemeMode:
        return self._mode

    @property
    def is_dark(self) -> bool:
        return self.presentation.get()

    @property
    def is_following_system(self) -> bool:
        return self._system_unsubscribe is not None

    async def initialize(self) -> ThemeMode:
        """Adopt the stored theme (``system`` when none) and apply it."""
        settings = await self.settings_repository.load()
        self._mode = settings.ui.theme
        self._apply()
        self._sync_system_subscription()
        self.logger.info("Theme initialized", mode=self._mode.value, dark=self.is_dark)
        return self._mode

    async def set_theme(self, mode: ThemeMode | str) -> None:
        self._mode = ThemeMode(mode)
        self._apply()
        self._sync_system_subscription()

        # read-modify-write: only ui.theme changes
        await self.settings_repository.update_section("ui", theme=self._mode)
        self.logger.info("Theme changed", mode=self._mode.value, dark=self.is_dark)

    def _apply(self) -> None:
        self.presentation.set(
            resolve_dark(self._mode, self.appearance.prefers_dark())
        )

    def _on_system_change(self, _dark: bool) -> None:
        if self._mode == ThemeMode.SYSTEM:
            self._apply()

    def _sync_system_subscription(self) -> None:
        if self._mode == ThemeMode.SYSTEM:
            if self._system_unsubscribe is None:
                self._system_unsubscribe = self.appearance.subscribe(
                    self._on_system_change
                )
        elif self._system_unsubscribe is not None:
            self._system_unsubscribe()
            self._system_unsubscribe = None

    def close(self) -> None:
        """Tear down the OS subscription."""
        if self._system_unsubscribe is not None:
            self._system_unsubscribe()
            self._system_unsubscribe = None
