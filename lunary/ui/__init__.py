"""Presentation preferences (theme, locale)."""

from lunary.ui.locale import (
    SUPPORTED_LANGUAGES,
    LocaleController,
    UnsupportedLanguageError,
)
from lunary.ui.preferences import PreferenceContext
from lunary.ui.theme import (
    AppearanceSignal,
    SystemAppearance,
    ThemeController,
    resolve_dark,
)

__all__ = [
    "AppearanceSignal",
    "LocaleController",
    "PreferenceContext",
    "SUPPORTED_LANGUAGES",
    "SystemAppearance",
    "ThemeController",
    "UnsupportedLanguageError",
    "resolve_dark",
]
