"""UI language preference."""

from lunary.storage.repositories import SettingsRepository
from lunary.ui.preferences import PreferenceContext
from lunary.utils.mixins import LoggerMixin

SUPPORTED_LANGUAGES = ("zh-CN", "en-US")
DEFAULT_LANGUAGE = "zh-CN"


class UnsupportedLanguageError(ValueError):
    """未対応の言語"""


class LocaleController(LoggerMixin):
    """Keeps ``ui.language`` and the locale context in sync."""

    def __init__(
        self,
        settings_repository: SettingsRepository,
        context: PreferenceContext[str] | None = None,
    ) -> None:
        self.settings_repository = settings_repository
        self.context = context or PreferenceContext("language", DEFAULT_LANGUAGE)

    @property
    def language(self) -> str:
        return self.context.get()

    async def initialize(self) -> str:
        settings = await self.settings_repository.load()
        language = settings.ui.language
        if language not in SUPPORTED_LANGUAGES:
            self.logger.warning(
                "Stored language is not supported, using default",
                language=language,
                default=DEFAULT_LANGUAGE,
            )
            language = DEFAULT_LANGUAGE
        self.context.set(language)
        return language

    async def set_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise UnsupportedLanguageError(language)
        self.context.set(language)
        await self.settings_repository.update_section("ui", language=language)
        self.logger.info("Language changed", language=language)
