"""
Runtime wiring for Lunary

The host UI calls :func:`build_runtime_context` once at start-up and
:func:`shutdown_runtime` on exit.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from lunary import __version__
from lunary.config import get_settings
from lunary.index import IndexManager
from lunary.search import (
    SearchEngine,
    SearchHistory,
    SearchSessionController,
    TaskScheduler,
)
from lunary.storage import (
    ConfigStore,
    DirectoryRepository,
    FileStorageBackend,
    IndexStatusRepository,
    KeyValueStorageBackend,
    SettingsRepository,
    SqliteKeyValueStore,
)
from lunary.storage.backends import KeyValueStore
from lunary.ui import (
    AppearanceSignal,
    LocaleController,
    PreferenceContext,
    SystemAppearance,
    ThemeController,
)
from lunary.utils import get_logger, setup_logging

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from lunary.config.settings import Settings
    from lunary.search.session import ErrorCallback


@dataclass
class RuntimeContext:
    """Container for runtime components."""

    settings: "Settings"
    config_store: ConfigStore
    settings_repository: SettingsRepository
    directory_repository: DirectoryRepository
    status_repository: IndexStatusRepository
    scheduler: TaskScheduler
    session: SearchSessionController
    index_manager: IndexManager
    theme: ThemeController
    locale: LocaleController
    dark_mode: PreferenceContext[bool]
    language: PreferenceContext[str]


def build_config_store(
    settings: "Settings", fallback_store: KeyValueStore | None = None
) -> ConfigStore:
    """File storage first, flat key-value store as fallback.

    Without an explicit store the fallback is SQLite in the data directory.
    """
    if fallback_store is None:
        fallback_store = SqliteKeyValueStore(
            resolve_data_dir=settings.resolve_data_dir
        )
    return ConfigStore(
        [
            FileStorageBackend(resolve_config_dir=settings.resolve_config_dir),
            KeyValueStorageBackend(fallback_store),
        ]
    )


async def build_runtime_context(
    engine: SearchEngine,
    appearance: SystemAppearance | None = None,
    on_search_error: "ErrorCallback | None" = None,
    fallback_store: KeyValueStore | None = None,
    logger: "BoundLogger | None" = None,
) -> RuntimeContext:
    """Construct and initialise the runtime components."""
    settings = get_settings()
    logger = logger or get_logger("lunary.main")

    config_store = build_config_store(settings, fallback_store)
    settings_repository = SettingsRepository(config_store)
    directory_repository = DirectoryRepository(config_store)
    status_repository = IndexStatusRepository(config_store)

    scheduler = TaskScheduler()
    session = SearchSessionController(
        engine,
        history=SearchHistory(settings.search_history_limit),
        scheduler=scheduler,
        debounce_seconds=settings.debounce_seconds,
        per_page=settings.default_per_page,
        on_error=on_search_error,
    )

    index_manager = IndexManager(directory_repository, status_repository)
    await index_manager.load()

    dark_mode: PreferenceContext[bool] = PreferenceContext("dark_mode", False)
    language: PreferenceContext[str] = PreferenceContext("language", "zh-CN")

    theme = ThemeController(
        settings_repository, appearance or AppearanceSignal(), presentation=dark_mode
    )
    await theme.initialize()

    locale = LocaleController(settings_repository, context=language)
    await locale.initialize()

    logger.info(
        "Lunary runtime ready",
        version=__version__,
        environment=settings.environment,
        config_dir=str(settings.resolve_config_dir()),
    )

    return RuntimeContext(
        settings=settings,
        config_store=config_store,
        settings_repository=settings_repository,
        directory_repository=directory_repository,
        status_repository=status_repository,
        scheduler=scheduler,
        session=session,
        index_manager=index_manager,
        theme=theme,
        locale=locale,
        dark_mode=dark_mode,
        language=language,
    )


async def shutdown_runtime(
    context: RuntimeContext, logger: "BoundLogger | None" = None
) -> None:
    """Persist state and release listeners and timers."""
    logger = logger or get_logger("lunary.main")
    logger.info("Shutting down Lunary runtime...")

    await context.session.close()
    await context.scheduler.shutdown()

    await context.directory_repository.save(context.index_manager.directories)
    if not context.index_manager.status.is_indexing:
        await context.status_repository.save(context.index_manager.status)

    context.theme.close()
    context.dark_mode.close()
    context.language.close()

    logger.info("Lunary runtime stopped")


async def start(engine: SearchEngine, **kwargs) -> RuntimeContext:
    """Configure logging and build the runtime (application launch)."""
    setup_logging()
    return await build_runtime_context(engine, **kwargs)
