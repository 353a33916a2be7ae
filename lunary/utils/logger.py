"""
Logging configuration for Lunary
"""

import logging
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

from lunary.config import get_settings


def setup_logging() -> None:
    """Set up structured logging with rich formatting"""

    settings = get_settings()

    # Configure log level
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=True,
            markup=True,
            rich_tracebacks=True,
        )
    ]

    if settings.enable_file_logging:
        logs_dir = settings.resolve_log_dir()
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.FileHandler(logs_dir / "lunary.log", encoding="utf-8")
            )
        except OSError:
            # ログディレクトリが作れない環境ではコンソール出力のみ
            pass

    # Configure standard library logging (replaces any existing root handlers)
    logging.basicConfig(
        level=log_level,
        force=True,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    from typing import cast

    logger = structlog.get_logger(name)
    return cast("structlog.stdlib.BoundLogger", logger)


def query_log_fields(query: str, max_length: int = 32) -> dict[str, Any]:
    """検索クエリをログに残すためのフィールドを作成

    Queries can contain personal data, so only a truncated preview and the
    length are logged.
    """
    preview = query.strip()
    if len(preview) > max_length:
        preview = preview[:max_length] + "..."
    return {"query_preview": preview, "query_length": len(query)}


# Default logger instance for convenient access
logger = get_logger("lunary")
