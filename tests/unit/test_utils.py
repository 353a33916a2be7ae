"""Test utils module functionality."""

import logging
from collections.abc import Iterator

import pytest
from rich.logging import RichHandler
from structlog.testing import capture_logs

from lunary.utils.error_handler import handle_errors, safe_with_default
from lunary.utils.logger import get_logger, query_log_fields, setup_logging
from lunary.utils.mixins import LoggerMixin


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Iterator[None]:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    try:
        yield
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()


class TestLogger:
    """Test logging functionality."""

    def test_setup_logging(self):
        """Test logging setup doesn't raise errors."""
        setup_logging()
        assert logging.getLogger().handlers

    def test_setup_logging_writes_plain_message_to_file(
        self, tmp_path, monkeypatch: pytest.MonkeyPatch
    ):
        """Test log file output uses raw message format."""
        from lunary.config import clear_settings_cache

        monkeypatch.setenv("LUNARY_ENABLE_FILE_LOGGING", "true")
        monkeypatch.setenv("LUNARY_LOG_DIR", str(tmp_path / "logs"))
        clear_settings_cache()

        setup_logging()

        test_message = "logging format check"
        logging.getLogger("format-check").info(test_message)

        root_logger = logging.getLogger()
        file_handlers = [
            handler
            for handler in root_logger.handlers
            if isinstance(handler, logging.FileHandler)
        ]
        assert file_handlers, "FileHandler が設定されていません"

        for handler in file_handlers:
            handler.flush()

        log_file = tmp_path / "logs" / "lunary.log"
        assert log_file.exists()
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert lines, "ログファイルが空です"
        assert lines[-1].endswith(test_message)

    def test_setup_logging_replaces_existing_handlers(self):
        """Test handlers installed by the host are replaced, not kept."""
        foreign = logging.NullHandler()
        logging.getLogger().addHandler(foreign)

        setup_logging()

        handlers = logging.getLogger().handlers
        assert foreign not in handlers
        assert any(isinstance(h, RichHandler) for h in handlers)

    def test_get_logger_returns_logger(self):
        logger = get_logger("test")
        assert hasattr(logger, "info")
        assert hasattr(logger, "error")
        assert hasattr(logger, "warning")

    def test_query_log_fields_truncates(self):
        fields = query_log_fields("x" * 100, max_length=10)

        assert fields["query_length"] == 100
        assert fields["query_preview"] == "x" * 10 + "..."


class TestLoggerMixin:
    def test_logger_mixin_provides_logger(self):
        class TestClass(LoggerMixin):
            pass

        logger = TestClass().logger
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")

    def test_logger_mixin_binds_context(self):
        class Bound(LoggerMixin):
            log_context = {"component": "test"}

        with capture_logs() as logs:
            Bound().logger.info("hello")

        assert logs[0]["component"] == "test"
        assert logs[0]["event"] == "hello"


class TestErrorHandler:
    def test_sync_failure_returns_default(self):
        @safe_with_default("compute", default_value=-1)
        def compute() -> int:
            raise RuntimeError("boom")

        assert compute() == -1

    def test_sync_success_passes_through(self):
        @safe_with_default("compute", default_value=-1)
        def compute() -> int:
            return 7

        assert compute() == 7

    @pytest.mark.asyncio
    async def test_async_failure_returns_default(self):
        @handle_errors("fetch", default_return=False, level="warning")
        async def fetch() -> bool:
            raise OSError("denied")

        assert await fetch() is False

    def test_failure_logged_with_context(self, monkeypatch):
        from lunary.utils import error_handler

        calls = []
        monkeypatch.setattr(
            error_handler.ErrorHandler,
            "log_failure",
            staticmethod(lambda *args, **kwargs: calls.append((args, kwargs))),
        )

        @handle_errors("explode", default_return="fallback", path="/tmp/x")
        def explode() -> str:
            raise ValueError("bad")

        assert explode() == "fallback"
        assert len(calls) == 1
        args, kwargs = calls[0]
        assert args[0] == "explode"
        assert isinstance(args[1], ValueError)
        assert kwargs == {"path": "/tmp/x"}
