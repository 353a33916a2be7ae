from typing import Any, ClassVar, cast

import structlog


class LoggerMixin:
    """Mixin class to add logging capabilities to any class

    Subclasses may set ``log_context`` to bind fixed key/value pairs
    (e.g. the backend name) to every event they emit.
    """

    log_context: ClassVar[dict[str, Any]] = {}

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Get logger instance for this class"""
        logger = structlog.get_logger(self.__class__.__name__)
        if self.log_context:
            logger = logger.bind(**self.log_context)
        return cast("structlog.stdlib.BoundLogger", logger)
