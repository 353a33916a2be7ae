"""Utility modules for Lunary"""

from .logger import (
    get_logger,
    query_log_fields,
    setup_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "query_log_fields",
]
