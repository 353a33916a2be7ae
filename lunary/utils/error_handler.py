"""共通エラーハンドリングユーティリティ

Collaborator calls that must never take the session down (opening files or
revealing folders in the OS shell) are wrapped with these decorators
so failures end up in the log instead of propagating.
"""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ErrorHandler:
    """共通エラーハンドリング機能を提供するクラス"""

    @staticmethod
    def log_failure(
        operation_name: str,
        exception: Exception,
        level: str = "error",
        **kwargs: Any,
    ) -> None:
        """失敗を指定レベルでログ記録"""
        log = getattr(logger, level, logger.error)
        log(
            f"Failed to {operation_name}",
            error=str(exception),
            error_type=type(exception).__name__,
            **kwargs,
        )

    @staticmethod
    def log_and_return_default(
        operation_name: str,
        exception: Exception,
        default_value: T,
        level: str = "error",
        **kwargs: Any,
    ) -> T:
        """エラーをログ記録し、デフォルト値を返す標準パターン"""
        ErrorHandler.log_failure(operation_name, exception, level, **kwargs)
        return default_value


def handle_errors(
    operation_name: str,
    default_return: Any = None,
    level: str = "error",
    **log_kwargs: Any,
):
    """
    メソッドのエラーハンドリングを自動化するデコレータ

    Args:
        operation_name: 操作の名前（ログ記録用）
        default_return: エラー時の戻り値（デフォルト: None）
        level: ログレベル（"error" / "warning" など）
        **log_kwargs: ログに追加する情報
    """

    def decorator(func: Callable) -> Callable:
        def _handle(e: Exception) -> Any:
            return ErrorHandler.log_and_return_default(
                operation_name, e, default_return, level, **log_kwargs
            )

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _handle(e)

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                return _handle(e)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return wrapper

    return decorator


# よく使用されるエラーハンドリングパターンの短縮形
def safe_with_default(operation_name: str, default_value: Any, **log_kwargs: Any):
    """デフォルト値付きセーフ操作"""
    return handle_errors(operation_name, default_return=default_value, **log_kwargs)
