"""Error handling helpers shared by the model client and the response resolver.

Consolidates the try/except/log pattern for operations that should degrade
gracefully instead of propagating: JSON parsing of model replies, schema
validation, and the outbound model call itself.
"""

from typing import Any, Awaitable, Callable

from taste_predictor.utils.logger import logger


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    """Log error with appropriate level.

    Args:
        operation_name: Description for logging
        exception: Exception that occurred
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
    """
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro: Awaitable[Any],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
) -> Any:
    """Safely execute async operation with consistent error logging.

    Args:
        coro: Awaitable to execute.
        operation_name: Description for logging (e.g., "Gemini completion call").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None (graceful degradation).
        reraise: If True, re-raise exception after logging (for critical ops). Default: False.

    Returns:
        Result of the awaitable if successful, otherwise default_return
        (unless reraise=True, in which case the original exception propagates).
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


def safe_execute_sync(
    func: Callable[[], Any],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
) -> Any:
    """Safely execute sync operation with consistent error logging.

    Synchronous version of safe_execute_async. Same behavior and patterns.

    Args:
        func: Callable to execute (no args).
        operation_name: Description for logging.
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None (graceful degradation).
        reraise: If True, re-raise exception after logging. Default: False.

    Returns:
        Result of func if successful, otherwise default_return
        (unless reraise=True, in which case the original exception propagates).
    """
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return
