# =============================================================================
# komfort_core/errors/handlers.py
# Error Handling Utilities for the Komfort catalog data layer
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Optional, Callable, TypeVar, Any

from komfort_core.logging import get_logger
from .exceptions import KomfortError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> dict:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        log_error: Whether to log the error
        user_message: Custom message to report (uses error message if None)

    Returns:
        Serializable error summary for callers that surface it to a UI
    """
    if isinstance(error, KomfortError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        # Validation problems are expected user input, not faults
        if isinstance(error, KomfortError) and error.code.startswith("VAL_"):
            logger.warning(f"[{code}] {message}")
        else:
            logger.error(
                f"[{code}] {message}",
                extra={"details": details},
                exc_info=True,
            )

    return {
        "code": code,
        "message": message,
        "details": details,
        "recoverable": recoverable,
    }


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Execute a function with automatic error handling.

    Usage:
        rows = safe_execute(
            gateway.fetch_all,
            default=[],
            error_message="Failed to fetch categories"
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, user_message=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Usage:
        with ErrorContext("Restoring contact defaults", recoverable=True):
            store.restore_defaults()
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.error: Optional[dict] = None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            if isinstance(exc_val, KomfortError):
                self.error = handle_error(exc_val)
            else:
                self.error = handle_error(
                    exc_val,
                    user_message=f"Error during: {self.operation}",
                )

            # Suppress exception if recoverable
            return self.recoverable

        logger.debug(f"Completed: {self.operation}")
        return False


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator to wrap functions with error handling.

    Validation errors are raised before any I/O and always propagate.

    Usage:
        @error_boundary(default_return=[], error_message="Fetch failed")
        def fetch_all(self) -> List[Category]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except KomfortError as e:
                if e.code.startswith("VAL_"):
                    raise
                if log:
                    handle_error(e, user_message=error_message)
                return default_return
            except Exception as e:
                if log:
                    prefix = f"{error_message}: " if error_message else ""
                    logger.error(
                        f"{prefix}Error in {func.__name__}: {e}",
                        exc_info=True,
                    )
                return default_return

        return wrapper

    return decorator
