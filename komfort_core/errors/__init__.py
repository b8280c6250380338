# =============================================================================
# komfort_core/errors/__init__.py
# Centralized Error Handling for the Komfort catalog data layer
# =============================================================================

from .exceptions import (
    KomfortError,
    ValidationError,
    RateLimitError,
    CacheWriteError,
    QuotaExceededError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "KomfortError",
    "ValidationError",
    "RateLimitError",
    "CacheWriteError",
    "QuotaExceededError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
    "ErrorContext",
    "error_boundary",
]
