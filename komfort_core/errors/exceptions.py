# =============================================================================
# komfort_core/errors/exceptions.py
# Custom Exception Hierarchy for the Komfort catalog data layer
# =============================================================================

from typing import Optional, Dict, Any


class KomfortError(Exception):
    """
    Base exception for all catalog data layer errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "VAL_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "KF_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class ValidationError(KomfortError):
    """Raised when an entity or form fails validation before any I/O"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value

        super().__init__(
            message=message,
            code=kwargs.pop("code", "VAL_001"),
            details=details,
            **kwargs,
        )

    @property
    def field(self) -> Optional[str]:
        return self.details.get("field")


class RateLimitError(ValidationError):
    """Raised when a contact form is submitted again too soon"""

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        details = kwargs.pop("details", {})
        if retry_after is not None:
            details["retry_after"] = round(retry_after, 1)
        super().__init__(message, code="VAL_002", details=details, **kwargs)


# =============================================================================
# LOCAL CACHE EXCEPTIONS
# =============================================================================

class CacheWriteError(KomfortError):
    """Raised when the local mirror cannot store a value"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(
            message=message,
            code=kwargs.pop("code", "CACHE_001"),
            details=details,
            **kwargs,
        )


class QuotaExceededError(CacheWriteError):
    """Raised when a write would exceed the local mirror capacity"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        size: Optional[int] = None,
        capacity: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if size is not None:
            details["size"] = size
        if capacity is not None:
            details["capacity"] = capacity

        super().__init__(
            message=message,
            key=key,
            code="CACHE_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(KomfortError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
