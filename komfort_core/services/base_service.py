# =============================================================================
# komfort_core/services/base_service.py
# Operation results and the base class shared by stores and form services
# =============================================================================
"""
Admin pages never see exceptions from the data layer. Store operations
that can partially succeed (seeding Supabase, resending contact requests)
and form submissions return a ServiceResult instead, which the page turns
into st.success / st.error with `result.message`.
"""

from __future__ import annotations
from abc import ABC
from typing import Optional, Dict, Any, Callable
from dataclasses import dataclass

from komfort_core.logging import get_logger, LogContext
from komfort_core.errors import handle_error, KomfortError


class ResultCode:
    """error_code values produced by the data layer itself."""
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"   # Supabase not configured
    PARTIAL_SYNC = "PARTIAL_SYNC"               # Some rows were not created
    EXCEPTION = "EXCEPTION"                     # Unexpected error


@dataclass
class ServiceResult:
    """Outcome of a data-layer operation. Falsy when it failed."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @property
    def field(self) -> Optional[str]:
        """Form field a validation failure points at."""
        return (self.metadata or {}).get("field")

    @property
    def message(self) -> str:
        if self.success:
            return "Готово"
        return self.error or "Операция не выполнена"

    @classmethod
    def ok(cls, data: Any = None, metadata: Dict[str, Any] = None) -> ServiceResult:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str = ResultCode.EXCEPTION,
        metadata: Dict[str, Any] = None
    ) -> ServiceResult:
        return cls(success=False, error=error, error_code=error_code, metadata=metadata)

    @classmethod
    def from_exception(cls, e: Exception) -> ServiceResult:
        """KomfortError keeps its code and details (e.g. the failing field)."""
        if isinstance(e, KomfortError):
            return cls(success=False, error=e.message, error_code=e.code, metadata=dict(e.details))
        return cls.fail(str(e))

    @classmethod
    def from_sync_counts(cls, counts: Dict[str, int], collection: str) -> ServiceResult:
        """
        Result of pushing a collection to Supabase row by row.

        Args:
            counts: {"created": n, "failed": m}
            collection: Collection name used in the error text
        """
        failed = counts.get("failed", 0)
        if failed:
            return cls(
                success=False,
                data=counts,
                error=f"{failed} of {failed + counts.get('created', 0)} {collection} could not be created",
                error_code=ResultCode.PARTIAL_SYNC,
            )
        return cls.ok(counts)


class BaseService(ABC):
    """Logger, row-progress reporting and error-to-result conversion."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)
        self._progress_callback: Optional[Callable[[int, str], None]] = None

    def set_progress_callback(self, callback: Callable[[int, str], None]) -> None:
        """
        Args:
            callback: Called with (percentage, "done/total") while rows are pushed
        """
        self._progress_callback = callback

    def _update_progress(self, done: int, total: int) -> None:
        if self._progress_callback and total:
            self._progress_callback(int(100 * done / total), f"{done}/{total}")

    def log_operation(self, operation: str) -> LogContext:
        return LogContext(self.logger, operation)

    def safe_execute(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> ServiceResult:
        """Run func inside a log context; any error becomes a failed result."""
        with self.log_operation(operation):
            try:
                return ServiceResult.ok(func(*args, **kwargs))
            except KomfortError as e:
                handle_error(e)
                return ServiceResult.from_exception(e)
            except Exception as e:
                self.logger.error(f"{operation} failed: {e}", exc_info=True)
                return ServiceResult.fail(str(e))
