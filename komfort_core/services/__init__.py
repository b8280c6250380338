# =============================================================================
# komfort_core/services/__init__.py
# Service layer
# =============================================================================

from .base_service import BaseService, ResultCode, ServiceResult


def get_registry():
    """Lazy accessor so importing the service base does not build stores."""
    from .registry import get_registry as _get_registry
    return _get_registry()


__all__ = ["BaseService", "ResultCode", "ServiceResult", "get_registry"]
