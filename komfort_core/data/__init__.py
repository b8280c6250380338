# =============================================================================
# komfort_core/data/__init__.py
# Remote storage access
# =============================================================================

from .supabase_client import (
    KNOWN_TABLES,
    SupabaseService,
    check_all_tables,
    get_supabase_client,
)

__all__ = [
    "KNOWN_TABLES",
    "SupabaseService",
    "check_all_tables",
    "get_supabase_client",
]
