# =============================================================================
# komfort_core/data/supabase_client.py
# Supabase Client Configuration for the Komfort catalog
# Handles database connections and table-level CRUD operations
# =============================================================================

from __future__ import annotations
from typing import Optional, Dict, Any, List, Iterable

import streamlit as st

from komfort_core.config import Settings, load_settings
from komfort_core.logging import get_logger

logger = get_logger(__name__)

# Tables the storefront reads or writes
KNOWN_TABLES = (
    "categories",
    "products",
    "shops",
    "slides",
    "contact_info",
    "contact_submissions",
    "homepage_settings",
)


def get_supabase_client(settings: Optional[Settings] = None):
    """
    Initialize and return a Supabase client from resolved settings.

    Returns:
        Supabase client instance or None if not configured
    """
    settings = settings or load_settings()
    if not settings.has_supabase:
        logger.warning(
            "Supabase credentials not found. Set SUPABASE_URL/SUPABASE_KEY "
            "or the [supabase] table of .streamlit/secrets.toml"
        )
        return None
    return get_cached_supabase_client(settings.supabase_url, settings.supabase_key)


@st.cache_resource(ttl=3600)  # Cache for 1 hour, then refresh
def get_cached_supabase_client(url: str, key: str):
    """
    Get cached Supabase client (reused across sessions and reruns).

    Returns:
        Supabase client instance or None if creation failed
    """
    from supabase import create_client, Client

    try:
        client: Client = create_client(url, key)
        logger.info("Supabase client created")
        return client
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return None


class SupabaseService:
    """
    Generic Supabase service for CRUD operations on one table.

    Every method logs and swallows backend errors, returning an empty
    value (None, False or []) so callers can treat the backend as
    unavailable.
    """

    BATCH_SIZE = 1000

    def __init__(self, table_name: str, client=None):
        """
        Initialize service for a specific table.

        Args:
            table_name: Name of the Supabase table
            client: Supabase client (defaults to the cached client)
        """
        self.table_name = table_name
        self.client = client if client is not None else get_supabase_client()

    def is_connected(self) -> bool:
        """Check if Supabase client is available."""
        return self.client is not None

    def fetch_all(self, order_by: Optional[str] = None, ascending: bool = True) -> List[Dict[str, Any]]:
        """
        Fetch ALL rows from the table (handles the 1000 row page limit).

        Returns:
            List of row dictionaries, empty on error
        """
        if not self.is_connected():
            return []

        try:
            all_rows: List[Dict[str, Any]] = []
            offset = 0

            while True:
                query = self.client.table(self.table_name).select("*")

                if order_by:
                    query = query.order(order_by, desc=not ascending)

                response = query.range(offset, offset + self.BATCH_SIZE - 1).execute()

                if response.data:
                    all_rows.extend(response.data)
                    # Fewer than a full page means we've reached the end
                    if len(response.data) < self.BATCH_SIZE:
                        break
                    offset += self.BATCH_SIZE
                else:
                    break

            return all_rows

        except Exception as e:
            logger.error(f"Error fetching data from {self.table_name}: {e}")
            return []

    def fetch_one(self, filters: Dict[str, Any], columns: str = "*") -> Optional[Dict[str, Any]]:
        """
        Fetch the first row matching filters.

        Returns:
            Row dictionary, or None when absent or on error
        """
        if not self.is_connected():
            return None

        try:
            query = self.client.table(self.table_name).select(columns)
            for col, val in filters.items():
                query = query.eq(col, val)
            response = query.limit(1).execute()
            return response.data[0] if response.data else None
        except Exception as e:
            logger.error(f"Error fetching row from {self.table_name}: {e}")
            return None

    def insert(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert a single row.

        Returns:
            The stored row as echoed by the backend, None on error
        """
        if not self.is_connected():
            return None

        try:
            response = self.client.table(self.table_name).insert(data).execute()
            if response.data:
                return response.data[0]
            logger.warning(f"Insert into {self.table_name} returned no row")
            return None
        except Exception as e:
            logger.error(f"Error inserting into {self.table_name}: {e}")
            return None

        try:
            self.client.table(self.table_name).insert(records).execute()
            return True
        except Exception as e:
            logger.error(f"Error inserting records into {self.table_name}: {e}")
            return False

    def update(self, filters: Dict[str, Any], data: Dict[str, Any]) -> bool:
        """
        Update rows matching filters.

        Returns:
            True if successful, False otherwise
        """
        if not self.is_connected():
            return False

        try:
            query = self.client.table(self.table_name).update(data)

            for col, val in filters.items():
                query = query.eq(col, val)

            query.execute()
            return True
        except Exception as e:
            logger.error(f"Error updating {self.table_name}: {e}")
            return False

    def delete(self, filters: Dict[str, Any]) -> bool:
        """
        Delete rows matching filters.

        Returns:
            True if successful, False otherwise
        """
        if not self.is_connected():
            return False

        try:
            query = self.client.table(self.table_name).delete()

            for col, val in filters.items():
                query = query.eq(col, val)

            query.execute()
            return True
        except Exception as e:
            logger.error(f"Error deleting from {self.table_name}: {e}")
            return False

    def upsert(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert or update a row (must include the primary key).

        Returns:
            The stored row, or None on error
        """
        if not self.is_connected():
            return None

        try:
            response = self.client.table(self.table_name).upsert(data).execute()
            return response.data[0] if response.data else dict(data)
        except Exception as e:
            logger.error(f"Error upserting into {self.table_name}: {e}")
            return None

    def ping(self) -> bool:
        """Check the table with a one-row read."""
        if not self.is_connected():
            return False

        try:
            self.client.table(self.table_name).select("*").limit(1).execute()
            return True
        except Exception as e:
            logger.warning(f"Table {self.table_name} is not reachable: {e}")
            return False


def check_all_tables(client, tables: Iterable[str] = KNOWN_TABLES) -> Dict[str, bool]:
    """
    Check that every storefront table answers.

    Returns:
        Mapping of table name to availability
    """
    results = {table: SupabaseService(table, client=client).ping() for table in tables}
    missing = [name for name, ok in results.items() if not ok]
    if missing:
        logger.warning(f"Unavailable tables: {', '.join(missing)}")
    else:
        logger.info("All storefront tables are reachable")
    return results
