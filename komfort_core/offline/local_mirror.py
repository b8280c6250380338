# =============================================================================
# komfort_core/offline/local_mirror.py
# Local SQLite Key-Value Mirror for Offline Operations
# =============================================================================
"""
LocalMirror - durable, best-effort cache of the last known-good snapshots.

Features:
- Namespaced keys (one slot per key, last write wins)
- JSON values with data-URI image payloads stripped before writing
- Byte capacity with a quota-exceeded fallback (evict the two largest keys)
- Shared app settings (e.g. the persisted storage mode)
- Thread-safe operations
"""

from __future__ import annotations
import json
import re
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from komfort_core.errors import CacheWriteError, QuotaExceededError

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,", re.IGNORECASE)


def strip_data_uris(value: Any) -> Any:
    """
    Return a copy of value with every data-URI string replaced by "".

    Inline base64 images can be megabytes each; they never belong in the mirror.
    """
    if isinstance(value, str):
        return "" if DATA_URI_PATTERN.match(value) else value
    if isinstance(value, dict):
        return {k: strip_data_uris(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [strip_data_uris(v) for v in value]
    return value


class LocalMirror:
    """
    Local SQLite key-value store shared by every collection store.

    Keys are stored with the namespace prefix, so several applications may
    share one database file.
    """

    DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "local_data" / "komfort_mirror.db"
    DEFAULT_CAPACITY = 5 * 1024 * 1024
    EVICT_ON_QUOTA = 2

    SCHEMA = {
        "mirror": """
            CREATE TABLE IF NOT EXISTS mirror (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                size INTEGER NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """,
        "app_settings": """
            CREATE TABLE IF NOT EXISTS app_settings (
                key TEXT PRIMARY KEY,
                value TEXT,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """,
    }

    def __init__(
        self,
        db_path: Optional[Union[Path, str]] = None,
        namespace: str = "komfort_",
        capacity: int = DEFAULT_CAPACITY,
    ):
        """
        Initialize local mirror.

        Args:
            db_path: Path to SQLite database file (":memory:" for a throwaway mirror)
            namespace: Prefix applied to every key
            capacity: Maximum total bytes of stored values
        """
        self.db_path = db_path or self.DEFAULT_DB_PATH
        self.namespace = namespace
        self.capacity = capacity
        self._connection: Optional[sqlite3.Connection] = None
        self._db_lock = threading.RLock()
        self._initialized = False
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Ensure database directory exists."""
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get the shared database connection (guarded by _db_lock)."""
        if self._connection is None:
            self._connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
        return self._connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        with self._db_lock:
            conn = self._get_connection()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def initialize(self) -> LocalMirror:
        """Initialize database schema."""
        if self._initialized:
            return self

        with self.transaction() as conn:
            for table_name, schema in self.SCHEMA.items():
                conn.execute(schema)
                logger.debug(f"Created/verified table: {table_name}")

        self._initialized = True
        logger.info(f"Local mirror initialized at: {self.db_path}")
        return self

    def _full_key(self, key: str) -> str:
        return key if key.startswith(self.namespace) else f"{self.namespace}{key}"

    def _prefix_args(self) -> List[Any]:
        return [len(self.namespace), self.namespace]

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    def save(self, key: str, value: Any) -> bool:
        """
        Serialize and store value under the namespaced key.

        Data-URI payloads are stripped first. On quota exhaustion the two
        largest stored keys are evicted and the write is dropped.

        Returns:
            True if the value was stored
        """
        self.initialize()
        full_key = self._full_key(key)

        try:
            payload = json.dumps(strip_data_uris(value), ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize {full_key}: {e}")
            return False

        size = len(payload.encode("utf-8"))

        try:
            with self.transaction() as conn:
                row = conn.execute(
                    "SELECT COALESCE(SUM(size), 0) AS used FROM mirror WHERE key != ?",
                    [full_key],
                ).fetchone()
                if row["used"] + size > self.capacity:
                    raise QuotaExceededError(
                        "Local mirror capacity exceeded",
                        key=full_key,
                        size=size,
                        capacity=self.capacity,
                    )
                conn.execute(
                    """
                    INSERT OR REPLACE INTO mirror (key, value, size, updated_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    [full_key, payload, size, datetime.now().isoformat()],
                )
        except QuotaExceededError as e:
            logger.warning(f"{e}; evicting the {self.EVICT_ON_QUOTA} largest keys")
            self._evict_largest(self.EVICT_ON_QUOTA)
            return False
        except sqlite3.Error as e:
            logger.error(str(CacheWriteError(f"Mirror write failed: {e}", key=full_key)))
            return False

        logger.debug(f"Mirrored {full_key} ({size} bytes)")
        return True

    def load(self, key: str) -> Optional[Any]:
        """
        Load and deserialize the value stored under key.

        Returns:
            The value, or None when absent or corrupted
        """
        self.initialize()
        full_key = self._full_key(key)

        with self._db_lock:
            row = self._get_connection().execute(
                "SELECT value FROM mirror WHERE key = ?", [full_key]
            ).fetchone()

        if row is None:
            return None

        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupted mirror entry {full_key} ignored: {e}")
            return None

    def remove(self, key: str) -> None:
        """Remove a single key."""
        self.initialize()
        with self.transaction() as conn:
            conn.execute("DELETE FROM mirror WHERE key = ?", [self._full_key(key)])

    def keys(self) -> List[str]:
        """List stored keys (without the namespace prefix)."""
        self.initialize()
        with self._db_lock:
            rows = self._get_connection().execute(
                "SELECT key FROM mirror WHERE substr(key, 1, ?) = ? ORDER BY key",
                self._prefix_args(),
            ).fetchall()
        return [r["key"][len(self.namespace):] for r in rows]

    def clear(self) -> None:
        """Remove every namespaced key."""
        self.initialize()
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM mirror WHERE substr(key, 1, ?) = ?", self._prefix_args())
        logger.info(f"Local mirror cleared ({cursor.rowcount} keys)")

    def _evict_largest(self, count: int) -> List[str]:
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT key FROM mirror WHERE substr(key, 1, ?) = ? ORDER BY size DESC LIMIT ?",
                [*self._prefix_args(), count],
            ).fetchall()
            evicted = [r["key"] for r in rows]
            conn.executemany("DELETE FROM mirror WHERE key = ?", [[k] for k in evicted])
        if evicted:
            logger.info(f"Evicted mirror keys: {', '.join(evicted)}")
        return evicted

    def usage(self) -> Dict[str, Any]:
        """Byte usage per key, for status displays."""
        self.initialize()
        with self._db_lock:
            rows = self._get_connection().execute(
                "SELECT key, size FROM mirror WHERE substr(key, 1, ?) = ? ORDER BY size DESC",
                self._prefix_args(),
            ).fetchall()
        sizes = {r["key"][len(self.namespace):]: r["size"] for r in rows}
        total = sum(sizes.values())
        return {
            "keys": sizes,
            "total_bytes": total,
            "capacity_bytes": self.capacity,
            "usage_percent": round(100 * total / self.capacity, 1) if self.capacity else 0.0,
        }

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a shared setting."""
        self.initialize()
        with self._db_lock:
            row = self._get_connection().execute(
                "SELECT value FROM app_settings WHERE key = ?",
                [self._full_key(key)],
            ).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            return row["value"]

    def set_setting(self, key: str, value: Any) -> None:
        """Set a shared setting."""
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO app_settings (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                [self._full_key(key), json.dumps(value), datetime.now().isoformat()],
            )

    def close(self) -> None:
        """Close database connection."""
        with self._db_lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                self._initialized = False

