# =============================================================================
# komfort_core/offline/collection_store.py
# Synchronized Collection Store - remote-first collections with local mirror
# =============================================================================
"""
CollectionStore - in-memory collection kept in sync with Supabase.

Every mutation is applied optimistically to the in-memory collection,
then confirmed against the remote gateway (in remote mode) and finally
mirrored to the local SQLite store. Subscribers receive a fresh snapshot
after each step that changes the collection.

Remote failures never propagate: the store downgrades itself to local
mode for the rest of the session and keeps working from memory and the
mirror. Only validation errors reach the caller.

Usage:
------
store = CategoryStore(gateway, mirror)
sub = store.observe(lambda items: print(len(items)))
store.add({"title": "Ванная"})
store.switch_mode("local")
sub.unsubscribe()
"""

from __future__ import annotations
import copy
import dataclasses
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar, Union

import pandas as pd

from komfort_core.catalog.mappers import EntityMapper
from komfort_core.catalog.models import EntityId, field_names
from komfort_core.errors import ValidationError
from komfort_core.services.base_service import BaseService, ResultCode, ServiceResult

from .local_mirror import LocalMirror
from .snapshot_stream import SnapshotStream, Subscription

E = TypeVar("E")

IdLike = Union[EntityId, int, str]


class StorageMode(Enum):
    """Where a store reads from and writes to."""
    LOCAL = "local"      # Memory + local mirror only
    REMOTE = "remote"    # Supabase, mirrored locally

    @classmethod
    def parse(cls, value: Union[StorageMode, str]) -> StorageMode:
        if isinstance(value, StorageMode):
            return value
        normalized = str(value).strip().lower()
        # Older clients persisted "supabase"
        if normalized == "supabase":
            return cls.REMOTE
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(f"Unknown storage mode '{value}'", field="mode", value=value)


class DataSource(Enum):
    """Where the current in-memory collection came from."""
    REMOTE = "remote"
    MIRROR = "mirror"
    DEFAULTS = "defaults"


class CollectionStore(BaseService, Generic[E]):
    """
    Generic synchronized collection. Subclasses bind an entity kind by
    setting `entity_type`, `mapper` and `cache_key` and overriding the
    default_items / prepare_new / prepare_update hooks.
    """

    entity_type: Type[E]
    mapper: Type[EntityMapper]
    cache_key: str = "items"
    MODE_SETTING = "storage_mode"

    def __init__(
        self,
        gateway,
        mirror: LocalMirror,
        default_mode: Union[StorageMode, str] = StorageMode.REMOTE,
        autoload: bool = True,
    ):
        """
        Args:
            gateway: Remote gateway for this entity kind
            mirror: Shared local mirror
            default_mode: Mode used when no preference has been persisted
            autoload: Run the initial load immediately
        """
        super().__init__()
        self.gateway = gateway
        self.mirror = mirror
        self._lock = threading.RLock()
        self._items: List[E] = []
        self._stream: SnapshotStream[List[E]] = SnapshotStream([], name=self.cache_key)
        self._mode = StorageMode.parse(
            self.mirror.get_setting(self.MODE_SETTING, StorageMode.parse(default_mode).value)
        )
        self._source: Optional[DataSource] = None
        self._last_loaded: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._loaded = False

        if autoload:
            self.reload()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def mode(self) -> StorageMode:
        return self._mode

    @property
    def is_remote(self) -> bool:
        return self._mode == StorageMode.REMOTE

    @property
    def source(self) -> Optional[DataSource]:
        return self._source

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def __len__(self) -> int:
        return len(self._items)

    # =========================================================================
    # HOOKS
    # =========================================================================

    def default_items(self) -> List[E]:
        """Built-in seed collection."""
        return []

    def prepare_new(self, fields: Dict[str, Any], items: List[E]) -> E:
        """Validate and normalize a new entity. Raise ValidationError to reject."""
        return self._build(fields)

    def prepare_update(self, current: E, changes: Dict[str, Any], items: List[E]) -> E:
        """Validate and apply a partial update. Raise ValidationError to reject."""
        return dataclasses.replace(current, **changes)

    def before_delete(self, entity: E) -> None:
        """Raise ValidationError to forbid deleting entity."""

    # =========================================================================
    # READS
    # =========================================================================

    def get_all(self) -> List[E]:
        """Snapshot of the collection (a copy; mutating it has no effect)."""
        with self._lock:
            return copy.deepcopy(self._items)

    def get_by_id(self, entity_id: IdLike) -> Optional[E]:
        eid = EntityId.of(entity_id)
        with self._lock:
            for item in self._items:
                if item.id == eid:
                    return copy.deepcopy(item)
        return None

    def observe(self, callback: Callable[[List[E]], None]) -> Subscription:
        """
        Subscribe to collection snapshots.

        The callback receives the current snapshot immediately and a new
        one after every mutation or reload.
        """
        return self._stream.subscribe(callback)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, fields: Union[Dict[str, Any], E]) -> E:
        """
        Add an entity: optimistic insert, then remote create in remote mode.

        Raises:
            ValidationError: If the entity is rejected before any I/O
        """
        fields = self._coerce_fields(self._as_fields(fields))
        with self._lock:
            items = list(self._items)
            entity = self.prepare_new(fields, items)
            if entity.id is None:
                entity = dataclasses.replace(entity, id=self.next_id(items))
            elif self._index_of(entity.id) is not None:
                raise ValidationError(
                    f"{self.entity_type.__name__} {entity.id} already exists",
                    field="id",
                    value=str(entity.id),
                )
            self._items = items + [entity]
            remote = self.is_remote
        self._publish()

        if remote:
            created = self.gateway.create(entity)
            if created is not None:
                entity = self._confirm(entity.id, created)
                self.logger.info(f"{self.entity_type.__name__} {entity.id} created remotely")
            else:
                self._downgrade(f"create of {self.entity_type.__name__} failed")

        self._persist()
        return copy.deepcopy(entity)

    def update(self, entity_id: IdLike, changes: Union[Dict[str, Any], E]) -> Optional[E]:
        """
        Apply a partial update.

        Returns:
            The updated entity, or None when the id is unknown

        Raises:
            ValidationError: If the update is rejected before any I/O
        """
        eid = EntityId.of(entity_id)
        changes = self._coerce_fields(self._as_fields(changes))
        changes.pop("id", None)

        with self._lock:
            index = self._index_of(eid)
            if index is None:
                self.logger.warning(f"{self.entity_type.__name__} {eid} not found for update")
                return None
            current = self._items[index]
            updated = self.prepare_update(current, changes, list(self._items))
            items = list(self._items)
            items[index] = updated
            self._items = items
            remote = self.is_remote
        self._publish()

        if remote:
            if not self.gateway.update(eid, self._changed_fields(current, updated, changes)):
                self._downgrade(f"update of {self.entity_type.__name__} {eid} failed")

        self._persist()
        return copy.deepcopy(updated)

    def delete(self, entity_id: IdLike) -> bool:
        """
        Remove an entity immediately, then delete it remotely in remote mode.

        Returns:
            False when the id is unknown
        """
        eid = EntityId.of(entity_id)
        entity = self.get_by_id(eid)
        if entity is None:
            return False
        # Reference checks may consult other stores; run them unlocked
        self.before_delete(entity)

        with self._lock:
            index = self._index_of(eid)
            if index is None:
                return False
            items = list(self._items)
            del items[index]
            self._items = items
            remote = self.is_remote
        self._publish()

        if remote and not self.gateway.delete(eid):
            self._downgrade(f"delete of {self.entity_type.__name__} {eid} failed")

        self._persist()
        return True

    # =========================================================================
    # MODE & LOADING
    # =========================================================================

    def switch_mode(self, mode: Union[StorageMode, str]) -> None:
        """
        Select the data source and reload from it.

        Unsynchronized optimistic changes are discarded.
        """
        mode = StorageMode.parse(mode)
        if mode == self._mode:
            return
        self.logger.info(f"Switching {self.cache_key} to {mode.value} mode")
        self.mirror.set_setting(self.MODE_SETTING, mode.value)
        with self._lock:
            self._mode = mode
        self.reload()

    def reload(self) -> List[E]:
        """
        Rebuild the collection from the current mode's source.

        Remote mode falls back to the mirror (and then to the defaults)
        when the backend returns nothing.
        """
        with self.log_operation(f"Loading {self.cache_key}"):
            source = DataSource.REMOTE
            items: List[E] = []

            if self.is_remote:
                items = self._fetch_remote()
                if not items:
                    self._downgrade(f"no {self.cache_key} available remotely")

            if not items:
                source = DataSource.MIRROR
                items = self._load_mirror()

            if not items:
                source = DataSource.DEFAULTS
                items = self.default_items()

            with self._lock:
                self._items = items
                self._source = source
                self._last_loaded = datetime.now()
                self._loaded = True

        self.logger.info(f"Loaded {len(items)} {self.cache_key} from {source.value}")
        self._persist()
        self._publish()
        return self.get_all()

    def clear_cache(self) -> None:
        """Forget the mirrored snapshot (the in-memory collection is kept)."""
        self.mirror.remove(self.cache_key)
        self.logger.info(f"Mirror for {self.cache_key} cleared")

    def sync_to_remote(self) -> ServiceResult:
        """
        Push every in-memory entity to the backend as a new row.

        Meant for seeding an empty project from local data.
        """
        def push() -> Dict[str, int]:
            items = self.get_all()
            created = failed = 0
            for position, item in enumerate(items, start=1):
                if self.gateway.create(item) is not None:
                    created += 1
                else:
                    failed += 1
                self._update_progress(position, len(items))
            return {"created": created, "failed": failed}

        if not self.gateway.available:
            return ServiceResult.fail("Supabase is not configured", error_code=ResultCode.REMOTE_UNAVAILABLE)
        result = self.safe_execute(f"Syncing {self.cache_key} to Supabase", push)
        if not result.success:
            return result
        return ServiceResult.from_sync_counts(result.data, self.cache_key)

    # =========================================================================
    # REPORTING
    # =========================================================================

    def to_dataframe(self) -> pd.DataFrame:
        """Collection as a DataFrame of wire rows (for admin tables)."""
        rows = [self.mapper.to_row(item) for item in self.get_all()]
        return pd.DataFrame(rows, columns=list(self.mapper.COLUMNS))

    def get_status_display(self) -> Dict[str, Any]:
        """Get status information for UI display."""
        return {
            "collection": self.cache_key,
            "mode": self._mode.value,
            "count": len(self._items),
            "source": self._source.value if self._source else None,
            "last_loaded": self._last_loaded.isoformat() if self._last_loaded else None,
            "subscribers": self._stream.subscriber_count,
            "error": self._last_error,
        }

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def next_id(items: List[E]) -> EntityId:
        """max(numeric ids) + 1, or 1 for an empty collection."""
        numeric = [item.id.value for item in items if item.id is not None and item.id.is_local]
        return EntityId(max(numeric) + 1 if numeric else 1)

    def _as_fields(self, value: Union[Dict[str, Any], E]) -> Dict[str, Any]:
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {name: getattr(value, name) for name in field_names(self.entity_type)}
        if not isinstance(value, dict):
            raise ValidationError(f"Expected a mapping of {self.entity_type.__name__} fields")
        return dict(value)

    def _coerce_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        allowed = set(field_names(self.entity_type))
        unknown = sorted(set(fields) - allowed)
        if unknown:
            raise ValidationError(
                f"Unknown {self.entity_type.__name__} field(s): {', '.join(unknown)}",
                field=unknown[0],
            )
        if fields.get("id") is not None:
            fields["id"] = EntityId.of(fields["id"])
        return fields

    def _build(self, fields: Dict[str, Any]) -> E:
        try:
            return self.entity_type(**fields)
        except TypeError as e:
            raise ValidationError(f"Incomplete {self.entity_type.__name__}: {e}") from e

    def _index_of(self, eid: EntityId) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.id == eid:
                return index
        return None

    @staticmethod
    def _changed_fields(current: E, updated: E, requested: Dict[str, Any]) -> Dict[str, Any]:
        """Requested fields plus anything the hooks derived (e.g. slug)."""
        changed = {}
        for name in field_names(type(updated)):
            if name == "id":
                continue
            if name in requested or getattr(current, name) != getattr(updated, name):
                changed[name] = getattr(updated, name)
        return changed

    def _confirm(self, provisional_id: EntityId, stored: E) -> E:
        """Replace the optimistic entity with the server's version."""
        with self._lock:
            index = self._index_of(provisional_id)
            if index is None:
                # Deleted while the create was in flight
                return stored
            items = list(self._items)
            items[index] = stored
            self._items = items
        self._publish()
        return stored

    def _downgrade(self, reason: str) -> None:
        self._last_error = reason
        if self._mode == StorageMode.LOCAL:
            return
        with self._lock:
            self._mode = StorageMode.LOCAL
        self.logger.warning(f"Remote unavailable ({reason}); {self.cache_key} switched to local mode for this session")

    def _fetch_remote(self) -> List[E]:
        try:
            return list(self.gateway.fetch_all() or [])
        except Exception as e:
            self.logger.error(f"Remote fetch of {self.cache_key} raised: {e}")
            return []

    def _load_mirror(self) -> List[E]:
        rows = self.mirror.load(self.cache_key)
        if not isinstance(rows, list):
            return []
        items = []
        for row in rows:
            try:
                items.append(self.mapper.from_row(row))
            except (TypeError, ValueError, AttributeError) as e:
                self.logger.warning(f"Skipping corrupted mirrored {self.cache_key} row: {e}")
        return items

    def _persist(self) -> None:
        with self._lock:
            rows = [self.mapper.to_row(item) for item in self._items]
        self.mirror.save(self.cache_key, rows)

    def _publish(self) -> None:
        # The stream copies per subscriber
        with self._lock:
            snapshot = list(self._items)
        self._stream.publish(snapshot)
