# =============================================================================
# komfort_core/offline/single_record_store.py
# Single Record Store - a synchronized collection of exactly one row
# =============================================================================
"""
Site-wide records (contact details, home page settings) live in tables
with a single row, id 1. `add` becomes an upsert, `update` creates the
record when the collection is empty and `delete` is refused.
"""

from __future__ import annotations
import copy
import dataclasses
from typing import Any, Dict, List, Optional, Union

from komfort_core.catalog.models import EntityId, field_names

from .collection_store import CollectionStore, E, IdLike

RECORD_ID = EntityId(1)


class SingleRecordStore(CollectionStore[E]):
    """
    Subclasses provide default_record() and may override coerce()
    (normalize changed fields) and carry_over() (fill in fields that must
    not be wiped when the caller omits them).
    """

    def default_record(self) -> E:
        raise NotImplementedError

    def coerce(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return changes

    def carry_over(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return changes

    def default_items(self) -> List[E]:
        return [self.default_record()]

    def prepare_new(self, fields: Dict[str, Any], items: List[E]) -> E:
        return self._build(self.coerce(fields))

    def prepare_update(self, current: E, changes: Dict[str, Any], items: List[E]) -> E:
        return dataclasses.replace(current, **self.coerce(changes))

    # =========================================================================
    # READS
    # =========================================================================

    def get(self) -> E:
        items = self.get_all()
        return items[0] if items else self.default_record()

    # =========================================================================
    # WRITES
    # =========================================================================

    def _changes(self, value: Union[Dict[str, Any], E]) -> Dict[str, Any]:
        changes = self._coerce_fields(self._as_fields(value))
        changes.pop("id", None)
        return self.carry_over(changes)

    def update(self, changes: Union[Dict[str, Any], E], entity_id: IdLike = RECORD_ID) -> Optional[E]:
        changes = self._changes(changes)
        if not self.get_all():
            return self.upsert(changes)
        return super().update(RECORD_ID, changes)

    def upsert(self, fields: Union[Dict[str, Any], E]) -> E:
        """Replace the record; fields not supplied are taken from the current one."""
        changes = self.coerce(self._changes(fields))
        with self._lock:
            base = self._items[0] if self._items else self.default_record()
            record = dataclasses.replace(base, id=RECORD_ID, **changes)
            self._items = [record]
            remote = self.is_remote
        self._publish()

        if remote:
            stored = self.gateway.upsert(record)
            if stored is not None:
                record = self._confirm(RECORD_ID, stored)
            else:
                self._downgrade(f"{self.cache_key} upsert failed")

        self._persist()
        return copy.deepcopy(record)

    def add(self, fields: Union[Dict[str, Any], E]) -> E:
        return self.upsert(fields)

    def delete(self, entity_id: IdLike = RECORD_ID) -> bool:
        self.logger.warning(f"The {self.cache_key} record cannot be deleted; use restore_defaults()")
        return False

    def restore_defaults(self) -> E:
        defaults = self.default_record()
        return self.upsert({
            name: getattr(defaults, name)
            for name in field_names(self.entity_type)
            if name not in ("id", "updated_at")
        })
