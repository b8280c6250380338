# =============================================================================
# komfort_core/catalog/gateways.py
# Remote data gateways (one per entity kind)
# =============================================================================
"""
Gateways translate between domain entities and Supabase rows.

They never raise for backend problems: failures are logged and reported as
sentinel values (empty list, None or False) so the stores can fall back to
the local mirror.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from komfort_core.data.supabase_client import SupabaseService
from komfort_core.errors import error_boundary
from komfort_core.logging import get_logger

from .mappers import (
    UNCATEGORIZED,
    CategoryMapper,
    ContactInfoMapper,
    EntityMapper,
    HomepageSettingsMapper,
    ProductMapper,
    ShopMapper,
    SlideMapper,
)
from .models import EntityId, SocialLink

logger = get_logger(__name__)

E = TypeVar("E")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RemoteGateway(Generic[E]):
    """CRUD for one Supabase table, expressed in domain entities."""

    table_name: str = ""
    mapper: Type[EntityMapper] = EntityMapper
    order_by: Optional[str] = None
    ascending: bool = True
    stamps_updated_at: bool = False

    def __init__(self, client=None, service: Optional[SupabaseService] = None):
        self.service = service or SupabaseService(self.table_name, client=client)

    @property
    def available(self) -> bool:
        return self.service.is_connected()

    def _map_rows(self, rows: List[Dict[str, Any]]) -> List[E]:
        entities = []
        for row in rows:
            try:
                entities.append(self.mapper.from_row(row))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed {self.table_name} row {row.get('id')}: {e}")
        return entities

    @error_boundary(default_return=[], error_message="Remote fetch failed")
    def fetch_all(self) -> List[E]:
        """All rows in natural order; [] when the backend is unavailable."""
        rows = self.service.fetch_all(order_by=self.order_by, ascending=self.ascending)
        return self._map_rows(rows)

    def prepare_insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return row

    @error_boundary(default_return=None, error_message="Remote create failed")
    def create(self, entity: E) -> Optional[E]:
        """
        Insert one entity; the backend assigns id and timestamps.

        Returns:
            The stored entity, or None on failure
        """
        row = self.prepare_insert(self.mapper.to_row(entity, include_server_columns=False))
        stored = self.service.insert(row)
        if stored is None:
            return None
        return self.mapper.from_row(stored)

    @error_boundary(default_return=False, error_message="Remote update failed")
    def update(self, entity_id: EntityId, changes: Dict[str, Any]) -> bool:
        row = self.mapper.fields_to_row(changes)
        if self.stamps_updated_at:
            row["updated_at"] = utc_now_iso()
        if not row:
            return True
        return self.service.update({"id": EntityId.of(entity_id).to_wire()}, row)

    @error_boundary(default_return=False, error_message="Remote delete failed")
    def delete(self, entity_id: EntityId) -> bool:
        return self.service.delete({"id": EntityId.of(entity_id).to_wire()})

    def ping(self) -> bool:
        return self.service.ping()


class CategoryGateway(RemoteGateway):
    table_name = "categories"
    mapper = CategoryMapper
    order_by = "order"


class ProductGateway(RemoteGateway):
    table_name = "products"
    mapper = ProductMapper
    order_by = "created_at"
    ascending = False
    stamps_updated_at = True

    def __init__(self, client=None, service: Optional[SupabaseService] = None,
                 categories_service: Optional[SupabaseService] = None):
        super().__init__(client=client, service=service)
        self.categories_service = categories_service or SupabaseService("categories", client=self.service.client)

    def prepare_insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        # Denormalized category name is looked up when the caller left it out
        if row.get("category_name") in (None, "", UNCATEGORIZED) and row.get("category_id") is not None:
            category = self.categories_service.fetch_one({"id": row["category_id"]}, columns="title")
            if category:
                row = dict(row, category_name=category.get("title") or "")
        return row


class ShopGateway(RemoteGateway):
    table_name = "shops"
    mapper = ShopMapper
    order_by = "created_at"
    ascending = False


class SlideGateway(RemoteGateway):
    table_name = "slides"
    mapper = SlideMapper
    order_by = "order"
    stamps_updated_at = True


class SingleRecordGateway(RemoteGateway):
    """Table holding a single row (id 1) that is written with upsert."""

    stamps_updated_at = True
    RECORD_ID = 1

    @error_boundary(default_return=[], error_message="Remote fetch failed")
    def fetch_all(self) -> List[E]:
        row = self.service.fetch_one({"id": self.RECORD_ID})
        if row is None:
            # Older databases were seeded without a fixed id
            rows = self.service.fetch_all()
            row = rows[0] if rows else None
        return self._map_rows([row]) if row else []

    @error_boundary(default_return=None, error_message="Remote upsert failed")
    def upsert(self, entity: E) -> Optional[E]:
        row = self.mapper.to_row(entity, include_server_columns=False)
        row["id"] = self.RECORD_ID
        row["updated_at"] = utc_now_iso()
        stored = self.service.upsert(row)
        return self.mapper.from_row(stored) if stored else None

    def create(self, entity: E) -> Optional[E]:
        return self.upsert(entity)


class ContactInfoGateway(SingleRecordGateway):
    table_name = "contact_info"
    mapper = ContactInfoMapper

    @error_boundary(default_return=None, error_message="Remote social fetch failed")
    def fetch_social(self) -> Optional[List[SocialLink]]:
        """Current social list of the stored record; None when unavailable."""
        row = self.service.fetch_one({"id": self.RECORD_ID}, columns="social")
        if row is None:
            return None
        return ContactInfoMapper.social_from_row(row)


class HomepageSettingsGateway(SingleRecordGateway):
    table_name = "homepage_settings"
    mapper = HomepageSettingsMapper
