# =============================================================================
# komfort_core/catalog/mappers.py
# Wire row <-> domain entity mapping
# =============================================================================
"""
One mapper per entity kind. Rows coming from Supabase (or from the local
mirror, which stores the same row shape) are decoded defensively: JSON
columns may arrive as text, legacy camelCase keys are honoured, and missing
values fall back to safe defaults.

Every mapper lists its COLUMNS explicitly; the unit tests check that they
cover every field of the entity dataclass.
"""

from __future__ import annotations
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from .images import (
    DEFAULT_SHOP_IMAGE,
    normalize_category_image,
    normalize_image_list,
)
from .models import (
    AboutSection,
    Category,
    ContactInfo,
    Coordinates,
    EntityId,
    HomepageSettings,
    Product,
    Shop,
    Slide,
    SocialLink,
)

E = TypeVar("E")

UNCATEGORIZED = "Без категории"


# =============================================================================
# DECODING HELPERS
# =============================================================================

def parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def decode_json(value: Any, default: Any = None) -> Any:
    """Decode JSON text; pass through already-decoded values."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return default
    return default if value is None else value


def as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_id(value: Any) -> Optional[EntityId]:
    if value is None or value == "":
        return None
    try:
        return EntityId.of(value)
    except TypeError:
        return None


def as_str_list(value: Any) -> List[str]:
    if isinstance(value, str) and value.strip().startswith("["):
        value = decode_json(value, default=[])
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def encode_value(value: Any) -> Any:
    """Make a domain value JSON/wire friendly."""
    if isinstance(value, EntityId):
        return value.to_wire()
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, list):
        return [encode_value(item) for item in value]
    return value


# =============================================================================
# MAPPER BASE
# =============================================================================

class EntityMapper(Generic[E]):
    """Explicit column list plus encode/decode for one entity kind."""

    entity_type: Type[E]
    COLUMNS: Tuple[str, ...] = ()
    # Columns the backend fills in itself
    SERVER_COLUMNS: Tuple[str, ...] = ("id", "created_at", "updated_at")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> E:
        raise NotImplementedError

    @classmethod
    def to_row(cls, entity: E, include_server_columns: bool = True) -> Dict[str, Any]:
        row = {}
        for column in cls.COLUMNS:
            if not include_server_columns and column in cls.SERVER_COLUMNS:
                continue
            row[column] = encode_value(getattr(entity, column))
        return row

    @classmethod
    def fields_to_row(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Map only the supplied fields (partial update)."""
        return {
            column: encode_value(value)
            for column, value in changes.items()
            if column in cls.COLUMNS and column != "id"
        }


# =============================================================================
# ENTITY MAPPERS
# =============================================================================

class CategoryMapper(EntityMapper[Category]):
    entity_type = Category
    COLUMNS = ("id", "title", "slug", "image", "description", "order", "is_active", "created_at")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Category:
        return Category(
            id=as_id(row.get("id")),
            title=row.get("title") or "",
            slug=row.get("slug") or "",
            image=normalize_category_image(row.get("image")),
            description=row.get("description") or "",
            order=as_int(row.get("order")),
            is_active=row.get("is_active", row.get("isActive")) is not False,
            created_at=parse_datetime(row.get("created_at") or row.get("createdAt")),
        )


class ProductMapper(EntityMapper[Product]):
    entity_type = Product
    COLUMNS = (
        "id", "name", "description", "price", "category_id", "category_name",
        "image_urls", "stock", "features", "created_at", "updated_at",
    )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Product:
        images = row.get("image_urls")
        if images is None:
            images = row.get("image_url") or row.get("imageUrls")
        return Product(
            id=as_id(row.get("id")),
            name=row.get("name") or "",
            description=row.get("description") or "",
            price=as_float(row.get("price")),
            category_id=as_id(row.get("category_id") or row.get("categoryId")),
            category_name=row.get("category_name") or row.get("categoryName") or UNCATEGORIZED,
            image_urls=normalize_image_list(images),
            stock=as_int(row.get("stock")),
            features=as_str_list(row.get("features")),
            created_at=parse_datetime(row.get("created_at") or row.get("createdAt")),
            updated_at=parse_datetime(row.get("updated_at") or row.get("updatedAt")),
        )


class ShopMapper(EntityMapper[Shop]):
    entity_type = Shop
    COLUMNS = (
        "id", "title", "address", "description", "image_url", "phone",
        "email", "working_hours", "coordinates", "created_at",
    )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Shop:
        coords = decode_json(row.get("coordinates"))
        coordinates = None
        if isinstance(coords, dict) and "lat" in coords and "lng" in coords:
            coordinates = Coordinates(lat=as_float(coords["lat"]), lng=as_float(coords["lng"]))
        return Shop(
            id=as_id(row.get("id")),
            title=row.get("title") or "",
            address=row.get("address") or "",
            description=row.get("description") or "",
            image_url=row.get("image_url") or row.get("imageUrl") or DEFAULT_SHOP_IMAGE,
            phone=row.get("phone") or "",
            email=row.get("email") or "",
            working_hours=row.get("working_hours") or row.get("workingHours") or "",
            coordinates=coordinates,
            created_at=parse_datetime(row.get("created_at")),
        )


class SlideMapper(EntityMapper[Slide]):
    entity_type = Slide
    COLUMNS = ("id", "image", "title", "description", "link", "order", "is_active", "created_at")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Slide:
        return Slide(
            id=as_id(row.get("id")),
            image=row.get("image") or "",
            title=row.get("title") or "",
            description=row.get("description") or "",
            link=row.get("link") or "",
            order=as_int(row.get("order")),
            is_active=row.get("is_active", row.get("isActive")) is not False,
            created_at=parse_datetime(row.get("created_at")),
        )


def _social_links(value: Any) -> List[SocialLink]:
    links = []
    for item in decode_json(value, default=[]) or []:
        if isinstance(item, SocialLink):
            links.append(item)
        elif isinstance(item, dict) and item.get("url") is not None:
            links.append(SocialLink(
                name=item.get("name") or "",
                url=item.get("url") or "",
                icon=item.get("icon") or "",
            ))
    return links


def _about_sections(value: Any) -> List[AboutSection]:
    sections = []
    for item in decode_json(value, default=[]) or []:
        if isinstance(item, AboutSection):
            sections.append(item)
        elif isinstance(item, dict):
            sections.append(AboutSection(title=item.get("title") or "", content=item.get("content") or ""))
    return sections


class ContactInfoMapper(EntityMapper[ContactInfo]):
    entity_type = ContactInfo
    COLUMNS = (
        "id", "phone", "email", "office", "working_hours", "map_embed",
        "social", "about_sections", "updated_at",
    )
    SERVER_COLUMNS = ("created_at", "updated_at")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> ContactInfo:
        return ContactInfo(
            id=as_id(row.get("id")) or EntityId(1),
            phone=row.get("phone") or "",
            email=row.get("email") or "",
            office=row.get("office") or "",
            working_hours=row.get("working_hours") or row.get("workingHours") or "",
            map_embed=row.get("map_embed") or row.get("mapEmbed") or "",
            social=_social_links(row.get("social")),
            about_sections=_about_sections(row.get("about_sections") or row.get("aboutSections")),
            updated_at=parse_datetime(row.get("updated_at")),
        )

    @classmethod
    def social_from_row(cls, row: Dict[str, Any]) -> List[SocialLink]:
        return _social_links(row.get("social"))

    @classmethod
    def coerce_social(cls, value: Any) -> List[SocialLink]:
        """Accept SocialLink objects or plain dicts from callers."""
        return _social_links(value)

    @classmethod
    def coerce_about_sections(cls, value: Any) -> List[AboutSection]:
        return _about_sections(value)


def _id_list(value: Any) -> List[EntityId]:
    items = decode_json(value, default=[])
    if not isinstance(items, list):
        items = [items]
    ids = []
    for item in items:
        eid = as_id(item)
        if eid is not None and eid not in ids:
            ids.append(eid)
    return ids


class HomepageSettingsMapper(EntityMapper[HomepageSettings]):
    entity_type = HomepageSettings
    COLUMNS = ("id", "title", "description", "banner_images", "featured_categories", "updated_at")
    SERVER_COLUMNS = ("created_at", "updated_at")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> HomepageSettings:
        banners = row.get("banner_images")
        featured = row.get("featured_categories")
        return HomepageSettings(
            id=as_id(row.get("id")) or EntityId(1),
            title=row.get("title") or "",
            description=row.get("description") or "",
            banner_images=as_str_list(row.get("bannerImages") if banners is None else banners),
            featured_categories=_id_list(row.get("featuredCategories") if featured is None else featured),
            updated_at=parse_datetime(row.get("updated_at")),
        )
