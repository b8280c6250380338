# =============================================================================
# komfort_core/catalog/stores.py
# Entity bindings of the synchronized collection store
# =============================================================================

from __future__ import annotations
import dataclasses
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from komfort_core.errors import ValidationError
from komfort_core.offline.collection_store import CollectionStore, IdLike

from .defaults import default_categories, default_products, default_shops, default_slides
from .images import DEFAULT_SHOP_IMAGE, image_stats, normalize_category_image, normalize_image_list
from .mappers import (
    UNCATEGORIZED,
    CategoryMapper,
    ProductMapper,
    ShopMapper,
    SlideMapper,
    as_id,
    as_str_list,
    decode_json,
)
from .models import Category, Coordinates, EntityId, Product, Shop, Slide
from .slugs import clean_slug, ensure_slug, generate_slug


def _required_text(value: Any, field: str, label: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{label} is required", field=field)
    return text


def _as_int_field(value: Any, field: str) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be an integer", field=field, value=value) from e


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryStore(CollectionStore[Category]):
    """Categories with slug generation and uniqueness checks."""

    entity_type = Category
    mapper = CategoryMapper
    cache_key = "categories"

    def __init__(self, gateway, mirror, in_use: Optional[Callable[[EntityId], int]] = None, **kwargs):
        """
        Args:
            in_use: Returns how many products reference a category id;
                deleting a referenced category is refused when set
        """
        self._in_use = in_use
        super().__init__(gateway, mirror, **kwargs)

    def set_reference_check(self, in_use: Callable[[EntityId], int]) -> None:
        self._in_use = in_use

    def default_items(self) -> List[Category]:
        return default_categories()

    def _normalize(self, category: Category, items: List[Category]) -> Category:
        title = _required_text(category.title, "title", "Category title")
        slug = clean_slug(category.slug) if (category.slug or "").strip() else generate_slug(title)
        ensure_slug(slug, [(c.id, c.slug) for c in items], exclude_id=category.id)
        return dataclasses.replace(
            category,
            title=title,
            slug=slug,
            image=normalize_category_image(category.image),
            description=(category.description or "").strip(),
            order=_as_int_field(category.order, "order"),
            is_active=bool(category.is_active),
        )

    def prepare_new(self, fields: Dict[str, Any], items: List[Category]) -> Category:
        category = self._normalize(self._build(fields), items)
        if category.created_at is None:
            category = dataclasses.replace(category, created_at=datetime.now())
        return category

    def prepare_update(self, current: Category, changes: Dict[str, Any], items: List[Category]) -> Category:
        return self._normalize(dataclasses.replace(current, **changes), items)

    def before_delete(self, entity: Category) -> None:
        if self._in_use is None:
            return
        count = self._in_use(entity.id)
        if count:
            raise ValidationError(
                f"Category '{entity.title}' is used by {count} product(s)",
                field="id",
                value=str(entity.id),
            )

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return next((c for c in self.get_all() if c.slug == slug), None)

    def get_active(self) -> List[Category]:
        return sorted((c for c in self.get_all() if c.is_active), key=lambda c: c.order)

    def title_of(self, category_id: IdLike) -> Optional[str]:
        category = self.get_by_id(category_id)
        return category.title if category else None


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductStore(CollectionStore[Product]):
    """Products with image normalization and denormalized category names."""

    entity_type = Product
    mapper = ProductMapper
    cache_key = "products"

    def __init__(self, gateway, mirror, category_lookup: Optional[Callable[[EntityId], Optional[str]]] = None, **kwargs):
        """
        Args:
            category_lookup: Returns the category title for an id
        """
        self._category_lookup = category_lookup
        super().__init__(gateway, mirror, **kwargs)

    def set_category_lookup(self, lookup: Callable[[EntityId], Optional[str]]) -> None:
        self._category_lookup = lookup

    def default_items(self) -> List[Product]:
        return default_products()

    def _normalize(self, product: Product, derive_category: bool) -> Product:
        name = _required_text(product.name, "name", "Product name")
        try:
            price = float(product.price or 0)
        except (TypeError, ValueError) as e:
            raise ValidationError("Price must be a number", field="price", value=product.price) from e
        if not math.isfinite(price):
            raise ValidationError("Price must be a finite number", field="price", value=str(price))
        if price < 0:
            raise ValidationError("Price cannot be negative", field="price", value=price)
        stock = _as_int_field(product.stock, "stock")
        if stock < 0:
            raise ValidationError("Stock cannot be negative", field="stock", value=stock)

        category_id = as_id(product.category_id)
        category_name = product.category_name or UNCATEGORIZED
        missing_name = category_name == UNCATEGORIZED
        if category_id is not None and self._category_lookup and (derive_category or missing_name):
            category_name = self._category_lookup(category_id) or category_name

        return dataclasses.replace(
            product,
            name=name,
            price=price,
            stock=stock,
            category_id=category_id,
            category_name=category_name,
            image_urls=normalize_image_list(product.image_urls),
            features=as_str_list(product.features),
        )

    def prepare_new(self, fields: Dict[str, Any], items: List[Product]) -> Product:
        product = self._normalize(self._build(fields), derive_category="category_name" not in fields)
        now = datetime.now()
        return dataclasses.replace(
            product,
            created_at=product.created_at or now,
            updated_at=product.updated_at or now,
        )

    def prepare_update(self, current: Product, changes: Dict[str, Any], items: List[Product]) -> Product:
        category_changed = "category_id" in changes and as_id(changes["category_id"]) != current.category_id
        product = self._normalize(
            dataclasses.replace(current, **changes),
            derive_category=category_changed and "category_name" not in changes,
        )
        return dataclasses.replace(product, updated_at=datetime.now())

    def get_by_category(self, category_id: IdLike) -> List[Product]:
        cid = EntityId.of(category_id)
        return [p for p in self.get_all() if p.category_id == cid]

    def count_in_category(self, category_id: IdLike) -> int:
        return len(self.get_by_category(category_id))

    def image_stats(self) -> Dict[str, int]:
        return image_stats(p.image_urls for p in self.get_all())


# =============================================================================
# SHOPS & SLIDES
# =============================================================================

class ShopStore(CollectionStore[Shop]):
    entity_type = Shop
    mapper = ShopMapper
    cache_key = "shops"

    def default_items(self) -> List[Shop]:
        return default_shops()

    def _normalize(self, shop: Shop) -> Shop:
        coordinates = shop.coordinates
        if coordinates is not None and not isinstance(coordinates, Coordinates):
            raw = decode_json(coordinates)
            try:
                coordinates = Coordinates(lat=float(raw["lat"]), lng=float(raw["lng"]))
            except (TypeError, KeyError, ValueError) as e:
                raise ValidationError("Coordinates need numeric lat and lng", field="coordinates") from e
        return dataclasses.replace(
            shop,
            title=_required_text(shop.title, "title", "Shop title"),
            image_url=(shop.image_url or "").strip() or DEFAULT_SHOP_IMAGE,
            coordinates=coordinates,
        )

    def prepare_new(self, fields: Dict[str, Any], items: List[Shop]) -> Shop:
        return self._normalize(self._build(fields))

    def prepare_update(self, current: Shop, changes: Dict[str, Any], items: List[Shop]) -> Shop:
        return self._normalize(dataclasses.replace(current, **changes))


class SlideStore(CollectionStore[Slide]):
    entity_type = Slide
    mapper = SlideMapper
    cache_key = "slides"

    def default_items(self) -> List[Slide]:
        return default_slides()

    def prepare_new(self, fields: Dict[str, Any], items: List[Slide]) -> Slide:
        slide = self._build(fields)
        _required_text(slide.image, "image", "Slide image")
        if "order" not in fields:
            slide = dataclasses.replace(slide, order=max((s.order for s in items), default=0) + 1)
        return slide

    def prepare_update(self, current: Slide, changes: Dict[str, Any], items: List[Slide]) -> Slide:
        slide = dataclasses.replace(current, **changes)
        _required_text(slide.image, "image", "Slide image")
        return dataclasses.replace(slide, order=_as_int_field(slide.order, "order"))

    def get_active(self) -> List[Slide]:
        return sorted((s for s in self.get_all() if s.is_active), key=lambda s: s.order)
