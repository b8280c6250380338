# =============================================================================
# komfort_core/catalog/__init__.py
# Storefront entities and their stores
# =============================================================================
# Stores live in komfort_core.catalog.stores / contact_store / homepage_store;
# they are not re-exported here because they depend on komfort_core.offline,
# which in turn imports the mappers of this package.

from .models import (
    AboutSection,
    Category,
    ContactInfo,
    ContactSubmission,
    Coordinates,
    EntityId,
    HomepageSettings,
    Product,
    Shop,
    Slide,
    SocialLink,
)
from .slugs import clean_slug, generate_slug, is_valid_slug
from .images import DEFAULT_PRODUCT_IMAGE, normalize_image_list

__all__ = [
    "AboutSection",
    "Category",
    "ContactInfo",
    "ContactSubmission",
    "Coordinates",
    "EntityId",
    "HomepageSettings",
    "Product",
    "Shop",
    "Slide",
    "SocialLink",
    "clean_slug",
    "generate_slug",
    "is_valid_slug",
    "DEFAULT_PRODUCT_IMAGE",
    "normalize_image_list",
]
