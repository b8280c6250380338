# =============================================================================
# komfort_core/services/registry.py
# Store Registry - builds and wires every store of the storefront
# =============================================================================
"""
StoreRegistry is the single place where stores are created. Admin pages
and debugging tools receive the registry instead of reaching for globals.

Usage:
------
from komfort_core.services import get_registry

registry = get_registry()
categories = registry.categories.get_active()
registry.switch_mode("local")
print(registry.get_status_display())
"""

from __future__ import annotations
import threading
from typing import Any, Dict, List, Optional, Union

from komfort_core.catalog.contact_store import ContactInfoStore
from komfort_core.catalog.homepage_store import HomepageSettingsStore
from komfort_core.catalog.gateways import (
    CategoryGateway,
    ContactInfoGateway,
    HomepageSettingsGateway,
    ProductGateway,
    ShopGateway,
    SlideGateway,
)
from komfort_core.catalog.models import Category
from komfort_core.catalog.stores import CategoryStore, ProductStore, ShopStore, SlideStore
from komfort_core.catalog.submissions import ContactFormService
from komfort_core.config import Settings, load_settings
from komfort_core.data.supabase_client import check_all_tables, get_supabase_client
from komfort_core.errors import ErrorContext
from komfort_core.logging import get_logger, setup_logging
from komfort_core.offline.collection_store import CollectionStore, StorageMode
from komfort_core.offline.local_mirror import LocalMirror

logger = get_logger(__name__)


class StoreRegistry:
    """
    Dependency-injection root for the catalog data layer.

    Stores are built lazily on first access and share one mirror and one
    Supabase client.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client=None,
        mirror: Optional[LocalMirror] = None,
        gateways: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            settings: Resolved settings (loaded from env/secrets when omitted)
            client: Supabase client (created from settings when omitted)
            mirror: Local mirror (created from settings when omitted)
            gateways: Per-store gateway overrides keyed by store name
        """
        self.settings = settings or load_settings()
        self.client = client if client is not None else get_supabase_client(self.settings)
        self.mirror = mirror or LocalMirror(
            self.settings.mirror_path,
            namespace=self.settings.namespace,
            capacity=self.settings.mirror_capacity,
        ).initialize()
        self._gateways = dict(gateways or {})
        self._stores: Dict[str, CollectionStore] = {}
        self._contact_form: Optional[ContactFormService] = None
        self._lock = threading.RLock()

    # =========================================================================
    # LAZY CONSTRUCTION
    # =========================================================================

    def _gateway(self, name: str, factory):
        if name not in self._gateways:
            self._gateways[name] = factory(client=self.client)
        return self._gateways[name]

    def _store(self, name: str, build) -> CollectionStore:
        with self._lock:
            if name not in self._stores:
                self._stores[name] = build()
            return self._stores[name]

    @property
    def categories(self) -> CategoryStore:
        def build() -> CategoryStore:
            store = CategoryStore(
                self._gateway("categories", CategoryGateway),
                self.mirror,
                default_mode=self.settings.storage_mode,
            )
            # Deleting a category that products still reference is refused
            store.set_reference_check(lambda category_id: self.products.count_in_category(category_id))
            return store
        return self._store("categories", build)

    @property
    def products(self) -> ProductStore:
        return self._store("products", lambda: ProductStore(
            self._gateway("products", ProductGateway),
            self.mirror,
            category_lookup=lambda category_id: self.categories.title_of(category_id),
            default_mode=self.settings.storage_mode,
        ))

    @property
    def shops(self) -> ShopStore:
        return self._store("shops", lambda: ShopStore(
            self._gateway("shops", ShopGateway),
            self.mirror,
            default_mode=self.settings.storage_mode,
        ))

    @property
    def slides(self) -> SlideStore:
        return self._store("slides", lambda: SlideStore(
            self._gateway("slides", SlideGateway),
            self.mirror,
            default_mode=self.settings.storage_mode,
        ))

    @property
    def contact_info(self) -> ContactInfoStore:
        return self._store("contact_info", lambda: ContactInfoStore(
            self._gateway("contact_info", ContactInfoGateway),
            self.mirror,
            default_mode=self.settings.storage_mode,
        ))

    @property
    def homepage_settings(self) -> HomepageSettingsStore:
        return self._store("homepage_settings", lambda: HomepageSettingsStore(
            self._gateway("homepage_settings", HomepageSettingsGateway),
            self.mirror,
            default_mode=self.settings.storage_mode,
        ))

    @property
    def contact_form(self) -> ContactFormService:
        with self._lock:
            if self._contact_form is None:
                self._contact_form = ContactFormService(
                    self.mirror,
                    service=self._gateways.get("contact_submissions"),
                    client=self.client,
                    cooldown_seconds=self.settings.contact_cooldown_seconds,
                )
            return self._contact_form

    def all_stores(self) -> Dict[str, CollectionStore]:
        return {
            "categories": self.categories,
            "products": self.products,
            "shops": self.shops,
            "slides": self.slides,
            "contact_info": self.contact_info,
            "homepage_settings": self.homepage_settings,
        }

    def featured_categories(self) -> List[Category]:
        """Active categories featured on the home page, in the configured order."""
        featured = []
        for category_id in self.homepage_settings.get().featured_categories:
            category = self.categories.get_by_id(category_id)
            if category is not None and category.is_active:
                featured.append(category)
        return featured

    # =========================================================================
    # BULK OPERATIONS
    # =========================================================================

    def switch_mode(self, mode: Union[StorageMode, str]) -> None:
        """Switch every store to the same data source."""
        for store in self.all_stores().values():
            store.switch_mode(mode)

    def reload_all(self) -> Dict[str, bool]:
        """Reload every store; one failing store does not stop the others."""
        results = {}
        for name, store in self.all_stores().items():
            with ErrorContext(f"Reloading {name}") as ctx:
                store.reload()
            results[name] = ctx.error is None
        return results

    def clear_cache(self) -> None:
        """Drop every mirrored snapshot (settings and in-memory data are kept)."""
        for store in self.all_stores().values():
            store.clear_cache()

    def check_tables(self) -> Dict[str, bool]:
        if self.client is None:
            return {}
        return check_all_tables(self.client)

    def get_status_display(self) -> Dict[str, Any]:
        """Get status information for UI display."""
        # Build the stores first so the mirror usage includes their snapshots
        stores = {name: store.get_status_display() for name, store in self.all_stores().items()}
        return {
            "supabase_configured": self.client is not None,
            "mirror": self.mirror.usage(),
            "stores": stores,
        }


# Singleton accessor
_registry: Optional[StoreRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> StoreRegistry:
    """Get the process-wide StoreRegistry configured from settings."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                settings = load_settings()
                setup_logging(settings.log_level, log_to_file=False)
                _registry = StoreRegistry(settings)
                logger.info("StoreRegistry initialized")
    return _registry


def reset_registry() -> None:
    """Forget the process-wide registry (tests, settings changes)."""
    global _registry
    with _registry_lock:
        _registry = None
