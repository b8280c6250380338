# =============================================================================
# tests/integration/test_registry.py
# Integration Tests for the store registry (stores + mirror + gateways)
# =============================================================================

import pytest
from unittest.mock import MagicMock


class TestStoreRegistryIntegration:
    """
    Integration tests for the wired-up data layer.

    Tests the flow:
    1. Stores load from their gateways and fall back independently
    2. Products denormalize category names from the category store
    3. Referenced categories cannot be deleted
    4. Mode switches and reloads apply to every store
    """

    @pytest.fixture
    def remote_products(self):
        from komfort_core.catalog.models import EntityId, Product

        return [
            Product(
                id=EntityId(21),
                name="Вешалка",
                price=2500,
                category_id=EntityId(11),
                category_name="Прихожая",
                image_urls=["assets/products/hanger.jpg"],
            ),
        ]

    @pytest.fixture
    def submissions_service(self):
        service = MagicMock()
        service.insert.return_value = {"id": 1}
        return service

    @pytest.fixture
    def registry(self, tmp_path, mirror, make_gateway, remote_categories, remote_products,
                 contact_gateway, homepage_gateway, submissions_service):
        from komfort_core.config import Settings
        from komfort_core.services.registry import StoreRegistry

        return StoreRegistry(
            settings=Settings(mirror_path=tmp_path / "mirror.db"),
            client=MagicMock(),
            mirror=mirror,
            gateways={
                "categories": make_gateway(remote_categories),
                "products": make_gateway(remote_products, first_id=200),
                "shops": make_gateway(),
                "slides": make_gateway(),
                "contact_info": contact_gateway,
                "homepage_settings": homepage_gateway,
                "contact_submissions": submissions_service,
            },
        )

    def test_stores_load_independently(self, registry):
        from komfort_core.offline.collection_store import DataSource, StorageMode

        assert [c.slug for c in registry.categories.get_active()] == ["prikhozhaya", "detskaya"]
        assert registry.categories.mode == StorageMode.REMOTE
        assert registry.shops.source == DataSource.DEFAULTS
        assert registry.shops.mode == StorageMode.LOCAL
        assert len(registry.slides.get_active()) == 4
        assert registry.contact_info.get().phone == "+7 (938) 505-00-07"

    def test_product_category_name_from_category_store(self, registry):
        product = registry.products.add({"name": "Кроватка", "price": 12000, "category_id": 12})

        assert product.category_name == "Детская"
        assert product.id == 201
        assert registry.products.count_in_category(12) == 1

    def test_referenced_category_cannot_be_deleted(self, registry):
        from komfort_core.errors import ValidationError

        with pytest.raises(ValidationError):
            registry.categories.delete(11)

        assert registry.categories.get_by_slug("prikhozhaya") is not None
        assert registry.categories.delete(12) is True

    def test_category_deletable_after_products_move(self, registry):
        registry.products.update(21, {"category_id": 12})

        assert registry.products.get_by_id(21).category_name == "Детская"
        assert registry.categories.delete(11) is True

    def test_switch_mode_applies_to_every_store(self, registry, mirror):
        from komfort_core.offline.collection_store import StorageMode

        registry.switch_mode("local")

        assert all(store.mode == StorageMode.LOCAL for store in registry.all_stores().values())
        assert mirror.get_setting("storage_mode") == "local"

    def test_reload_all(self, registry):
        results = registry.reload_all()

        assert results == {
            "categories": True,
            "products": True,
            "shops": True,
            "slides": True,
            "contact_info": True,
            "homepage_settings": True,
        }

    def test_status_display(self, registry):
        status = registry.get_status_display()

        assert status["supabase_configured"] is True
        assert set(status["stores"]) == {
            "categories", "products", "shops", "slides", "contact_info", "homepage_settings",
        }
        assert status["stores"]["categories"]["count"] == 2
        assert "categories" in status["mirror"]["keys"]
        assert "homepage_settings" in status["mirror"]["keys"]

    def test_status_display_on_fresh_registry_lists_mirrored_collections(self, registry):
        # No store has been touched before the status call
        assert registry._stores == {}

        keys = registry.get_status_display()["mirror"]["keys"]

        assert set(keys) >= {"categories", "products", "shops", "slides", "contact_info"}

    def test_featured_categories_resolved_in_order(self, registry):
        assert [c.title for c in registry.featured_categories()] == ["Детская"]

        registry.homepage_settings.update({"featured_categories": [11, 12, 99]})

        assert [c.title for c in registry.featured_categories()] == ["Прихожая", "Детская"]

    def test_hidden_category_not_featured(self, registry):
        registry.categories.update(12, {"is_active": False})

        assert registry.featured_categories() == []

    def test_check_tables(self, registry):
        results = registry.check_tables()

        assert results["categories"] is True
        assert "contact_submissions" in results

    def test_contact_form_uses_submissions_table(self, registry, submissions_service):
        result = registry.contact_form.submit({"name": "Иван", "phone": "89385050007", "agree": True})

        assert result.metadata == {"sent": True}
        submissions_service.insert.assert_called_once()

    def test_mirror_survives_outage(self, registry, tmp_path, mirror, make_gateway):
        from komfort_core.config import Settings
        from komfort_core.offline.collection_store import DataSource
        from komfort_core.services.registry import StoreRegistry

        registry.categories.add({"title": "Ванная"})

        offline = StoreRegistry(
            settings=Settings(mirror_path=tmp_path / "mirror.db"),
            client=MagicMock(),
            mirror=mirror,
            gateways={"categories": make_gateway(fail=True)},
        )

        assert [c.slug for c in offline.categories.get_all()] == ["prikhozhaya", "detskaya", "vannaya"]
        assert offline.categories.source == DataSource.MIRROR

    def test_clear_cache(self, registry, mirror):
        registry.all_stores()
        registry.clear_cache()

        assert mirror.keys() == []
        assert len(registry.categories) == 2


class TestRegistryAccessor:
    """Test the process-wide registry accessor"""

    def test_get_and_reset(self, monkeypatch):
        from komfort_core.config import Settings
        from komfort_core.services import registry as registry_module

        created = []
        levels = []
        monkeypatch.setattr(registry_module, "load_settings", lambda: Settings(log_level="WARNING"))
        monkeypatch.setattr(registry_module, "setup_logging", lambda level, log_to_file: levels.append(level))
        monkeypatch.setattr(registry_module, "StoreRegistry", lambda settings: created.append(settings) or object())
        registry_module.reset_registry()

        first = registry_module.get_registry()
        assert registry_module.get_registry() is first

        registry_module.reset_registry()
        assert registry_module.get_registry() is not first
        assert len(created) == 2
        assert levels == ["WARNING", "WARNING"]

        registry_module.reset_registry()
