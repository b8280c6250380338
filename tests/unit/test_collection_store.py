# =============================================================================
# tests/unit/test_collection_store.py
# Unit Tests for the synchronized collection store (via CategoryStore)
# =============================================================================

import pytest


# =============================================================================
# INITIAL LOAD
# =============================================================================

class TestInitialLoad:
    """Test remote -> mirror -> defaults fallback"""

    def test_loads_remote_rows(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import DataSource, StorageMode

        store = CategoryStore(make_gateway(remote_categories), mirror)

        assert [c.slug for c in store.get_all()] == ["prikhozhaya", "detskaya"]
        assert store.mode == StorageMode.REMOTE
        assert store.source == DataSource.REMOTE

    def test_empty_remote_and_mirror_seeds_defaults(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import DataSource, StorageMode

        store = CategoryStore(empty_gateway, mirror)
        items = store.get_all()

        assert [c.title for c in items] == ["Гостиная", "Спальня", "Кухня"]
        assert [c.order for c in items] == [1, 2, 3]
        assert all(c.is_active for c in items)
        assert store.source == DataSource.DEFAULTS
        assert store.mode == StorageMode.LOCAL

    def test_add_after_seeding(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)

        added = store.add({"title": "Ванная"})

        assert added.id == 4
        assert added.slug == "vannaya"
        assert added.order == 0
        assert added.created_at is not None

    def test_falls_back_to_mirror(self, make_gateway, failing_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import DataSource

        CategoryStore(make_gateway(remote_categories), mirror)

        store = CategoryStore(failing_gateway, mirror)

        assert [c.slug for c in store.get_all()] == ["prikhozhaya", "detskaya"]
        assert store.source == DataSource.MIRROR

    def test_raising_gateway_is_treated_as_empty(self, make_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import StorageMode

        def fetch_all():
            raise RuntimeError("network down")

        gateway = make_gateway()
        gateway.fetch_all = fetch_all

        store = CategoryStore(gateway, mirror)

        assert len(store) == 3
        assert store.mode == StorageMode.LOCAL
        assert "no categories" in store.last_error

    def test_snapshot_is_mirrored(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        CategoryStore(make_gateway(remote_categories), mirror)

        assert [row["slug"] for row in mirror.load("categories")] == ["prikhozhaya", "detskaya"]


# =============================================================================
# MUTATIONS
# =============================================================================

class TestAdd:
    """Test optimistic add and remote confirmation"""

    def test_remote_add_takes_server_id(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        gateway = make_gateway(remote_categories, first_id=100)
        store = CategoryStore(gateway, mirror)

        added = store.add({"title": "Ванная"})

        assert added.id == 101
        assert [c.id for c in store.get_all()] == [11, 12, 101]
        assert gateway.created[0].slug == "vannaya"

    def test_failed_remote_add_keeps_one_copy(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import StorageMode

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror)
        gateway.fail = True

        store.add({"title": "X"})
        store.add({"title": "Y"})

        titles = [c.title for c in store.get_all()]
        assert titles.count("X") == 1
        assert titles.count("Y") == 1
        assert store.mode == StorageMode.LOCAL
        assert gateway.created == []

    def test_downgrade_is_not_persisted(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror)
        gateway.fail = True

        store.add({"title": "X"})

        assert mirror.get_setting("storage_mode") is None
        assert [row["title"] for row in mirror.load("categories")][-1] == "X"

    def test_slug_collision_leaves_collection_unchanged(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror)
        before = store.get_all()

        with pytest.raises(ValidationError) as exc_info:
            store.add({"title": "Гостиная новая", "slug": "gostinaya"})

        assert exc_info.value.field == "slug"
        assert store.get_all() == before

    def test_duplicate_id_rejected(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror)
        before = store.get_all()

        with pytest.raises(ValidationError) as exc_info:
            store.add({"id": 1, "title": "Прихожая"})

        assert exc_info.value.field == "id"
        assert store.get_all() == before
        assert [row["id"] for row in mirror.load("categories")] == [1, 2, 3]

    def test_unused_explicit_id_kept(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)

        added = store.add({"id": "10", "title": "Прихожая"})

        assert added.id == 10
        assert [c.id for c in store.get_all()] == [1, 2, 3, 10]

    def test_generated_slug_collision_rejected(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror)

        with pytest.raises(ValidationError):
            store.add({"title": "Спальня"})

    def test_title_required(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror)

        with pytest.raises(ValidationError) as exc_info:
            store.add({"title": "   "})

        assert exc_info.value.field == "title"

    def test_unknown_field_rejected(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror)

        with pytest.raises(ValidationError):
            store.add({"title": "Ванная", "colour": "red"})

    def test_entity_argument_accepted(self, empty_gateway, mirror):
        from komfort_core.catalog.models import Category
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)

        added = store.add(Category(title="Офис"))

        assert added.id == 4
        assert added.slug == "ofis"


class TestUpdate:
    """Test partial updates"""

    def test_remote_update_sends_changed_fields(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror)

        updated = store.update(11, {"title": "Холл"})

        assert updated.title == "Холл"
        assert updated.slug == "prikhozhaya"
        entity_id, changes = gateway.updated[0]
        assert entity_id == 11
        assert changes["title"] == "Холл"
        assert "id" not in changes

    def test_unknown_id_returns_none(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)

        assert store.update(99, {"title": "Нет"}) is None

    def test_failed_remote_update_downgrades(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import StorageMode

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror)
        gateway.fail = True

        store.update("12", {"description": "Для детей"})

        assert store.get_by_id(12).description == "Для детей"
        assert store.mode == StorageMode.LOCAL

    def test_slug_may_be_kept_by_its_owner(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)

        updated = store.update(1, {"slug": "gostinaya", "order": "5"})

        assert updated.order == 5

    def test_slug_taken_by_other_rejected(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror)

        with pytest.raises(ValidationError):
            store.update(1, {"slug": "spalnya"})

        assert store.get_by_id(1).slug == "gostinaya"


class TestDelete:
    """Test deletion"""

    def test_remote_delete(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror)

        assert store.delete(11) is True
        assert [c.id for c in store.get_all()] == [12]
        assert gateway.deleted == [11]

    def test_unknown_id(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)

        assert store.delete(42) is False
        assert len(store) == 3

    def test_referenced_category_refused(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.errors import ValidationError

        store = CategoryStore(empty_gateway, mirror, in_use=lambda category_id: 2 if category_id == 1 else 0)

        with pytest.raises(ValidationError):
            store.delete(1)

        assert store.delete(2) is True
        assert store.get_by_id(1) is not None


# =============================================================================
# MODES & OBSERVATION
# =============================================================================

class TestModes:
    """Test mode switching"""

    def test_round_trip_reloads_remote(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror)

        store.switch_mode("local")
        store.add({"title": "Только локально"})
        store.switch_mode("remote")

        assert store.get_all() == gateway.fetch_all()

    def test_switch_persists_preference(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore
        from komfort_core.offline.collection_store import StorageMode

        store = CategoryStore(make_gateway(remote_categories), mirror)
        store.switch_mode("local")

        assert mirror.get_setting("storage_mode") == "local"
        assert CategoryStore(make_gateway(remote_categories), mirror).mode == StorageMode.LOCAL

    def test_legacy_mode_name(self):
        from komfort_core.offline.collection_store import StorageMode

        assert StorageMode.parse("supabase") == StorageMode.REMOTE
        assert StorageMode.parse(" LOCAL ") == StorageMode.LOCAL

    def test_unknown_mode_rejected(self):
        from komfort_core.errors import ValidationError
        from komfort_core.offline.collection_store import StorageMode

        with pytest.raises(ValidationError):
            StorageMode.parse("cloud")

    def test_local_mode_never_calls_gateway(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        gateway = make_gateway(remote_categories)
        store = CategoryStore(gateway, mirror, default_mode="local")

        store.add({"title": "Ванная"})
        store.delete(1)

        assert gateway.created == []
        assert gateway.deleted == []

    def test_clear_cache_keeps_memory(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(make_gateway(remote_categories), mirror)
        store.clear_cache()

        assert mirror.load("categories") is None
        assert len(store) == 2


class TestObserve:
    """Test snapshot subscriptions"""

    def test_receives_current_and_changes(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)
        received = []

        sub = store.observe(received.append)
        store.add({"title": "Ванная"})

        assert len(received[0]) == 3
        assert [c.title for c in received[-1]][-1] == "Ванная"

        sub.unsubscribe()
        store.delete(4)
        assert len(received[-1]) == 4

    def test_snapshots_are_copies(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)
        snapshot = store.get_all()
        snapshot[0].title = "Изменено"

        assert store.get_by_id(1).title == "Гостиная"

    def test_one_snapshot_per_local_add(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)
        received = []
        store.observe(received.append)

        store.add({"title": "Ванная"})

        assert [len(items) for items in received] == [3, 4]

    def test_remote_add_publishes_optimistic_then_confirmed(self, make_gateway, mirror, remote_categories):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(make_gateway(remote_categories), mirror)
        received = []
        store.observe(received.append)

        store.add({"title": "Ванная"})

        assert len(received) == 3
        assert received[1][-1].id == 13
        assert received[2][-1].id == 101

    def test_reload_publishes_once(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)
        received = []
        store.observe(received.append)

        store.reload()

        assert len(received) == 2

    def test_mutating_subscriber_does_not_affect_others(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)
        received = []
        store.observe(lambda items: items.clear())
        store.observe(received.append)

        store.add({"title": "Ванная"})

        assert len(received[-1]) == 4
        assert len(store.get_all()) == 4


# =============================================================================
# REPORTING & SYNC
# =============================================================================

class TestReporting:
    """Test DataFrame export, ids and status"""

    def test_to_dataframe(self, empty_gateway, mirror):
        from komfort_core.catalog.mappers import CategoryMapper
        from komfort_core.catalog.stores import CategoryStore

        df = CategoryStore(empty_gateway, mirror).to_dataframe()

        assert list(df.columns) == list(CategoryMapper.COLUMNS)
        assert df["slug"].tolist() == ["gostinaya", "spalnya", "kuhnya"]

    def test_next_id(self):
        from komfort_core.catalog.models import Category, EntityId
        from komfort_core.offline.collection_store import CollectionStore

        items = [
            Category(title="a", id=EntityId(3)),
            Category(title="b", id=EntityId("uuid-like")),
        ]

        assert CollectionStore.next_id([]) == 1
        assert CollectionStore.next_id(items) == 4

    def test_status_display(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        status = CategoryStore(empty_gateway, mirror).get_status_display()

        assert status["collection"] == "categories"
        assert status["mode"] == "local"
        assert status["count"] == 3
        assert status["source"] == "defaults"


class TestSyncToRemote:
    """Test pushing local data to the backend"""

    def test_pushes_every_item(self, empty_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        store = CategoryStore(empty_gateway, mirror)
        progress = []
        store.set_progress_callback(lambda pct, msg: progress.append(pct))

        result = store.sync_to_remote()

        assert result.success
        assert result.data == {"created": 3, "failed": 0}
        assert progress[-1] == 100

    def test_reports_partial_sync(self, failing_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        result = CategoryStore(failing_gateway, mirror).sync_to_remote()

        assert not result.success
        assert result.error_code == "PARTIAL_SYNC"

    def test_unconfigured_backend(self, failing_gateway, mirror):
        from komfort_core.catalog.stores import CategoryStore

        failing_gateway.available = False

        result = CategoryStore(failing_gateway, mirror).sync_to_remote()

        assert result.error_code == "REMOTE_UNAVAILABLE"
