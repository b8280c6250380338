# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import copy
import dataclasses

import pytest
from unittest.mock import MagicMock

from komfort_core.catalog.models import EntityId, SocialLink


# =============================================================================
# FAKE GATEWAYS
# =============================================================================

class FakeGateway:
    """In-memory stand-in for a RemoteGateway."""

    def __init__(self, entities=None, fail=False, first_id=100):
        self.entities = list(entities or [])
        self.fail = fail
        self.available = True
        self.created = []
        self.updated = []
        self.deleted = []
        self._next_id = first_id

    def fetch_all(self):
        if self.fail:
            return []
        return copy.deepcopy(self.entities)

    def create(self, entity):
        if self.fail:
            return None
        self._next_id += 1
        stored = dataclasses.replace(entity, id=EntityId(self._next_id))
        self.entities.append(stored)
        self.created.append(stored)
        return copy.deepcopy(stored)

    def update(self, entity_id, changes):
        self.updated.append((entity_id, changes))
        return not self.fail

    def delete(self, entity_id):
        self.deleted.append(entity_id)
        return not self.fail

    def ping(self):
        return not self.fail


class FakeRecordGateway(FakeGateway):
    """Fake single-row gateway (contact_info, homepage_settings)."""

    def upsert(self, record):
        if self.fail:
            return None
        self.entities = [copy.deepcopy(record)]
        return copy.deepcopy(record)


class FakeContactGateway(FakeRecordGateway):
    def fetch_social(self):
        if self.fail or not self.entities:
            return None
        return copy.deepcopy(self.entities[0].social)


# =============================================================================
# STORAGE FIXTURES
# =============================================================================

@pytest.fixture
def mirror(tmp_path):
    """Fresh local mirror in a temporary directory"""
    from komfort_core.offline.local_mirror import LocalMirror

    local_mirror = LocalMirror(tmp_path / "mirror.db").initialize()
    yield local_mirror
    local_mirror.close()


@pytest.fixture
def make_gateway():
    """Factory for fake gateways"""
    def factory(entities=None, fail=False, first_id=100):
        return FakeGateway(entities, fail=fail, first_id=first_id)
    return factory


@pytest.fixture
def failing_gateway():
    """Gateway whose every call fails"""
    return FakeGateway(fail=True)


@pytest.fixture
def empty_gateway():
    """Reachable gateway with an empty table (reads as unavailable)"""
    return FakeGateway()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def remote_categories():
    """Categories as returned by the remote table"""
    from komfort_core.catalog.models import Category

    return [
        Category(id=EntityId(11), title="Прихожая", slug="prikhozhaya", order=1),
        Category(id=EntityId(12), title="Детская", slug="detskaya", order=2),
    ]


@pytest.fixture
def social_links():
    return [
        SocialLink(name="Telegram", url="https://t.me/komfort_company", icon="TG"),
        SocialLink(name="WhatsApp", url="https://wa.me/78005553535", icon="WA"),
    ]


@pytest.fixture
def contact_gateway(social_links):
    """Contact gateway holding a record with two social links"""
    from komfort_core.catalog.models import ContactInfo

    return FakeContactGateway([
        ContactInfo(id=EntityId(1), phone="+7 (938) 505-00-07", social=social_links),
    ])


@pytest.fixture
def homepage_gateway():
    """Homepage settings gateway holding a customized record"""
    from komfort_core.catalog.models import HomepageSettings

    return FakeRecordGateway([
        HomepageSettings(
            id=EntityId(1),
            title="Komfort",
            description="Мебель в Шелковской",
            banner_images=["/assets/banner1.jpg"],
            featured_categories=[EntityId(12)],
        ),
    ])


@pytest.fixture
def product_rows():
    """Raw products rows in the shapes seen in production"""
    return [
        {
            "id": 7,
            "name": "Шкаф",
            "price": "15999.50",
            "category_id": 2,
            "category_name": "Спальня",
            "image_urls": '["http://foo.com/x/y/wardrobe.jpg", "assets//assets/wardrobe2.jpg"]',
            "stock": 4,
            "features": "Зеркало",
            "created_at": "2024-03-01T10:00:00Z",
            "updated_at": "2024-03-02T10:00:00+00:00",
        },
        {
            "id": 8,
            "name": "Стол",
            "price": 9999,
            "categoryId": 3,
            "image_url": "/assets/table.jpg",
            "stock": None,
            "features": ["Дуб"],
        },
    ]


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    table = mock_client.table.return_value
    table.select.return_value.order.return_value.range.return_value.execute.return_value.data = []
    table.select.return_value.range.return_value.execute.return_value.data = []
    table.select.return_value.eq.return_value.limit.return_value.execute.return_value.data = []
    table.insert.return_value.execute.return_value.data = []
    return mock_client


@pytest.fixture
def clock():
    """Controllable monotonic clock"""
    class Clock:
        def __init__(self):
            self.now = 1000.0

        def __call__(self):
            return self.now

        def advance(self, seconds):
            self.now += seconds

    return Clock()
