# tests/conftest.py
# shared fixtures: in-memory database, fake catalog, recording platform adapter

import os

# must be set before menusync.db.session builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PLATFORM_PROVIDER"] = "mock"

import pytest

from menusync.db.base import Base
from menusync.db.session import SessionLocal, engine
from menusync.schemas.catalog import CatalogCategory, CatalogItem, CatalogModifierOption
from menusync.schemas.menu_sync import EntitySyncError
from menusync.services.catalog.base import CatalogService
from menusync.services.menu_sync.errors import CatalogUnavailableError, RemotePlatformError
from menusync.services.platform.base import AdapterResponse, PlatformAdapter

TENANT = "tenant-1"


class FakeCatalog(CatalogService):
    """in-memory POS catalog; modifier fetches for ids in `broken` raise, everything raises when `unavailable`."""

    def __init__(self):
        self.categories = [
            CatalogCategory(id="pc-burgers", name="Burgers", display_order=0),
            CatalogCategory(id="pc-drinks", name="Drinks", display_order=1),
        ]
        self.items = [
            CatalogItem(pos_item_id="burger", name="Burger", description="Beef", base_price=500, category_id="pc-burgers"),
            CatalogItem(pos_item_id="cheeseburger", name="Cheeseburger", base_price=650, category_id="pc-burgers"),
            CatalogItem(pos_item_id="veggie", name="Veggie Burger", base_price=15, category_id="pc-burgers"),
            CatalogItem(pos_item_id="cola", name="Cola", base_price=200, category_id="pc-drinks"),
        ]
        self.modifiers = {
            "burger": [
                CatalogModifierOption(
                    pos_item_id="burger", modifier_group_id="mg-size", modifier_group_name="Size",
                    modifier_option_id="large", name="Large", base_price=100,
                ),
                CatalogModifierOption(
                    pos_item_id="burger", modifier_group_id="mg-size", modifier_group_name="Size",
                    modifier_option_id="small", name="Small", base_price=0,
                ),
            ],
            "cola": [
                CatalogModifierOption(
                    pos_item_id="cola", modifier_group_id="mg-ice", modifier_group_name="Ice",
                    modifier_option_id="no-ice", name="No ice", base_price=0,
                ),
            ],
        }
        self.broken = set()
        self.unavailable = False

    def _check(self):
        if self.unavailable:
            raise CatalogUnavailableError("catalog service unavailable: connection refused")

    def list_categories(self, tenant_id):
        self._check()
        return list(self.categories)

    def list_items(self, tenant_id, category_id=None):
        self._check()
        if category_id is None:
            return list(self.items)
        return [i for i in self.items if i.category_id == category_id]

    def list_modifier_options(self, pos_item_id):
        if pos_item_id in self.broken:
            raise RuntimeError(f"catalog timeout for {pos_item_id}")
        return list(self.modifiers.get(pos_item_id, []))


class RecordingAdapter(PlatformAdapter):
    """remembers submissions; can be told to reject entities, refuse the whole menu or be unreachable."""
    name = "recording"

    def __init__(self):
        self.submissions = []
        self.entity_errors = []
        self.refusal = None
        self.unreachable = False

    def submit_menu(self, tenant_id, payload):
        if self.unreachable:
            raise RemotePlatformError("platform unreachable: connection refused")
        self.submissions.append((tenant_id, payload))
        if self.refusal is not None:
            return AdapterResponse(success=False, message=self.refusal, errors=[])
        errors = [EntitySyncError(scope=s, entity_id=list(e), detail=d) for s, e, d in self.entity_errors]
        return AdapterResponse(success=not errors, message="accepted" if not errors else "partially accepted", errors=errors)

    @property
    def last(self):
        return self.submissions[-1][1]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def adapter():
    return RecordingAdapter()


@pytest.fixture
def tenant():
    return TENANT
