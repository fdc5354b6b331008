# tests/test_menu_groups.py
# menu group lifecycle and availability

from datetime import datetime

import pytest

from menusync import models
from menusync.services.menu_sync.categories import CategoryRegistry
from menusync.services.menu_sync.errors import CatalogUnavailableError, NotFoundError, ValidationError
from menusync.services.menu_sync.keys import CompositeKey
from menusync.services.menu_sync.menu_groups import (
    MenuGroupManager,
    WEEKDAYS,
    is_serving_at,
    normalize_availability,
)
from menusync.services.menu_sync.overrides import ConfigOverrideStore
from menusync.services.menu_sync.sessions import edit_sessions


class TestNormalizeAvailability:
    """weekday/time validation"""

    def test_default_is_all_day_every_day(self):
        availability = normalize_availability(None)
        assert list(availability) == list(WEEKDAYS)
        assert availability["sunday"] == [{"start_time": "00:00", "end_time": "23:59"}]

    def test_multiple_intervals_pass_through(self):
        periods = [
            {"start_time": "11:00", "end_time": "14:00"},
            {"start_time": "13:00", "end_time": "16:00"},
        ]
        assert normalize_availability({"Monday": periods}) == {"monday": periods}

    def test_days_ordered(self):
        availability = normalize_availability({
            "friday": [{"start_time": "10:00", "end_time": "12:00"}],
            "monday": [{"start_time": "10:00", "end_time": "12:00"}],
        })
        assert list(availability) == ["monday", "friday"]

    def test_unknown_weekday(self):
        with pytest.raises(ValidationError):
            normalize_availability({"funday": []})

    @pytest.mark.parametrize("start,end", [("9:00", "10:00"), ("24:00", "23:00"), ("10:00", "10:00"), ("12:00", "11:59")])
    def test_bad_periods(self, start, end):
        with pytest.raises(ValidationError):
            normalize_availability({"monday": [{"start_time": start, "end_time": end}]})


    @pytest.mark.parametrize("periods", [
        "09:00-17:00",
        ["09:00"],
        {"start_time": "09:00", "end_time": "17:00"},
        [{"start_time": "09:00", "end_time": "17:00"}, "12:00"],
    ])
    def test_malformed_shapes(self, periods):
        with pytest.raises(ValidationError):
            normalize_availability({"monday": periods})


class TestIsServingAt:
    """availability lookup"""

    def test_inside_and_outside(self):
        group = models.MenuGroup(service_availability={"monday": [{"start_time": "11:00", "end_time": "14:00"}]})
        monday = datetime(2026, 10, 12, 12, 30)
        assert monday.weekday() == 0
        assert is_serving_at(group, monday)
        assert not is_serving_at(group, monday.replace(hour=15))
        assert not is_serving_at(group, datetime(2026, 10, 13, 12, 30))  # tuesday is closed


class TestMenuGroupManager:
    """create / update / delete"""

    def test_create_defaults(self, db, tenant):
        manager = MenuGroupManager(db)
        first = manager.create(tenant, "Lunch")
        second = manager.create(tenant, "Dinner")
        assert first.display_order == 0
        assert second.display_order == 1
        assert first.service_availability == normalize_availability(None)
        assert [g.id for g in manager.list(tenant)] == [first.id, second.id]

    def test_create_requires_name(self, db, tenant):
        with pytest.raises(ValidationError):
            MenuGroupManager(db).create(tenant, "  ")

    def test_update(self, db, tenant):
        manager = MenuGroupManager(db)
        group = manager.create(tenant, "Lunch")
        manager.update(group.id, name="Brunch", availability={"sunday": [{"start_time": "09:00", "end_time": "13:00"}]})
        group = manager.get(group.id)
        assert group.name == "Brunch"
        assert group.service_availability == {"sunday": [{"start_time": "09:00", "end_time": "13:00"}]}

    def test_get_missing(self, db):
        with pytest.raises(NotFoundError):
            MenuGroupManager(db).get(404)

    def test_delete_removes_overrides_and_records(self, db, tenant):
        manager = MenuGroupManager(db)
        group = manager.create(tenant, "Lunch")
        keep = manager.create(tenant, "Dinner")
        store = ConfigOverrideStore(db)
        store.upsert(CompositeKey.for_item("burger", group.id), {"enabled": False})
        store.upsert(CompositeKey.for_item("burger", keep.id), {"enabled": False})
        db.add(models.SyncRecord(scope="item", entity_ref='["burger"]', menu_group_id=group.id, pos_item_id="burger"))
        db.commit()

        manager.delete(group.id)

        assert db.get(models.MenuGroup, group.id) is None
        assert store.load(group.id) == {}
        assert len(store.load(keep.id)) == 1
        assert db.query(models.SyncRecord).count() == 0

    def test_delete_drops_edit_sessions(self, db, tenant):
        manager = MenuGroupManager(db)
        group = manager.create(tenant, "Lunch")
        keep = manager.create(tenant, "Dinner")
        edit_sessions.clear()
        store = ConfigOverrideStore(db)
        edit_sessions.open(store, tenant, group.id)
        other = edit_sessions.open(store, tenant, keep.id)
        try:
            manager.delete(group.id)
            assert edit_sessions.list(group.id) == []
            assert edit_sessions.list() == [other]
        finally:
            edit_sessions.clear()


class TestMenuGroupOrderingAndCategories:
    """display order and initial categories"""

    @pytest.fixture
    def categories(self, db, catalog, tenant):
        registry = CategoryRegistry(db, catalog)
        return registry.register_system_category(tenant, "pc-burgers"), registry.register_system_category(tenant, "pc-drinks")

    def test_create_with_order_and_categories(self, db, catalog, tenant, categories):
        burgers, drinks = categories
        group = MenuGroupManager(db, catalog).create(tenant, "Lunch", display_order=5, category_ids=[drinks.id, burgers.id])
        assert group.display_order == 5
        memberships = CategoryRegistry(db, catalog).list_menu_categories(group.id)
        assert [m.menu_category_id for m in memberships] == [drinks.id, burgers.id]
        assert [m.display_order for m in memberships] == [0, 1]

    def test_unknown_category_creates_nothing(self, db, catalog, tenant, categories):
        burgers, _ = categories
        with pytest.raises(NotFoundError):
            MenuGroupManager(db, catalog).create(tenant, "Lunch", category_ids=[burgers.id, 999])
        assert MenuGroupManager(db).list(tenant) == []

    def test_duplicate_category_ids(self, db, catalog, tenant, categories):
        burgers, _ = categories
        with pytest.raises(ValidationError):
            MenuGroupManager(db, catalog).create(tenant, "Lunch", category_ids=[burgers.id, burgers.id])

    def test_catalog_outage_creates_nothing(self, db, catalog, tenant, categories):
        burgers, _ = categories
        catalog.unavailable = True
        with pytest.raises(CatalogUnavailableError):
            MenuGroupManager(db, catalog).create(tenant, "Lunch", category_ids=[burgers.id])
        assert MenuGroupManager(db).list(tenant) == []

    def test_update_display_order(self, db, tenant):
        manager = MenuGroupManager(db)
        lunch = manager.create(tenant, "Lunch")
        dinner = manager.create(tenant, "Dinner")
        manager.update(lunch.id, display_order=3)
        assert [g.id for g in manager.list(tenant)] == [dinner.id, lunch.id]
        with pytest.raises(ValidationError):
            manager.update(lunch.id, display_order=-1)

    def test_rejected_update_changes_nothing(self, db, tenant):
        manager = MenuGroupManager(db)
        group = manager.create(tenant, "Lunch")
        with pytest.raises(ValidationError):
            manager.update(group.id, name="Brunch", availability={"monday": "all day"})
        assert manager.get(group.id).name == "Lunch"
