# tests/test_categories.py
# category registry and menu membership

import pytest

from menusync import models
from menusync.services.menu_sync.categories import CategoryRegistry
from menusync.services.menu_sync.errors import InvariantViolation, NotFoundError, ValidationError
from menusync.services.menu_sync.menu_groups import MenuGroupManager


@pytest.fixture
def registry(db, catalog):
    return CategoryRegistry(db, catalog)


@pytest.fixture
def group(db, tenant):
    return MenuGroupManager(db).create(tenant, "Lunch")


class TestRegistry:
    """system and custom categories"""

    def test_register_system_category(self, registry, tenant):
        category = registry.register_system_category(tenant, "pc-burgers")
        assert category.is_system
        assert category.origin == "system"
        assert category.name == "Burgers"
        assert [a.pos_item_id for a in category.items] == ["burger", "cheeseburger", "veggie"]

    def test_register_twice_rejected(self, registry, tenant):
        registry.register_system_category(tenant, "pc-burgers")
        with pytest.raises(ValidationError):
            registry.register_system_category(tenant, "pc-burgers")

    def test_register_unknown_pos_category(self, registry, tenant):
        with pytest.raises(NotFoundError):
            registry.register_system_category(tenant, "pc-nope")

    def test_custom_category(self, registry, tenant):
        category = registry.create_custom_category(tenant, "  Specials ")
        assert category.name == "Specials"
        assert category.origin == "custom"
        assert category.items == []

    def test_custom_name_clashing_with_system_rejected(self, registry, tenant):
        """same name never turns a custom category into a system one"""
        registry.register_system_category(tenant, "pc-burgers")
        with pytest.raises(ValidationError):
            registry.create_custom_category(tenant, "Burgers")

    def test_custom_category_added_to_menu(self, registry, tenant, group):
        category = registry.create_custom_category(tenant, "Specials", menu_group_id=group.id)
        assert [m.menu_category_id for m in registry.list_menu_categories(group.id)] == [category.id]

    def test_list_pos_categories_flags_registered(self, registry, tenant):
        burgers = registry.register_system_category(tenant, "pc-burgers")
        listed = {c.id: c for c in registry.list_pos_categories(tenant)}
        assert listed["pc-burgers"].is_registered
        assert listed["pc-burgers"].registry_category_id == burgers.id
        assert listed["pc-burgers"].item_count == 3
        assert not listed["pc-drinks"].is_registered

    def test_add_and_remove_items(self, registry, tenant):
        category = registry.create_custom_category(tenant, "Combos")
        assert registry.add_items_to_category(category.id, ["burger", "cola", "burger"]) == 2
        registry.remove_item_from_category(category.id, "burger")
        assert [a.pos_item_id for a in registry.list_category_items(category.id)] == ["cola"]

    def test_add_unknown_item(self, registry, tenant):
        category = registry.create_custom_category(tenant, "Combos")
        with pytest.raises(ValidationError):
            registry.add_items_to_category(category.id, ["ghost"])


class TestMembership:
    """menus and their categories"""

    def test_add_system_category_creates_no_overrides(self, db, registry, tenant, group):
        category = registry.register_system_category(tenant, "pc-burgers")
        registry.add_category_to_menu(group.id, category.id)
        assert len(category.items) == 3
        assert db.query(models.ConfigOverride).count() == 0

    def test_add_twice_rejected(self, registry, tenant, group):
        category = registry.register_system_category(tenant, "pc-burgers")
        registry.add_category_to_menu(group.id, category.id)
        with pytest.raises(ValidationError):
            registry.add_category_to_menu(group.id, category.id)

    def test_available_to_add(self, registry, tenant, group):
        burgers = registry.register_system_category(tenant, "pc-burgers")
        drinks = registry.register_system_category(tenant, "pc-drinks")
        registry.add_category_to_menu(group.id, burgers.id)
        assert [c.id for c in registry.available_to_add(group.id)] == [drinks.id]

    def test_remove_system_category_only_unlinks(self, db, registry, tenant, group):
        category = registry.register_system_category(tenant, "pc-burgers")
        registry.add_category_to_menu(group.id, category.id)

        deleted = registry.remove_category_from_menu(group.id, category.id)

        assert deleted is False
        assert registry.list_menu_categories(group.id) == []
        assert db.get(models.MenuCategory, category.id) is not None
        assert len(registry.list_category_items(category.id)) == 3

    def test_remove_custom_category_deletes_it(self, db, registry, tenant, group):
        other = MenuGroupManager(db).create(tenant, "Dinner")
        category = registry.create_custom_category(tenant, "Specials", menu_group_id=group.id)
        registry.add_category_to_menu(other.id, category.id)
        registry.add_items_to_category(category.id, ["burger"])

        deleted = registry.remove_category_from_menu(group.id, category.id)

        assert deleted is True
        assert db.get(models.MenuCategory, category.id) is None
        assert registry.list_menu_categories(other.id) == []
        assert db.query(models.MenuCategoryItem).count() == 0

    def test_contradicting_origin_flag_rejected(self, db, registry, tenant, group):
        category = registry.register_system_category(tenant, "pc-burgers")
        registry.add_category_to_menu(group.id, category.id)
        with pytest.raises(InvariantViolation):
            registry.remove_category_from_menu(group.id, category.id, is_system_origin=False)
        assert db.get(models.MenuCategory, category.id) is not None

    def test_remove_category_not_in_menu(self, registry, tenant, group):
        category = registry.register_system_category(tenant, "pc-burgers")
        with pytest.raises(NotFoundError):
            registry.remove_category_from_menu(group.id, category.id)


class TestReorder:
    """display order of categories in a menu"""

    @pytest.fixture
    def three(self, registry, tenant, group):
        ids = [
            registry.register_system_category(tenant, "pc-burgers").id,
            registry.register_system_category(tenant, "pc-drinks").id,
            registry.create_custom_category(tenant, "Specials").id,
        ]
        for cid in ids:
            registry.add_category_to_menu(group.id, cid)
        return ids

    def test_reorder(self, registry, group, three):
        new_order = [three[2], three[0], three[1]]
        registry.reorder(group.id, new_order)
        assert [m.menu_category_id for m in registry.list_menu_categories(group.id)] == new_order

    def test_missing_id_rejected_without_partial_apply(self, registry, group, three):
        with pytest.raises(InvariantViolation):
            registry.reorder(group.id, [three[1], three[0]])
        assert [m.menu_category_id for m in registry.list_menu_categories(group.id)] == three

    def test_duplicate_id_rejected(self, registry, group, three):
        with pytest.raises(InvariantViolation):
            registry.reorder(group.id, [three[0], three[0], three[1], three[2]])

    def test_foreign_id_rejected(self, registry, group, three):
        with pytest.raises(InvariantViolation):
            registry.reorder(group.id, [three[0], three[1], 999])
