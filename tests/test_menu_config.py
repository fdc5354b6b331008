# tests/test_menu_config.py
# configuration persistence API and the modifier fan-out

import pytest

from menusync.schemas.menu_config import ItemConfigIn, ModifierConfigIn
from menusync.services.menu_sync.categories import CategoryRegistry
from menusync.services.menu_sync.errors import NotFoundError
from menusync.services.menu_sync.menu_config import MenuConfigService
from menusync.services.menu_sync.menu_groups import MenuGroupManager
from menusync.services.menu_sync.view import fan_out


@pytest.fixture
def group(db, catalog, tenant):
    group = MenuGroupManager(db).create(tenant, "Lunch")
    registry = CategoryRegistry(db, catalog)
    registry.add_category_to_menu(group.id, registry.register_system_category(tenant, "pc-burgers").id)
    return group


@pytest.fixture
def service(db, catalog):
    return MenuConfigService(db, catalog)


class TestFanOut:
    """bounded parallel fetch"""

    def test_failure_maps_to_empty(self):
        def fetch(key):
            if key == "bad":
                raise RuntimeError("boom")
            return [key.upper()]

        assert fan_out(fetch, ["a", "bad", "b"], max_workers=2) == {"a": ["A"], "bad": [], "b": ["B"]}

    def test_no_keys(self):
        assert fan_out(lambda k: [k], []) == {}


class TestItemConfig:
    """get / save item config"""

    def test_defaults(self, service, group):
        config = service.get_config(group.id)
        assert [i.pos_item_id for i in config.items] == ["burger", "cheeseburger", "veggie"]
        burger = config.items[0]
        assert burger.enabled is True
        assert burger.price_override is None
        assert burger.effective_price == 500
        assert burger.modifier_option_count == 2
        assert config.summary.total_items == 3
        assert config.summary.enabled_items == 3
        assert config.summary.custom_price_items == 0

    def test_save_then_get(self, service, group):
        result = service.save_config(group.id, [
            ItemConfigIn(pos_item_id="burger", price_override=550),
            ItemConfigIn(pos_item_id="veggie", enabled=False),
        ])
        assert result.success
        assert result.created_count == 2

        config = service.get_config(group.id)
        by_id = {i.pos_item_id: i for i in config.items}
        assert by_id["burger"].effective_price == 550
        assert by_id["veggie"].enabled is False
        assert config.summary.enabled_items == 2
        assert config.summary.custom_price_items == 1

        result = service.save_config(group.id, [ItemConfigIn(pos_item_id="burger", price_override=None)])
        assert result.updated_count == 1
        assert {i.pos_item_id: i for i in service.get_config(group.id).items}["burger"].effective_price == 500

    def test_unknown_group(self, service):
        with pytest.raises(NotFoundError):
            service.save_config(999, [ItemConfigIn(pos_item_id="burger", enabled=False)])


class TestModifierConfig:
    """get / save modifier option config"""

    def test_save_then_get(self, service, group):
        result = service.save_modifier_config([
            ModifierConfigIn(pos_item_id="burger", modifier_group_id="mg-size", modifier_option_id="small", enabled=False),
            ModifierConfigIn(pos_item_id="burger", modifier_group_id="mg-size", modifier_option_id="large", price_override=90),
        ], group.id)
        assert result.success
        assert result.created_count == 2

        config = service.get_modifier_config("burger", group.id)
        by_id = {m.modifier_option_id: m for m in config.modifiers}
        assert by_id["small"].enabled is False
        assert by_id["large"].effective_price == 90
        assert config.summary.total_options == 2
        assert config.summary.enabled_options == 1
        assert config.summary.custom_price_options == 1

    def test_item_without_modifiers(self, service, group):
        config = service.get_modifier_config("veggie", group.id)
        assert config.modifiers == []
        assert config.summary.total_options == 0
