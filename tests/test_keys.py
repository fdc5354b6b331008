# tests/test_keys.py
# composite key construction and encoding

import pytest

from menusync.services.menu_sync.keys import CompositeKey, ConfigScope


class TestCompositeKey:
    """key identity"""

    def test_item_key_parts(self):
        key = CompositeKey.for_item("burger", 3)
        assert key.scope is ConfigScope.ITEM
        assert key.entity_id == ("burger",)
        assert key.menu_group_id == 3
        assert key.pos_item_id == "burger"
        assert key.modifier_group_id is None

    def test_modifier_key_parts(self):
        key = CompositeKey.for_modifier_option("burger", "mg-size", "large", 3)
        assert key.pos_item_id == "burger"
        assert key.modifier_group_id == "mg-size"
        assert key.modifier_option_id == "large"

    def test_same_entity_different_group_differs(self):
        assert CompositeKey.for_item("burger", 1) != CompositeKey.for_item("burger", 2)

    def test_separator_in_ids_does_not_collide(self):
        """ids containing the old '_' separator stay distinct"""
        a = CompositeKey.for_modifier_option("a_b", "c", "d", 1)
        b = CompositeKey.for_modifier_option("a", "b_c", "d", 1)
        assert a != b
        assert a.storage_key() != b.storage_key()
        assert a.entity_ref != b.entity_ref

    def test_storage_round_trip(self):
        key = CompositeKey.for_modifier_option("burger", "mg:size", "x,y", 7)
        assert CompositeKey.from_storage(key.scope.value, key.entity_ref, 7) == key

    def test_wrong_arity_rejected(self):
        with pytest.raises(ValueError):
            CompositeKey.build(ConfigScope.MODIFIER_OPTION, ("burger",), 1)

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            CompositeKey.for_item("", 1)

    def test_unknown_scope_rejected(self):
        with pytest.raises(ValueError):
            CompositeKey.build("category", ("x",), 1)

    def test_usable_as_dict_key(self):
        seen = {CompositeKey.for_item("burger", 1): "a"}
        assert seen[CompositeKey.build("item", ["burger"], "1")] == "a"
