"""
Composite keys for configurable entities.

A key identifies an item, or one modifier option of an item, inside a single
menu group's configuration scope. Keys are plain tuples underneath; the
string forms use a JSON array encoding so ids containing separators never
collide.
"""
import json
from enum import Enum
from typing import NamedTuple, Tuple


class ConfigScope(str, Enum):
    ITEM = "item"
    MODIFIER_OPTION = "modifier_option"


# number of ids that make up an entity id for each scope
_ENTITY_ARITY = {
    ConfigScope.ITEM: 1,                # (pos_item_id,)
    ConfigScope.MODIFIER_OPTION: 3,     # (pos_item_id, modifier_group_id, modifier_option_id)
}


class CompositeKey(NamedTuple):
    scope: ConfigScope
    entity_id: Tuple[str, ...]
    menu_group_id: int

    @classmethod
    def build(cls, scope, entity_id, menu_group_id) -> "CompositeKey":
        scope = ConfigScope(scope)
        entity_id = tuple(str(part) for part in entity_id)
        if len(entity_id) != _ENTITY_ARITY[scope]:
            raise ValueError(
                f"{scope.value} keys take {_ENTITY_ARITY[scope]} id(s), got {len(entity_id)}"
            )
        if any(part == "" for part in entity_id):
            raise ValueError("entity ids must not be empty")
        return cls(scope, entity_id, int(menu_group_id))

    @classmethod
    def for_item(cls, pos_item_id: str, menu_group_id: int) -> "CompositeKey":
        return cls.build(ConfigScope.ITEM, (pos_item_id,), menu_group_id)

    @classmethod
    def for_modifier_option(
        cls,
        pos_item_id: str,
        modifier_group_id: str,
        modifier_option_id: str,
        menu_group_id: int,
    ) -> "CompositeKey":
        return cls.build(
            ConfigScope.MODIFIER_OPTION,
            (pos_item_id, modifier_group_id, modifier_option_id),
            menu_group_id,
        )

    @classmethod
    def from_storage(cls, scope: str, entity_ref: str, menu_group_id: int) -> "CompositeKey":
        return cls.build(scope, json.loads(entity_ref), menu_group_id)

    @property
    def pos_item_id(self) -> str:
        return self.entity_id[0]

    @property
    def modifier_group_id(self):
        return self.entity_id[1] if self.scope is ConfigScope.MODIFIER_OPTION else None

    @property
    def modifier_option_id(self):
        return self.entity_id[2] if self.scope is ConfigScope.MODIFIER_OPTION else None

    @property
    def entity_ref(self) -> str:
        """persisted encoding of the entity id (stored next to scope and menu group)."""
        return json.dumps(list(self.entity_id), separators=(",", ":"))

    def storage_key(self) -> str:
        return json.dumps([self.scope.value, *self.entity_id, self.menu_group_id], separators=(",", ":"))
