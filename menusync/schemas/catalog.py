from typing import List, Optional
from pydantic import BaseModel, Field

from menusync.services.menu_sync.keys import CompositeKey


class CatalogCategory(BaseModel):
    """POS category as returned by the catalog service."""
    id: str
    name: str
    display_order: int = 0


class CatalogItem(BaseModel):
    pos_item_id: str
    name: str
    description: Optional[str] = None
    base_price: int = Field(..., ge=0, description="Base price in minor units")
    category_id: Optional[str] = None
    is_active: bool = True

    def config_key(self, menu_group_id: int) -> CompositeKey:
        return CompositeKey.for_item(self.pos_item_id, menu_group_id)


class CatalogModifierOption(BaseModel):
    pos_item_id: str
    modifier_group_id: str
    modifier_group_name: str = ""
    modifier_option_id: str
    name: str
    base_price: int = Field(0, ge=0, description="Base price in minor units")

    def config_key(self, menu_group_id: int) -> CompositeKey:
        return CompositeKey.for_modifier_option(
            self.pos_item_id, self.modifier_group_id, self.modifier_option_id, menu_group_id
        )


class CatalogCategoryWithItems(BaseModel):
    id: str
    name: str
    items: List[CatalogItem] = []
    item_count: int = 0
    is_registered: bool = False
    registry_category_id: Optional[int] = None
