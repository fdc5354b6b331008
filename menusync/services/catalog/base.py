from typing import List, Optional

from menusync.schemas.catalog import CatalogCategory, CatalogItem, CatalogModifierOption


class CatalogService:
    """read-only interface onto the POS catalog (categories, items, modifier options)."""

    def list_categories(self, tenant_id: str) -> List[CatalogCategory]:  # pragma: no cover
        raise NotImplementedError

    def list_items(self, tenant_id: str, category_id: Optional[str] = None) -> List[CatalogItem]:  # pragma: no cover
        raise NotImplementedError

    def list_modifier_options(self, pos_item_id: str) -> List[CatalogModifierOption]:  # pragma: no cover
        raise NotImplementedError
