"""
Loading the catalog side of a menu group.

A view is the ordered list of categories in a menu group, the catalog items
associated with each of them, and every item's modifier options. Modifier
options are fetched per item in parallel; one item failing to load leaves
that item with no options instead of failing the whole view.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

from sqlalchemy.orm import Session

from menusync import models
from menusync.core.config import settings
from menusync.schemas.catalog import CatalogItem, CatalogModifierOption
from menusync.services.catalog.base import CatalogService
from .errors import NotFoundError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


def fan_out(fetch: Callable[[K], List[T]], keys: Iterable[K], max_workers: Optional[int] = None, what: str = "entries") -> Dict[K, List[T]]:
    """run fetch(key) for every key in a bounded pool; a failing key maps to []."""
    keys = list(dict.fromkeys(keys))
    if not keys:
        return {}
    workers = max(1, min(max_workers or settings.MODIFIER_FETCH_CONCURRENCY, len(keys)))
    results: Dict[K, List[T]] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {key: pool.submit(fetch, key) for key in keys}
        for key, future in futures.items():
            try:
                results[key] = list(future.result())
            except Exception as e:
                logger.warning("failed to load %s for %s, continuing without them: %s", what, key, e)
                results[key] = []
    return results


def load_modifier_options(catalog: CatalogService, pos_item_ids: Iterable[str], max_workers: Optional[int] = None) -> Dict[str, List[CatalogModifierOption]]:
    return fan_out(catalog.list_modifier_options, pos_item_ids, max_workers=max_workers, what="modifier options")


@dataclass
class CategoryView:
    category: models.MenuCategory
    display_order: int
    items: List[CatalogItem] = field(default_factory=list)


@dataclass
class MenuGroupView:
    menu_group: models.MenuGroup
    categories: List[CategoryView] = field(default_factory=list)
    modifier_options: Dict[str, List[CatalogModifierOption]] = field(default_factory=dict)
    missing_item_ids: List[str] = field(default_factory=list)

    @property
    def items(self) -> List[CatalogItem]:
        """distinct items across all categories, in menu order."""
        seen: Dict[str, CatalogItem] = {}
        for cat in self.categories:
            for item in cat.items:
                seen.setdefault(item.pos_item_id, item)
        return list(seen.values())

    def all_modifier_options(self) -> List[CatalogModifierOption]:
        return [opt for item in self.items for opt in self.modifier_options.get(item.pos_item_id, [])]


def get_menu_group_or_404(db: Session, menu_group_id: int) -> models.MenuGroup:
    group = db.get(models.MenuGroup, menu_group_id)
    if not group:
        raise NotFoundError(f"menu group {menu_group_id} not found")
    return group


def load_menu_group_view(db: Session, catalog: CatalogService, menu_group_id: int, with_modifiers: bool = True) -> MenuGroupView:
    group = get_menu_group_or_404(db, menu_group_id)
    catalog_items = {item.pos_item_id: item for item in catalog.list_items(group.tenant_id)}

    view = MenuGroupView(menu_group=group)
    memberships = (
        db.query(models.MenuGroupCategory)
        .filter(models.MenuGroupCategory.menu_group_id == menu_group_id)
        .order_by(models.MenuGroupCategory.display_order.asc(), models.MenuGroupCategory.id.asc())
        .all()
    )
    for membership in memberships:
        cat_view = CategoryView(category=membership.category, display_order=membership.display_order)
        for assoc in membership.category.items:
            item = catalog_items.get(assoc.pos_item_id)
            if item is None:
                # item was removed from the POS since it was associated
                logger.warning(
                    "item %s in category %s is no longer in the catalog, skipping",
                    assoc.pos_item_id, membership.category.id,
                )
                view.missing_item_ids.append(assoc.pos_item_id)
                continue
            cat_view.items.append(item)
        view.categories.append(cat_view)

    if with_modifiers:
        view.modifier_options = load_modifier_options(catalog, [i.pos_item_id for i in view.items])
    return view
