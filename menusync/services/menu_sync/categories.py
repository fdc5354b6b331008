"""
Category registry and menu membership.

Registry categories are the local face of the platform's categories. A
category is system-origin when it is linked to a POS category through
source_category_id, custom otherwise; nothing else decides the origin.
System categories outlive their menus, custom ones exist only inside them.
"""
import logging
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from menusync import models
from menusync.schemas.catalog import CatalogCategoryWithItems
from menusync.services.catalog.base import CatalogService
from .errors import InvariantViolation, NotFoundError, ValidationError
from .view import fan_out, get_menu_group_or_404

logger = logging.getLogger(__name__)


class CategoryRegistry:
    def __init__(self, db: Session, catalog: CatalogService):
        self.db = db
        self.catalog = catalog

    # registry

    def get(self, category_id: int) -> models.MenuCategory:
        category = self.db.get(models.MenuCategory, category_id)
        if not category:
            raise NotFoundError(f"category {category_id} not found")
        return category

    def list_registry(self, tenant_id: str) -> List[models.MenuCategory]:
        return (
            self.db.query(models.MenuCategory)
            .filter(models.MenuCategory.tenant_id == tenant_id)
            .order_by(models.MenuCategory.display_order.asc(), models.MenuCategory.id.asc())
            .all()
        )

    def list_pos_categories(self, tenant_id: str) -> List[CatalogCategoryWithItems]:
        """POS categories with their items, flagged when already registered."""
        pos_categories = self.catalog.list_categories(tenant_id)
        items_by_category = fan_out(
            lambda category_id: self.catalog.list_items(tenant_id, category_id=category_id),
            [c.id for c in pos_categories],
            what="category items",
        )
        registered = {
            c.source_category_id: c.id
            for c in self.list_registry(tenant_id)
            if c.source_category_id is not None
        }
        out = []
        for pos_cat in pos_categories:
            items = items_by_category.get(pos_cat.id, [])
            out.append(CatalogCategoryWithItems(
                id=pos_cat.id,
                name=pos_cat.name,
                items=items,
                item_count=len(items),
                is_registered=pos_cat.id in registered,
                registry_category_id=registered.get(pos_cat.id),
            ))
        return out

    def _ensure_unique_name(self, tenant_id: str, name: str) -> None:
        clash = (
            self.db.query(models.MenuCategory)
            .filter(models.MenuCategory.tenant_id == tenant_id, models.MenuCategory.name == name)
            .first()
        )
        if clash:
            # names are display-only; a clash between a custom category and a POS one is
            # reported, never used to re-classify either of them
            logger.warning("category name '%s' already used by %s category %s", name, clash.origin, clash.id)
            raise ValidationError("Category with this name already exists")

    def _next_display_order(self, tenant_id: str) -> int:
        current = (
            self.db.query(func.max(models.MenuCategory.display_order))
            .filter(models.MenuCategory.tenant_id == tenant_id)
            .scalar()
        )
        return 0 if current is None else current + 1

    def register_system_category(self, tenant_id: str, source_category_id: str) -> models.MenuCategory:
        existing = (
            self.db.query(models.MenuCategory)
            .filter(
                models.MenuCategory.tenant_id == tenant_id,
                models.MenuCategory.source_category_id == source_category_id,
            )
            .first()
        )
        if existing:
            raise ValidationError("POS category is already registered")

        pos_category = next((c for c in self.catalog.list_categories(tenant_id) if c.id == source_category_id), None)
        if pos_category is None:
            raise NotFoundError(f"POS category {source_category_id} not found")
        self._ensure_unique_name(tenant_id, pos_category.name)

        category = models.MenuCategory(
            tenant_id=tenant_id,
            name=pos_category.name,
            source_category_id=source_category_id,
            display_order=self._next_display_order(tenant_id),
        )
        self.db.add(category)
        try:
            self.db.flush()
            added = self._propagate_items(category)
        except Exception:
            self.db.rollback()
            raise
        self.db.commit()
        self.db.refresh(category)
        logger.info("registered POS category %s as %s with %d item(s)", source_category_id, category.id, added)
        return category

    def create_custom_category(self, tenant_id: str, name: str, menu_group_id: Optional[int] = None) -> models.MenuCategory:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        if menu_group_id is not None:
            group = get_menu_group_or_404(self.db, menu_group_id)
            if group.tenant_id != tenant_id:
                raise ValidationError("menu group belongs to another tenant")
        self._ensure_unique_name(tenant_id, name)

        category = models.MenuCategory(
            tenant_id=tenant_id,
            name=name,
            source_category_id=None,
            display_order=self._next_display_order(tenant_id),
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)

        if menu_group_id is not None:
            self.add_category_to_menu(menu_group_id, category.id)
        return category

    # category -> item association

    def list_category_items(self, category_id: int) -> List[models.MenuCategoryItem]:
        return list(self.get(category_id).items)

    def _propagate_items(self, category: models.MenuCategory) -> int:
        """associate the POS category's current items with a system category."""
        if not category.is_system:
            return 0
        pos_items = self.catalog.list_items(category.tenant_id, category_id=category.source_category_id)
        return self._associate(category, [(i.pos_item_id, i.name) for i in pos_items])

    def _associate(self, category: models.MenuCategory, entries: Sequence[tuple]) -> int:
        existing = {a.pos_item_id for a in category.items}
        next_order = max((a.display_order for a in category.items), default=-1) + 1
        added = 0
        for pos_item_id, name in entries:
            if pos_item_id in existing:
                continue
            category.items.append(models.MenuCategoryItem(
                pos_item_id=pos_item_id,
                pos_item_name=name,
                display_order=next_order,
            ))
            existing.add(pos_item_id)
            next_order += 1
            added += 1
        self.db.flush()
        return added

    def add_items_to_category(self, category_id: int, pos_item_ids: Sequence[str]) -> int:
        category = self.get(category_id)
        if not pos_item_ids:
            raise ValidationError("no items selected")
        names = {i.pos_item_id: i.name for i in self.catalog.list_items(category.tenant_id)}
        unknown = [pid for pid in pos_item_ids if pid not in names]
        if unknown:
            raise ValidationError(f"unknown item(s): {', '.join(unknown)}")
        added = self._associate(category, [(pid, names[pid]) for pid in pos_item_ids])
        self.db.commit()
        return added

    def remove_item_from_category(self, category_id: int, pos_item_id: str) -> None:
        category = self.get(category_id)
        assoc = next((a for a in category.items if a.pos_item_id == pos_item_id), None)
        if assoc is None:
            raise NotFoundError(f"item {pos_item_id} is not in category {category_id}")
        self.db.delete(assoc)
        self.db.commit()
        self.db.expire(category, ["items"])

    # menu membership

    def list_menu_categories(self, menu_group_id: int) -> List[models.MenuGroupCategory]:
        get_menu_group_or_404(self.db, menu_group_id)
        return (
            self.db.query(models.MenuGroupCategory)
            .filter(models.MenuGroupCategory.menu_group_id == menu_group_id)
            .order_by(models.MenuGroupCategory.display_order.asc(), models.MenuGroupCategory.id.asc())
            .all()
        )

    def available_to_add(self, menu_group_id: int) -> List[models.MenuCategory]:
        group = get_menu_group_or_404(self.db, menu_group_id)
        member_ids = {m.menu_category_id for m in self.list_menu_categories(menu_group_id)}
        return [c for c in self.list_registry(group.tenant_id) if c.id not in member_ids]

    def categories_for_menu(self, tenant_id: str, category_ids: Sequence[int]) -> List[models.MenuCategory]:
        """resolve ids for a new menu; every id must exist, be unique and belong to the tenant."""
        if len(set(category_ids)) != len(category_ids):
            raise ValidationError("duplicate category ids")
        categories = [self.get(cid) for cid in category_ids]
        if any(c.tenant_id != tenant_id for c in categories):
            raise ValidationError("category belongs to another tenant")
        return categories

    def attach(self, group: models.MenuGroup, category: models.MenuCategory, display_order: int) -> int:
        """link a category to a menu without committing; returns the number of items propagated."""
        self.db.add(models.MenuGroupCategory(menu_group=group, category=category, display_order=display_order))
        self.db.flush()
        # items only get associated, their overrides stay untouched (default enabled, base price)
        return self._propagate_items(category)

    def add_category_to_menu(self, menu_group_id: int, category_id: int) -> models.MenuGroupCategory:
        group = get_menu_group_or_404(self.db, menu_group_id)
        category = self.get(category_id)
        if category.tenant_id != group.tenant_id:
            raise ValidationError("category belongs to another tenant")

        memberships = self.list_menu_categories(menu_group_id)
        if any(m.menu_category_id == category_id for m in memberships):
            raise ValidationError("Category is already in this menu")

        try:
            propagated = self.attach(group, category, max((m.display_order for m in memberships), default=-1) + 1)
        except Exception:
            self.db.rollback()
            raise
        self.db.commit()
        membership = (
            self.db.query(models.MenuGroupCategory)
            .filter_by(menu_group_id=menu_group_id, menu_category_id=category_id)
            .one()
        )
        self.db.refresh(membership)
        logger.info(
            "added category %s to menu group %s (%d item(s) propagated)",
            category_id, menu_group_id, propagated,
        )
        return membership

    def remove_category_from_menu(self, menu_group_id: int, category_id: int, is_system_origin: Optional[bool] = None) -> bool:
        """unlink a category from a menu; custom categories are deleted outright.

        Returns True when the category itself was deleted.
        """
        group = get_menu_group_or_404(self.db, menu_group_id)
        category = self.get(category_id)
        if is_system_origin is None:
            is_system_origin = category.is_system
        elif is_system_origin != category.is_system:
            raise InvariantViolation(
                f"category {category_id} is {category.origin}-origin, refusing to treat it as "
                f"{'system' if is_system_origin else 'custom'}"
            )

        membership = next((m for m in category.memberships if m.menu_group_id == menu_group_id), None)
        if membership is None:
            raise NotFoundError(f"category {category_id} is not in menu group {menu_group_id}")

        if is_system_origin:
            self.db.delete(membership)
            self.db.commit()
            self.db.expire(group, ["memberships"])
            self.db.expire(category, ["memberships"])
            logger.info("unlinked system category %s from menu group %s", category_id, menu_group_id)
            return False

        # custom categories have no life outside their menus: drop it with
        # its item associations and its memberships everywhere
        self.db.delete(category)
        self.db.commit()
        # membership collections of every menu it was in are stale now
        self.db.expire_all()
        logger.info("deleted custom category %s (removed from menu group %s)", category_id, menu_group_id)
        return True

    def reorder(self, menu_group_id: int, category_ids: Sequence[int]) -> List[models.MenuGroupCategory]:
        memberships = self.list_menu_categories(menu_group_id)
        by_category = {m.menu_category_id: m for m in memberships}
        requested = [int(cid) for cid in category_ids]
        if len(set(requested)) != len(requested):
            raise InvariantViolation("category ids must not repeat")
        if set(requested) != set(by_category):
            raise InvariantViolation("category ids must match the menu's current categories exactly")

        for position, cid in enumerate(requested):
            by_category[cid].display_order = position
        self.db.commit()
        return [by_category[cid] for cid in requested]
