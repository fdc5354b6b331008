"""
Configuration persistence API.

Read and write the per-menu-group configuration of items and modifier
options without going through an editing session. Reads merge the catalog
with the committed overrides; writes go straight to the override store.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from menusync import models
from menusync.schemas.menu_config import (
    ConfigSaveError,
    MenuConfigItem,
    MenuConfigOut,
    MenuConfigSummary,
    ModifierConfigItem,
    ModifierConfigOut,
    ModifierConfigSummary,
    SaveConfigResult,
)
from menusync.services.catalog.base import CatalogService
from .errors import ValidationError
from .keys import CompositeKey, ConfigScope
from .overrides import ConfigOverrideStore, OverrideValues, UpsertResult
from .view import get_menu_group_or_404, load_menu_group_view

logger = logging.getLogger(__name__)


def _patch_from(entry) -> Dict:
    """fields the caller actually sent; an explicit null price means back to base."""
    data = entry.model_dump(exclude_unset=True) if hasattr(entry, "model_dump") else dict(entry)
    patch = {}
    if data.get("enabled") is not None:
        patch["enabled"] = data["enabled"]
    if "price_override" in data:
        patch["price_override"] = data["price_override"]
    return patch


def _save_result(results: List[UpsertResult]) -> SaveConfigResult:
    out = SaveConfigResult(success=True)
    for r in results:
        if not r.success:
            out.errors.append(ConfigSaveError(scope=r.key.scope.value, entity_id=list(r.key.entity_id), detail=r.error or "save failed"))
        elif r.created:
            out.created_count += 1
        else:
            out.updated_count += 1
    out.success = not out.errors
    return out


class MenuConfigService:
    def __init__(self, db: Session, catalog: CatalogService):
        self.db = db
        self.catalog = catalog
        self.store = ConfigOverrideStore(db)

    def _sync_statuses(self, menu_group_id: int, scope: ConfigScope, pos_item_id: Optional[str] = None) -> Dict[str, str]:
        q = self.db.query(models.SyncRecord).filter(
            models.SyncRecord.menu_group_id == menu_group_id,
            models.SyncRecord.scope == scope.value,
        )
        if pos_item_id is not None:
            q = q.filter(models.SyncRecord.pos_item_id == pos_item_id)
        return {r.entity_ref: r.status for r in q.all()}

    def get_config(self, menu_group_id: int) -> MenuConfigOut:
        view = load_menu_group_view(self.db, self.catalog, menu_group_id)
        committed = self.store.load(menu_group_id, scope=ConfigScope.ITEM)
        statuses = self._sync_statuses(menu_group_id, ConfigScope.ITEM)

        items: List[MenuConfigItem] = []
        seen = set()
        for cat_view in view.categories:
            for item in cat_view.items:
                if item.pos_item_id in seen:
                    continue
                seen.add(item.pos_item_id)
                key = item.config_key(menu_group_id)
                values = committed.get(key, OverrideValues())
                items.append(MenuConfigItem(
                    pos_item_id=item.pos_item_id,
                    name=item.name,
                    description=item.description,
                    category_id=cat_view.category.id,
                    category_name=cat_view.category.name,
                    base_price=item.base_price,
                    enabled=values.enabled,
                    price_override=values.price_override,
                    effective_price=item.base_price if values.price_override is None else values.price_override,
                    sync_status=statuses.get(key.entity_ref),
                    modifier_option_count=len(view.modifier_options.get(item.pos_item_id, [])),
                ))

        summary = MenuConfigSummary(
            total_items=len(items),
            enabled_items=sum(1 for i in items if i.enabled),
            custom_price_items=sum(1 for i in items if i.price_override is not None and i.price_override != i.base_price),
        )
        return MenuConfigOut(menu_group_id=menu_group_id, items=items, summary=summary)

    def save_config(self, menu_group_id: int, items: Iterable) -> SaveConfigResult:
        get_menu_group_or_404(self.db, menu_group_id)
        patches: Dict[CompositeKey, Mapping] = {}
        for entry in items:
            pos_item_id = entry.pos_item_id if hasattr(entry, "pos_item_id") else entry.get("pos_item_id")
            if not pos_item_id:
                raise ValidationError("pos_item_id is required")
            patch = _patch_from(entry)
            if patch:
                patches[CompositeKey.for_item(pos_item_id, menu_group_id)] = patch
        if not patches:
            return SaveConfigResult(success=True)
        result = _save_result(self.store.batch_upsert(patches))
        logger.info(
            "saved item config for menu group %s: %d updated, %d created, %d failed",
            menu_group_id, result.updated_count, result.created_count, len(result.errors),
        )
        return result

    def get_modifier_config(self, pos_item_id: str, menu_group_id: int) -> ModifierConfigOut:
        get_menu_group_or_404(self.db, menu_group_id)
        options = self.catalog.list_modifier_options(pos_item_id)
        committed = self.store.load(menu_group_id, scope=ConfigScope.MODIFIER_OPTION, pos_item_id=pos_item_id)
        statuses = self._sync_statuses(menu_group_id, ConfigScope.MODIFIER_OPTION, pos_item_id=pos_item_id)

        modifiers = []
        for opt in options:
            key = opt.config_key(menu_group_id)
            values = committed.get(key, OverrideValues())
            modifiers.append(ModifierConfigItem(
                pos_item_id=opt.pos_item_id,
                modifier_group_id=opt.modifier_group_id,
                modifier_group_name=opt.modifier_group_name,
                modifier_option_id=opt.modifier_option_id,
                modifier_option_name=opt.name,
                base_price=opt.base_price,
                enabled=values.enabled,
                price_override=values.price_override,
                effective_price=opt.base_price if values.price_override is None else values.price_override,
                sync_status=statuses.get(key.entity_ref),
            ))

        summary = ModifierConfigSummary(
            total_options=len(modifiers),
            enabled_options=sum(1 for m in modifiers if m.enabled),
            custom_price_options=sum(1 for m in modifiers if m.price_override is not None and m.price_override != m.base_price),
        )
        return ModifierConfigOut(menu_group_id=menu_group_id, pos_item_id=pos_item_id, modifiers=modifiers, summary=summary)

    def save_modifier_config(self, modifiers: Iterable, menu_group_id: int) -> SaveConfigResult:
        get_menu_group_or_404(self.db, menu_group_id)
        patches: Dict[CompositeKey, Mapping] = {}
        for entry in modifiers:
            data = entry.model_dump() if hasattr(entry, "model_dump") else dict(entry)
            try:
                key = CompositeKey.for_modifier_option(
                    data.get("pos_item_id") or "",
                    data.get("modifier_group_id") or "",
                    data.get("modifier_option_id") or "",
                    menu_group_id,
                )
            except ValueError as e:
                raise ValidationError(str(e)) from e
            patch = _patch_from(entry)
            if patch:
                patches[key] = patch
        if not patches:
            return SaveConfigResult(success=True)
        result = _save_result(self.store.batch_upsert(patches))
        logger.info(
            "saved modifier config for menu group %s: %d updated, %d created, %d failed",
            menu_group_id, result.updated_count, result.created_count, len(result.errors),
        )
        return result
