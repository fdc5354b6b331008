"""
Sync orchestrator.

Turns the local state of one or more menu groups (memberships, category
items, committed overrides, availability) into a full menu document,
submits it through the platform adapter and records the outcome per entity.

The platform only knows full replacement, so every submission carries the
whole menu; clearing is the submission of an empty document.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menusync import models
from menusync.core.config import settings
from menusync.schemas.menu_sync import (
    CategoryPayload,
    ClearResult,
    EntityRef,
    ItemPayload,
    LocalizedText,
    MenuPayload,
    MenuType,
    ModifierGroupPayload,
    ModifierOptionPayload,
    PlatformMenuPayload,
    PriceInfo,
    PriceOverridePayload,
    ServiceAvailabilityPayload,
    SyncAllResult,
    SyncHistoryOut,
    SyncHistoryPage,
    SyncResult,
    SyncStats,
    TimePeriodPayload,
)
from menusync.services.catalog.base import CatalogService
from menusync.services.platform.base import AdapterResponse, PlatformAdapter
from .errors import RemotePlatformError, ValidationError
from .keys import CompositeKey
from .menu_groups import WEEKDAYS
from .overrides import ConfigOverrideStore, OverrideValues
from .view import MenuGroupView, get_menu_group_or_404, load_menu_group_view

logger = logging.getLogger(__name__)

# sync record statuses
UNSYNCED = "unsynced"
SUCCESS = "success"
ERROR = "error"

# history sync types
SYNC_MENU_GROUP = "menu_group"
SYNC_ALL = "all"
SYNC_CLEAR = "clear"


@dataclass
class _Assembly:
    payload: PlatformMenuPayload
    included: List[CompositeKey] = field(default_factory=list)
    stats: SyncStats = field(default_factory=SyncStats)


def schedule_of(group: models.MenuGroup) -> List[ServiceAvailabilityPayload]:
    availability = group.service_availability or {}
    out = []
    for day in WEEKDAYS:
        periods = availability.get(day) or []
        if not periods:
            continue
        out.append(ServiceAvailabilityPayload(
            day_of_week=day,
            time_periods=[TimePeriodPayload(start_time=p["start_time"], end_time=p["end_time"]) for p in periods],
        ))
    return out


class SyncOrchestrator:
    def __init__(self, db: Session, catalog: CatalogService, adapter: PlatformAdapter, locale: Optional[str] = None):
        self.db = db
        self.catalog = catalog
        self.adapter = adapter
        self.locale = locale or settings.DEFAULT_LOCALE
        self.store = ConfigOverrideStore(db)

    def _text(self, value: str) -> LocalizedText:
        return LocalizedText.of(value, self.locale)

    # payload assembly

    def _add_group(self, asm: _Assembly, view: MenuGroupView, items: Dict[str, ItemPayload], custom_priced: Set[CompositeKey], skipped: Set[Tuple[int, str]]) -> None:
        group = view.menu_group
        menu_id = str(group.id)
        committed = self.store.load(group.id)
        menu = MenuPayload(id=menu_id, title=self._text(group.name), service_availability=schedule_of(group))
        placed: Set[str] = set()

        for pos_item_id in view.missing_item_ids:
            skipped.add((group.id, pos_item_id))

        for cat_view in view.categories:
            entities = []
            for item in cat_view.items:
                key = item.config_key(group.id)
                values = committed.get(key, OverrideValues())
                if not values.enabled:
                    skipped.add((group.id, item.pos_item_id))
                    continue
                entities.append(EntityRef(id=item.pos_item_id))
                if item.pos_item_id in placed:
                    continue
                placed.add(item.pos_item_id)

                payload_item = items.get(item.pos_item_id)
                if payload_item is None:
                    payload_item = ItemPayload(
                        id=item.pos_item_id,
                        title=self._text(item.name),
                        description=self._text(item.description) if item.description else None,
                        price_info=PriceInfo(price=item.base_price),
                    )
                    items[item.pos_item_id] = payload_item
                    asm.payload.items.append(payload_item)
                if values.price_override is not None and values.price_override != item.base_price:
                    payload_item.price_info.overrides.append(
                        PriceOverridePayload(menu_id=menu_id, price=values.price_override)
                    )
                    custom_priced.add(key)
                asm.included.append(key)
                self._add_modifiers(asm, view, item.pos_item_id, payload_item, menu_id, committed)

            if not entities:
                # nothing enabled in this category for this menu
                continue
            asm.payload.categories.append(CategoryPayload(
                id=str(cat_view.category.id),
                menu_id=menu_id,
                title=self._text(cat_view.category.name),
                entities=entities,
            ))
            menu.category_ids.append(str(cat_view.category.id))

        asm.payload.menus.append(menu)

    def _add_modifiers(self, asm: _Assembly, view: MenuGroupView, pos_item_id: str, payload_item: ItemPayload, menu_id: str, committed: Dict[CompositeKey, OverrideValues]) -> None:
        groups: Dict[str, ModifierGroupPayload] = {}
        for opt in view.modifier_options.get(pos_item_id, []):
            key = opt.config_key(view.menu_group.id)
            values = committed.get(key, OverrideValues())
            if not values.enabled:
                continue
            mg = groups.get(opt.modifier_group_id)
            if mg is None:
                mg = ModifierGroupPayload(
                    id=opt.modifier_group_id,
                    item_id=pos_item_id,
                    menu_id=menu_id,
                    title=self._text(opt.modifier_group_name or opt.modifier_group_id),
                )
                groups[opt.modifier_group_id] = mg
            price = opt.base_price if values.price_override is None else values.price_override
            mg.modifier_options.append(ModifierOptionPayload(
                id=opt.modifier_option_id,
                title=self._text(opt.name),
                price_info=PriceInfo(price=price),
            ))
            asm.included.append(key)

        for mg_id, mg in groups.items():
            asm.payload.modifier_groups.append(mg)
            if mg_id not in payload_item.modifier_group_ids:
                payload_item.modifier_group_ids.append(mg_id)

    def _assemble(self, group_ids: Sequence[int], menu_type: MenuType) -> _Assembly:
        asm = _Assembly(payload=PlatformMenuPayload(menu_type=menu_type))
        items: Dict[str, ItemPayload] = {}
        custom_priced: Set[CompositeKey] = set()
        skipped: Set[Tuple[int, str]] = set()
        for group_id in group_ids:
            view = load_menu_group_view(self.db, self.catalog, group_id)
            self._add_group(asm, view, items, custom_priced, skipped)

        asm.stats = SyncStats(
            item_count=len(asm.payload.items),
            category_count=len(asm.payload.categories),
            modifier_group_count=len(asm.payload.modifier_groups),
            skipped_count=len(skipped),
            custom_price_count=len(custom_priced),
        )
        return asm

    def build_payload(self, menu_group_id: int, menu_type: MenuType = MenuType.DELIVERY) -> PlatformMenuPayload:
        return self._assemble([menu_group_id], MenuType(menu_type)).payload

    # submission

    def _write_record(self, key: CompositeKey, status: str, detail: Optional[str], at: datetime) -> None:
        record = (
            self.db.query(models.SyncRecord)
            .filter(
                models.SyncRecord.scope == key.scope.value,
                models.SyncRecord.entity_ref == key.entity_ref,
                models.SyncRecord.menu_group_id == key.menu_group_id,
            )
            .first()
        )
        if record is None:
            record = models.SyncRecord(
                scope=key.scope.value,
                entity_ref=key.entity_ref,
                menu_group_id=key.menu_group_id,
                pos_item_id=key.pos_item_id,
            )
            self.db.add(record)
        record.status = status
        record.error_detail = detail
        record.last_synced_at = at
        self.db.flush()

    def _mark_groups(self, group_ids: Sequence[int], status: str, error: Optional[str], at: datetime) -> None:
        for group_id in group_ids:
            group = self.db.get(models.MenuGroup, group_id)
            if group is None:
                continue
            group.sync_status = status
            group.sync_error = error
            if status != ERROR:
                group.last_synced_at = at

    def _history(self, tenant_id: str, menu_group_id: Optional[int], sync_type: str, menu_type: MenuType, stats: SyncStats, success: bool, error: Optional[str], at: datetime) -> None:
        self.db.add(models.MenuSyncHistory(
            tenant_id=tenant_id,
            menu_group_id=menu_group_id,
            sync_type=sync_type,
            menu_type=menu_type.value,
            item_count=stats.item_count,
            category_count=stats.category_count,
            modifier_group_count=stats.modifier_group_count,
            skipped_count=stats.skipped_count,
            custom_price_count=stats.custom_price_count,
            success=success,
            error_message=error,
            synced_at=at,
        ))

    def _call_adapter(self, tenant_id: str, payload: PlatformMenuPayload) -> AdapterResponse:
        return self.adapter.submit_menu(tenant_id, payload)

    def submit(self, tenant_id: str, asm: _Assembly, group_ids: Sequence[int], sync_type: str, menu_group_id: Optional[int] = None) -> SyncResult:
        menu_type = asm.payload.menu_type
        started = datetime.utcnow()
        try:
            response = self._call_adapter(tenant_id, asm.payload)
        except RemotePlatformError as e:
            self._mark_groups(group_ids, ERROR, e.message, started)
            self._history(tenant_id, menu_group_id, sync_type, menu_type, asm.stats, False, e.message, started)
            self.db.commit()
            logger.error("sync of %s menu for tenant %s failed: %s", menu_type.value, tenant_id, e.message)
            raise

        rejected = {(err.scope, tuple(err.entity_id)): err.detail for err in response.errors}
        # a refused call without per-entity detail fails every entity
        blanket = None if response.success or response.errors else (response.message or "rejected by platform")

        failed = 0
        for key in asm.included:
            detail = rejected.get((key.scope.value, key.entity_id)) or blanket
            try:
                with self.db.begin_nested():
                    self._write_record(key, ERROR if detail else SUCCESS, detail, started)
            except SQLAlchemyError as e:
                logger.warning("could not record sync status for %s: %s", key.storage_key(), e)
                continue
            if detail:
                failed += 1

        success = response.success and not response.errors
        message = response.message or ("menu synced" if success else "menu synced with errors")
        self._mark_groups(group_ids, SUCCESS if success else ERROR, None if success else message, started)
        self._history(tenant_id, menu_group_id, sync_type, menu_type, asm.stats, success, None if success else message, started)
        self.db.commit()

        logger.info(
            "synced %s menu for tenant %s: %d item(s), %d categories, %d modifier group(s), %d skipped, %d failed",
            menu_type.value, tenant_id, asm.stats.item_count, asm.stats.category_count,
            asm.stats.modifier_group_count, asm.stats.skipped_count, failed,
        )
        return SyncResult(
            success=success,
            message=message,
            menu_type=menu_type,
            stats=asm.stats,
            errors=list(response.errors),
        )

    def sync_menu_group(self, menu_group_id: int, menu_type: MenuType = MenuType.DELIVERY) -> SyncResult:
        group = get_menu_group_or_404(self.db, menu_group_id)
        asm = self._assemble([group.id], MenuType(menu_type))
        return self.submit(group.tenant_id, asm, [group.id], SYNC_MENU_GROUP, menu_group_id=group.id)

    def sync_all(self, tenant_id: str, include_pickup: bool = False) -> SyncAllResult:
        groups = (
            self.db.query(models.MenuGroup)
            .filter(models.MenuGroup.tenant_id == tenant_id)
            .order_by(models.MenuGroup.display_order.asc(), models.MenuGroup.id.asc())
            .all()
        )
        if not groups:
            raise ValidationError(f"tenant {tenant_id} has no menu groups to sync")
        group_ids = [g.id for g in groups]

        menu_types = [MenuType.DELIVERY]
        if include_pickup:
            menu_types.append(MenuType.PICKUP)

        base = self._assemble(group_ids, MenuType.DELIVERY)
        results: Dict[str, SyncResult] = {}
        for menu_type in menu_types:
            asm = _Assembly(
                payload=base.payload.model_copy(update={"menu_type": menu_type}),
                included=base.included,
                stats=base.stats,
            )
            results[menu_type.value] = self.submit(tenant_id, asm, group_ids, SYNC_ALL)

        success = all(r.success for r in results.values())
        return SyncAllResult(
            success=success,
            message=f"synced {len(group_ids)} menu group(s)" if success else "one or more menus failed to sync",
            results=results,
        )

    def clear(self, menu_group_id: int, menu_type: MenuType = MenuType.DELIVERY) -> ClearResult:
        """submit an empty document; the platform has no delete call."""
        group = get_menu_group_or_404(self.db, menu_group_id)
        menu_type = MenuType(menu_type)
        started = datetime.utcnow()
        empty_stats = SyncStats()
        try:
            response = self._call_adapter(group.tenant_id, PlatformMenuPayload.empty(menu_type))
        except RemotePlatformError as e:
            group.sync_status = ERROR
            group.sync_error = e.message
            self._history(group.tenant_id, group.id, SYNC_CLEAR, menu_type, empty_stats, False, e.message, started)
            self.db.commit()
            raise

        if response.success:
            reset = (
                self.db.query(models.SyncRecord)
                .filter(models.SyncRecord.menu_group_id == group.id)
                .update({"status": UNSYNCED, "error_detail": None}, synchronize_session="evaluate")
            )
            group.sync_status = "cleared"
            group.sync_error = None
            group.last_synced_at = started
            logger.info("cleared %s menu for menu group %s (%d record(s) reset)", menu_type.value, group.id, reset)
        else:
            group.sync_status = ERROR
            group.sync_error = response.message or "clear rejected by platform"
        self._history(group.tenant_id, group.id, SYNC_CLEAR, menu_type, empty_stats, response.success, group.sync_error, started)
        self.db.commit()
        return ClearResult(
            success=response.success,
            message=response.message or ("menu cleared" if response.success else "clear failed"),
            menu_type=menu_type,
        )

    # read side

    def history(self, tenant_id: str, limit: int = 20, offset: int = 0) -> SyncHistoryPage:
        q = self.db.query(models.MenuSyncHistory).filter(models.MenuSyncHistory.tenant_id == tenant_id)
        total = q.count()
        rows = (
            q.order_by(models.MenuSyncHistory.synced_at.desc(), models.MenuSyncHistory.id.desc())
            .offset(max(offset, 0))
            .limit(max(limit, 1))
            .all()
        )
        return SyncHistoryPage(histories=[SyncHistoryOut.model_validate(r) for r in rows], total=total)

    def sync_records(self, menu_group_id: int) -> List[models.SyncRecord]:
        get_menu_group_or_404(self.db, menu_group_id)
        return (
            self.db.query(models.SyncRecord)
            .filter(models.SyncRecord.menu_group_id == menu_group_id)
            .order_by(models.SyncRecord.scope.asc(), models.SyncRecord.id.asc())
            .all()
        )
