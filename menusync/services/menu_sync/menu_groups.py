"""
Menu group management.

A menu group is an independently scheduled sub-menu of a tenant. Its
availability is stored as {weekday: [{"start_time": "HH:MM", "end_time": "HH:MM"}]};
days absent from the mapping are closed.
"""
import logging
import re
from datetime import datetime, time
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from menusync import models
from menusync.services.catalog.base import CatalogService
from .categories import CategoryRegistry
from .errors import ValidationError
from .overrides import ConfigOverrideStore
from .sessions import edit_sessions
from .view import get_menu_group_or_404

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DEFAULT_PERIOD = {"start_time": "00:00", "end_time": "23:59"}

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def _parse_time(value, day: str) -> time:
    if not isinstance(value, str) or not _HHMM.match(value):
        raise ValidationError(f"{day}: time must be HH:MM, got {value!r}")
    hh, mm = value.split(":")
    return time(int(hh), int(mm))


def default_availability() -> Dict[str, List[Dict[str, str]]]:
    return {day: [dict(DEFAULT_PERIOD)] for day in WEEKDAYS}


def normalize_availability(availability: Optional[Mapping]) -> Dict[str, List[Dict[str, str]]]:
    """validate an availability mapping; None means open all day, every day.

    Intervals are kept as given (no merging, no overlap check), only ordered
    by weekday.
    """
    if availability is None:
        return default_availability()
    if not isinstance(availability, Mapping):
        raise ValidationError("service availability must be a mapping of weekday to time periods")

    out: Dict[str, List[Dict[str, str]]] = {}
    for day, periods in availability.items():
        key = str(day).lower()
        if key not in WEEKDAYS:
            raise ValidationError(f"unknown weekday '{day}'")
        if key in out:
            raise ValidationError(f"weekday '{key}' given twice")
        if periods is None:
            periods = []
        if not isinstance(periods, (list, tuple)):
            raise ValidationError(f"{key}: time periods must be a list")
        normalized = []
        for period in periods:
            if hasattr(period, "model_dump"):
                period = period.model_dump()
            if not isinstance(period, Mapping):
                raise ValidationError(f"{key}: each time period needs start_time and end_time")
            start, end = period.get("start_time"), period.get("end_time")
            if _parse_time(start, key) >= _parse_time(end, key):
                raise ValidationError(f"{key}: start_time {start} must be before end_time {end}")
            normalized.append({"start_time": start, "end_time": end})
        out[key] = normalized
    return {day: out[day] for day in WEEKDAYS if day in out}


def is_serving_at(group: models.MenuGroup, when: datetime) -> bool:
    periods = (group.service_availability or {}).get(WEEKDAYS[when.weekday()], [])
    current = when.time().replace(second=0, microsecond=0)
    for period in periods:
        start = _parse_time(period["start_time"], "")
        end = _parse_time(period["end_time"], "")
        if start <= current <= end:
            return True
    return False


class MenuGroupManager:
    def __init__(self, db: Session, catalog: Optional[CatalogService] = None):
        self.db = db
        self.catalog = catalog

    def get(self, menu_group_id: int) -> models.MenuGroup:
        return get_menu_group_or_404(self.db, menu_group_id)

    def list(self, tenant_id: str) -> List[models.MenuGroup]:
        return (
            self.db.query(models.MenuGroup)
            .filter(models.MenuGroup.tenant_id == tenant_id)
            .order_by(models.MenuGroup.display_order.asc(), models.MenuGroup.id.asc())
            .all()
        )

    def create(
        self,
        tenant_id: str,
        name: str,
        availability: Optional[Mapping] = None,
        display_order: Optional[int] = None,
        category_ids: Optional[Sequence[int]] = None,
    ) -> models.MenuGroup:
        """create a group, optionally with an initial ordered set of categories.

        Everything is validated before anything is written; the group and its
        memberships are committed together.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Menu group name is required")
        if not tenant_id:
            raise ValidationError("tenant_id is required")
        if display_order is not None and display_order < 0:
            raise ValidationError("display_order cannot be negative")
        service_availability = normalize_availability(availability)

        categories = []
        registry = None
        if category_ids:
            if self.catalog is None:
                raise ValidationError("a catalog is required to add categories")
            registry = CategoryRegistry(self.db, self.catalog)
            categories = registry.categories_for_menu(tenant_id, list(category_ids))

        if display_order is None:
            display_order = self.db.query(models.MenuGroup).filter(models.MenuGroup.tenant_id == tenant_id).count()
        group = models.MenuGroup(
            tenant_id=tenant_id,
            name=name,
            display_order=display_order,
            service_availability=service_availability,
        )
        self.db.add(group)
        try:
            self.db.flush()
            for order, category in enumerate(categories):
                registry.attach(group, category, order)
        except Exception:
            self.db.rollback()
            raise
        self.db.commit()
        self.db.refresh(group)
        logger.info(
            "created menu group %s '%s' for tenant %s with %d category(ies)",
            group.id, group.name, tenant_id, len(categories),
        )
        return group

    def update(
        self,
        menu_group_id: int,
        name: Optional[str] = None,
        availability: Optional[Mapping] = None,
        display_order: Optional[int] = None,
    ) -> models.MenuGroup:
        group = self.get(menu_group_id)
        if display_order is not None and display_order < 0:
            raise ValidationError("display_order cannot be negative")
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Menu group name cannot be empty")
        if availability is not None:
            availability = normalize_availability(availability)

        if name is not None:
            group.name = name
        if availability is not None:
            group.service_availability = availability
        if display_order is not None:
            group.display_order = display_order
        self.db.commit()
        self.db.refresh(group)
        return group

    def delete(self, menu_group_id: int) -> None:
        """remove the group locally; the remote menu keeps it until the next sync."""
        group = self.get(menu_group_id)
        overrides = ConfigOverrideStore(self.db).delete_menu_group(menu_group_id)
        records = (
            self.db.query(models.SyncRecord)
            .filter(models.SyncRecord.menu_group_id == menu_group_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(group)
        self.db.commit()
        self.db.expire_all()
        sessions = edit_sessions.drop_menu_group(menu_group_id)
        logger.info(
            "deleted menu group %s (%d override(s), %d sync record(s), %d edit session(s))",
            menu_group_id, overrides, records, sessions,
        )
