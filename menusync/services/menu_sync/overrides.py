"""
Configuration override store.

Holds the committed enable/price deviations of items and modifier options,
one row per composite key. A key with no row behaves as enabled at base price.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menusync import models
from .errors import ValidationError
from .keys import CompositeKey, ConfigScope

logger = logging.getLogger(__name__)

OVERRIDE_FIELDS = ("enabled", "price_override")


@dataclass(frozen=True)
class OverrideValues:
    """detached snapshot of one committed override."""
    enabled: bool = True
    price_override: Optional[int] = None

    @classmethod
    def from_row(cls, row: models.ConfigOverride) -> "OverrideValues":
        return cls(enabled=bool(row.enabled), price_override=row.price_override)


@dataclass
class UpsertResult:
    key: CompositeKey
    success: bool
    created: bool = False
    error: Optional[str] = None


def validate_patch(patch: Mapping) -> Dict:
    """check a partial override and return it as a plain dict."""
    unknown = set(patch) - set(OVERRIDE_FIELDS)
    if unknown:
        raise ValidationError(f"unknown override field(s): {', '.join(sorted(unknown))}")
    clean = dict(patch)
    if "enabled" in clean and not isinstance(clean["enabled"], bool):
        raise ValidationError("enabled must be a boolean")
    if "price_override" in clean:
        price = clean["price_override"]
        if price is not None:
            if isinstance(price, bool) or not isinstance(price, int):
                raise ValidationError("price_override must be an integer amount of minor units")
            if price < 0:
                raise ValidationError("price_override must not be negative")
    return clean


class ConfigOverrideStore:
    def __init__(self, db: Session):
        self.db = db

    def _row(self, key: CompositeKey) -> Optional[models.ConfigOverride]:
        return (
            self.db.query(models.ConfigOverride)
            .filter(
                models.ConfigOverride.scope == key.scope.value,
                models.ConfigOverride.entity_ref == key.entity_ref,
                models.ConfigOverride.menu_group_id == key.menu_group_id,
            )
            .first()
        )

    def get(self, key: CompositeKey) -> Optional[models.ConfigOverride]:
        return self._row(key)

    def load(
        self,
        menu_group_id: int,
        scope: Optional[ConfigScope] = None,
        pos_item_id: Optional[str] = None,
    ) -> Dict[CompositeKey, OverrideValues]:
        """committed overrides of one menu group, optionally narrowed to a scope or item."""
        q = self.db.query(models.ConfigOverride).filter(models.ConfigOverride.menu_group_id == menu_group_id)
        if scope is not None:
            q = q.filter(models.ConfigOverride.scope == ConfigScope(scope).value)
        if pos_item_id is not None:
            q = q.filter(models.ConfigOverride.pos_item_id == pos_item_id)
        return {
            CompositeKey.from_storage(row.scope, row.entity_ref, row.menu_group_id): OverrideValues.from_row(row)
            for row in q.all()
        }

    def _apply(self, key: CompositeKey, patch: Mapping) -> Tuple[models.ConfigOverride, bool]:
        clean = validate_patch(patch)
        row = self._row(key)
        created = row is None
        if created:
            row = models.ConfigOverride(
                scope=key.scope.value,
                entity_ref=key.entity_ref,
                menu_group_id=key.menu_group_id,
                pos_item_id=key.pos_item_id,
                modifier_group_id=key.modifier_group_id,
                modifier_option_id=key.modifier_option_id,
                enabled=True,
                price_override=None,
            )
        for field, value in clean.items():
            setattr(row, field, value)
        self.db.add(row)
        self.db.flush()
        return row, created

    def upsert(self, key: CompositeKey, patch: Mapping) -> Tuple[models.ConfigOverride, bool]:
        """merge a partial override into the stored one, creating it when missing."""
        row, created = self._apply(key, patch)
        self.db.commit()
        return row, created

    def batch_upsert(self, patches: Mapping[CompositeKey, Mapping]) -> List[UpsertResult]:
        """apply many partial overrides; each key succeeds or fails on its own."""
        results: List[UpsertResult] = []
        for key, patch in patches.items():
            try:
                with self.db.begin_nested():
                    _, created = self._apply(key, patch)
            except (ValidationError, SQLAlchemyError) as e:
                detail = e.message if isinstance(e, ValidationError) else str(e.__class__.__name__)
                logger.warning("override upsert failed for %s: %s", key.storage_key(), detail)
                results.append(UpsertResult(key=key, success=False, error=detail))
                continue
            results.append(UpsertResult(key=key, success=True, created=created))
        self.db.commit()
        ok = sum(1 for r in results if r.success)
        logger.info("batch upsert applied %d/%d override(s)", ok, len(results))
        return results

    def delete_menu_group(self, menu_group_id: int) -> int:
        return (
            self.db.query(models.ConfigOverride)
            .filter(models.ConfigOverride.menu_group_id == menu_group_id)
            .delete(synchronize_session=False)
        )
