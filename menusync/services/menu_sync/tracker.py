"""
Dirty-change tracker.

An edit buffer for one menu group. Edits land here first and only reach the
override store on commit(). Effective values resolve as: pending edit, then
committed override, then the entity's base value.

Lifecycle: CLEAN -> DIRTY -> COMMITTING -> CLEAN | ERROR. A session left in
ERROR still holds the keys that failed to save and can commit again.
"""
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import SaveInProgressError, ValidationError
from .keys import CompositeKey, ConfigScope
from .overrides import OVERRIDE_FIELDS, ConfigOverrideStore, OverrideValues, UpsertResult, validate_patch

logger = logging.getLogger(__name__)

ENABLED = "enabled"
PRICE = "price_override"


class EditState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    COMMITTING = "committing"
    ERROR = "error"


@dataclass
class CommitResult:
    items_changed: int = 0
    modifier_options_changed: int = 0
    created_count: int = 0
    updated_count: int = 0
    errors: List[UpsertResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class DirtyChangeTracker:
    def __init__(self, menu_group_id: int, committed: Optional[Mapping[CompositeKey, OverrideValues]] = None):
        self.menu_group_id = int(menu_group_id)
        self._committed: Dict[CompositeKey, OverrideValues] = dict(committed or {})
        self._pending: Dict[CompositeKey, Dict[str, Any]] = {}
        self._state = EditState.CLEAN
        self._commit_lock = threading.Lock()

    @classmethod
    def load(cls, store: ConfigOverrideStore, menu_group_id: int) -> "DirtyChangeTracker":
        return cls(menu_group_id, store.load(menu_group_id))

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def pending(self) -> Dict[CompositeKey, Dict[str, Any]]:
        return {k: dict(v) for k, v in self._pending.items()}

    def is_dirty(self, key: CompositeKey) -> bool:
        return key in self._pending

    def _check(self, key: CompositeKey, field_name: str, value: Any) -> None:
        if field_name not in OVERRIDE_FIELDS:
            raise ValidationError(f"unknown field '{field_name}'")
        if key.menu_group_id != self.menu_group_id:
            raise ValidationError(
                f"key belongs to menu group {key.menu_group_id}, session edits {self.menu_group_id}"
            )
        validate_patch({field_name: value})

    def set_field(self, key: CompositeKey, field_name: str, value: Any) -> None:
        self.set_fields([(key, field_name, value)])

    def set_fields(self, edits: Iterable[Tuple[CompositeKey, str, Any]]) -> None:
        """stage a batch of edits; nothing is staged unless every edit is valid."""
        edits = list(edits)
        for key, field_name, value in edits:
            self._check(key, field_name, value)
        for key, field_name, value in edits:
            self._pending.setdefault(key, {})[field_name] = value
        if edits and self._state is not EditState.COMMITTING:
            self._state = EditState.DIRTY

    def effective(self, entity, field_name: str) -> Any:
        """resolve a field for a catalog entity (anything with config_key() and base_price)."""
        key = entity.config_key(self.menu_group_id)
        if field_name == ENABLED:
            return self.effective_enabled(key)
        if field_name == PRICE:
            return self.effective_price(key, entity.base_price)
        raise ValidationError(f"unknown field '{field_name}'")

    def effective_enabled(self, key: CompositeKey) -> bool:
        patch = self._pending.get(key)
        if patch is not None and ENABLED in patch:
            return patch[ENABLED]
        committed = self._committed.get(key)
        if committed is not None:
            return committed.enabled
        return True

    def effective_price(self, key: CompositeKey, base_price: int) -> int:
        # an explicit None (pending or committed) means "back to base price"
        patch = self._pending.get(key)
        if patch is not None and PRICE in patch:
            value = patch[PRICE]
            return base_price if value is None else value
        committed = self._committed.get(key)
        if committed is not None and committed.price_override is not None:
            return committed.price_override
        return base_price

    def commit(self, store: ConfigOverrideStore) -> CommitResult:
        """flush pending edits; failed keys stay pending for a retry."""
        if not self._commit_lock.acquire(blocking=False):
            raise SaveInProgressError("a save for this menu is already in progress")
        try:
            if not self._pending:
                return CommitResult()
            self._state = EditState.COMMITTING
            snapshot = self.pending
            item_patches = {k: p for k, p in snapshot.items() if k.scope is ConfigScope.ITEM}
            option_patches = {k: p for k, p in snapshot.items() if k.scope is ConfigScope.MODIFIER_OPTION}

            results: List[UpsertResult] = []
            try:
                # items and modifier options are saved as two independent batches
                for patches in (item_patches, option_patches):
                    if patches:
                        results.extend(store.batch_upsert(patches))
            except Exception:
                self._state = EditState.ERROR
                logger.exception("commit for menu group %s failed", self.menu_group_id)
                raise

            outcome = CommitResult()
            for r in results:
                if not r.success:
                    outcome.errors.append(r)
                    continue
                applied = snapshot[r.key]
                previous = self._committed.get(r.key, OverrideValues())
                self._committed[r.key] = OverrideValues(
                    enabled=applied.get(ENABLED, previous.enabled),
                    price_override=applied.get(PRICE, previous.price_override),
                )
                # drop only what was saved, edits made meanwhile stay pending
                if self._pending.get(r.key) == applied:
                    del self._pending[r.key]
                if r.key.scope is ConfigScope.ITEM:
                    outcome.items_changed += 1
                else:
                    outcome.modifier_options_changed += 1
                if r.created:
                    outcome.created_count += 1
                else:
                    outcome.updated_count += 1

            if outcome.errors:
                self._state = EditState.ERROR
            else:
                self._state = EditState.DIRTY if self._pending else EditState.CLEAN
            logger.info(
                "menu group %s commit: %d item(s), %d modifier option(s), %d failed",
                self.menu_group_id, outcome.items_changed, outcome.modifier_options_changed, len(outcome.errors),
            )
            return outcome
        finally:
            self._commit_lock.release()

    def discard(self) -> None:
        if self._state is EditState.COMMITTING:
            raise SaveInProgressError("cannot discard while a save is in progress")
        self._pending.clear()
        self._state = EditState.CLEAN
