# tests/test_tracker.py
# dirty-change tracker: effective values, commit, state machine

import threading

import pytest

from menusync.schemas.catalog import CatalogItem
from menusync.services.menu_sync.errors import SaveInProgressError, ValidationError
from menusync.services.menu_sync.keys import CompositeKey
from menusync.services.menu_sync.menu_groups import MenuGroupManager
from menusync.services.menu_sync.overrides import ConfigOverrideStore, OverrideValues, UpsertResult
from menusync.services.menu_sync.tracker import ENABLED, PRICE, DirtyChangeTracker, EditState

BURGER = CatalogItem(pos_item_id="burger", name="Burger", base_price=500)


class TestEffectiveValues:
    """pending > committed > base"""

    def test_defaults(self):
        tracker = DirtyChangeTracker(1)
        assert tracker.effective(BURGER, ENABLED) is True
        assert tracker.effective(BURGER, PRICE) == 500

    def test_committed_wins_over_base(self):
        key = BURGER.config_key(1)
        tracker = DirtyChangeTracker(1, {key: OverrideValues(enabled=False, price_override=450)})
        assert tracker.effective(BURGER, ENABLED) is False
        assert tracker.effective(BURGER, PRICE) == 450

    def test_pending_wins_over_committed(self):
        key = BURGER.config_key(1)
        tracker = DirtyChangeTracker(1, {key: OverrideValues(enabled=False, price_override=450)})
        tracker.set_field(key, ENABLED, True)
        tracker.set_field(key, PRICE, 520)
        assert tracker.effective(BURGER, ENABLED) is True
        assert tracker.effective(BURGER, PRICE) == 520

    def test_pending_null_price_resets_to_base(self):
        key = BURGER.config_key(1)
        tracker = DirtyChangeTracker(1, {key: OverrideValues(price_override=450)})
        tracker.set_field(key, PRICE, None)
        assert tracker.effective(BURGER, PRICE) == 500


class TestSetField:
    """edit validation and state"""

    def test_marks_dirty(self):
        tracker = DirtyChangeTracker(1)
        key = BURGER.config_key(1)
        tracker.set_field(key, ENABLED, False)
        assert tracker.state is EditState.DIRTY
        assert tracker.is_dirty(key)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            DirtyChangeTracker(1).set_field(BURGER.config_key(1), "name", "x")

    def test_foreign_group_key(self):
        with pytest.raises(ValidationError):
            DirtyChangeTracker(1).set_field(BURGER.config_key(2), ENABLED, False)

    def test_bad_value(self):
        with pytest.raises(ValidationError):
            DirtyChangeTracker(1).set_field(BURGER.config_key(1), PRICE, -10)

    def test_batch_with_bad_edit_stages_nothing(self):
        tracker = DirtyChangeTracker(1)
        with pytest.raises(ValidationError):
            tracker.set_fields([
                (BURGER.config_key(1), ENABLED, False),
                (CompositeKey.for_item("cola", 1), PRICE, -1),
            ])
        assert tracker.pending == {}
        assert tracker.state is EditState.CLEAN

    def test_batch_staged_together(self):
        tracker = DirtyChangeTracker(1)
        cola = CompositeKey.for_item("cola", 1)
        tracker.set_fields([(BURGER.config_key(1), ENABLED, False), (cola, PRICE, 250)])
        assert tracker.pending == {BURGER.config_key(1): {ENABLED: False}, cola: {PRICE: 250}}
        assert tracker.state is EditState.DIRTY

    def test_discard(self):
        tracker = DirtyChangeTracker(1)
        tracker.set_field(BURGER.config_key(1), ENABLED, False)
        tracker.discard()
        assert tracker.pending == {}
        assert tracker.state is EditState.CLEAN


class TestCommit:
    """flush to the override store"""

    @pytest.fixture
    def group(self, db, tenant):
        return MenuGroupManager(db).create(tenant, "Lunch")

    def test_commit_persists_and_cleans(self, db, group):
        store = ConfigOverrideStore(db)
        tracker = DirtyChangeTracker.load(store, group.id)
        item = CompositeKey.for_item("burger", group.id)
        option = CompositeKey.for_modifier_option("burger", "mg-size", "large", group.id)
        tracker.set_field(item, ENABLED, False)
        tracker.set_field(option, PRICE, 150)

        result = tracker.commit(store)

        assert result.success
        assert result.items_changed == 1
        assert result.modifier_options_changed == 1
        assert result.created_count == 2
        assert tracker.state is EditState.CLEAN
        assert tracker.pending == {}
        assert tracker.effective(BURGER, ENABLED) is False
        assert store.load(group.id)[option] == OverrideValues(price_override=150)

    def test_second_commit_counts_updates(self, db, group):
        store = ConfigOverrideStore(db)
        tracker = DirtyChangeTracker.load(store, group.id)
        key = CompositeKey.for_item("burger", group.id)
        tracker.set_field(key, ENABLED, False)
        tracker.commit(store)
        tracker.set_field(key, ENABLED, True)
        result = tracker.commit(store)
        assert result.updated_count == 1
        assert result.created_count == 0

    def test_empty_commit_is_noop(self, db, group):
        result = DirtyChangeTracker(group.id).commit(ConfigOverrideStore(db))
        assert result.success
        assert result.items_changed == 0

    def test_failed_keys_stay_pending(self, db, group):
        store = ConfigOverrideStore(db)
        tracker = DirtyChangeTracker(group.id)
        good = CompositeKey.for_item("burger", group.id)
        bad = CompositeKey.for_item("cola", group.id)
        tracker.set_field(good, ENABLED, False)
        tracker.set_field(bad, ENABLED, False)

        real = store.batch_upsert

        def flaky(patches):
            results = real({k: v for k, v in patches.items() if k != bad})
            if bad in patches:
                results.append(UpsertResult(key=bad, success=False, error="db write failed"))
            return results

        store.batch_upsert = flaky
        result = tracker.commit(store)

        assert not result.success
        assert [e.key for e in result.errors] == [bad]
        assert tracker.state is EditState.ERROR
        assert list(tracker.pending) == [bad]
        assert not tracker.is_dirty(good)

    def test_items_and_options_saved_as_separate_batches(self, db, group):
        store = ConfigOverrideStore(db)
        batches = []
        real = store.batch_upsert

        def spy(patches):
            batches.append({k.scope.value for k in patches})
            return real(patches)

        store.batch_upsert = spy
        tracker = DirtyChangeTracker(group.id)
        tracker.set_field(CompositeKey.for_item("burger", group.id), ENABLED, False)
        tracker.set_field(CompositeKey.for_modifier_option("burger", "mg-size", "large", group.id), ENABLED, False)
        tracker.commit(store)
        assert batches == [{"item"}, {"modifier_option"}]

    def test_concurrent_commit_rejected(self, db, group):
        store = ConfigOverrideStore(db)
        tracker = DirtyChangeTracker(group.id)
        tracker.set_field(CompositeKey.for_item("burger", group.id), ENABLED, False)

        entered = threading.Event()
        release = threading.Event()
        real = store.batch_upsert

        def slow(patches):
            entered.set()
            release.wait(5)
            return real(patches)

        store.batch_upsert = slow
        worker = threading.Thread(target=tracker.commit, args=(store,))
        worker.start()
        try:
            assert entered.wait(5)
            assert tracker.state is EditState.COMMITTING
            with pytest.raises(SaveInProgressError):
                tracker.commit(store)
        finally:
            release.set()
            worker.join(5)
        assert tracker.state is EditState.CLEAN
