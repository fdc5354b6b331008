# tests/test_pricing.py
# bulk percentage price adjustment

from decimal import Decimal

import pytest

from menusync.schemas.catalog import CatalogItem, CatalogModifierOption
from menusync.services.menu_sync.errors import ValidationError
from menusync.services.menu_sync.keys import CompositeKey
from menusync.services.menu_sync.overrides import OverrideValues
from menusync.services.menu_sync.pricing import adjusted_price, apply_percent_adjustment
from menusync.services.menu_sync.tracker import PRICE, DirtyChangeTracker, EditState

ITEMS = [
    CatalogItem(pos_item_id="burger", name="Burger", base_price=500),
    CatalogItem(pos_item_id="veggie", name="Veggie", base_price=15),
]
OPTIONS = [
    CatalogModifierOption(
        pos_item_id="burger", modifier_group_id="mg-size", modifier_option_id="large", name="Large", base_price=100,
    ),
]


class TestAdjustedPrice:
    """rounding"""

    def test_plus_ten_percent(self):
        assert adjusted_price(500, Decimal("10")) == 550

    def test_minus_hundred_percent(self):
        assert adjusted_price(500, Decimal("-100")) == 0

    def test_half_up(self):
        assert adjusted_price(15, Decimal("10")) == 17  # 16.5
        assert adjusted_price(5, Decimal("-10")) == 5  # 4.5


class TestApplyPercentAdjustment:
    """staging into the tracker"""

    def test_stages_items_and_options(self):
        tracker = DirtyChangeTracker(1)
        result = apply_percent_adjustment(tracker, ITEMS, OPTIONS, Decimal("10"))
        assert result.items_adjusted == 2
        assert result.modifier_options_adjusted == 1
        assert tracker.effective(ITEMS[0], PRICE) == 550
        assert tracker.effective(ITEMS[1], PRICE) == 17
        assert tracker.effective(OPTIONS[0], PRICE) == 110

    def test_computed_from_base_not_compounded(self):
        key = ITEMS[0].config_key(1)
        tracker = DirtyChangeTracker(1, {key: OverrideValues(price_override=700)})
        apply_percent_adjustment(tracker, ITEMS, [], 10)
        apply_percent_adjustment(tracker, ITEMS, [], 10)
        assert tracker.effective(ITEMS[0], PRICE) == 550

    def test_zero_percent_writes_base(self):
        tracker = DirtyChangeTracker(1)
        apply_percent_adjustment(tracker, ITEMS, OPTIONS, 0)
        assert tracker.pending[CompositeKey.for_item("burger", 1)] == {PRICE: 500}
        assert tracker.effective(ITEMS[0], PRICE) == 500
        assert tracker.effective(OPTIONS[0], PRICE) == 100

    def test_only_staged(self):
        tracker = DirtyChangeTracker(1)
        apply_percent_adjustment(tracker, ITEMS, OPTIONS, 5)
        assert tracker.state is EditState.DIRTY
        assert len(tracker.pending) == 3

    @pytest.mark.parametrize("pct", ["-100.01", "NaN", "abc"])
    def test_invalid_percent(self, pct):
        with pytest.raises(ValidationError):
            apply_percent_adjustment(DirtyChangeTracker(1), ITEMS, [], pct)
