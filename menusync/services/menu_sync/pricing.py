"""Uniform percentage price adjustment over the items and modifier options in view."""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from .errors import ValidationError
from .tracker import PRICE, DirtyChangeTracker

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")


@dataclass
class AdjustmentResult:
    percent: Decimal
    items_adjusted: int = 0
    modifier_options_adjusted: int = 0


def adjusted_price(base_price: int, pct: Decimal) -> int:
    """base * (1 + pct/100), rounded half-up to whole minor units."""
    value = Decimal(base_price) * (Decimal(1) + pct / _HUNDRED)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _as_percent(pct) -> Decimal:
    try:
        value = pct if isinstance(pct, Decimal) else Decimal(str(pct))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"invalid adjustment percent: {pct!r}") from e
    if not value.is_finite():
        raise ValidationError("adjustment percent must be a finite number")
    if value < -_HUNDRED:
        raise ValidationError("adjustment percent cannot be below -100")
    return value


def apply_percent_adjustment(tracker: DirtyChangeTracker, items: Iterable, modifier_options: Iterable, pct) -> AdjustmentResult:
    """stage a price override for every entity, always computed from its base price.

    Nothing is saved here; the affected keys are simply marked dirty in the
    tracker. 0% stages overrides equal to the base price.
    """
    percent = _as_percent(pct)
    result = AdjustmentResult(percent=percent)

    edits = []
    for item in items:
        edits.append((item.config_key(tracker.menu_group_id), PRICE, adjusted_price(item.base_price, percent)))
        result.items_adjusted += 1
    for option in modifier_options:
        edits.append((option.config_key(tracker.menu_group_id), PRICE, adjusted_price(option.base_price, percent)))
        result.modifier_options_adjusted += 1
    tracker.set_fields(edits)

    logger.info(
        "staged %s%% adjustment on menu group %s: %d item(s), %d modifier option(s)",
        percent, tracker.menu_group_id, result.items_adjusted, result.modifier_options_adjusted,
    )
    return result
