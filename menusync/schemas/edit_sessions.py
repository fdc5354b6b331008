from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class EditSessionCreate(BaseModel):
    tenant_id: str = Field(..., min_length=1, max_length=64)
    menu_group_id: int


class FieldEdit(BaseModel):
    """one staged change; modifier options carry all three ids."""
    pos_item_id: str = Field(..., min_length=1)
    modifier_group_id: Optional[str] = None
    modifier_option_id: Optional[str] = None
    field: str = Field(..., description="enabled or price_override")
    value: Any = None


class FieldEditsRequest(BaseModel):
    edits: List[FieldEdit] = Field(..., min_length=1)


class PriceAdjustmentRequest(BaseModel):
    percent: Decimal
    include_modifiers: bool = True


class PriceAdjustmentOut(BaseModel):
    percent: Decimal
    items_adjusted: int
    modifier_options_adjusted: int


class PendingEdit(BaseModel):
    scope: str
    entity_id: List[str]
    enabled: Optional[bool] = None
    price_override: Optional[int] = None
    changed_fields: List[str]


class SessionModifierOptionView(BaseModel):
    modifier_group_id: str
    modifier_option_id: str
    name: str
    base_price: int
    enabled: bool
    effective_price: int
    dirty: bool = False


class SessionItemView(BaseModel):
    """an item as it would be saved if the session were committed now."""
    pos_item_id: str
    name: str
    base_price: int
    enabled: bool
    effective_price: int
    dirty: bool = False
    modifier_options: List[SessionModifierOptionView] = []


class EditSessionOut(BaseModel):
    id: str
    tenant_id: str
    menu_group_id: int
    state: str
    created_at: datetime
    pending: List[PendingEdit] = []


class CommitError(BaseModel):
    scope: str
    entity_id: List[str]
    detail: str


class CommitOut(BaseModel):
    success: bool
    state: str
    items_changed: int
    modifier_options_changed: int
    created_count: int
    updated_count: int
    errors: List[CommitError] = []
