from typing import List, Optional
from pydantic import BaseModel, Field


class MenuConfigItem(BaseModel):
    pos_item_id: str
    name: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    base_price: int
    enabled: bool = True
    price_override: Optional[int] = None
    effective_price: int
    sync_status: Optional[str] = None  # unsynced|success|error, None when never synced
    modifier_option_count: int = 0


class MenuConfigSummary(BaseModel):
    total_items: int = 0
    enabled_items: int = 0
    custom_price_items: int = 0


class MenuConfigOut(BaseModel):
    menu_group_id: int
    items: List[MenuConfigItem]
    summary: MenuConfigSummary


class ModifierConfigItem(BaseModel):
    pos_item_id: str
    modifier_group_id: str
    modifier_group_name: str = ""
    modifier_option_id: str
    modifier_option_name: str
    base_price: int
    enabled: bool = True
    price_override: Optional[int] = None
    effective_price: int
    sync_status: Optional[str] = None


class ModifierConfigSummary(BaseModel):
    total_options: int = 0
    enabled_options: int = 0
    custom_price_options: int = 0


class ModifierConfigOut(BaseModel):
    menu_group_id: int
    pos_item_id: str
    modifiers: List[ModifierConfigItem]
    summary: ModifierConfigSummary


class ItemConfigIn(BaseModel):
    pos_item_id: str = Field(..., min_length=1)
    enabled: Optional[bool] = None
    price_override: Optional[int] = Field(None, ge=0)


class ModifierConfigIn(BaseModel):
    pos_item_id: str = Field(..., min_length=1)
    modifier_group_id: str = Field(..., min_length=1)
    modifier_option_id: str = Field(..., min_length=1)
    enabled: Optional[bool] = None
    price_override: Optional[int] = Field(None, ge=0)


class SaveConfigRequest(BaseModel):
    items: List[ItemConfigIn]


class SaveModifierConfigRequest(BaseModel):
    modifiers: List[ModifierConfigIn]


class ConfigSaveError(BaseModel):
    scope: str
    entity_id: List[str]
    detail: str


class SaveConfigResult(BaseModel):
    success: bool
    updated_count: int = 0
    created_count: int = 0
    errors: List[ConfigSaveError] = []
