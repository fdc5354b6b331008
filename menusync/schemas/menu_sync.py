from enum import Enum
from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class MenuType(str, Enum):
    DELIVERY = "MENU_TYPE_FULFILLMENT_DELIVERY"
    PICKUP = "MENU_TYPE_FULFILLMENT_PICK_UP"


class LocalizedText(BaseModel):
    translations: Dict[str, str]

    @classmethod
    def of(cls, text: str, locale: str) -> "LocalizedText":
        return cls(translations={locale: text})


class TimePeriodPayload(BaseModel):
    start_time: str
    end_time: str


class ServiceAvailabilityPayload(BaseModel):
    day_of_week: str
    time_periods: List[TimePeriodPayload]


class EntityRef(BaseModel):
    id: str
    type: str = "ITEM"


class PriceOverridePayload(BaseModel):
    menu_id: str
    price: int


class PriceInfo(BaseModel):
    price: int
    overrides: List[PriceOverridePayload] = []


class MenuPayload(BaseModel):
    id: str
    title: LocalizedText
    service_availability: List[ServiceAvailabilityPayload] = []
    category_ids: List[str] = []


class CategoryPayload(BaseModel):
    id: str
    menu_id: str
    title: LocalizedText
    entities: List[EntityRef] = []


class ItemPayload(BaseModel):
    id: str
    title: LocalizedText
    description: Optional[LocalizedText] = None
    price_info: PriceInfo
    modifier_group_ids: List[str] = []


class ModifierOptionPayload(BaseModel):
    id: str
    title: LocalizedText
    price_info: PriceInfo


class ModifierGroupPayload(BaseModel):
    """modifier groups are scoped to (menu_id, item_id, id) since option enablement is per item and menu."""
    id: str
    item_id: str
    menu_id: str
    title: LocalizedText
    modifier_options: List[ModifierOptionPayload] = []


class PlatformMenuPayload(BaseModel):
    """full menu document; the platform replaces whatever it had with this."""
    menu_type: MenuType = MenuType.DELIVERY
    menus: List[MenuPayload] = []
    categories: List[CategoryPayload] = []
    items: List[ItemPayload] = []
    modifier_groups: List[ModifierGroupPayload] = []

    @classmethod
    def empty(cls, menu_type: MenuType = MenuType.DELIVERY) -> "PlatformMenuPayload":
        return cls(menu_type=menu_type)

    def is_empty(self) -> bool:
        return not (self.menus or self.categories or self.items or self.modifier_groups)


class SyncStats(BaseModel):
    item_count: int = 0
    category_count: int = 0
    modifier_group_count: int = 0
    skipped_count: int = 0
    custom_price_count: int = 0


class EntitySyncError(BaseModel):
    scope: str
    entity_id: List[str]
    detail: str


class SyncResult(BaseModel):
    success: bool
    message: str
    menu_type: MenuType = MenuType.DELIVERY
    stats: SyncStats = Field(default_factory=SyncStats)
    errors: List[EntitySyncError] = []


class SyncAllResult(BaseModel):
    success: bool
    message: str
    results: Dict[str, SyncResult]


class ClearResult(BaseModel):
    success: bool
    message: str
    menu_type: MenuType


class SyncRequest(BaseModel):
    menu_type: MenuType = MenuType.DELIVERY


class SyncAllRequest(BaseModel):
    tenant_id: str = Field(..., min_length=1)
    include_pickup: bool = False


class ClearRequest(BaseModel):
    menu_type: MenuType = MenuType.DELIVERY


class SyncHistoryOut(BaseModel):
    id: int
    tenant_id: str
    menu_group_id: Optional[int] = None
    sync_type: str
    menu_type: str
    item_count: int
    category_count: int
    modifier_group_count: int
    skipped_count: int
    custom_price_count: int
    success: bool
    error_message: Optional[str] = None
    synced_at: datetime

    class Config:
        from_attributes = True


class SyncHistoryPage(BaseModel):
    histories: List[SyncHistoryOut]
    total: int


class SyncRecordOut(BaseModel):
    scope: str
    entity_ref: str
    menu_group_id: int
    pos_item_id: str
    status: str
    error_detail: Optional[str] = None
    last_synced_at: Optional[datetime] = None

    class Config:
        from_attributes = True
