from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class TimePeriod(BaseModel):
    start_time: str = Field(..., description="HH:MM", pattern="^([01][0-9]|2[0-3]):[0-5][0-9]$")
    end_time: str = Field(..., description="HH:MM", pattern="^([01][0-9]|2[0-3]):[0-5][0-9]$")


class MenuGroupCreate(BaseModel):
    tenant_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    service_availability: Optional[Dict[str, List[TimePeriod]]] = None
    display_order: Optional[int] = Field(None, ge=0)
    category_ids: List[int] = Field(default_factory=list, description="initial categories, in menu order")


class MenuGroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    service_availability: Optional[Dict[str, List[TimePeriod]]] = None
    display_order: Optional[int] = Field(None, ge=0)


class MenuGroupOut(BaseModel):
    id: int
    tenant_id: str
    name: str
    display_order: int
    service_availability: Dict[str, List[TimePeriod]]
    last_synced_at: Optional[datetime] = None
    sync_status: Optional[str] = None
    sync_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ServingStatus(BaseModel):
    menu_group_id: int
    at: datetime
    is_serving: bool


class MenuCategoryOut(BaseModel):
    id: int
    tenant_id: str
    name: str
    source_category_id: Optional[str] = None
    origin: str
    display_order: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomCategoryCreate(BaseModel):
    tenant_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    menu_group_id: Optional[int] = None


class SystemCategoryRegister(BaseModel):
    tenant_id: str = Field(..., min_length=1, max_length=64)
    source_category_id: str = Field(..., min_length=1, max_length=64)


class CategoryItemOut(BaseModel):
    pos_item_id: str
    pos_item_name: Optional[str] = None
    display_order: int

    class Config:
        from_attributes = True


class CategoryItemsAdd(BaseModel):
    pos_item_ids: List[str] = Field(..., min_length=1)


class MenuCategoryMembershipOut(BaseModel):
    menu_group_id: int
    menu_category_id: int
    display_order: int
    category: MenuCategoryOut

    class Config:
        from_attributes = True


class AddCategoryRequest(BaseModel):
    category_id: int


class ReorderCategoriesRequest(BaseModel):
    category_ids: List[int]


class RemoveCategoryResult(BaseModel):
    menu_group_id: int
    category_id: int
    category_deleted: bool
