from .models import (
    ConfigOverride,
    MenuCategory,
    MenuCategoryItem,
    MenuGroup,
    MenuGroupCategory,
    MenuSyncHistory,
    SyncRecord,
)

__all__ = [
    "ConfigOverride",
    "MenuCategory",
    "MenuCategoryItem",
    "MenuGroup",
    "MenuGroupCategory",
    "MenuSyncHistory",
    "SyncRecord",
]
