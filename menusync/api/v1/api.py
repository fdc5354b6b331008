from fastapi import APIRouter

from menusync.api.v1.routers import menu_groups as menu_groups_router
from menusync.api.v1.routers import menu_categories as menu_categories_router
from menusync.api.v1.routers import menu_config as menu_config_router
from menusync.api.v1.routers import edit_sessions as edit_sessions_router
from menusync.api.v1.routers import menu_sync as menu_sync_router

router = APIRouter()

# menu structure
router.include_router(menu_groups_router.router)
router.include_router(menu_categories_router.router)

# configuration and editing
router.include_router(menu_config_router.router)
router.include_router(edit_sessions_router.router)

# platform sync
router.include_router(menu_sync_router.router)
