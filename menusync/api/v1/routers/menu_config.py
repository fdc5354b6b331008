from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menusync.api.v1.errors import http_error
from menusync.db.session import get_db
from menusync.schemas.menu_config import (
    MenuConfigOut,
    ModifierConfigOut,
    SaveConfigRequest,
    SaveConfigResult,
    SaveModifierConfigRequest,
)
from menusync.services.catalog import CatalogService, get_catalog_service
from menusync.services.menu_sync.errors import MenuSyncError
from menusync.services.menu_sync.menu_config import MenuConfigService

router = APIRouter(prefix="/menu-config", tags=["menu-config"])


@router.get("/{menu_group_id}", response_model=MenuConfigOut)
def get_menu_config(
    menu_group_id: int,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return MenuConfigService(db, catalog).get_config(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/{menu_group_id}", response_model=SaveConfigResult)
def save_menu_config(
    menu_group_id: int,
    payload: SaveConfigRequest,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return MenuConfigService(db, catalog).save_config(menu_group_id, payload.items)
    except MenuSyncError as e:
        raise http_error(e)


@router.get("/{menu_group_id}/items/{pos_item_id}/modifiers", response_model=ModifierConfigOut)
def get_modifier_config(
    menu_group_id: int,
    pos_item_id: str,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return MenuConfigService(db, catalog).get_modifier_config(pos_item_id, menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/{menu_group_id}/modifiers", response_model=SaveConfigResult)
def save_modifier_config(
    menu_group_id: int,
    payload: SaveModifierConfigRequest,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return MenuConfigService(db, catalog).save_modifier_config(payload.modifiers, menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)
