from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from menusync.api.v1.errors import http_error
from menusync.db.session import get_db
from menusync.schemas.catalog import CatalogCategoryWithItems
from menusync.schemas.menu_groups import (
    AddCategoryRequest,
    CategoryItemOut,
    CategoryItemsAdd,
    CustomCategoryCreate,
    MenuCategoryMembershipOut,
    MenuCategoryOut,
    RemoveCategoryResult,
    ReorderCategoriesRequest,
    SystemCategoryRegister,
)
from menusync.services.catalog import CatalogService, get_catalog_service
from menusync.services.menu_sync.categories import CategoryRegistry
from menusync.services.menu_sync.errors import MenuSyncError

router = APIRouter(tags=["menu-categories"])


def _registry(db: Session, catalog: CatalogService) -> CategoryRegistry:
    return CategoryRegistry(db, catalog)


# registry

@router.get("/menu-categories", response_model=List[MenuCategoryOut])
def list_registry(
    tenant_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return _registry(db, catalog).list_registry(tenant_id)


@router.get("/menu-categories/pos", response_model=List[CatalogCategoryWithItems])
def list_pos_categories(
    tenant_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).list_pos_categories(tenant_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/menu-categories/system", response_model=MenuCategoryOut, status_code=201)
def register_system_category(
    payload: SystemCategoryRegister,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).register_system_category(payload.tenant_id, payload.source_category_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/menu-categories/custom", response_model=MenuCategoryOut, status_code=201)
def create_custom_category(
    payload: CustomCategoryCreate,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).create_custom_category(payload.tenant_id, payload.name, payload.menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.get("/menu-categories/{category_id}/items", response_model=List[CategoryItemOut])
def list_category_items(
    category_id: int,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).list_category_items(category_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/menu-categories/{category_id}/items")
def add_items_to_category(
    category_id: int,
    payload: CategoryItemsAdd,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        added = _registry(db, catalog).add_items_to_category(category_id, payload.pos_item_ids)
    except MenuSyncError as e:
        raise http_error(e)
    return {"added": added}


@router.delete("/menu-categories/{category_id}/items/{pos_item_id}")
def remove_item_from_category(
    category_id: int,
    pos_item_id: str,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        _registry(db, catalog).remove_item_from_category(category_id, pos_item_id)
    except MenuSyncError as e:
        raise http_error(e)
    return {"ok": True}


# membership

@router.get("/menu-groups/{menu_group_id}/categories", response_model=List[MenuCategoryMembershipOut])
def list_menu_categories(
    menu_group_id: int,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).list_menu_categories(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.get("/menu-groups/{menu_group_id}/categories/available", response_model=List[MenuCategoryOut])
def available_categories(
    menu_group_id: int,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).available_to_add(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/menu-groups/{menu_group_id}/categories", response_model=MenuCategoryMembershipOut, status_code=201)
def add_category_to_menu(
    menu_group_id: int,
    payload: AddCategoryRequest,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).add_category_to_menu(menu_group_id, payload.category_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.delete("/menu-groups/{menu_group_id}/categories/{category_id}", response_model=RemoveCategoryResult)
def remove_category_from_menu(
    menu_group_id: int,
    category_id: int,
    is_system: Optional[bool] = None,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        deleted = _registry(db, catalog).remove_category_from_menu(menu_group_id, category_id, is_system)
    except MenuSyncError as e:
        raise http_error(e)
    return RemoveCategoryResult(menu_group_id=menu_group_id, category_id=category_id, category_deleted=deleted)


@router.put("/menu-groups/{menu_group_id}/categories/order", response_model=List[MenuCategoryMembershipOut])
def reorder_categories(
    menu_group_id: int,
    payload: ReorderCategoriesRequest,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return _registry(db, catalog).reorder(menu_group_id, payload.category_ids)
    except MenuSyncError as e:
        raise http_error(e)
