from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from menusync.api.v1.errors import http_error
from menusync.db.session import get_db
from menusync.schemas.menu_sync import (
    ClearRequest,
    ClearResult,
    MenuType,
    PlatformMenuPayload,
    SyncAllRequest,
    SyncAllResult,
    SyncHistoryPage,
    SyncRecordOut,
    SyncRequest,
    SyncResult,
)
from menusync.services.catalog import CatalogService, get_catalog_service
from menusync.services.menu_sync.errors import MenuSyncError
from menusync.services.menu_sync.sync import SyncOrchestrator
from menusync.services.platform import PlatformAdapter, get_platform_adapter

router = APIRouter(prefix="/menu-sync", tags=["menu-sync"])


def _orchestrator(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
    adapter: PlatformAdapter = Depends(get_platform_adapter),
) -> SyncOrchestrator:
    return SyncOrchestrator(db, catalog, adapter)


@router.get("/menu-groups/{menu_group_id}/preview", response_model=PlatformMenuPayload)
def preview_payload(
    menu_group_id: int,
    menu_type: MenuType = MenuType.DELIVERY,
    orchestrator: SyncOrchestrator = Depends(_orchestrator),
):
    """the document a sync would submit, without submitting it."""
    try:
        return orchestrator.build_payload(menu_group_id, menu_type)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/menu-groups/{menu_group_id}", response_model=SyncResult)
def sync_menu_group(
    menu_group_id: int,
    payload: SyncRequest,
    orchestrator: SyncOrchestrator = Depends(_orchestrator),
):
    try:
        return orchestrator.sync_menu_group(menu_group_id, payload.menu_type)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/all", response_model=SyncAllResult)
def sync_all(payload: SyncAllRequest, orchestrator: SyncOrchestrator = Depends(_orchestrator)):
    try:
        return orchestrator.sync_all(payload.tenant_id, include_pickup=payload.include_pickup)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("/menu-groups/{menu_group_id}/clear", response_model=ClearResult)
def clear_menu(
    menu_group_id: int,
    payload: ClearRequest,
    orchestrator: SyncOrchestrator = Depends(_orchestrator),
):
    try:
        return orchestrator.clear(menu_group_id, payload.menu_type)
    except MenuSyncError as e:
        raise http_error(e)


@router.get("/history", response_model=SyncHistoryPage)
def sync_history(
    tenant_id: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    orchestrator: SyncOrchestrator = Depends(_orchestrator),
):
    return orchestrator.history(tenant_id, limit=limit, offset=offset)


@router.get("/menu-groups/{menu_group_id}/records", response_model=List[SyncRecordOut])
def sync_records(menu_group_id: int, orchestrator: SyncOrchestrator = Depends(_orchestrator)):
    try:
        return orchestrator.sync_records(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)
