from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from menusync.api.v1.errors import http_error
from menusync.db.session import get_db
from menusync.schemas.menu_groups import MenuGroupCreate, MenuGroupOut, MenuGroupUpdate, ServingStatus
from menusync.services.catalog import CatalogService, get_catalog_service
from menusync.services.menu_sync.errors import MenuSyncError
from menusync.services.menu_sync.menu_groups import MenuGroupManager, is_serving_at

router = APIRouter(prefix="/menu-groups", tags=["menu-groups"])


def _availability(periods) -> Optional[dict]:
    if periods is None:
        return None
    return {day: [p.model_dump() for p in day_periods] for day, day_periods in periods.items()}


@router.get("", response_model=List[MenuGroupOut])
def list_menu_groups(tenant_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return MenuGroupManager(db).list(tenant_id)


@router.post("", response_model=MenuGroupOut, status_code=201)
def create_menu_group(
    payload: MenuGroupCreate,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return MenuGroupManager(db, catalog).create(
            payload.tenant_id,
            payload.name,
            _availability(payload.service_availability),
            display_order=payload.display_order,
            category_ids=payload.category_ids,
        )
    except MenuSyncError as e:
        raise http_error(e)


@router.get("/{menu_group_id}", response_model=MenuGroupOut)
def get_menu_group(menu_group_id: int, db: Session = Depends(get_db)):
    try:
        return MenuGroupManager(db).get(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.patch("/{menu_group_id}", response_model=MenuGroupOut)
def update_menu_group(menu_group_id: int, payload: MenuGroupUpdate, db: Session = Depends(get_db)):
    if payload.name is None and payload.service_availability is None and payload.display_order is None:
        raise HTTPException(status_code=400, detail="Nothing to update")
    try:
        return MenuGroupManager(db).update(
            menu_group_id,
            name=payload.name,
            availability=_availability(payload.service_availability),
            display_order=payload.display_order,
        )
    except MenuSyncError as e:
        raise http_error(e)


@router.delete("/{menu_group_id}")
def delete_menu_group(menu_group_id: int, db: Session = Depends(get_db)):
    """delete locally; the platform keeps the old menu until the next sync."""
    try:
        MenuGroupManager(db).delete(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)
    return {"ok": True}


@router.get("/{menu_group_id}/serving", response_model=ServingStatus)
def get_serving_status(menu_group_id: int, at: Optional[datetime] = None, db: Session = Depends(get_db)):
    try:
        group = MenuGroupManager(db).get(menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)
    when = at or datetime.now()
    return ServingStatus(menu_group_id=group.id, at=when, is_serving=is_serving_at(group, when))
