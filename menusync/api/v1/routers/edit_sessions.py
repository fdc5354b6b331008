from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from menusync.api.v1.errors import http_error
from menusync.db.session import get_db
from menusync.schemas.edit_sessions import (
    CommitError,
    CommitOut,
    EditSessionCreate,
    EditSessionOut,
    FieldEditsRequest,
    PendingEdit,
    PriceAdjustmentOut,
    PriceAdjustmentRequest,
    SessionItemView,
    SessionModifierOptionView,
)
from menusync.services.catalog import CatalogService, get_catalog_service
from menusync.services.menu_sync.errors import MenuSyncError
from menusync.services.menu_sync.keys import CompositeKey
from menusync.services.menu_sync.overrides import ConfigOverrideStore
from menusync.services.menu_sync.pricing import apply_percent_adjustment
from menusync.services.menu_sync.sessions import EditSession, edit_sessions
from menusync.services.menu_sync.tracker import ENABLED, PRICE
from menusync.services.menu_sync.view import get_menu_group_or_404, load_menu_group_view

router = APIRouter(prefix="/edit-sessions", tags=["edit-sessions"])


def _out(session: EditSession) -> EditSessionOut:
    pending = [
        PendingEdit(
            scope=key.scope.value,
            entity_id=list(key.entity_id),
            enabled=patch.get("enabled"),
            price_override=patch.get("price_override"),
            changed_fields=sorted(patch),
        )
        for key, patch in session.tracker.pending.items()
    ]
    return EditSessionOut(
        id=session.id,
        tenant_id=session.tenant_id,
        menu_group_id=session.menu_group_id,
        state=session.tracker.state.value,
        created_at=session.created_at,
        pending=pending,
    )


def _key(edit, menu_group_id: int) -> CompositeKey:
    if edit.modifier_group_id or edit.modifier_option_id:
        return CompositeKey.for_modifier_option(
            edit.pos_item_id,
            edit.modifier_group_id or "",
            edit.modifier_option_id or "",
            menu_group_id,
        )
    return CompositeKey.for_item(edit.pos_item_id, menu_group_id)


def _session_or_404(session_id: str) -> EditSession:
    try:
        return edit_sessions.get(session_id)
    except MenuSyncError as e:
        raise http_error(e)


@router.post("", response_model=EditSessionOut, status_code=201)
def open_session(payload: EditSessionCreate, db: Session = Depends(get_db)):
    try:
        group = get_menu_group_or_404(db, payload.menu_group_id)
    except MenuSyncError as e:
        raise http_error(e)
    if group.tenant_id != payload.tenant_id:
        raise HTTPException(status_code=400, detail="Menu group belongs to another tenant")
    session = edit_sessions.open(ConfigOverrideStore(db), payload.tenant_id, group.id)
    return _out(session)


@router.get("", response_model=List[EditSessionOut])
def list_sessions(menu_group_id: Optional[int] = None):
    return [_out(s) for s in edit_sessions.list(menu_group_id)]


@router.get("/{session_id}", response_model=EditSessionOut)
def get_session(session_id: str):
    return _out(_session_or_404(session_id))


@router.get("/{session_id}/items", response_model=List[SessionItemView])
def session_items(
    session_id: str,
    include_modifiers: bool = True,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """the menu as the session sees it: pending edits over saved config over base values."""
    session = _session_or_404(session_id)
    tracker = session.tracker
    try:
        view = load_menu_group_view(db, catalog, session.menu_group_id, with_modifiers=include_modifiers)
    except MenuSyncError as e:
        raise http_error(e)
    out = []
    for item in view.items:
        options = [
            SessionModifierOptionView(
                modifier_group_id=opt.modifier_group_id,
                modifier_option_id=opt.modifier_option_id,
                name=opt.name,
                base_price=opt.base_price,
                enabled=tracker.effective(opt, ENABLED),
                effective_price=tracker.effective(opt, PRICE),
                dirty=tracker.is_dirty(opt.config_key(tracker.menu_group_id)),
            )
            for opt in view.modifier_options.get(item.pos_item_id, [])
        ]
        out.append(SessionItemView(
            pos_item_id=item.pos_item_id,
            name=item.name,
            base_price=item.base_price,
            enabled=tracker.effective(item, ENABLED),
            effective_price=tracker.effective(item, PRICE),
            dirty=tracker.is_dirty(item.config_key(tracker.menu_group_id)),
            modifier_options=options,
        ))
    return out


@router.post("/{session_id}/edits", response_model=EditSessionOut)
def stage_edits(session_id: str, payload: FieldEditsRequest):
    session = _session_or_404(session_id)
    try:
        # all keys are built and checked before any edit is staged
        edits = [(_key(edit, session.menu_group_id), edit.field, edit.value) for edit in payload.edits]
        session.tracker.set_fields(edits)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MenuSyncError as e:
        raise http_error(e)
    return _out(session)


@router.post("/{session_id}/price-adjustment", response_model=PriceAdjustmentOut)
def adjust_prices(
    session_id: str,
    payload: PriceAdjustmentRequest,
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog_service),
):
    session = _session_or_404(session_id)
    try:
        view = load_menu_group_view(db, catalog, session.menu_group_id, with_modifiers=payload.include_modifiers)
        result = apply_percent_adjustment(
            session.tracker,
            view.items,
            view.all_modifier_options() if payload.include_modifiers else [],
            payload.percent,
        )
    except MenuSyncError as e:
        raise http_error(e)
    return PriceAdjustmentOut(
        percent=result.percent,
        items_adjusted=result.items_adjusted,
        modifier_options_adjusted=result.modifier_options_adjusted,
    )


@router.post("/{session_id}/commit", response_model=CommitOut)
def commit_session(session_id: str, db: Session = Depends(get_db)):
    session = _session_or_404(session_id)
    try:
        get_menu_group_or_404(db, session.menu_group_id)
        result = session.tracker.commit(ConfigOverrideStore(db))
    except MenuSyncError as e:
        raise http_error(e)
    return CommitOut(
        success=result.success,
        state=session.tracker.state.value,
        items_changed=result.items_changed,
        modifier_options_changed=result.modifier_options_changed,
        created_count=result.created_count,
        updated_count=result.updated_count,
        errors=[
            CommitError(scope=r.key.scope.value, entity_id=list(r.key.entity_id), detail=r.error or "save failed")
            for r in result.errors
        ],
    )


@router.post("/{session_id}/discard", response_model=EditSessionOut)
def discard_session(session_id: str):
    session = _session_or_404(session_id)
    try:
        session.tracker.discard()
    except MenuSyncError as e:
        raise http_error(e)
    return _out(session)


@router.delete("/{session_id}")
def close_session(session_id: str):
    try:
        edit_sessions.close(session_id)
    except MenuSyncError as e:
        raise http_error(e)
    return {"ok": True}
