from fastapi import HTTPException

from menusync.services.menu_sync.errors import MenuSyncError


def http_error(exc: MenuSyncError) -> HTTPException:
    """translate an engine error into the matching HTTP error."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
