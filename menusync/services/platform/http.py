import logging
from typing import Optional

import httpx

from menusync.core.config import settings
from menusync.schemas.menu_sync import EntitySyncError, PlatformMenuPayload
from menusync.services.menu_sync.errors import RemotePlatformError
from .base import AdapterResponse, PlatformAdapter

logger = logging.getLogger(__name__)


class HttpPlatformAdapter(PlatformAdapter):
    """posts full menu documents to the delivery platform integration service.

    The integration service owns the translation from tenant-local ids to the
    platform's namespace and reports per-entity failures as
    {"success": bool, "message": str, "errors": [{"scope", "entityId", "detail"}]}.
    """
    name = "http"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, client: Optional[httpx.Client] = None):
        self.base_url = (base_url or settings.PLATFORM_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.PLATFORM_TIMEOUT_SECONDS
        self._client = client

    def _post(self, path: str, body: dict) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            return self._client.post(url, json=body, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, json=body)

    def submit_menu(self, tenant_id: str, payload: PlatformMenuPayload) -> AdapterResponse:
        body = {"tenantId": tenant_id, "menu": payload.model_dump(mode="json")}
        try:
            resp = self._post("/api/v1/store/menu/sync", body)
        except httpx.HTTPError as e:
            logger.error("platform unreachable for tenant %s: %s", tenant_id, e)
            raise RemotePlatformError(f"platform unreachable: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            logger.warning("platform returned a non-object body (HTTP %s) for tenant %s", resp.status_code, tenant_id)
            data = {}
        rows = data.get("errors")
        rows = [row for row in rows if isinstance(row, dict)] if isinstance(rows, list) else []

        if resp.status_code >= 500:
            raise RemotePlatformError(data.get("message") or f"platform returned HTTP {resp.status_code}")
        if resp.status_code >= 400 and not rows:
            raise RemotePlatformError(data.get("message") or f"platform rejected the menu (HTTP {resp.status_code})")

        errors = [
            EntitySyncError(
                scope=row.get("scope", "item"),
                entity_id=[str(part) for part in row.get("entityId") or []],
                detail=row.get("detail") or "rejected",
            )
            for row in rows
        ]
        return AdapterResponse(
            success=bool(data.get("success", resp.status_code < 400)),
            message=data.get("message") or "",
            errors=errors,
        )
